"""Renderer facade tying scene, camera, render mode and post-processing together.

The Renderer class uploads a Scene, configures the camera and render target,
runs the kernel for the selected render mode, and turns the raw buffer into a
displayable image:

    full    tone mapping + gamma over the whole radiance buffer
    depth   distances normalized by the farthest hit, misses white
    normal  normals remapped from [-1, 1] to [0, 1], misses black

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtracer.camera.pinhole import CameraOptions
    >>> from rtracer.core.renderer import RenderMode, RenderOptions, Renderer
    >>>
    >>> renderer = Renderer(scene, CameraOptions(640, 480), RenderOptions(RenderMode.FULL, 4))
    >>> renderer.render()
    >>> renderer.save_image("out.png")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Generator
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import numpy.typing as npt

from rtracer.camera.pinhole import CameraOptions, get_camera_info, setup_camera
from rtracer.core.integrator import (
    MAX_TRACE_DEPTH,
    ProgressCallback,
    get_buffer_numpy,
    iter_render_full,
    render_depth,
    render_full,
    render_normal,
    setup_render_target,
)
from rtracer.preview.display import normalize_depth, remap_normals, tone_map_global
from rtracer.scene.intersection import upload_scene
from rtracer.scene.model import Scene

logger = logging.getLogger(__name__)


class RenderMode(IntEnum):
    """What the output image encodes."""

    DEPTH = 0
    NORMAL = 1
    FULL = 2

    @classmethod
    def from_name(cls, name: str) -> RenderMode:
        """Parse a mode name such as "full" (case-insensitive).

        Raises:
            ValueError: If the name is not a known mode.
        """
        try:
            return cls[name.upper()]
        except KeyError:
            choices = ", ".join(m.name.lower() for m in cls)
            raise ValueError(f"Unknown render mode {name!r} (expected one of: {choices})") from None


@dataclass
class RenderOptions:
    """Render configuration.

    Attributes:
        mode: The render mode.
        depth: Recursion budget for full mode (ignored by the other modes).
    """

    mode: RenderMode = RenderMode.FULL
    depth: int = 4

    def validate(self) -> None:
        """Check the options.

        Raises:
            ValueError: If the mode is unknown or depth is out of range.
        """
        if not isinstance(self.mode, RenderMode):
            self.mode = RenderMode.from_name(str(self.mode))
        if not 0 <= self.depth <= MAX_TRACE_DEPTH:
            raise ValueError(f"Recursion depth must be in [0, {MAX_TRACE_DEPTH}], got {self.depth}")


class Renderer:
    """Render a Scene with one camera and one set of render options.

    The renderer owns no Taichi state of its own; it configures the global
    scene, camera and render target fields and delegates to the integrator.

    Attributes:
        scene: The scene being rendered.
        camera: Camera configuration (also gives the image size).
        options: Render mode and depth.
    """

    def __init__(
        self,
        scene: Scene,
        camera: CameraOptions,
        options: RenderOptions | None = None,
    ) -> None:
        """Upload the scene and set up camera and render target.

        Raises:
            ValueError: If the camera or render options are invalid.
            RuntimeError: If the scene exceeds a fixed capacity.
        """
        self.scene = scene
        self.camera = camera
        self.options = options if options is not None else RenderOptions()
        self.options.validate()
        self._image: npt.NDArray[np.float32] | None = None
        self._activate()

    def _activate(self) -> None:
        """Load this renderer's camera, render target and scene into the global fields.

        The fields are shared by every Renderer, so this runs before each render.
        """
        setup_camera(self.camera)
        setup_render_target(self.camera.screen_width, self.camera.screen_height)
        upload_scene(self.scene)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Camera basis: %s", get_camera_info())

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.camera.screen_width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.camera.screen_height

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.float32]:
        """Render the image and post-process it for the selected mode.

        Args:
            callback: Optional progress callback, called with
                (rows_done, total_rows). Only full mode reports per row;
                the other modes report once when done.

        Returns:
            Float image of shape (height, width, 3) with values in [0, 1].
        """
        self._activate()
        start = time.perf_counter()
        mode = self.options.mode

        if mode == RenderMode.FULL:
            render_full(self.options.depth, callback)
            image = tone_map_global(get_buffer_numpy())
        elif mode == RenderMode.DEPTH:
            render_depth()
            image = normalize_depth(get_buffer_numpy())
        else:
            render_normal()
            image = remap_normals(get_buffer_numpy())

        if mode != RenderMode.FULL and callback is not None:
            callback(self.height, self.height)

        logger.info(
            "Rendered %dx%d (%s) in %.2fs",
            self.width,
            self.height,
            mode.name.lower(),
            time.perf_counter() - start,
        )
        self._image = image
        return image

    def render_progressive(self) -> Generator[tuple[int, int], None, None]:
        """Render in full mode, yielding (rows_done, total_rows) after each row.

        The post-processed image is available from get_image_numpy() once the
        generator is exhausted. Other modes render in one step and yield once.
        """
        if self.options.mode != RenderMode.FULL:
            self.render()
            yield (self.height, self.height)
            return

        self._activate()
        yield from iter_render_full(self.options.depth)
        self._image = tone_map_global(get_buffer_numpy())

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the last post-processed image.

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        if self._image is None:
            raise RuntimeError("Nothing rendered yet. Call render() first.")
        return self._image

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the last image quantized to 8 bits per channel."""
        from rtracer.preview.export import image_to_uint8

        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str) -> None:
        """Save the last image as a PNG file."""
        from rtracer.preview.export import save_png_from_array

        save_png_from_array(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"mode={self.options.mode.name.lower()}, depth={self.options.depth})"
        )
