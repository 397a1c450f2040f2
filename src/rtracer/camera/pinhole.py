"""Pinhole camera model for perspective projection ray generation.

The camera maps a pixel (i, j) to a world-space ray. Column i runs left to
right and row j runs top to bottom. Normalized device coordinates are scaled
by the aspect ratio and tan(fov / 2):

    x = (2 * (i + 0.5) / width - 1) * aspect * tan(fov / 2)
    y = (1 - 2 * (j + 0.5) / height) * tan(fov / 2)

The orthonormal basis is built from the look-from/look-to points:
- forward: normalize(look_from - look_to), pointing away from the view
- right: cross(world_up, forward), or the x axis if that is degenerate
- up: cross(forward, right), or the x axis if that is degenerate

The ray passes through the point at unit distance along -forward, offset by
x * right + y * up.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtracer.camera.pinhole import CameraOptions, setup_camera
    >>> camera = CameraOptions(
    ...     screen_width=640,
    ...     screen_height=480,
    ...     fov=math.pi / 2,
    ...     look_from=(0.0, 0.0, 3.0),
    ...     look_to=(0.0, 0.0, 0.0),
    ... )
    >>> setup_camera(camera)
    >>> # Use get_ray(i, j, width, height) within a Taichi kernel
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti

from rtracer.core.ray import Ray, is_zero_np, make_ray, normalize, normalize_np, vec3

WORLD_UP = (0.0, 1.0, 0.0)
FALLBACK_AXIS = (1.0, 0.0, 0.0)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraOptions:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        screen_width: Image width in pixels.
        screen_height: Image height in pixels.
        fov: Field of view in radians (default pi / 2).
        look_from: Camera position in world space.
        look_to: Point the camera is looking at.
    """

    screen_width: int
    screen_height: int
    fov: float = math.pi / 2
    look_from: tuple[float, float, float] = (0.0, 0.0, 0.0)
    look_to: tuple[float, float, float] = (0.0, 0.0, -1.0)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.screen_width / self.screen_height

    def validate(self) -> None:
        """Check the options.

        Raises:
            ValueError: If the dimensions are not positive or the field of
                view is outside (0, pi).
        """
        if self.screen_width <= 0 or self.screen_height <= 0:
            raise ValueError(
                f"Screen dimensions must be positive, got "
                f"{self.screen_width}x{self.screen_height}"
            )
        if not 0.0 < self.fov < math.pi:
            raise ValueError(f"Field of view must be in (0, pi) radians, got {self.fov}")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_scale = ti.field(dtype=ti.f32, shape=())
_camera_aspect = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def camera_basis(
    camera: CameraOptions,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Build the camera's (forward, right, up) basis with numpy.

    Args:
        camera: Camera configuration.

    Returns:
        Tuple of unit vectors (forward, right, up). forward points from
        look_to toward look_from (opposite the view direction).
    """
    look_from = np.asarray(camera.look_from, dtype=np.float64)
    look_to = np.asarray(camera.look_to, dtype=np.float64)

    forward = normalize_np(look_from - look_to)

    right = np.cross(np.asarray(WORLD_UP), forward)
    if is_zero_np(right):
        right = np.asarray(FALLBACK_AXIS)
    right = normalize_np(right)

    up = np.cross(forward, right)
    if is_zero_np(up):
        up = np.asarray(FALLBACK_AXIS)
    up = normalize_np(up)

    return forward, right, up


def setup_camera(camera: CameraOptions) -> None:
    """Initialize camera state from configuration.

    Must be called before rendering. Writes to Taichi fields, so call it
    from Python (not from within a Taichi kernel).

    Args:
        camera: Camera configuration with position, orientation, and FOV.

    Raises:
        ValueError: If the camera options are invalid.
    """
    camera.validate()
    forward, right, up = camera_basis(camera)

    _camera_origin[None] = [float(c) for c in camera.look_from]
    _camera_forward[None] = forward.tolist()
    _camera_right[None] = right.tolist()
    _camera_up[None] = up.tolist()
    _camera_scale[None] = math.tan(camera.fov / 2.0)
    _camera_aspect[None] = camera.aspect_ratio


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray through the center of pixel (i, j).

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the camera position through the pixel.
    """
    scale = _camera_scale[None]
    x = (2.0 * (ti.cast(pixel_i, ti.f32) + 0.5) / ti.cast(width, ti.f32) - 1.0)
    x *= _camera_aspect[None] * scale
    y = (1.0 - 2.0 * (ti.cast(pixel_j, ti.f32) + 0.5) / ti.cast(height, ti.f32)) * scale

    origin = _camera_origin[None]
    end = _camera_right[None] * x + _camera_up[None] * y - _camera_forward[None] + origin

    return make_ray(origin, normalize(end - origin))


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, forward, right and up vectors.
    """

    def _as_tuple(value) -> tuple[float, float, float]:
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _as_tuple(_camera_origin[None]),
        "forward": _as_tuple(_camera_forward[None]),
        "right": _as_tuple(_camera_right[None]),
        "up": _as_tuple(_camera_up[None]),
    }
