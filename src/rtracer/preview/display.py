"""Post-processing and Matplotlib preview for rendered buffers.

This module turns the raw per-pixel buffer produced by the render kernels into
a displayable image in [0, 1]:

    tone_map_global   full mode: global exposure curve + gamma
    normalize_depth   depth mode: distances over the farthest hit, misses white
    remap_normals     normal mode: [-1, 1] -> [0, 1] for hit pixels

The full-mode curve is global: the normalization constant is the largest
absolute channel value over the whole image, so it cannot be applied pixel by
pixel in isolation.

Example:
    >>> from rtracer.preview.display import tone_map_global
    >>> image = tone_map_global(radiance)  # radiance: (H, W, 3) float array
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from rtracer.core.renderer import Renderer

# Display gamma used by the full-mode tone curve
GAMMA = 2.2

# Distance stored by depth mode for pixels whose primary ray misses
DEPTH_MISS_DISTANCE = 1e5


def tone_map_global(
    image: npt.NDArray[np.floating],
    gamma: float = GAMMA,
) -> npt.NDArray[np.float32]:
    """Apply the global exposure curve and gamma correction.

    With total the largest absolute channel value in the image, each channel
    p becomes

        (p * (p / total**2 + 1) / (p + 1)) ** (1 / gamma)

    NaN results (an all-black image gives total == 0, negative channels give
    a negative base) are replaced with 0.

    Args:
        image: Linear radiance array of shape (H, W, 3).
        gamma: Gamma value (default 2.2).

    Returns:
        Tone mapped image.
    """
    pixels = image.astype(np.float64)
    total = float(np.max(np.abs(pixels))) if pixels.size else 0.0

    with np.errstate(divide="ignore", invalid="ignore"):
        mapped = pixels * (pixels / (total * total) + 1.0) / (pixels + 1.0)
        result = np.power(mapped, 1.0 / gamma)

    result[np.isnan(result)] = 0.0
    return result.astype(np.float32)


def normalize_depth(
    image: npt.NDArray[np.floating],
    miss_distance: float = DEPTH_MISS_DISTANCE,
) -> npt.NDArray[np.float32]:
    """Normalize a depth buffer for display.

    Pixels holding miss_distance become white (1, 1, 1); all other pixels are
    divided by the largest hit distance, so the farthest hit maps to 1.

    Args:
        image: Depth buffer of shape (H, W, 3), distance replicated per channel.
        miss_distance: Sentinel stored for pixels with no hit.

    Returns:
        Image in [0, 1].
    """
    depth = image.astype(np.float64)
    miss = depth[..., 0] == miss_distance
    hits = depth[~miss]

    result = np.ones_like(depth)
    if hits.size:
        farthest = float(np.max(hits))
        if farthest > 0.0:
            result[~miss] = depth[~miss] / farthest
        else:
            result[~miss] = 0.0

    return result.astype(np.float32)


def remap_normals(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Map normals from [-1, 1] to [0, 1] for display.

    Only pixels with a non-zero normal are remapped; misses stay black.

    Args:
        image: Normal buffer of shape (H, W, 3).

    Returns:
        Image with hit pixels remapped to 0.5 * n + 0.5.
    """
    normals = image.astype(np.float64)
    hit = np.linalg.norm(normals, axis=-1) != 0.0

    result = normals.copy()
    result[hit] = result[hit] * 0.5 + 0.5
    return result.astype(np.float32)


def show_preview(
    renderer: Renderer,
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the last render as a Matplotlib figure.

    Args:
        renderer: The Renderer instance to display.
        title: Custom title (default shows size and render mode).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = np.clip(renderer.get_image_numpy(), 0.0, 1.0)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = (
            f"{renderer.width}x{renderer.height} - "
            f"{renderer.options.mode.name.lower()} (depth {renderer.options.depth})"
        )
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
