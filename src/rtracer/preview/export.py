"""Image export utilities for rendered images.

This module quantizes post-processed float images to 8-bit RGB and saves them
as PNG files through Pillow. Quantization truncates (value - epsilon) * 255
toward zero, so a channel exactly at 1.0 maps to 254 and never overflows.

Example:
    >>> from rtracer.preview.export import save_png
    >>> renderer.render()
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from rtracer.core.renderer import Renderer

# Subtracted before scaling to 255 so 1.0 truncates to 254
QUANTIZE_EPSILON = 1e-9


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a float image in [0, 1] to uint8.

    Each channel becomes int((value - QUANTIZE_EPSILON) * 255), truncated
    toward zero and clamped to [0, 255].

    Args:
        image: Image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3).
    """
    scaled = np.trunc((image.astype(np.float64) - QUANTIZE_EPSILON) * 255.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def save_png_from_array(image: npt.NDArray[np.floating], filepath: str) -> None:
    """Save a float image in [0, 1] as an 8-bit RGB PNG file.

    Args:
        image: Image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image), mode="RGB")
    pil_image.save(filepath)


def save_png(renderer: Renderer, filepath: str) -> None:
    """Save the renderer's last image as a PNG file.

    Args:
        renderer: A Renderer that has already rendered.
        filepath: Output file path (should end in .png).
    """
    save_png_from_array(renderer.get_image_numpy(), filepath)
