"""Preview module for post-processing and output.

Components:
    display: Tone mapping, depth/normal visualization, Matplotlib preview
    export: 8-bit quantization and PNG export via Pillow

Example:
    >>> from rtracer.preview import save_png, show_preview
    >>> renderer.render()
    >>> show_preview(renderer)
    >>> save_png(renderer, "output.png")
"""

from rtracer.preview.display import (
    DEPTH_MISS_DISTANCE,
    GAMMA,
    normalize_depth,
    remap_normals,
    show_preview,
    tone_map_global,
)
from rtracer.preview.export import (
    QUANTIZE_EPSILON,
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    # Display functions
    "show_preview",
    # Post-processing
    "tone_map_global",
    "normalize_depth",
    "remap_normals",
    "GAMMA",
    "DEPTH_MISS_DISTANCE",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
    "QUANTIZE_EPSILON",
]
