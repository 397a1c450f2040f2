"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera with look-from/look-to positioning

Camera responsibilities:
    - Transform pixel coordinates to world-space rays
    - Build the orthonormal view basis, with fallbacks when the view
      direction is parallel to the world up axis
    - Scale the image plane by aspect ratio and field of view

Ray generation runs inside the render kernels, one primary ray per pixel.
"""

from .pinhole import (
    CameraOptions,
    camera_basis,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "CameraOptions",
    "camera_basis",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
