"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    shading: Phong local illumination with hard shadows
    integrator: Recursive light transport and the per-mode render kernels
    renderer: Renderer facade, render modes and render options

All compute-intensive operations use Taichi kernels, one primary ray per
pixel.
"""

from .ray import (
    Ray,
    cross,
    dot,
    is_zero,
    length,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    reflect,
    refract,
    sign,
    vec3,
)

# Note: shading, integrator and renderer declare Taichi fields (directly or
# through the scene and camera modules) and are NOT imported here. Call
# ti.init() first, then import them directly, e.g.:
#   from rtracer.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "is_zero",
    "dot",
    "cross",
    "sign",
    "reflect",
    "refract",
]
