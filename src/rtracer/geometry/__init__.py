"""Geometry module for shape primitives and intersection algorithms.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive, the shared Intersection record, and the
        projection-based ray-sphere test
    triangle: Triangle primitive, Möller–Trumbore ray-triangle test, and
        barycentric normal interpolation

All intersection routines are implemented as Taichi functions (@ti.func) so
they can run inside the per-pixel render kernels. There is no acceleration
structure; the scene module scans every primitive for every ray.

Ray-object intersection follows the pattern:
    record = intersect_shape(ray_origin, ray_direction, shape)
"""

from .sphere import Intersection, Sphere, intersect_sphere, make_miss, make_sphere, sphere_contains
from .triangle import (
    INTERSECTION_EPSILON,
    Triangle,
    barycentric_coords,
    interpolate_normal,
    intersect_triangle,
    triangle_area,
    triangle_normal,
)

__all__ = [
    "Sphere",
    "Intersection",
    "intersect_sphere",
    "make_sphere",
    "make_miss",
    "sphere_contains",
    "Triangle",
    "intersect_triangle",
    "triangle_area",
    "triangle_normal",
    "barycentric_coords",
    "interpolate_normal",
    "INTERSECTION_EPSILON",
]
