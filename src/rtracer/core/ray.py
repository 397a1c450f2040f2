"""Ray data structure and vector utilities for Whitted-style ray tracing.

This module provides the Ray dataclass and the vector kernel that every other
part of the tracer builds on: dot and cross products, lengths, a zero-safe
normalize, and the reflect/refract formulas used by the recursive tracer.
All ``@ti.func`` helpers are designed to be called from within Taichi kernels.

A few numpy counterparts (suffixed ``_np``) give the Python-side scene builder
and camera setup the same zero-vector semantics.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Callers are
            responsible for passing a unit vector.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Unlike ``tm.normalize``, the exact zero vector is returned unchanged
    instead of producing NaNs.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or v itself when its
        length is exactly zero.
    """
    result = v
    if is_zero(v) == 0:
        result = v / length(v)
    return result


@ti.func
def is_zero(v: vec3) -> ti.i32:
    """Return 1 if the vector has length exactly zero, 0 otherwise."""
    return tm.length(v) == 0.0


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def sign(value: ti.f32) -> ti.f32:
    """Return -1.0 for negative values and 1.0 otherwise (including zero)."""
    return ti.select(value < 0.0, -1.0, 1.0)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Both vectors are expected to be normalized by the caller.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal.

    Returns:
        The reflected direction d - 2 * dot(n, d) * n.
    """
    return incident - 2.0 * dot(normal, incident) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    The incident direction is normalized here; the normal is expected to be
    unit length.

    Args:
        incident: The incoming direction vector.
        normal: The surface normal.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        A tuple (ok, direction). ok is 0 on total internal reflection, in
        which case direction is the zero vector.
    """
    d = normalize(incident)
    c = -dot(normal, d)
    k = eta * eta * (1.0 - c * c)
    ok = 0
    result = vec3(0.0, 0.0, 0.0)
    if k <= 1.0:
        ok = 1
        result = eta * d + (eta * c - ti.sqrt(1.0 - k)) * normal
    return ok, result


# =============================================================================
# Python-side helpers
# =============================================================================


def normalize_np(v: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize a vector on the Python side, leaving the zero vector as-is."""
    arr = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(arr)
    if n == 0.0:
        return arr.copy()
    return arr / n


def is_zero_np(v: npt.ArrayLike) -> bool:
    """Return True if the vector has length exactly zero."""
    return bool(np.linalg.norm(np.asarray(v, dtype=np.float64)) == 0.0)
