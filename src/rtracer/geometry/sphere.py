"""Sphere primitive with projection-based ray-sphere intersection.

This module provides the Sphere dataclass, the Intersection record shared by
every primitive, and the sphere intersection test.

The test projects the vector from the ray origin to the sphere center onto the
ray direction and measures the chord distance from the center to the ray line.
If that distance exceeds the radius the ray misses. Otherwise the half-chord
length follows from the sphere equation, and the near or far point is chosen
depending on whether the origin lies inside the sphere:

    projection > 0, origin outside   -> near point (entering)
    projection > 0, origin inside    -> far point (exiting)
    projection <= 0, origin inside   -> far point
    projection <= 0, origin outside  -> miss (sphere is behind the ray)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtracer.geometry.sphere import Sphere, intersect_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use intersect_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from rtracer.core.ray import dot, length, length_squared, normalize

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class Intersection:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        position: The world-space hit point. Only valid if hit == 1.
        normal: The unit surface normal at the hit point. Only valid if hit == 1.
        distance: Distance from the ray origin to the hit point.
            Only valid if hit == 1.
    """

    hit: ti.i32
    position: vec3
    normal: vec3
    distance: ti.f32


@ti.func
def make_miss() -> Intersection:
    """Create an Intersection indicating no hit."""
    return Intersection(
        hit=0,
        position=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        distance=0.0,
    )


@ti.func
def sphere_contains(sphere: Sphere, point: vec3) -> ti.i32:
    """Return 1 if the point lies inside or on the sphere."""
    return length(sphere.center - point) <= sphere.radius


@ti.func
def intersect_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> Intersection:
    """Test for ray-sphere intersection.

    The normal points away from the side the ray came from: outward
    (hit - center) when the origin is outside the sphere, inward
    (center - hit) when the origin is inside.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        sphere: The sphere to test intersection against.

    Returns:
        An Intersection. Check the hit field to determine if the ray hit.
    """
    result = make_miss()

    # Vector from ray origin to sphere center, and its projection on the ray
    to_center = sphere.center - ray_origin
    projection_length = dot(to_center, ray_direction)
    projection = ray_direction * projection_length

    # Distance from the center to the ray line
    chord_distance = length(projection - to_center)

    if chord_distance <= sphere.radius:
        half_chord = ti.sqrt(
            ti.max(sphere.radius * sphere.radius - length_squared(projection - to_center), 0.0)
        )
        inside = sphere_contains(sphere, ray_origin)

        did_hit = 0
        # Hit point relative to the ray origin
        offset = vec3(0.0, 0.0, 0.0)
        if projection_length > 0.0:
            did_hit = 1
            if inside:
                offset = projection + ray_direction * half_chord
            else:
                offset = projection - ray_direction * half_chord
        elif inside:
            did_hit = 1
            offset = projection + ray_direction * half_chord

        if did_hit == 1:
            normal = vec3(0.0, 0.0, 0.0)
            if inside == 0:
                normal = offset - to_center
            else:
                normal = to_center - offset

            result = Intersection(
                hit=1,
                position=offset + ray_origin,
                normal=normalize(normal),
                distance=length(offset),
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
