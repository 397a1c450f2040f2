"""Triangle primitive with Möller–Trumbore ray-triangle intersection.

This module provides a Triangle dataclass, the ray-triangle intersection test,
and the barycentric helpers used for smooth (Phong-interpolated) shading
normals on polygonal meshes.

The intersection solves

    origin + k * direction = A + u * (B - A) + v * (C - A)

with Cramer's rule expressed through cross and dot products. A determinant
close to zero means the ray is parallel to the triangle's plane and is
classified as a miss. Barycentric parameters outside the triangle and hits at
or behind the ray origin (k <= INTERSECTION_EPSILON) are also misses.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtracer.geometry.triangle import Triangle, intersect_triangle
    >>> tri = Triangle(
    ...     a=ti.math.vec3(0, 0, 0),
    ...     b=ti.math.vec3(1, 0, 0),
    ...     c=ti.math.vec3(0, 1, 0),
    ... )
    >>> # Use intersect_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from rtracer.core.ray import cross, dot, length, normalize
from rtracer.geometry.sphere import Intersection, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Tolerance for the parallel-ray determinant test and the minimum hit distance
INTERSECTION_EPSILON = 1e-9


@ti.dataclass
class Triangle:
    """A triangle defined by its three vertices.

    Attributes:
        a: First vertex (vec3).
        b: Second vertex (vec3).
        c: Third vertex (vec3).
    """

    a: vec3
    b: vec3
    c: vec3


@ti.func
def triangle_area(a: vec3, b: vec3, c: vec3) -> ti.f32:
    """Compute the area of the triangle (a, b, c)."""
    return 0.5 * length(cross(b - a, c - a))


@ti.func
def triangle_normal(triangle: Triangle) -> vec3:
    """Compute the unnormalized face normal cross(b - a, c - a)."""
    return cross(triangle.b - triangle.a, triangle.c - triangle.a)


@ti.func
def intersect_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    triangle: Triangle,
) -> Intersection:
    """Test for ray-triangle intersection.

    The returned normal is the geometric face normal, flipped when needed so
    that it always opposes the incoming ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        triangle: The triangle to test intersection against.

    Returns:
        An Intersection. Check the hit field to determine if the ray hit.
    """
    result = make_miss()

    ab = triangle.b - triangle.a
    ac = triangle.c - triangle.a
    p = cross(ray_direction, ac)
    det = dot(ab, p)

    # Ray parallel to the triangle's plane
    if ti.abs(det) >= INTERSECTION_EPSILON:
        inv_det = 1.0 / det
        s = ray_origin - triangle.a
        u = inv_det * dot(s, p)

        if u >= 0.0 and u <= 1.0:
            q = cross(s, ab)
            v = inv_det * dot(ray_direction, q)

            if v >= 0.0 and u + v <= 1.0:
                k = inv_det * dot(ac, q)

                if k > INTERSECTION_EPSILON:
                    position = ray_origin + ray_direction * k
                    normal = triangle_normal(triangle)
                    if dot(normal, ray_direction) > 0.0:
                        normal = -normal

                    result = Intersection(
                        hit=1,
                        position=position,
                        normal=normalize(normal),
                        distance=length(ray_origin - position),
                    )

    return result


@ti.func
def barycentric_coords(triangle: Triangle, point: vec3) -> vec3:
    """Compute barycentric weights of a point as ratios of sub-triangle areas.

    Component i is the area of the sub-triangle formed by the point and the
    edge opposite vertex i, divided by the full triangle area.

    Args:
        triangle: The reference triangle.
        point: A point in the triangle's plane (typically a hit point).

    Returns:
        The weights (w_a, w_b, w_c).
    """
    area = triangle_area(triangle.a, triangle.b, triangle.c)
    return vec3(
        triangle_area(point, triangle.b, triangle.c),
        triangle_area(point, triangle.a, triangle.c),
        triangle_area(point, triangle.a, triangle.b),
    ) / area


@ti.func
def interpolate_normal(
    triangle: Triangle,
    point: vec3,
    normal_a: vec3,
    normal_b: vec3,
    normal_c: vec3,
) -> vec3:
    """Blend per-vertex normals at a point using barycentric weights.

    The blend is not renormalized.
    """
    w = barycentric_coords(triangle, point)
    return normal_a * w.x + normal_b * w.y + normal_c * w.z

