"""Phong-style local illumination with hard shadows.

For a surface point, every point light that is not occluded contributes

    diffuse  = max(0, dot(n, L)) * I * Kd
    specular = max(0, dot(reflect(-L, n), V)) ** Ns * I * Ks

where L points from the surface to the light and V from the surface to the
viewer. The light sum is weighted by albedo[0]; the ambient and emissive terms
are then added once, independently of the number of lights.

Shadow rays are cast from the light toward the point, so a blocker only counts
when it is hit strictly before the point (with SHADOW_BIAS of slack).
"""

import taichi as ti
import taichi.math as tm

from rtracer.core.ray import dot, length, normalize, reflect
from rtracer.scene.intersection import (
    MaterialRecord,
    is_shadowed,
    light_intensities,
    light_positions,
    num_lights,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# Slack for shadow rays so the shaded surface does not occlude itself
SHADOW_BIAS = 1e-3


@ti.func
def shade_light(
    light_position: vec3,
    light_intensity: vec3,
    viewer: vec3,
    point: vec3,
    normal: vec3,
    material: MaterialRecord,
) -> vec3:
    """Diffuse plus specular contribution of one light, zero if shadowed."""
    contribution = vec3(0.0, 0.0, 0.0)

    light_to_point = point - light_position
    light_distance = length(light_to_point)
    light_direction = normalize(light_to_point)

    if is_shadowed(light_position, light_direction, light_distance, SHADOW_BIAS) == 0:
        k_d = ti.max(0.0, dot(normal, normalize(light_position - point)))
        contribution += material.diffuse * light_intensity * k_d

        k_s = dot(reflect(light_direction, normal), normalize(viewer - point))
        highlight = ti.max(0.0, k_s) ** material.specular_exponent
        contribution += material.specular * light_intensity * highlight

    return contribution


@ti.func
def local_illumination(viewer: vec3, point: vec3, normal: vec3, material: MaterialRecord) -> vec3:
    """Compute the local (non-recursive) radiance at a surface point.

    Args:
        viewer: Origin of the ray that hit the point.
        point: The surface point.
        normal: The shading normal at the point.
        material: The surface material.

    Returns:
        albedo[0] * (sum of unshadowed diffuse + specular) + ambient + emissive.
    """
    total = vec3(0.0, 0.0, 0.0)
    for i in range(num_lights[None]):
        total += shade_light(
            light_positions[i], light_intensities[i], viewer, point, normal, material
        )

    return total * material.albedo.x + material.ambient + material.emissive
