"""Scene-level ray queries over GPU-resident scene data.

This module stores an uploaded Scene in Taichi fields and provides the
scene-level queries the tracer needs:

    find_nearest          closest hit over every triangle and sphere
    is_shadowed           whether anything blocks a light ray
    is_inside_any_sphere  whether a point lies strictly inside any sphere

There is no acceleration structure: every query scans every primitive.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtracer.scene.builder import SceneBuilder
    >>> from rtracer.scene.intersection import upload_scene
    >>> builder = SceneBuilder()
    >>> white = builder.add_material("white", diffuse_color=(1, 1, 1))
    >>> builder.add_sphere((0, 0, -3), 1.0, white)
    >>> upload_scene(builder.build())
    >>> # Use find_nearest within a Taichi kernel
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from rtracer.core.ray import length
from rtracer.geometry.sphere import Sphere, intersect_sphere, make_sphere
from rtracer.geometry.triangle import Triangle, interpolate_normal, intersect_triangle
from rtracer.scene.model import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        position: The world-space hit point. Only valid if hit == 1.
        normal: The shading normal at the hit point. Only valid if hit == 1.
        distance: Distance from the ray origin. Only valid if hit == 1.
        material_id: Handle of the hit primitive's material, -1 on a miss.
    """

    hit: ti.i32
    position: vec3
    normal: vec3
    distance: ti.f32
    material_id: ti.i32


@ti.dataclass
class MaterialRecord:
    """GPU-side copy of a Material (the name stays on the Python side)."""

    ambient: vec3
    diffuse: vec3
    specular: vec3
    emissive: vec3
    specular_exponent: ti.f32
    refraction_index: ti.f32
    albedo: vec3


# Maximum number of primitives supported in the scene
MAX_TRIANGLES = 65536
MAX_SPHERES = 1024
MAX_LIGHTS = 64
MAX_MATERIALS = 1024

# Triangle storage: Structure of Arrays layout
triangle_vertices = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_TRIANGLES, 3))
triangle_normals = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_TRIANGLES, 3))
triangle_has_normals = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
triangle_material_ids = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Point lights
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())

# Material table, indexed by material handle
material_ambient = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_emissive = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_specular_exponent = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_refraction_index = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_albedo = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove every primitive, light and material from the GPU-side scene.

    Only the counts are reset; stale field data is overwritten by the next
    upload.
    """
    num_triangles[None] = 0
    num_spheres[None] = 0
    num_lights[None] = 0
    num_materials[None] = 0


def _check_capacity(count: int, limit: int, what: str) -> None:
    if count > limit:
        raise RuntimeError(f"Maximum number of {what} ({limit}) exceeded: {count}")


def upload_scene(scene: Scene) -> None:
    """Copy a Scene into the Taichi fields used by the render kernels.

    The whole scene is written with one from_numpy() call per field, so
    uploading large meshes does not go through per-element field writes.

    Args:
        scene: The scene snapshot to upload. It replaces any previous scene.

    Raises:
        RuntimeError: If the scene exceeds a fixed capacity.
        ValueError: If a primitive refers to a material handle that does not
            exist.
    """
    _check_capacity(len(scene.objects), MAX_TRIANGLES, "triangles")
    _check_capacity(len(scene.sphere_objects), MAX_SPHERES, "spheres")
    _check_capacity(len(scene.lights), MAX_LIGHTS, "lights")
    _check_capacity(len(scene.materials), MAX_MATERIALS, "materials")

    n_materials = len(scene.materials)
    for primitive in (*scene.objects, *scene.sphere_objects):
        if not 0 <= primitive.material_id < n_materials:
            raise ValueError(f"Invalid material_id: {primitive.material_id}")

    clear_scene()

    # Triangles
    vertices = np.zeros((MAX_TRIANGLES, 3, 3), dtype=np.float32)
    normals = np.zeros((MAX_TRIANGLES, 3, 3), dtype=np.float32)
    has_normals = np.zeros(MAX_TRIANGLES, dtype=np.int32)
    triangle_materials = np.zeros(MAX_TRIANGLES, dtype=np.int32)
    for i, obj in enumerate(scene.objects):
        vertices[i] = obj.vertices
        normals[i] = obj.normals
        has_normals[i] = int(obj.has_vertex_normals)
        triangle_materials[i] = obj.material_id
    triangle_vertices.from_numpy(vertices)
    triangle_normals.from_numpy(normals)
    triangle_has_normals.from_numpy(has_normals)
    triangle_material_ids.from_numpy(triangle_materials)

    # Spheres
    centers = np.zeros((MAX_SPHERES, 3), dtype=np.float32)
    radii = np.zeros(MAX_SPHERES, dtype=np.float32)
    sphere_materials = np.zeros(MAX_SPHERES, dtype=np.int32)
    for i, sphere in enumerate(scene.sphere_objects):
        centers[i] = sphere.center
        radii[i] = sphere.radius
        sphere_materials[i] = sphere.material_id
    sphere_centers.from_numpy(centers)
    sphere_radii.from_numpy(radii)
    sphere_material_ids.from_numpy(sphere_materials)

    # Lights
    positions = np.zeros((MAX_LIGHTS, 3), dtype=np.float32)
    intensities = np.zeros((MAX_LIGHTS, 3), dtype=np.float32)
    for i, light in enumerate(scene.lights):
        positions[i] = light.position
        intensities[i] = light.intensity
    light_positions.from_numpy(positions)
    light_intensities.from_numpy(intensities)

    # Materials
    colors = {
        name: np.zeros((MAX_MATERIALS, 3), dtype=np.float32)
        for name in ("ambient", "diffuse", "specular", "emissive", "albedo")
    }
    exponents = np.ones(MAX_MATERIALS, dtype=np.float32)
    refraction_indices = np.ones(MAX_MATERIALS, dtype=np.float32)
    for i, material in enumerate(scene.materials):
        colors["ambient"][i] = material.ambient_color
        colors["diffuse"][i] = material.diffuse_color
        colors["specular"][i] = material.specular_color
        colors["emissive"][i] = material.emissive_color
        colors["albedo"][i] = material.albedo
        exponents[i] = material.specular_exponent
        refraction_indices[i] = material.refraction_index
    material_ambient.from_numpy(colors["ambient"])
    material_diffuse.from_numpy(colors["diffuse"])
    material_specular.from_numpy(colors["specular"])
    material_emissive.from_numpy(colors["emissive"])
    material_albedo.from_numpy(colors["albedo"])
    material_specular_exponent.from_numpy(exponents)
    material_refraction_index.from_numpy(refraction_indices)

    num_triangles[None] = len(scene.objects)
    num_spheres[None] = len(scene.sphere_objects)
    num_lights[None] = len(scene.lights)
    num_materials[None] = n_materials

    logger.debug("Uploaded %r", scene)


def get_triangle_count() -> int:
    """Get the number of triangles in the uploaded scene."""
    return int(num_triangles[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the uploaded scene."""
    return int(num_spheres[None])


def get_light_count() -> int:
    """Get the number of lights in the uploaded scene."""
    return int(num_lights[None])


def get_material_count() -> int:
    """Get the number of materials in the uploaded scene."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> MaterialRecord:
    """Look up a material record by handle."""
    return MaterialRecord(
        ambient=material_ambient[material_id],
        diffuse=material_diffuse[material_id],
        specular=material_specular[material_id],
        emissive=material_emissive[material_id],
        specular_exponent=material_specular_exponent[material_id],
        refraction_index=material_refraction_index[material_id],
        albedo=material_albedo[material_id],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        position=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        distance=0.0,
        material_id=-1,
    )


@ti.func
def _get_triangle(i: ti.i32) -> Triangle:
    return Triangle(
        a=triangle_vertices[i, 0],
        b=triangle_vertices[i, 1],
        c=triangle_vertices[i, 2],
    )


@ti.func
def _get_sphere(i: ti.i32) -> Sphere:
    return make_sphere(sphere_centers[i], sphere_radii[i])


@ti.func
def find_nearest(ray_origin: vec3, ray_direction: vec3) -> SceneHitRecord:
    """Find the closest intersection of a ray with the scene.

    Scans every triangle, then every sphere. Triangles that carry vertex
    normals report the barycentric blend of those normals instead of the
    flat face normal. Ties keep the first primitive scanned.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A SceneHitRecord for the closest hit, or a miss record.
    """
    result = _make_miss_record()

    for i in range(num_triangles[None]):
        triangle = _get_triangle(i)
        rec = intersect_triangle(ray_origin, ray_direction, triangle)
        if rec.hit == 1 and (result.hit == 0 or rec.distance < result.distance):
            normal = rec.normal
            if triangle_has_normals[i] == 1:
                normal = interpolate_normal(
                    triangle,
                    rec.position,
                    triangle_normals[i, 0],
                    triangle_normals[i, 1],
                    triangle_normals[i, 2],
                )
            result = SceneHitRecord(
                hit=1,
                position=rec.position,
                normal=normal,
                distance=rec.distance,
                material_id=triangle_material_ids[i],
            )

    for i in range(num_spheres[None]):
        rec = intersect_sphere(ray_origin, ray_direction, _get_sphere(i))
        if rec.hit == 1 and (result.hit == 0 or rec.distance < result.distance):
            result = SceneHitRecord(
                hit=1,
                position=rec.position,
                normal=rec.normal,
                distance=rec.distance,
                material_id=sphere_material_ids[i],
            )

    return result


@ti.func
def is_shadowed(
    light_position: vec3,
    light_direction: vec3,
    light_distance: ti.f32,
    bias: ti.f32,
) -> ti.i32:
    """Test whether anything blocks a ray cast from a light toward a point.

    Args:
        light_position: Origin of the shadow ray (the light).
        light_direction: Unit direction from the light toward the point.
        light_distance: Distance from the light to the point.
        bias: Tolerance so the shaded surface does not shadow itself.

    Returns:
        1 if some primitive is hit at distance + bias < light_distance.
    """
    shadowed = 0

    for i in range(num_triangles[None]):
        if shadowed == 0:
            rec = intersect_triangle(light_position, light_direction, _get_triangle(i))
            if rec.hit == 1 and rec.distance + bias < light_distance:
                shadowed = 1

    for i in range(num_spheres[None]):
        if shadowed == 0:
            rec = intersect_sphere(light_position, light_direction, _get_sphere(i))
            if rec.hit == 1 and rec.distance + bias < light_distance:
                shadowed = 1

    return shadowed


@ti.func
def is_inside_any_sphere(point: vec3) -> ti.i32:
    """Return 1 if the point lies strictly inside any sphere of the scene."""
    inside = 0
    for i in range(num_spheres[None]):
        if length(sphere_centers[i] - point) < sphere_radii[i]:
            inside = 1
    return inside
