"""Immutable scene description consumed by the renderer.

A Scene is built once (by the loader or by hand through SceneBuilder), uploaded
into Taichi fields, and never mutated while rays are traced. Primitives refer to
materials through integer handles that index the scene's material tuple, so a
material table can never be resized out from under the objects that use it.

Example:
    >>> from rtracer.scene.model import Material, Scene, SphereObject, Light
    >>> glass = Material(name="glass", refraction_index=1.5, albedo=(0.0, 0.5, 0.8))
    >>> scene = Scene(
    ...     sphere_objects=(SphereObject(center=(0, 0, -3), radius=1.0, material_id=0),),
    ...     lights=(Light(position=(0, 5, 0), intensity=(1, 1, 1)),),
    ...     materials=(glass,),
    ... )
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class Material:
    """Surface description for the Phong-style shading model.

    Attributes:
        name: The material name (unique within a scene).
        ambient_color: Ambient term, added once regardless of lights (Ka).
        diffuse_color: Diffuse reflectance (Kd).
        specular_color: Specular reflectance (Ks).
        emissive_color: Emitted radiance (Ke), added once like the ambient term.
        specular_exponent: Phong exponent (Ns).
        refraction_index: Index of refraction (Ni).
        albedo: Weights for (local shading, reflection, refraction). They are
            additive and need not sum to 1.
    """

    name: str
    ambient_color: Vec3 = (0.0, 0.0, 0.0)
    diffuse_color: Vec3 = (0.0, 0.0, 0.0)
    specular_color: Vec3 = (0.0, 0.0, 0.0)
    emissive_color: Vec3 = (0.0, 0.0, 0.0)
    specular_exponent: float = 1.0
    refraction_index: float = 1.0
    albedo: Vec3 = (1.0, 0.0, 0.0)


@dataclass(frozen=True)
class TriangleObject:
    """A triangle with a material handle and optional per-vertex normals.

    Attributes:
        vertices: The three vertices (a, b, c).
        material_id: Index into Scene.materials.
        normals: Per-vertex normals, only meaningful when has_vertex_normals.
        has_vertex_normals: Whether shading should blend the vertex normals
            instead of using the flat face normal.
    """

    vertices: tuple[Vec3, Vec3, Vec3]
    material_id: int
    normals: tuple[Vec3, Vec3, Vec3] = ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
    has_vertex_normals: bool = False


@dataclass(frozen=True)
class SphereObject:
    """A sphere with a material handle."""

    center: Vec3
    radius: float
    material_id: int


@dataclass(frozen=True)
class Light:
    """A point light.

    Attributes:
        position: World-space light position.
        intensity: RGB weight applied to diffuse and specular terms.
    """

    position: Vec3
    intensity: Vec3


@dataclass(frozen=True)
class Scene:
    """Immutable aggregate of geometry, lights and the material table.

    Attributes:
        objects: Triangle objects.
        sphere_objects: Sphere objects.
        lights: Point lights.
        materials: The material table; primitives refer to entries by index.
    """

    objects: tuple[TriangleObject, ...] = ()
    sphere_objects: tuple[SphereObject, ...] = ()
    lights: tuple[Light, ...] = ()
    materials: tuple[Material, ...] = ()

    @property
    def materials_by_name(self) -> Mapping[str, Material]:
        """Read-only mapping from material name to Material."""
        return MappingProxyType({m.name: m for m in self.materials})

    def material_id(self, name: str) -> int:
        """Look up the handle of a material by name.

        Raises:
            KeyError: If no material has that name.
        """
        for index, material in enumerate(self.materials):
            if material.name == name:
                return index
        raise KeyError(name)

    def material_of(self, primitive: TriangleObject | SphereObject) -> Material:
        """Resolve a primitive's material handle."""
        return self.materials[primitive.material_id]

    def __repr__(self) -> str:
        return (
            f"Scene(objects={len(self.objects)}, spheres={len(self.sphere_objects)}, "
            f"lights={len(self.lights)}, materials={len(self.materials)})"
        )
