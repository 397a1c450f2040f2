"""Scene builder for assembling an immutable Scene.

The SceneBuilder is the mutable counterpart of Scene. It hands out stable
integer material handles, validates primitives as they are added, and produces
a frozen Scene snapshot with build(). The loader uses it to turn a scene file
into a Scene; tests and example scripts use it to build scenes by hand.

Example:
    >>> from rtracer.scene.builder import SceneBuilder
    >>> builder = SceneBuilder()
    >>> red = builder.add_material("red", diffuse_color=(0.8, 0.1, 0.1))
    >>> builder.add_sphere((0, 0, -3), 1.0, red)
    >>> builder.add_light((0, 5, 0), (1.0, 1.0, 1.0))
    >>> scene = builder.build()
"""

from __future__ import annotations

from collections.abc import Sequence

from rtracer.core.ray import is_zero_np
from rtracer.scene.model import Light, Material, Scene, SphereObject, TriangleObject, Vec3


def _vec3(value: Sequence[float], what: str) -> Vec3:
    """Coerce a 3-sequence to a tuple of floats."""
    if len(value) != 3:
        raise ValueError(f"{what} must have 3 components, got {len(value)}")
    return (float(value[0]), float(value[1]), float(value[2]))


class SceneBuilder:
    """Incrementally assemble a Scene.

    Materials are registered first and referred to by the integer handle that
    add_material() returns (or by name through material_id()).

    Attributes:
        materials: Registered materials, indexed by handle.
        objects: Triangle objects added so far.
        sphere_objects: Sphere objects added so far.
        lights: Lights added so far.
    """

    def __init__(self) -> None:
        self.materials: list[Material] = []
        self.objects: list[TriangleObject] = []
        self.sphere_objects: list[SphereObject] = []
        self.lights: list[Light] = []
        self._material_ids: dict[str, int] = {}

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(
        self,
        name: str,
        *,
        ambient_color: Sequence[float] = (0.0, 0.0, 0.0),
        diffuse_color: Sequence[float] = (0.0, 0.0, 0.0),
        specular_color: Sequence[float] = (0.0, 0.0, 0.0),
        emissive_color: Sequence[float] = (0.0, 0.0, 0.0),
        specular_exponent: float = 1.0,
        refraction_index: float = 1.0,
        albedo: Sequence[float] = (1.0, 0.0, 0.0),
    ) -> int:
        """Register a material and return its handle.

        Registering a name that already exists replaces that material in place
        and returns the existing handle.

        Raises:
            ValueError: If a color or albedo does not have 3 components.
        """
        material = Material(
            name=name,
            ambient_color=_vec3(ambient_color, "ambient_color"),
            diffuse_color=_vec3(diffuse_color, "diffuse_color"),
            specular_color=_vec3(specular_color, "specular_color"),
            emissive_color=_vec3(emissive_color, "emissive_color"),
            specular_exponent=float(specular_exponent),
            refraction_index=float(refraction_index),
            albedo=_vec3(albedo, "albedo"),
        )
        return self.add_material_object(material)

    def add_material_object(self, material: Material) -> int:
        """Register an already constructed Material and return its handle."""
        if material.name in self._material_ids:
            material_id = self._material_ids[material.name]
            self.materials[material_id] = material
            return material_id

        material_id = len(self.materials)
        self.materials.append(material)
        self._material_ids[material.name] = material_id
        return material_id

    def material_id(self, name: str) -> int:
        """Get the handle of a registered material.

        Raises:
            ValueError: If no material with that name is registered.
        """
        try:
            return self._material_ids[name]
        except KeyError:
            raise ValueError(f"Unknown material: {name!r}") from None

    def _check_material(self, material_id: int) -> None:
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_triangle(
        self,
        a: Sequence[float],
        b: Sequence[float],
        c: Sequence[float],
        material_id: int,
        normals: Sequence[Sequence[float]] | None = None,
    ) -> int:
        """Add a triangle and return its index.

        Vertex normals are used for shading only when all three are given and
        non-zero; otherwise the face is shaded with its flat normal.

        Raises:
            ValueError: If material_id is invalid or normals is not a triple.
        """
        self._check_material(material_id)

        vertex_normals = ((0.0, 0.0, 0.0),) * 3
        has_normals = False
        if normals is not None:
            if len(normals) != 3:
                raise ValueError(f"Expected 3 vertex normals, got {len(normals)}")
            vertex_normals = tuple(_vec3(n, "normal") for n in normals)
            has_normals = not any(is_zero_np(n) for n in vertex_normals)

        self.objects.append(
            TriangleObject(
                vertices=(_vec3(a, "vertex"), _vec3(b, "vertex"), _vec3(c, "vertex")),
                material_id=material_id,
                normals=vertex_normals,
                has_vertex_normals=has_normals,
            )
        )
        return len(self.objects) - 1

    def add_polygon(
        self,
        vertices: Sequence[Sequence[float]],
        material_id: int,
        normals: Sequence[Sequence[float]] | None = None,
    ) -> list[int]:
        """Fan-triangulate a convex polygon as (0, k, k + 1) triangles.

        Returns:
            The indices of the added triangles.

        Raises:
            ValueError: If fewer than 3 vertices are given, or normals does
                not match the vertex count.
        """
        if len(vertices) < 3:
            raise ValueError(f"A polygon needs at least 3 vertices, got {len(vertices)}")
        if normals is not None and len(normals) != len(vertices):
            raise ValueError("normals must match the number of vertices")

        indices = []
        for k in range(1, len(vertices) - 1):
            face_normals = None
            if normals is not None:
                face_normals = (normals[0], normals[k], normals[k + 1])
            indices.append(
                self.add_triangle(
                    vertices[0], vertices[k], vertices[k + 1], material_id, face_normals
                )
            )
        return indices

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere and return its index.

        Raises:
            ValueError: If material_id is invalid or radius is not positive.
        """
        self._check_material(material_id)
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")

        self.sphere_objects.append(
            SphereObject(
                center=_vec3(center, "center"),
                radius=float(radius),
                material_id=material_id,
            )
        )
        return len(self.sphere_objects) - 1

    def add_light(self, position: Sequence[float], intensity: Sequence[float]) -> int:
        """Add a point light and return its index."""
        self.lights.append(
            Light(position=_vec3(position, "position"), intensity=_vec3(intensity, "intensity"))
        )
        return len(self.lights) - 1

    # =========================================================================
    # Snapshot
    # =========================================================================

    def build(self) -> Scene:
        """Produce an immutable Scene from everything added so far."""
        return Scene(
            objects=tuple(self.objects),
            sphere_objects=tuple(self.sphere_objects),
            lights=tuple(self.lights),
            materials=tuple(self.materials),
        )

    def clear(self) -> None:
        """Remove all materials, primitives and lights."""
        self.materials.clear()
        self.objects.clear()
        self.sphere_objects.clear()
        self.lights.clear()
        self._material_ids.clear()

    def __repr__(self) -> str:
        return (
            f"SceneBuilder(objects={len(self.objects)}, spheres={len(self.sphere_objects)}, "
            f"lights={len(self.lights)}, materials={len(self.materials)})"
        )
