"""Tests for the scene model and SceneBuilder.

These are pure Python and need no Taichi kernels.
"""

import dataclasses

import pytest

from rtracer.scene.builder import SceneBuilder
from rtracer.scene.model import Material, Scene, SphereObject


class TestMaterials:
    """Tests for material registration and lookup."""

    def test_material_defaults(self):
        material = Material(name="plain")

        assert material.specular_exponent == 1.0
        assert material.refraction_index == 1.0
        assert material.albedo == (1.0, 0.0, 0.0)
        assert material.emissive_color == (0.0, 0.0, 0.0)

    def test_handles_are_sequential(self):
        builder = SceneBuilder()

        assert builder.add_material("a") == 0
        assert builder.add_material("b") == 1
        assert builder.material_id("b") == 1

    def test_duplicate_name_replaces_in_place(self):
        builder = SceneBuilder()
        builder.add_material("a", diffuse_color=(1.0, 0.0, 0.0))
        builder.add_material("b")
        handle = builder.add_material("a", diffuse_color=(0.0, 1.0, 0.0))

        assert handle == 0
        assert len(builder.materials) == 2
        assert builder.materials[0].diffuse_color == (0.0, 1.0, 0.0)

    def test_unknown_material_name(self):
        with pytest.raises(ValueError, match="Unknown material"):
            SceneBuilder().material_id("missing")

    def test_color_must_have_three_components(self):
        with pytest.raises(ValueError, match="3 components"):
            SceneBuilder().add_material("bad", diffuse_color=(1.0, 0.0))


class TestPrimitives:
    """Tests for adding triangles, polygons, spheres and lights."""

    def test_triangle_without_normals_is_flat(self):
        builder = SceneBuilder()
        m = builder.add_material("m")
        builder.add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0), m)

        triangle = builder.objects[0]
        assert triangle.vertices == ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert not triangle.has_vertex_normals

    def test_triangle_with_all_normals_is_smooth(self):
        builder = SceneBuilder()
        m = builder.add_material("m")
        builder.add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0), m, normals=[(0, 0, 1)] * 3)

        assert builder.objects[0].has_vertex_normals

    def test_triangle_with_a_zero_normal_is_flat(self):
        builder = SceneBuilder()
        m = builder.add_material("m")
        builder.add_triangle(
            (0, 0, 0), (1, 0, 0), (0, 1, 0), m, normals=[(0, 0, 1), (0, 0, 0), (0, 0, 1)]
        )

        assert not builder.objects[0].has_vertex_normals

    def test_polygon_is_fan_triangulated(self):
        builder = SceneBuilder()
        m = builder.add_material("m")
        quad = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]
        indices = builder.add_polygon(quad, m)

        assert indices == [0, 1]
        assert builder.objects[0].vertices == ((0, 0, 0), (1, 0, 0), (1, 1, 0))
        assert builder.objects[1].vertices == ((0, 0, 0), (1, 1, 0), (0, 1, 0))

    def test_polygon_needs_three_vertices(self):
        builder = SceneBuilder()
        m = builder.add_material("m")
        with pytest.raises(ValueError, match="at least 3"):
            builder.add_polygon([(0, 0, 0), (1, 0, 0)], m)

    def test_invalid_material_handle(self):
        builder = SceneBuilder()
        with pytest.raises(ValueError, match="Invalid material_id"):
            builder.add_sphere((0, 0, 0), 1.0, 0)
        with pytest.raises(ValueError, match="Invalid material_id"):
            builder.add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0), 3)

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_sphere_radius_must_be_positive(self, radius):
        builder = SceneBuilder()
        m = builder.add_material("m")
        with pytest.raises(ValueError, match="radius"):
            builder.add_sphere((0, 0, 0), radius, m)

    def test_add_light(self):
        builder = SceneBuilder()
        assert builder.add_light((0, 5, 0), (1, 1, 1)) == 0
        assert builder.lights[0].position == (0.0, 5.0, 0.0)


class TestSceneSnapshot:
    """Tests for build() and the immutable Scene."""

    def _build(self):
        builder = SceneBuilder()
        red = builder.add_material("red", diffuse_color=(1, 0, 0))
        glass = builder.add_material("glass", refraction_index=1.5)
        builder.add_triangle((0, 0, 0), (1, 0, 0), (0, 1, 0), red)
        builder.add_sphere((0, 0, -3), 1.0, glass)
        builder.add_light((0, 5, 0), (1, 1, 1))
        return builder, builder.build()

    def test_build_copies_everything(self):
        _, scene = self._build()

        assert len(scene.objects) == 1
        assert len(scene.sphere_objects) == 1
        assert len(scene.lights) == 1
        assert [m.name for m in scene.materials] == ["red", "glass"]

    def test_scene_is_independent_of_builder(self):
        builder, scene = self._build()
        builder.add_light((1, 1, 1), (1, 1, 1))
        builder.clear()

        assert len(scene.lights) == 1
        assert len(builder.materials) == 0

    def test_scene_is_frozen(self):
        _, scene = self._build()
        with pytest.raises(dataclasses.FrozenInstanceError):
            scene.lights = ()

    def test_material_lookup(self):
        _, scene = self._build()

        assert scene.material_id("glass") == 1
        assert scene.materials_by_name["glass"].refraction_index == 1.5
        assert scene.material_of(scene.sphere_objects[0]).name == "glass"
        with pytest.raises(KeyError):
            scene.material_id("missing")

    def test_materials_by_name_is_read_only(self):
        _, scene = self._build()
        with pytest.raises(TypeError):
            scene.materials_by_name["new"] = Material(name="new")

    def test_repr(self):
        scene = Scene(
            sphere_objects=(SphereObject(center=(0, 0, 0), radius=1.0, material_id=0),),
            materials=(Material(name="m"),),
        )
        assert repr(scene) == "Scene(objects=0, spheres=1, lights=0, materials=1)"
