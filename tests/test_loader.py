"""Tests for the .obj/.mtl scene loader."""

import pytest

from rtracer.scene.loader import SceneFormatError, read_materials, read_scene

MATERIALS = """\
# two materials
newmtl red
Ka 0.1 0 0
Kd 0.8 0.1 0.1
Ks 0.5 0.5 0.5
Ns 50

newmtl glass
Ni 1.5
al 0 0.2 0.8
Ke 0.1 0.1 0.1
"""


class TestReadMaterials:
    """Tests for material libraries."""

    def test_reads_properties(self, tmp_path):
        path = tmp_path / "lib.mtl"
        path.write_text(MATERIALS)

        red, glass = read_materials(path)

        assert red.name == "red"
        assert red.ambient_color == (0.1, 0.0, 0.0)
        assert red.diffuse_color == (0.8, 0.1, 0.1)
        assert red.specular_color == (0.5, 0.5, 0.5)
        assert red.specular_exponent == 50.0
        assert glass.refraction_index == 1.5
        assert glass.albedo == (0.0, 0.2, 0.8)
        assert glass.emissive_color == (0.1, 0.1, 0.1)

    def test_unset_properties_keep_defaults(self, tmp_path):
        path = tmp_path / "lib.mtl"
        path.write_text(MATERIALS)

        red, _ = read_materials(path)

        assert red.refraction_index == 1.0
        assert red.albedo == (1.0, 0.0, 0.0)

    def test_property_before_newmtl(self, tmp_path):
        path = tmp_path / "lib.mtl"
        path.write_text("Kd 1 1 1\nnewmtl a\n")

        with pytest.raises(SceneFormatError, match="before any 'newmtl'") as excinfo:
            read_materials(path)
        assert excinfo.value.line_number == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "lib.mtl"
        path.write_text("# nothing here\n")

        assert read_materials(path) == []


class TestReadScene:
    """Tests for scene files."""

    def test_full_scene(self, write_scene):
        path = write_scene(
            """\
mtllib scene.mtl
v -1 -1 -2
v 1 -1 -2
v 1 1 -2
v -1 1 -2
usemtl red
f 1 2 3 4
usemtl glass
S 0 0 -5 1.5
P 0 5 0 1 1 1
""",
            MATERIALS,
        )

        scene = read_scene(path)

        assert len(scene.objects) == 2
        assert len(scene.sphere_objects) == 1
        assert len(scene.lights) == 1
        assert [m.name for m in scene.materials] == ["red", "glass"]
        assert scene.objects[0].material_id == scene.material_id("red")
        assert scene.sphere_objects[0].material_id == scene.material_id("glass")
        assert scene.sphere_objects[0].radius == 1.5
        assert scene.lights[0].intensity == (1.0, 1.0, 1.0)
        assert not scene.objects[0].has_vertex_normals

    def test_face_with_normals(self, write_scene):
        path = write_scene(
            """\
mtllib scene.mtl
v 0 0 0
v 1 0 0
v 0 1 0
vn 0 0 1
vn 0 1 0
usemtl red
f 1//1 2//2 3//1
f 1/7/1 2/8/1 3/9/2
""",
            MATERIALS,
        )

        scene = read_scene(path)

        first, second = scene.objects
        assert first.has_vertex_normals
        assert first.normals == ((0.0, 0.0, 1.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        assert second.normals == ((0.0, 0.0, 1.0), (0.0, 0.0, 1.0), (0.0, 1.0, 0.0))

    def test_negative_indices_count_from_the_end(self, write_scene):
        path = write_scene(
            """\
mtllib scene.mtl
v 9 9 9
v 0 0 0
v 1 0 0
v 0 1 0
usemtl red
f -3 -2 -1
""",
            MATERIALS,
        )

        scene = read_scene(path)

        assert scene.objects[0].vertices == ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))

    def test_comments_blank_lines_and_unknown_keywords(self, write_scene):
        path = write_scene(
            """\
# a comment

o some_object
mtllib scene.mtl
usemtl red
vt 0.5 0.5
S 0 0 -3 1
""",
            MATERIALS,
        )

        scene = read_scene(path)

        assert len(scene.sphere_objects) == 1

    def test_scene_without_materials(self, write_scene):
        scene = read_scene(write_scene("P 0 0 0 1 1 1\n"))

        assert len(scene.lights) == 1
        assert scene.materials == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_scene(tmp_path / "nope.obj")

    def test_missing_material_library(self, write_scene):
        with pytest.raises(FileNotFoundError):
            read_scene(write_scene("mtllib other.mtl\n"))


class TestSceneErrors:
    """Tests for malformed scene files."""

    @pytest.mark.parametrize(
        "body,message,line",
        [
            ("usemtl red\nf 1 2 3\n", "out of range", 2),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n", "without a preceding 'usemtl'", 4),
            ("usemtl missing\n", "Unknown material", 1),
            ("v 0 0\n", "expects 3 values", 1),
            ("v 0 zero 0\n", "non-numeric", 1),
            ("usemtl red\nS 0 0 0 -1\n", "radius must be positive", 2),
            ("v 0 0 0\nv 1 0 0\nusemtl red\nf 1 2\n", "at least 3 vertices", 4),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl red\nf 1 2 0\n", "out of range", 5),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl red\nf 1/2 2 3\n", "Invalid face vertex", 5),
            ("v 0 0 0\nv 1 0 0\nv 0 1 0\nusemtl red\nf 1//1 2//1 3//1\n", "out of range", 5),
        ],
    )
    def test_errors_carry_location(self, write_scene, body, message, line):
        path = write_scene("mtllib scene.mtl\n" + body, MATERIALS)

        with pytest.raises(SceneFormatError, match=message) as excinfo:
            read_scene(path)

        assert excinfo.value.line_number == line + 1
        assert excinfo.value.path == str(path)

    def test_error_is_a_value_error(self, write_scene):
        with pytest.raises(ValueError):
            read_scene(write_scene("P 0 0 0\n"))
