"""Reader for Wavefront-style scene and material files.

Scene files (.obj) understand the following keywords:

    v x y z             vertex position
    vn x y z            vertex normal
    f a b c ...         face; each token is i, i//n or i/t/n (1-based,
                        negative indices count back from the end)
    S x y z r           sphere with the current material
    P x y z r g b       point light with the given intensity
    mtllib file         load materials (path relative to the scene file)
    usemtl name         select the current material

Material files (.mtl) understand newmtl, Ka, Kd, Ks, Ke, Ns, Ni and al.

Lines starting with '#' and blank lines are skipped; unknown keywords are
ignored. Faces with more than three vertices are fan-triangulated.

Example:
    >>> from rtracer.scene.loader import read_scene
    >>> scene = read_scene("examples/scenes/spheres.obj")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from pathlib import Path

from rtracer.scene.builder import SceneBuilder
from rtracer.scene.model import Material, Scene, Vec3

logger = logging.getLogger(__name__)

# Material keywords holding a color-like triple, mapped to Material fields
_MATERIAL_VECTORS = {
    "Ka": "ambient_color",
    "Kd": "diffuse_color",
    "Ks": "specular_color",
    "Ke": "emissive_color",
    "al": "albedo",
}

# Material keywords holding a scalar
_MATERIAL_SCALARS = {
    "Ns": "specular_exponent",
    "Ni": "refraction_index",
}


class SceneFormatError(ValueError):
    """A scene or material file could not be parsed.

    Attributes:
        path: The file being read.
        line_number: 1-based line of the offending statement.
    """

    def __init__(self, message: str, path: str | os.PathLike[str], line_number: int) -> None:
        self.path = str(path)
        self.line_number = line_number
        super().__init__(f"{self.path}:{line_number}: {message}")


def _statements(path: Path) -> Iterator[tuple[int, list[str]]]:
    """Yield (line_number, tokens) for every non-empty, non-comment line."""
    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            tokens = line.split()
            if not tokens or tokens[0].startswith("#"):
                continue
            yield line_number, tokens


def _floats(
    tokens: Sequence[str], count: int, path: Path, line_number: int
) -> tuple[float, ...]:
    """Parse exactly count numbers following the keyword."""
    keyword, args = tokens[0], tokens[1:]
    if len(args) != count:
        raise SceneFormatError(
            f"'{keyword}' expects {count} values, got {len(args)}", path, line_number
        )
    try:
        return tuple(float(arg) for arg in args)
    except ValueError:
        raise SceneFormatError(
            f"'{keyword}' has a non-numeric value: {' '.join(args)}", path, line_number
        ) from None


def _resolve_index(
    token: str, items: Sequence[Vec3], what: str, path: Path, line_number: int
) -> Vec3:
    """Look up a 1-based (or negative, from the end) index."""
    try:
        index = int(token)
    except ValueError:
        raise SceneFormatError(f"Invalid {what} index {token!r}", path, line_number) from None

    position = index - 1 if index > 0 else len(items) + index
    if index == 0 or not 0 <= position < len(items):
        raise SceneFormatError(
            f"{what.capitalize()} index {index} out of range (have {len(items)})",
            path,
            line_number,
        )
    return items[position]


def read_materials(path: str | os.PathLike[str]) -> list[Material]:
    """Read a material library.

    Properties not given in the file keep the Material defaults.

    Args:
        path: Path to the .mtl file.

    Returns:
        The materials in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        SceneFormatError: If the file is malformed.
    """
    path = Path(path)
    materials: list[Material] = []
    current: dict[str, object] | None = None

    def finish() -> None:
        if current is not None:
            materials.append(Material(**current))

    for line_number, tokens in _statements(path):
        keyword = tokens[0]
        if keyword == "newmtl":
            if len(tokens) != 2:
                raise SceneFormatError("'newmtl' expects a single name", path, line_number)
            finish()
            current = {"name": tokens[1]}
        elif keyword in _MATERIAL_VECTORS or keyword in _MATERIAL_SCALARS:
            if current is None:
                raise SceneFormatError(f"'{keyword}' before any 'newmtl'", path, line_number)
            if keyword in _MATERIAL_VECTORS:
                current[_MATERIAL_VECTORS[keyword]] = _floats(tokens, 3, path, line_number)
            else:
                current[_MATERIAL_SCALARS[keyword]] = _floats(tokens, 1, path, line_number)[0]
        else:
            logger.debug("%s:%d: ignoring '%s'", path, line_number, keyword)

    finish()
    logger.debug("Read %d materials from %s", len(materials), path)
    return materials


def read_scene(path: str | os.PathLike[str]) -> Scene:
    """Read a scene file and the material libraries it references.

    Args:
        path: Path to the .obj scene file.

    Returns:
        The parsed Scene.

    Raises:
        FileNotFoundError: If the scene file or a material library is missing.
        SceneFormatError: If either file is malformed.
    """
    path = Path(path)
    builder = SceneBuilder()
    vertices: list[Vec3] = []
    normals: list[Vec3] = []
    current_material: int | None = None

    def require_material(keyword: str, line_number: int) -> int:
        if current_material is None:
            raise SceneFormatError(f"'{keyword}' without a preceding 'usemtl'", path, line_number)
        return current_material

    for line_number, tokens in _statements(path):
        keyword = tokens[0]

        if keyword == "v":
            vertices.append(_floats(tokens, 3, path, line_number))
        elif keyword == "vn":
            normals.append(_floats(tokens, 3, path, line_number))
        elif keyword == "f":
            material_id = require_material(keyword, line_number)
            if len(tokens) < 4:
                raise SceneFormatError(
                    f"A face needs at least 3 vertices, got {len(tokens) - 1}", path, line_number
                )
            points = []
            point_normals = []
            for token in tokens[1:]:
                parts = token.split("/")
                points.append(_resolve_index(parts[0], vertices, "vertex", path, line_number))
                if len(parts) == 1:
                    point_normals.append((0.0, 0.0, 0.0))
                elif len(parts) == 3:
                    point_normals.append(
                        _resolve_index(parts[2], normals, "normal", path, line_number)
                    )
                else:
                    raise SceneFormatError(f"Invalid face vertex {token!r}", path, line_number)
            builder.add_polygon(points, material_id, point_normals)
        elif keyword == "S":
            material_id = require_material(keyword, line_number)
            x, y, z, radius = _floats(tokens, 4, path, line_number)
            if radius <= 0.0:
                raise SceneFormatError(
                    f"Sphere radius must be positive, got {radius}", path, line_number
                )
            builder.add_sphere((x, y, z), radius, material_id)
        elif keyword == "P":
            x, y, z, r, g, b = _floats(tokens, 6, path, line_number)
            builder.add_light((x, y, z), (r, g, b))
        elif keyword == "mtllib":
            if len(tokens) != 2:
                raise SceneFormatError("'mtllib' expects a single file name", path, line_number)
            for material in read_materials(path.parent / tokens[1]):
                builder.add_material_object(material)
        elif keyword == "usemtl":
            if len(tokens) != 2:
                raise SceneFormatError("'usemtl' expects a single name", path, line_number)
            try:
                current_material = builder.material_id(tokens[1])
            except ValueError:
                raise SceneFormatError(
                    f"Unknown material {tokens[1]!r}", path, line_number
                ) from None
        else:
            logger.debug("%s:%d: ignoring '%s'", path, line_number, keyword)

    scene = builder.build()
    logger.info(
        "Loaded %s: %d triangles, %d spheres, %d lights, %d materials",
        path.name,
        len(scene.objects),
        len(scene.sphere_objects),
        len(scene.lights),
        len(scene.materials),
    )
    return scene
