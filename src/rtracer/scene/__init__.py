"""Scene module for scene description, loading and GPU upload.

Components:
    model: Immutable Scene snapshot (materials, triangles, spheres, lights)
    builder: SceneBuilder for assembling a Scene with material handles
    loader: Reader for .obj scene files and .mtl material libraries
    intersection: GPU-resident scene fields and nearest-hit queries

Scene data is uploaded to Taichi fields in Structure-of-Arrays layout, one
array per attribute, and scanned linearly for every ray.
"""

from .builder import SceneBuilder
from .loader import SceneFormatError, read_materials, read_scene
from .model import Light, Material, Scene, SphereObject, TriangleObject

# Note: intersection declares Taichi fields and is NOT imported here, so the
# loader can run before ti.init(). Import rtracer.scene.intersection directly
# once Taichi is initialized.

__all__ = [
    "Scene",
    "Material",
    "TriangleObject",
    "SphereObject",
    "Light",
    "SceneBuilder",
    "read_scene",
    "read_materials",
    "SceneFormatError",
]
