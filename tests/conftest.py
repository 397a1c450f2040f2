"""Pytest configuration for rtracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate the fields declared by already imported modules.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_render_state():
    """Clear the uploaded scene and the render target around each test."""
    # Import here so the field-declaring modules load after ti.init()
    from rtracer.core.integrator import reset_render_target
    from rtracer.scene.intersection import clear_scene

    clear_scene()
    reset_render_target()
    yield
    clear_scene()
    reset_render_target()


@pytest.fixture
def write_scene(tmp_path):
    """Write a scene file (and optional material file) into tmp_path.

    Returns a function (obj_text, mtl_text=None) -> Path of the scene file.
    The material file is written as scene.mtl next to scene.obj.
    """

    def _write(obj_text: str, mtl_text: str | None = None):
        if mtl_text is not None:
            (tmp_path / "scene.mtl").write_text(mtl_text)
        scene_path = tmp_path / "scene.obj"
        scene_path.write_text(obj_text)
        return scene_path

    return _write
