"""Tests for the pinhole camera.

Tests cover:
- CameraOptions defaults and validation
- Orthonormal basis construction, including the degenerate fallbacks
- Primary ray directions for center and corner pixels
"""

import math

import numpy as np
import pytest
import taichi as ti


def _ray_directions(camera, pixels):
    """Set up the camera and return the direction of the ray through each pixel."""
    from rtracer.camera.pinhole import get_ray, setup_camera

    setup_camera(camera)
    n = len(pixels)
    pixel_field = ti.Vector.field(2, dtype=ti.i32, shape=n)
    origins = ti.field(dtype=ti.math.vec3, shape=n)
    directions = ti.field(dtype=ti.math.vec3, shape=n)
    for k, (i, j) in enumerate(pixels):
        pixel_field[k] = (i, j)

    @ti.kernel
    def test_kernel(width: ti.i32, height: ti.i32):
        for k in range(n):
            ray = get_ray(pixel_field[k][0], pixel_field[k][1], width, height)
            origins[k] = ray.origin
            directions[k] = ray.direction

    test_kernel(camera.screen_width, camera.screen_height)
    return [np.asarray(origins[k]) for k in range(n)], [
        np.asarray(directions[k]) for k in range(n)
    ]


class TestCameraOptions:
    """Tests for the configuration dataclass."""

    def test_defaults(self):
        from rtracer.camera.pinhole import CameraOptions

        camera = CameraOptions(screen_width=640, screen_height=480)

        assert camera.fov == pytest.approx(math.pi / 2)
        assert camera.look_from == (0.0, 0.0, 0.0)
        assert camera.look_to == (0.0, 0.0, -1.0)
        assert camera.aspect_ratio == pytest.approx(640 / 480)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-1, 10)])
    def test_invalid_dimensions(self, width, height):
        from rtracer.camera.pinhole import CameraOptions

        with pytest.raises(ValueError, match="positive"):
            CameraOptions(screen_width=width, screen_height=height).validate()

    @pytest.mark.parametrize("fov", [0.0, math.pi, -1.0])
    def test_invalid_fov(self, fov):
        from rtracer.camera.pinhole import CameraOptions

        with pytest.raises(ValueError, match="Field of view"):
            CameraOptions(screen_width=10, screen_height=10, fov=fov).validate()


class TestCameraBasis:
    """Tests for the orthonormal view basis."""

    def test_default_basis(self):
        from rtracer.camera.pinhole import CameraOptions, camera_basis

        forward, right, up = camera_basis(CameraOptions(screen_width=4, screen_height=4))

        np.testing.assert_allclose(forward, [0.0, 0.0, 1.0])
        np.testing.assert_allclose(right, [1.0, 0.0, 0.0])
        np.testing.assert_allclose(up, [0.0, 1.0, 0.0])

    def test_looking_straight_down_uses_fallback(self):
        """The world up axis is parallel to the view, so right falls back to +x."""
        from rtracer.camera.pinhole import CameraOptions, camera_basis

        camera = CameraOptions(
            screen_width=4, screen_height=4, look_from=(0.0, 5.0, 0.0), look_to=(0.0, 0.0, 0.0)
        )
        forward, right, up = camera_basis(camera)

        np.testing.assert_allclose(forward, [0.0, 1.0, 0.0])
        np.testing.assert_allclose(right, [1.0, 0.0, 0.0])
        np.testing.assert_allclose(up, [0.0, 0.0, -1.0])

    def test_basis_is_orthonormal(self):
        from rtracer.camera.pinhole import CameraOptions, camera_basis

        camera = CameraOptions(
            screen_width=4, screen_height=4, look_from=(1.0, 2.0, 3.0), look_to=(-2.0, 0.5, -1.0)
        )
        forward, right, up = camera_basis(camera)

        for v in (forward, right, up):
            assert np.linalg.norm(v) == pytest.approx(1.0)
        assert np.dot(forward, right) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(forward, up) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(right, up) == pytest.approx(0.0, abs=1e-12)


class TestRayGeneration:
    """Tests for get_ray."""

    def test_center_pixel_looks_forward(self):
        from rtracer.camera.pinhole import CameraOptions

        camera = CameraOptions(
            screen_width=3, screen_height=3, look_from=(1.0, 2.0, 3.0), look_to=(1.0, 2.0, 0.0)
        )
        origins, directions = _ray_directions(camera, [(1, 1)])

        np.testing.assert_allclose(origins[0], [1.0, 2.0, 3.0], atol=1e-6)
        np.testing.assert_allclose(directions[0], [0.0, 0.0, -1.0], atol=1e-6)

    def test_top_left_pixel(self):
        """Column 0 is on the left, row 0 is at the top."""
        from rtracer.camera.pinhole import CameraOptions

        camera = CameraOptions(screen_width=2, screen_height=2)
        _, directions = _ray_directions(camera, [(0, 0), (1, 1)])

        # x = 2 * 0.5 / 2 - 1 = -0.5, y = 1 - 2 * 0.5 / 2 = 0.5, tan(45 deg) = 1
        expected = np.array([-0.5, 0.5, -1.0]) / np.linalg.norm([-0.5, 0.5, -1.0])
        np.testing.assert_allclose(directions[0], expected, atol=1e-6)
        np.testing.assert_allclose(directions[1], expected * [-1.0, -1.0, 1.0], atol=1e-6)

    def test_aspect_ratio_widens_horizontal_extent(self):
        from rtracer.camera.pinhole import CameraOptions

        camera = CameraOptions(screen_width=4, screen_height=2)
        _, directions = _ray_directions(camera, [(3, 0)])

        # x = (2 * 3.5 / 4 - 1) * 2 = 1.5, y = 0.5
        expected = np.array([1.5, 0.5, -1.0]) / np.linalg.norm([1.5, 0.5, -1.0])
        np.testing.assert_allclose(directions[0], expected, atol=1e-6)

    def test_setup_camera_validates(self):
        from rtracer.camera.pinhole import CameraOptions, setup_camera

        with pytest.raises(ValueError):
            setup_camera(CameraOptions(screen_width=0, screen_height=10))

    def test_get_camera_info(self):
        from rtracer.camera.pinhole import CameraOptions, get_camera_info, setup_camera

        setup_camera(
            CameraOptions(
                screen_width=4, screen_height=4, look_from=(0.0, 0.0, 2.0), look_to=(0.0, 0.0, 0.0)
            )
        )
        info = get_camera_info()

        assert info["origin"] == pytest.approx((0.0, 0.0, 2.0))
        assert info["forward"] == pytest.approx((0.0, 0.0, 1.0))
