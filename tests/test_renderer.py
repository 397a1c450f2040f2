"""End-to-end tests for the Renderer facade and render options."""

import numpy as np
import pytest
from PIL import Image as PILImage

from rtracer.scene.builder import SceneBuilder


def _scene():
    """A unit sphere straight ahead lit from the eye."""
    builder = SceneBuilder()
    ball = builder.add_material(
        "ball", ambient_color=(0.1, 0.1, 0.1), diffuse_color=(0.8, 0.2, 0.2)
    )
    builder.add_sphere((0.0, 0.0, -5.0), 1.0, ball)
    builder.add_light((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    return builder.build()


class TestRenderOptions:
    """Tests for render mode parsing and validation."""

    def test_from_name(self):
        from rtracer.core.renderer import RenderMode

        assert RenderMode.from_name("full") is RenderMode.FULL
        assert RenderMode.from_name("DEPTH") is RenderMode.DEPTH

    def test_unknown_mode(self):
        from rtracer.core.renderer import RenderMode

        with pytest.raises(ValueError, match="Unknown render mode"):
            RenderMode.from_name("wireframe")

    def test_depth_out_of_range(self):
        from rtracer.core.renderer import RenderOptions

        with pytest.raises(ValueError, match="depth"):
            RenderOptions(depth=99).validate()


class TestRenderer:
    """Tests for rendering each mode through the Renderer."""

    def _renderer(self, mode, width=5, height=3, depth=3):
        from rtracer.camera.pinhole import CameraOptions
        from rtracer.core.renderer import RenderOptions, Renderer

        camera = CameraOptions(screen_width=width, screen_height=height)
        return Renderer(_scene(), camera, RenderOptions(mode=mode, depth=depth))

    def test_get_image_before_render(self):
        from rtracer.core.renderer import RenderMode

        renderer = self._renderer(RenderMode.FULL)
        with pytest.raises(RuntimeError, match="render"):
            renderer.get_image_numpy()

    def test_full_mode(self):
        from rtracer.core.renderer import RenderMode

        renderer = self._renderer(RenderMode.FULL)
        image = renderer.render()

        assert image.shape == (3, 5, 3)
        # The center pixel holds the brightest channel of the image
        assert image[1, 2, 0] == pytest.approx(1.0, abs=1e-5)
        np.testing.assert_array_equal(image[0, 0], [0.0, 0.0, 0.0])
        assert np.all((image >= 0.0) & (image <= 1.0))

    def test_depth_mode(self):
        from rtracer.core.renderer import RenderMode

        image = self._renderer(RenderMode.DEPTH).render()

        # Single hit pixel is the farthest hit; misses are white
        np.testing.assert_allclose(image[1, 2], [1.0, 1.0, 1.0], atol=1e-6)
        np.testing.assert_array_equal(image[0, 0], [1.0, 1.0, 1.0])

    def test_normal_mode(self):
        from rtracer.core.renderer import RenderMode

        image = self._renderer(RenderMode.NORMAL).render()

        np.testing.assert_allclose(image[1, 2], [0.5, 0.5, 1.0], atol=1e-5)
        np.testing.assert_array_equal(image[0, 0], [0.0, 0.0, 0.0])

    def test_progress_callback(self):
        from rtracer.core.renderer import RenderMode

        calls = []
        self._renderer(RenderMode.FULL).render(callback=lambda d, t: calls.append((d, t)))

        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_render_progressive(self):
        from rtracer.core.renderer import RenderMode

        renderer = self._renderer(RenderMode.FULL)
        steps = list(renderer.render_progressive())

        assert steps[-1] == (3, 3)
        expected = self._renderer(RenderMode.FULL).render()
        np.testing.assert_allclose(renderer.get_image_numpy(), expected)

    def test_uint8_and_save(self, tmp_path):
        from rtracer.core.renderer import RenderMode

        renderer = self._renderer(RenderMode.FULL)
        renderer.render()
        pixels = renderer.get_image_uint8()
        path = tmp_path / "render.png"
        renderer.save_image(str(path))

        assert pixels.dtype == np.uint8
        assert pixels.shape == (3, 5, 3)
        with PILImage.open(path) as png:
            assert png.size == (5, 3)
            np.testing.assert_array_equal(np.asarray(png), pixels)

    def test_invalid_camera(self):
        from rtracer.camera.pinhole import CameraOptions
        from rtracer.core.renderer import Renderer

        with pytest.raises(ValueError):
            Renderer(_scene(), CameraOptions(screen_width=0, screen_height=3))

    def test_repr(self):
        from rtracer.core.renderer import RenderMode

        renderer = self._renderer(RenderMode.DEPTH)
        assert repr(renderer) == "Renderer(width=5, height=3, mode=depth, depth=3)"

    def test_second_renderer_does_not_take_over_first(self):
        """Each renderer draws its own scene at its own size."""
        from rtracer.camera.pinhole import CameraOptions
        from rtracer.core.renderer import RenderMode, RenderOptions, Renderer

        first = self._renderer(RenderMode.DEPTH)
        expected = first.render()

        builder = SceneBuilder()
        builder.add_sphere((0.0, 0.0, -50.0), 1.0, builder.add_material("far"))
        second = Renderer(
            builder.build(),
            CameraOptions(screen_width=7, screen_height=7),
            RenderOptions(mode=RenderMode.DEPTH),
        )

        assert first.render().shape == (3, 5, 3)
        np.testing.assert_allclose(first.get_image_numpy(), expected)
        assert second.render().shape == (7, 7, 3)
        assert list(first.render_progressive()) == [(3, 3)]
        np.testing.assert_allclose(first.get_image_numpy(), expected)

    def test_camera_basis_logged_at_debug(self, caplog):
        from rtracer.core.renderer import RenderMode

        with caplog.at_level("DEBUG", logger="rtracer.core.renderer"):
            self._renderer(RenderMode.DEPTH)

        assert "Camera basis" in caplog.text
        assert "'forward': (0.0, 0.0, 1.0)" in caplog.text
