"""Tests for progressive rendering and the top-level render() entry point."""

import numpy as np
import pytest


def _two_spheres(nx, ny):
    """Load the red and green sphere scene with a matching camera."""
    from src.pathtracer.camera.pinhole import setup_camera
    from src.pathtracer.core.integrator import SKY, set_background
    from src.pathtracer.scene.presets import create_two_spheres_scene

    scene, camera = create_two_spheres_scene(aspect_ratio=nx / ny)
    setup_camera(camera)
    set_background(SKY)
    return scene


class TestRenderOptions:
    def test_defaults(self):
        from src.pathtracer.core.integrator import MAX_DEPTH
        from src.pathtracer.core.progressive import RenderOptions

        options = RenderOptions()
        assert (options.nx, options.ny, options.ns) == (640, 360, 8)
        assert options.n_max_bounce == MAX_DEPTH
        assert options.aspect_ratio == pytest.approx(16.0 / 9.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"nx": 0},
            {"ny": -5},
            {"nx": 4096},
            {"ns": 0},
            {"n_max_bounce": -1},
        ],
    )
    def test_invalid(self, kwargs):
        from src.pathtracer.core.progressive import RenderOptions

        with pytest.raises(ValueError):
            RenderOptions(**kwargs)

    def test_zero_bounces_allowed(self):
        from src.pathtracer.core.progressive import RenderOptions

        assert RenderOptions(n_max_bounce=0).n_max_bounce == 0


class TestProgressiveRenderer:
    def test_properties_and_repr(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        assert renderer.width == 16
        assert renderer.height == 8
        assert renderer.max_depth == 5
        assert renderer.sample_count == 0
        assert "16x8" in repr(renderer)

    def test_invalid_construction(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(0, 8)
        with pytest.raises(ValueError):
            ProgressiveRenderer(8, 8, max_depth=-1)

    def test_callback_batches(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        _two_spheres(16, 8)
        renderer = ProgressiveRenderer(16, 8, max_depth=5)
        renderer.seed(1)

        calls = []
        renderer.render(7, batch_size=3, callback=lambda current, target: calls.append((current, target)))
        assert calls == [(3, 7), (6, 7), (7, 7)]
        assert renderer.sample_count == 7

    def test_continues_accumulating(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        _two_spheres(8, 4)
        renderer = ProgressiveRenderer(8, 4, max_depth=5)
        renderer.render(2)
        progress = list(renderer.render_progressive(2, batch_size=1))
        assert progress == [(3, 4), (4, 4)]

    def test_zero_samples_yields_nothing(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 4)
        assert list(renderer.render_progressive(0)) == []
        assert renderer.sample_count == 0

    def test_invalid_batch_size(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 4)
        with pytest.raises(ValueError):
            list(renderer.render_progressive(4, batch_size=0))

    def test_reset_and_resize(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        _two_spheres(8, 4)
        renderer = ProgressiveRenderer(8, 4, max_depth=5)
        renderer.render(2)
        renderer.reset()
        assert renderer.sample_count == 0

        renderer.resize(6, 3)
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (3, 6, 4)

    def test_seed_returns_root_seed(self):
        from src.pathtracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 4)
        assert renderer.seed(77) == 77


class TestRender:
    def test_output_shape(self):
        from src.pathtracer.core.progressive import RenderOptions, render

        _two_spheres(20, 10)
        image = render(RenderOptions(nx=20, ny=10, ns=2, n_max_bounce=8), seed=3)
        assert image.shape == (10, 20, 4)
        assert image.dtype == np.float32
        assert np.all(np.isfinite(image))

    def test_same_seed_is_bit_identical(self):
        from src.pathtracer.core.progressive import RenderOptions, render

        options = RenderOptions(nx=32, ny=16, ns=4, n_max_bounce=10)
        _two_spheres(32, 16)

        first = render(options, seed=2024)
        second = render(options, seed=2024)
        np.testing.assert_array_equal(first, second)

    def test_batching_does_not_change_result(self):
        from src.pathtracer.core.progressive import RenderOptions, render

        options = RenderOptions(nx=16, ny=8, ns=4, n_max_bounce=10)
        _two_spheres(16, 8)

        whole = render(options, seed=5)
        batched = render(options, seed=5, batch_size=1)
        np.testing.assert_array_equal(whole, batched)

    def test_different_seeds_differ(self):
        from src.pathtracer.core.progressive import RenderOptions, render

        options = RenderOptions(nx=32, ny=16, ns=2, n_max_bounce=10)
        _two_spheres(32, 16)

        first = render(options, seed=1)
        second = render(options, seed=2)
        assert not np.array_equal(first, second)

    def test_callback_receives_progress(self):
        from src.pathtracer.core.progressive import RenderOptions, render

        _two_spheres(8, 4)
        seen = []
        render(
            RenderOptions(nx=8, ny=4, ns=4, n_max_bounce=4),
            seed=9,
            callback=lambda current, target: seen.append(current),
            batch_size=2,
        )
        assert seen == [2, 4]
