"""Tests for the renderer facade and its configuration."""

import numpy as np
import pytest

from fractal_pipeline.acceleration.pipeline import PipelineError
from fractal_pipeline.api import FractalRenderer, RenderConfig
from fractal_pipeline.core.math_functions import Color, ColoredPixel, EscapeEvaluator, PixelCoordinate
from fractal_pipeline.core.sampling import SuperSampler
from fractal_pipeline.io.config import ConfigurationError
from fractal_pipeline.rendering.coloring import hot_cold


class TestRenderConfig:
    """Tests for configuration validation."""

    def test_defaults_are_valid(self):
        config = RenderConfig()
        config.validate()
        assert (config.width, config.height) == (1536, 1024)
        assert config.sampling_factor == 2
        assert config.workers == 2
        assert config.smooth is False

    @pytest.mark.parametrize("overrides", [
        {"width": 0},
        {"height": -5},
        {"sampling_factor": 0},
        {"sampling_factor": 11},
        {"workers": 0},
        {"workers": 513},
        {"max_iterations": 0},
        {"bounds": (1.0, 1.0, 1.0)},
        {"bounds": (1.2, -1.2, -2.2, 1.2)},
        {"backend": "cluster"},
    ])
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ConfigurationError):
            RenderConfig(**overrides).validate()

    @pytest.mark.parametrize("overrides", [
        {"sampling_factor": 2.0},
        {"width": "64"},
        {"height": 4.5},
        {"workers": True},
        {"max_iterations": 100.0},
        {"bounds": (-2.2, "-1.2", 1.2, 1.2)},
        {"contrast": "15"},
        {"smooth": "yes"},
    ])
    def test_rejects_wrong_types(self, overrides):
        with pytest.raises(ConfigurationError, match="must be"):
            RenderConfig(**overrides).validate()

    def test_float_factor_from_dict(self):
        config = RenderConfig.from_dict({"width": 6, "height": 4, "sampling_factor": 2.0})
        with pytest.raises(ConfigurationError, match="sampling_factor must be an integer"):
            config.validate()

    def test_factor_message_names_range(self):
        with pytest.raises(ConfigurationError, match=r"invalid value '11', \[1, 10\]"):
            RenderConfig(sampling_factor=11).validate()

    def test_from_dict_converts_bounds(self):
        config = RenderConfig.from_dict({"bounds": [-2, -1, 1, 1], "workers": 8})
        assert config.bounds == (-2, -1, 1, 1)
        assert config.workers == 8

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="tile_size"):
            RenderConfig.from_dict({"tile_size": 64})

    def test_dict_round_trip(self):
        config = RenderConfig(width=10, height=20, smooth=True)
        assert RenderConfig.from_dict(config.to_dict()) == config


class TestFractalRenderer:
    """End-to-end rendering of small images."""

    def test_render_fills_raster(self):
        renderer = FractalRenderer(RenderConfig(width=8, height=6, sampling_factor=2, workers=3))
        raster = renderer.render()

        assert raster.pixels.shape == (6, 8, 4)
        assert np.all(raster.pixels[:, :, 3] == 255)

    def test_four_by_four_scenario(self):
        """Corner pixel escapes after one iteration; the center pixel is inside."""
        config = RenderConfig(width=4, height=4, sampling_factor=1, workers=1, smooth=False)
        raster = FractalRenderer(config).render()

        assert tuple(raster.pixels[0, 0]) == (*hot_cold(15.0, 0, 255), 255)
        assert tuple(raster.pixels[2, 2]) == (0, 0, 0, 255)

    def test_render_independent_of_workers(self):
        base = dict(width=10, height=7, sampling_factor=2, smooth=True)
        one = FractalRenderer(RenderConfig(workers=1, **base)).render()
        many = FractalRenderer(RenderConfig(workers=6, **base)).render()
        np.testing.assert_array_equal(one.pixels, many.pixels)

    def test_progress_reaches_completion(self):
        progress = []
        FractalRenderer(RenderConfig(width=5, height=4, sampling_factor=1)).render(progress.append)

        assert progress[-1] == 1.0
        assert progress == sorted(progress)

    def test_render_to_file(self, tmp_path):
        renderer = FractalRenderer(RenderConfig(width=6, height=4, sampling_factor=1,
                                                gradient='ocean'))
        path = tmp_path / "mandelbrot.png"

        metadata = renderer.render_to(path)

        assert path.exists()
        assert metadata.resolution == (6, 4)
        assert metadata.gradient == 'ocean'
        assert renderer.image_exporter.extract_metadata_from_image(path) == metadata

    def test_invalid_config_raises_before_rendering(self):
        with pytest.raises(ConfigurationError):
            FractalRenderer(RenderConfig(workers=1000))

    def test_unknown_gradient(self):
        with pytest.raises(ValueError, match="Unknown gradient"):
            FractalRenderer(RenderConfig(gradient='nope'))

    def test_pipeline_failure_is_raised(self, viewport):
        def broken(position, vmin, vmax):
            raise ValueError("no color for this position")

        renderer = FractalRenderer(RenderConfig(width=6, height=4, sampling_factor=1))
        renderer.sampler = SuperSampler(viewport, EscapeEvaluator(broken))

        with pytest.raises(PipelineError, match="no color for this position"):
            renderer.render()

    def test_missing_pixels_are_raised(self, tmp_path):
        renderer = FractalRenderer(RenderConfig(width=4, height=4, sampling_factor=1))
        renderer.stream = lambda: iter([ColoredPixel(PixelCoordinate(0, 0), Color(0, 0, 0))])
        path = tmp_path / "partial.png"

        with pytest.raises(PipelineError, match="Rendered 1 of 16 pixels"):
            renderer.render_to(path)
        assert not path.exists()
