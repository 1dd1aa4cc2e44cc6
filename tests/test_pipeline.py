"""Tests for the parallel pixel pipeline."""

import itertools
import threading
import time

import pytest

from fractal_pipeline.acceleration import pipeline as pipeline_module
from fractal_pipeline.acceleration.pipeline import PipelineError, RenderPipeline, generate_points
from fractal_pipeline.core.math_functions import ColoredPixel, EscapeEvaluator, PixelCoordinate
from fractal_pipeline.core.sampling import SuperSampler
from fractal_pipeline.io.config import ConfigurationError


def collect(pipeline, width, height, factor=1, smooth=False):
    return {(p.x, p.y): p.color for p in pipeline.run(width, height, factor, smooth)}


def broken_gradient(position, vmin, vmax):
    raise ValueError("gradient lookup failed")


class CountingSampler:
    """Wraps a sampler and counts sample() calls across worker threads."""

    def __init__(self, sampler, fail_at=None):
        self.sampler = sampler
        self.fail_at = fail_at
        self.calls = 0
        self._lock = threading.Lock()

    def sample(self, point, width, height, factor=1, smooth=False):
        with self._lock:
            self.calls += 1
        if point == self.fail_at:
            raise RuntimeError(f"cannot sample {point.x},{point.y}")
        return self.sampler.sample(point, width, height, factor, smooth)


class TestGeneratePoints:

    def test_row_major_order(self):
        assert list(generate_points(3, 2)) == [
            (0, 0), (1, 0), (2, 0),
            (0, 1), (1, 1), (2, 1),
        ]


class TestRenderPipeline:
    """Tests for coverage, determinism and validation of the pipeline."""

    @pytest.mark.parametrize("width,height,workers", [
        (1, 1, 1),
        (7, 5, 3),
        (16, 3, 8),
        (4, 9, 64),
    ])
    def test_every_pixel_exactly_once(self, sampler, width, height, workers):
        pixels = list(RenderPipeline(sampler, workers).run(width, height))

        coordinates = [(p.x, p.y) for p in pixels]
        assert len(coordinates) == width * height
        assert set(coordinates) == set(itertools.product(range(width), range(height)))

    def test_yields_colored_pixels(self, sampler):
        pixel = next(iter(RenderPipeline(sampler, 1).run(2, 2)))
        assert isinstance(pixel, ColoredPixel)
        assert isinstance(pixel.point, PixelCoordinate)

    def test_single_worker_preserves_row_major_order(self, sampler):
        pixels = list(RenderPipeline(sampler, 1).run(5, 4))
        assert [p.point for p in pixels] == list(generate_points(5, 4))

    @pytest.mark.parametrize("smooth", [False, True])
    def test_worker_count_does_not_change_colors(self, sampler, smooth):
        reference = collect(RenderPipeline(sampler, 1), 12, 8, 2, smooth)
        for workers in (2, 5, 16):
            assert collect(RenderPipeline(sampler, workers), 12, 8, 2, smooth) == reference

    def test_colors_match_sampler(self, sampler):
        colors = collect(RenderPipeline(sampler, 3), 6, 4, 2)
        for (x, y), color in colors.items():
            assert color == sampler.sample(PixelCoordinate(x, y), 6, 4, 2)

    def test_process_backend_matches_thread_backend(self, sampler):
        threaded = collect(RenderPipeline(sampler, 2, 'thread'), 6, 4, 2)
        processed = collect(RenderPipeline(sampler, 2, 'process'), 6, 4, 2)
        assert processed == threaded

    def test_stream_is_single_pass(self, sampler):
        stream = RenderPipeline(sampler, 2).run(3, 3)
        assert len(list(stream)) == 9
        assert list(stream) == []

    def test_run_validates_before_starting(self, sampler):
        pipeline = RenderPipeline(sampler, 2)
        with pytest.raises(ConfigurationError):
            pipeline.run(0, 4)
        with pytest.raises(ConfigurationError):
            pipeline.run(4, -1)
        with pytest.raises(ConfigurationError):
            pipeline.run(4, 4, factor=0)

    @pytest.mark.parametrize("workers", [0, -3, 513])
    def test_rejects_worker_count_out_of_range(self, sampler, workers):
        with pytest.raises(ConfigurationError, match=r"\[1, 512\]"):
            RenderPipeline(sampler, workers)

    def test_accepts_worker_bounds(self, sampler):
        assert RenderPipeline(sampler, 1).workers == 1
        assert RenderPipeline(sampler, 512).workers == 512

    def test_rejects_unknown_backend(self, sampler):
        with pytest.raises(ConfigurationError, match="Unknown backend"):
            RenderPipeline(sampler, 2, 'gpu')

    @pytest.mark.parametrize("args", [
        (3.5, 2),
        ("4", 4),
        (4, True),
        (4, 4, 2.0),
    ])
    def test_run_rejects_non_integer_arguments(self, sampler, args):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            RenderPipeline(sampler, 2).run(*args)

    def test_rejects_non_integer_worker_count(self, sampler):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            RenderPipeline(sampler, 2.0)


class TestPipelineFailures:
    """Errors inside a stage reach the consumer instead of ending the stream short."""

    @pytest.mark.parametrize("workers", [1, 3])
    def test_worker_error_is_raised(self, viewport, workers):
        sampler = SuperSampler(viewport, EscapeEvaluator(broken_gradient))
        stream = RenderPipeline(sampler, workers).run(8, 6)

        with pytest.raises(PipelineError, match="gradient lookup failed"):
            list(stream)

    def test_error_after_some_pixels(self, sampler):
        counting = CountingSampler(sampler, fail_at=PixelCoordinate(3, 2))
        received = []

        with pytest.raises(PipelineError, match="cannot sample 3,2"):
            for pixel in RenderPipeline(counting, 2).run(6, 5):
                received.append(pixel)

        assert len(received) < 30

    def test_process_worker_error_is_raised(self, viewport):
        # len() rejects the gradient's three arguments; builtins pickle by name
        sampler = SuperSampler(viewport, EscapeEvaluator(len))
        stream = RenderPipeline(sampler, 2, 'process').run(4, 3)

        with pytest.raises(PipelineError, match="TypeError"):
            list(stream)

    def test_producer_error_is_raised(self, sampler, monkeypatch):
        def failing_points(width, height):
            yield PixelCoordinate(0, 0)
            raise OSError("coordinate source lost")

        monkeypatch.setattr(pipeline_module, 'generate_points', failing_points)

        with pytest.raises(PipelineError, match="pixel-producer failed"):
            list(RenderPipeline(sampler, 2).run(4, 4))

    def test_short_stream_is_raised(self, sampler, monkeypatch):
        def missing_last_row(width, height):
            return generate_points(width, height - 1)

        monkeypatch.setattr(pipeline_module, 'generate_points', missing_last_row)

        with pytest.raises(PipelineError, match="produced 12 of 16 pixels"):
            list(RenderPipeline(sampler, 2).run(4, 4))


class TestPipelineFlowControl:
    """Laziness and backpressure of the queues."""

    def test_nothing_is_computed_before_first_item(self, sampler):
        counting = CountingSampler(sampler)
        stream = RenderPipeline(counting, 2).run(10, 10)

        time.sleep(0.2)
        assert counting.calls == 0

        next(stream)
        assert counting.calls >= 1
        assert len(list(stream)) == 99

    @pytest.mark.parametrize("workers", [1, 2, 4])
    def test_stalled_consumer_stalls_workers(self, sampler, workers):
        counting = CountingSampler(sampler)
        stream = RenderPipeline(counting, workers).run(20, 20)

        next(stream)
        time.sleep(0.3)
        # One item consumed, `workers` queued, one blocked in each worker
        assert counting.calls <= 3 * workers

        assert len(list(stream)) == 399
        assert counting.calls == 400
