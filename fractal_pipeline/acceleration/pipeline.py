"""
Parallel pixel pipeline for fractal rendering.

A generator stage publishes pixel coordinates on a bounded queue, a fixed
pool of workers turns each coordinate into a colored pixel, and a supervisor
closes the result stream once every worker has finished. Workers run either
as threads or as separate processes; the queue topology is the same.

A failure in the producer or in any worker is sent down the result queue and
re-raised to the consumer as PipelineError.
"""

import multiprocessing as mp
import queue
import threading
import time
import traceback
from typing import Iterator, List, NamedTuple
import logging

from ..core.math_functions import ColoredPixel, PixelCoordinate
from ..core.sampling import SuperSampler
from ..io.config import ConfigurationError, require_int

logger = logging.getLogger(__name__)

MIN_WORKERS = 1
MAX_WORKERS = 512
BACKENDS = ('thread', 'process')

# End-of-stream marker on both queues. None survives pickling unchanged.
_CLOSED = None


class PipelineError(RuntimeError):
    """Raised to the consumer when a pipeline stage failed or the stream ended short."""


class _Failure(NamedTuple):
    """Error report from a stage; plain strings so it crosses process boundaries."""
    stage: str
    message: str
    details: str


def _failure(stage: str, error: BaseException) -> _Failure:
    return _Failure(stage, f"{type(error).__name__}: {error}", traceback.format_exc())


def generate_points(width: int, height: int) -> Iterator[PixelCoordinate]:
    """Enumerate raster coordinates in row-major order."""
    for py in range(height):
        for px in range(width):
            yield PixelCoordinate(px, py)


def _produce(points, pixels, width: int, height: int, workers: int) -> None:
    try:
        for point in generate_points(width, height):
            points.put(point)
    except Exception as e:
        pixels.put(_failure('pixel-producer', e))
    finally:
        # One marker per worker closes the handoff for all of them.
        for _ in range(workers):
            points.put(_CLOSED)


def _work(points, pixels, sampler: SuperSampler, width: int, height: int,
          factor: int, smooth: bool) -> None:
    """Worker loop: take a coordinate, color it, publish the result."""
    count = 0
    try:
        while True:
            point = points.get()
            if point is _CLOSED:
                break
            color = sampler.sample(point, width, height, factor, smooth)
            pixels.put(ColoredPixel(point, color))
            count += 1
    except Exception as e:
        pixels.put(_failure('pixel-worker', e))
        # Keep taking coordinates so the producer can always finish.
        while points.get() is not _CLOSED:
            pass
    logger.debug(f"Worker finished after {count} pixels")


def _supervise(workers: List, pixels) -> None:
    for worker in workers:
        worker.join()
    pixels.put(_CLOSED)


class RenderPipeline:
    """Producer / worker pool / collector pipeline over output pixels."""

    def __init__(self, sampler: SuperSampler, workers: int = 2, backend: str = 'thread'):
        """
        Initialize render pipeline.

        Args:
            sampler: Super-sampler used by every worker
            workers: Number of concurrent workers
            backend: 'thread' or 'process'
        """
        require_int('workers', workers)
        if not MIN_WORKERS <= workers <= MAX_WORKERS:
            raise ConfigurationError(
                f"invalid value '{workers}', [{MIN_WORKERS}, {MAX_WORKERS}]")
        if backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend '{backend}'. Available: {', '.join(BACKENDS)}")

        self.sampler = sampler
        self.workers = workers
        self.backend = backend

    def run(self, width: int, height: int, factor: int = 1,
            smooth: bool = False) -> Iterator[ColoredPixel]:
        """
        Compute every pixel of a width x height raster.

        Arguments are checked immediately; the workers only start once the
        returned iterator is first advanced. The iterator is single-pass and
        yields pixels in completion order, so consumers must place each one by
        its own coordinate.

        Returns:
            Iterator of ColoredPixel, exactly one per raster coordinate

        Raises:
            ConfigurationError: On invalid arguments, before anything runs
            PipelineError: From the iterator, if a stage fails or pixels are missing
        """
        require_int('width', width)
        require_int('height', height)
        require_int('sampling factor', factor)
        if width <= 0 or height <= 0:
            raise ConfigurationError("Width and height must be positive")
        if factor < 1:
            raise ConfigurationError(f"sampling factor must be >= 1, got {factor}")

        return self._stream(width, height, factor, smooth)

    def _stream(self, width: int, height: int, factor: int,
                smooth: bool) -> Iterator[ColoredPixel]:
        if self.backend == 'process':
            ctx = mp.get_context()
            points, pixels = ctx.Queue(self.workers), ctx.Queue(self.workers)
            spawn = ctx.Process
        else:
            points, pixels = queue.Queue(self.workers), queue.Queue(self.workers)
            spawn = threading.Thread

        logger.info(f"Pipeline: {width}x{height} pixels, factor {factor}, "
                    f"{self.workers} {self.backend} workers")
        start_time = time.time()
        total = width * height

        producer = threading.Thread(target=_produce,
                                    args=(points, pixels, width, height, self.workers),
                                    name='pixel-producer', daemon=True)
        workers = [
            spawn(target=_work, args=(points, pixels, self.sampler, width, height, factor, smooth),
                  name=f'pixel-worker-{i}', daemon=True)
            for i in range(self.workers)
        ]
        supervisor = threading.Thread(target=_supervise, args=(workers, pixels),
                                      name='pixel-supervisor', daemon=True)

        # Worker processes are forked before any pipeline thread starts.
        for worker in workers:
            worker.start()
        producer.start()
        supervisor.start()

        completed = 0
        try:
            while True:
                pixel = pixels.get()
                if pixel is _CLOSED:
                    break
                if isinstance(pixel, _Failure):
                    logger.error(f"Pipeline stage {pixel.stage} failed:\n{pixel.details}")
                    raise PipelineError(f"{pixel.stage} failed: {pixel.message}")
                completed += 1
                yield pixel
        finally:
            if self.backend == 'process' and completed < total:
                # Stream abandoned or failed; worker processes would block forever.
                for worker in workers:
                    worker.terminate()

        if completed != total:
            raise PipelineError(f"Pipeline produced {completed} of {total} pixels")

        logger.info(f"Pipeline complete: {completed} pixels in {time.time() - start_time:.2f}s")
