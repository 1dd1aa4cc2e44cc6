"""
Main API classes for fractal generation.

This module provides the high-level interface for fractal generation,
combining the pipeline, raster and exporter into easy-to-use classes.
"""

from typing import Any, BinaryIO, Callable, Dict, Iterator, Optional, Tuple, Union
from dataclasses import asdict, dataclass, fields
from pathlib import Path
import logging
import time

from .acceleration.pipeline import BACKENDS, MAX_WORKERS, MIN_WORKERS, PipelineError, RenderPipeline
from .core.math_functions import ColoredPixel, EscapeEvaluator, Viewport
from .core.sampling import SuperSampler
from .io.config import ConfigurationError, require_int, require_real
from .rendering.coloring import DEFAULT_GRADIENT, get_gradient
from .rendering.image_output import ImageExporter, Raster, RenderMetadata

logger = logging.getLogger(__name__)

MIN_FACTOR = 1
MAX_FACTOR = 10


@dataclass
class RenderConfig:
    """Configuration for fractal rendering."""

    # Image parameters
    width: int = 1536
    height: int = 1024
    bounds: Tuple[float, float, float, float] = (-2.2, -1.2, 1.2, 1.2)  # xmin, ymin, xmax, ymax

    # Quality
    sampling_factor: int = 2
    smooth: bool = False
    max_iterations: int = 255
    contrast: float = 15

    # Coloring
    gradient: str = DEFAULT_GRADIENT

    # Performance
    workers: int = 2
    backend: str = 'thread'

    def validate(self):
        """Validate configuration parameters."""
        for name in ('width', 'height', 'sampling_factor', 'workers', 'max_iterations'):
            require_int(name, getattr(self, name))
        require_real('contrast', self.contrast)

        if not isinstance(self.smooth, bool):
            raise ConfigurationError(f"smooth must be true or false, got {self.smooth!r}")
        if not isinstance(self.gradient, str):
            raise ConfigurationError(f"gradient must be a name, got {self.gradient!r}")

        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError("Width and height must be positive")

        if not MIN_FACTOR <= self.sampling_factor <= MAX_FACTOR:
            raise ConfigurationError(
                f"invalid value '{self.sampling_factor}', [{MIN_FACTOR}, {MAX_FACTOR}]")

        if not MIN_WORKERS <= self.workers <= MAX_WORKERS:
            raise ConfigurationError(
                f"invalid value '{self.workers}', [{MIN_WORKERS}, {MAX_WORKERS}]")

        if self.max_iterations <= 0:
            raise ConfigurationError("max_iterations must be positive")

        if len(self.bounds) != 4:
            raise ConfigurationError("bounds must be (xmin, ymin, xmax, ymax)")
        for bound in self.bounds:
            require_real('bounds', bound)

        if self.backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend '{self.backend}'. Available: {', '.join(BACKENDS)}")

        # Raises for inverted bounds
        self.viewport()

    def viewport(self) -> Viewport:
        return Viewport(*(float(b) for b in self.bounds))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        """Create configuration from a dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        data = dict(data)
        if 'bounds' in data:
            data['bounds'] = tuple(data['bounds'])
        return cls(**data)


class FractalRenderer:
    """Main fractal rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize fractal renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.evaluator = EscapeEvaluator(get_gradient(self.config.gradient),
                                         max_iterations=self.config.max_iterations,
                                         contrast=self.config.contrast)
        self.sampler = SuperSampler(self.config.viewport(), self.evaluator)
        self.image_exporter = ImageExporter()

        logger.info(f"FractalRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"factor={self.config.sampling_factor}, gradient={self.config.gradient}")

    def build_pipeline(self) -> RenderPipeline:
        return RenderPipeline(self.sampler, self.config.workers, self.config.backend)

    def stream(self) -> Iterator[ColoredPixel]:
        """Colored pixels of the configured image, in completion order."""
        config = self.config
        return self.build_pipeline().run(config.width, config.height,
                                         config.sampling_factor, config.smooth)

    def render(self, progress_callback: Optional[Callable[[float], None]] = None) -> Raster:
        """
        Render the configured image into a new raster.

        Args:
            progress_callback: Called with the completed fraction (0-1) at 10% steps

        Returns:
            Fully populated raster

        Raises:
            PipelineError: If the pipeline failed or left pixels unwritten
        """
        raster = Raster(self.config.width, self.config.height)
        total = raster.width * raster.height
        step = max(1, total // 10)

        def report(written: int, total: int):
            if written % step == 0 or written == total:
                progress = written / total
                logger.info(f"Completed {written}/{total} pixels ({progress * 100:.1f}%)")
                if progress_callback is not None:
                    progress_callback(progress)

        written = raster.fill(self.stream(), report)
        if written != total:
            raise PipelineError(f"Rendered {written} of {total} pixels")
        return raster

    def metadata(self, render_time: float = 0.0) -> RenderMetadata:
        config = self.config
        return RenderMetadata(
            bounds=tuple(config.bounds),
            resolution=(config.width, config.height),
            sampling_factor=config.sampling_factor,
            workers=config.workers,
            smooth=config.smooth,
            gradient=config.gradient,
            backend=config.backend,
            max_iterations=config.max_iterations,
            render_time_seconds=render_time,
        )

    def render_to(self, target: Union[str, Path, BinaryIO],
                  progress_callback: Optional[Callable[[float], None]] = None) -> RenderMetadata:
        """
        Render and encode the image as PNG.

        Args:
            target: Output file path or writable binary stream
            progress_callback: Forwarded to render()

        Returns:
            Metadata embedded in the written image
        """
        start_time = time.time()
        raster = self.render(progress_callback)
        metadata = self.metadata(time.time() - start_time)

        self.image_exporter.save_png(raster, target, metadata)
        return metadata
