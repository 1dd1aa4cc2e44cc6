"""
Parallel Mandelbrot image generation.

This library renders the Mandelbrot set through a producer / worker pool /
collector pipeline: pixel coordinates are fanned out to a fixed pool of
workers, each pixel is super-sampled and colored by escape time, and the
colored pixels are assembled into a raster for PNG export.

Key Features:
- Thread or process worker pools with bounded queues
- Super-sampling anti-aliasing
- Smooth (continuous) escape-time coloring
- Hot-to-cold ramp, multi-stop palettes and matplotlib colormaps
- PNG export with embedded render metadata

Example usage:
    >>> from fractal_pipeline import FractalRenderer, RenderConfig
    >>> renderer = FractalRenderer(RenderConfig(width=300, height=200, workers=4))
    >>> renderer.render_to("mandelbrot.png")
"""

__version__ = "1.0.0"
__author__ = "Fractal Pipeline Team"

from fractal_pipeline.core.math_functions import (
    BLACK, Color, ColoredPixel, EscapeEvaluator, PixelCoordinate, Viewport,
)
from fractal_pipeline.core.sampling import SuperSampler
from fractal_pipeline.acceleration.pipeline import PipelineError, RenderPipeline
from fractal_pipeline.rendering.coloring import Palette, get_gradient, hot_cold
from fractal_pipeline.rendering.image_output import ImageExporter, Raster, RenderMetadata
from fractal_pipeline.io.config import ConfigManager, ConfigurationError

# Main API classes
from fractal_pipeline.api import FractalRenderer, RenderConfig

__all__ = [
    "FractalRenderer",
    "RenderConfig",
    "RenderPipeline",
    "PipelineError",
    "SuperSampler",
    "EscapeEvaluator",
    "Viewport",
    "Color",
    "BLACK",
    "PixelCoordinate",
    "ColoredPixel",
    "Palette",
    "get_gradient",
    "hot_cold",
    "Raster",
    "ImageExporter",
    "RenderMetadata",
    "ConfigManager",
    "ConfigurationError",
]
