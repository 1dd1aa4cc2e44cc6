"""
Core mathematical functions for fractal iteration.

This module provides the viewport coordinate mapping and the escape-time
evaluator that turns a single point of the complex plane into a color.
"""

import math
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Tuple
import logging

from ..io.config import ConfigurationError

logger = logging.getLogger(__name__)

# Gradient lookup contract: (position, range_min, range_max) -> (r, g, b)
GradientFunction = Callable[[float, float, float], Tuple[int, int, int]]


class Color(NamedTuple):
    """RGBA color with 8 bits per channel."""
    r: int
    g: int
    b: int
    a: int = 255


BLACK = Color(0, 0, 0, 255)


class PixelCoordinate(NamedTuple):
    """Position of one pixel in the output raster."""
    x: int
    y: int


class ColoredPixel(NamedTuple):
    """A pixel coordinate together with its computed color."""
    point: PixelCoordinate
    color: Color

    @property
    def x(self) -> int:
        return self.point.x

    @property
    def y(self) -> int:
        return self.point.y


@dataclass(frozen=True)
class Viewport:
    """Represents a complex plane region with coordinate mapping utilities."""

    xmin: float = -2.2
    ymin: float = -1.2
    xmax: float = 1.2
    ymax: float = 1.2

    def __post_init__(self):
        if self.xmin >= self.xmax or self.ymin >= self.ymax:
            raise ConfigurationError(
                f"Invalid bounds {self.as_tuple()}: min values must be less than max values")

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Bounds as (xmin, ymin, xmax, ymax)."""
        return (self.xmin, self.ymin, self.xmax, self.ymax)

    def to_complex_x(self, index: int, width: int, factor: int) -> float:
        """
        Map an oversampled column index onto the real axis.

        Args:
            index: Column index in the oversampled grid (px * factor + offset)
            width: Output width in pixels
            factor: Super-sampling factor

        Returns:
            Real part of the sample point
        """
        return index / (width * factor) * (self.xmax - self.xmin) + self.xmin

    def to_complex_y(self, index: int, height: int, factor: int) -> float:
        """Map an oversampled row index onto the imaginary axis."""
        return index / (height * factor) * (self.ymax - self.ymin) + self.ymin

    def to_complex(self, ix: int, iy: int, width: int, height: int, factor: int = 1) -> complex:
        """Convert an oversampled (column, row) index pair to a complex number."""
        return complex(self.to_complex_x(ix, width, factor),
                       self.to_complex_y(iy, height, factor))


class Escape(NamedTuple):
    """Iteration index and magnitude at which an orbit escaped."""
    iteration: int
    magnitude: float


class EscapeEvaluator:
    """Escape-time evaluation of the Mandelbrot map v <- v^2 + c."""

    def __init__(self, gradient: GradientFunction, max_iterations: int = 255,
                 contrast: float = 15, escape_radius: float = 2.0,
                 smooth_skip: int = 2, inside_color: Color = BLACK):
        """
        Initialize escape evaluator.

        Args:
            gradient: Lookup mapping (position, range_min, range_max) to 8-bit RGB
            max_iterations: Iteration budget per point
            contrast: Multiplier applied to the escape iteration before lookup
            escape_radius: Magnitude beyond which an orbit counts as escaped
            smooth_skip: Iterations ignored for escape detection in smooth mode
            inside_color: Color for points that never escape
        """
        if max_iterations <= 0:
            raise ConfigurationError("max_iterations must be positive")
        if escape_radius <= 1:
            raise ConfigurationError("escape_radius must be greater than 1")
        if smooth_skip < 0:
            raise ConfigurationError("smooth_skip must not be negative")

        self.gradient = gradient
        self.max_iterations = max_iterations
        self.contrast = contrast
        self.escape_radius = escape_radius
        self.smooth_skip = smooth_skip
        self.inside_color = inside_color

    def escape(self, point: complex, smooth: bool = False) -> Optional[Escape]:
        """
        Iterate the map for one point.

        Early iterations up to the skip threshold never count as an escape,
        so that the smooth estimate is not taken from a barely started orbit.

        Returns:
            Escape information, or None if the budget was exhausted
        """
        skip = self.smooth_skip if smooth else 0
        radius = self.escape_radius
        v = 0j
        for n in range(self.max_iterations):
            v = v * v + point
            magnitude = abs(v)
            if magnitude > radius and n > skip:
                return Escape(n, magnitude)
        return None

    def position(self, escape: Escape, smooth: bool = False) -> float:
        """Gradient position for an escaped orbit."""
        if smooth:
            mu = escape.iteration + 1 - math.log(math.log(escape.magnitude)) / math.log(2)
            return mu * self.contrast
        return float(escape.iteration * self.contrast)

    def evaluate(self, point: complex, smooth: bool = False) -> Color:
        """Color of a single sample point."""
        escape = self.escape(point, smooth)
        if escape is None:
            return self.inside_color

        r, g, b = self.gradient(self.position(escape, smooth), 0, self.max_iterations)
        return Color(r, g, b, 255)
