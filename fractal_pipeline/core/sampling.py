"""
Super-sampling of output pixels.

Each output pixel is split into a factor x factor grid of sample points whose
colors are averaged into the final pixel color.
"""

import logging

from .math_functions import Color, EscapeEvaluator, PixelCoordinate, Viewport
from ..io.config import ConfigurationError

logger = logging.getLogger(__name__)


class SuperSampler:
    """Anti-aliased pixel coloring by averaging sub-pixel evaluations."""

    def __init__(self, viewport: Viewport, evaluator: EscapeEvaluator):
        self.viewport = viewport
        self.evaluator = evaluator

    def sample(self, point: PixelCoordinate, width: int, height: int,
               factor: int = 1, smooth: bool = False) -> Color:
        """
        Compute the color of one output pixel.

        Args:
            point: Pixel coordinate in the output raster
            width, height: Output raster dimensions
            factor: Sub-samples per axis
            smooth: Use smooth escape-time coloring

        Returns:
            Channel-wise mean of the factor * factor sub-sample colors
        """
        if factor < 1:
            raise ConfigurationError(f"sampling factor must be >= 1, got {factor}")

        # Mapped once per axis, reused for every combination.
        x0, y0 = point.x * factor, point.y * factor
        xs = [self.viewport.to_complex_x(x0 + i, width, factor) for i in range(factor)]
        ys = [self.viewport.to_complex_y(y0 + i, height, factor) for i in range(factor)]

        evaluate = self.evaluator.evaluate
        r_sum = g_sum = b_sum = 0
        for y in ys:
            for x in xs:
                color = evaluate(complex(x, y), smooth)
                r_sum += color.r
                g_sum += color.g
                b_sum += color.b

        samples = factor * factor
        # 16-bit mean (c * 257) reduced back to 8 bits.
        return Color((r_sum * 257 // samples) >> 8, (g_sum * 257 // samples) >> 8,
                     (b_sum * 257 // samples) >> 8, 255)
