"""
Color gradients for escape-time rendering.

A gradient maps a scalar position inside a range onto an 8-bit RGB triple:
``gradient(position, range_min, range_max) -> (r, g, b)``. This module
provides the classic hot-to-cold ramp, multi-stop palettes, and palettes
sampled from matplotlib colormaps.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Union
import logging

import numpy as np
from matplotlib import colormaps

from ..core.math_functions import GradientFunction

logger = logging.getLogger(__name__)


def hot_cold(position: float, vmin: float, vmax: float) -> Tuple[int, int, int]:
    """
    Blue -> cyan -> green -> yellow -> red color ramp.

    Positions outside [vmin, vmax] are clamped to the nearest end.
    """
    r = g = b = 1.0
    v = min(max(position, vmin), vmax)
    dv = vmax - vmin

    if v < vmin + 0.25 * dv:
        r = 0.0
        g = 4 * (v - vmin) / dv
    elif v < vmin + 0.5 * dv:
        r = 0.0
        b = 1 + 4 * (vmin + 0.25 * dv - v) / dv
    elif v < vmin + 0.75 * dv:
        r = 4 * (v - vmin - 0.5 * dv) / dv
        b = 0.0
    else:
        g = 1 + 4 * (vmin + 0.75 * dv - v) / dv
        b = 0.0

    return int(r * 255), int(g * 255), int(b * 255)


@dataclass(frozen=True)
class ColorRGB:
    """RGB color representation."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for component in [self.r, self.g, self.b]:
            if not 0 <= component <= 1:
                raise ValueError("RGB components must be between 0 and 1")

    def to_uint8_tuple(self) -> Tuple[int, int, int]:
        """Convert to 8-bit RGB tuple."""
        return (round(self.r * 255), round(self.g * 255), round(self.b * 255))


class Palette:
    """Multi-stop color palette usable as a gradient."""

    def __init__(self, colors: List[Union[ColorRGB, Tuple[float, float, float]]],
                 name: str = "Custom"):
        """
        Initialize color palette.

        Args:
            colors: Color stops, evenly spaced from start to end
            name: Human-readable name for the palette
        """
        self.name = name
        self.colors = []

        for color in colors:
            if isinstance(color, ColorRGB):
                self.colors.append(color)
            elif isinstance(color, (tuple, list)) and len(color) == 3:
                self.colors.append(ColorRGB(*color))
            else:
                raise ValueError(f"Invalid color format: {color}")

        if len(self.colors) < 2:
            raise ValueError("Palette must contain at least 2 colors")

    def __repr__(self):
        return f"Palette({self.name!r}, {len(self.colors)} stops)"

    def interpolate(self, t: float) -> ColorRGB:
        """Interpolate color at position t (0-1)."""
        t = min(max(t, 0.0), 1.0)

        # Map t to color segments
        segment_size = 1.0 / (len(self.colors) - 1)
        segment_idx = int(t / segment_size)

        if segment_idx >= len(self.colors) - 1:
            return self.colors[-1]

        local_t = (t - segment_idx * segment_size) / segment_size
        color1 = self.colors[segment_idx]
        color2 = self.colors[segment_idx + 1]

        # Rounding can overshoot a stop of 1.0 by an ulp.
        return ColorRGB(
            min(1.0, color1.r + local_t * (color2.r - color1.r)),
            min(1.0, color1.g + local_t * (color2.g - color1.g)),
            min(1.0, color1.b + local_t * (color2.b - color1.b))
        )

    def __call__(self, position: float, vmin: float, vmax: float) -> Tuple[int, int, int]:
        """Gradient lookup: position within [vmin, vmax] to 8-bit RGB."""
        return self.interpolate((position - vmin) / (vmax - vmin)).to_uint8_tuple()

    @classmethod
    def from_matplotlib(cls, cmap_name: str, n_samples: int = 32) -> 'Palette':
        """Create palette from matplotlib colormap."""
        cmap = colormaps[cmap_name]
        colors = []

        for t in np.linspace(0, 1, n_samples):
            rgba = cmap(float(t))
            colors.append(ColorRGB(float(rgba[0]), float(rgba[1]), float(rgba[2])))

        return cls(colors, name=cmap_name)

    @classmethod
    def load_from_file(cls, filepath: Path) -> 'Palette':
        """Load palette from GPL file."""
        colors = []
        name = Path(filepath).stem

        with open(filepath, 'r') as f:
            for line in f:
                line = line.strip()
                if line.startswith("Name:"):
                    name = line.split(":", 1)[1].strip()
                elif line and not line.startswith("#") and not line.startswith("GIMP"):
                    parts = line.split()
                    if len(parts) >= 3:
                        try:
                            r, g, b = int(parts[0]), int(parts[1]), int(parts[2])
                        except ValueError:
                            continue
                        colors.append(ColorRGB(r / 255.0, g / 255.0, b / 255.0))

        if not colors:
            raise ValueError(f"No valid colors found in {filepath}")

        return cls(colors, name)


DEFAULT_GRADIENT = 'hotcold'
MATPLOTLIB_GRADIENTS = ('viridis', 'plasma', 'inferno', 'magma', 'cividis')

BUILTIN_PALETTES: Dict[str, Palette] = {
    'hot': Palette([
        (0, 0, 0),          # Black
        (1, 0, 0),          # Red
        (1, 1, 0),          # Yellow
        (1, 1, 1),          # White
    ], name="hot"),
    'cool': Palette([
        (0, 0, 0),
        (0, 0, 1),
        (0, 1, 1),
        (1, 1, 1),
    ], name="cool"),
    'gray': Palette([(0, 0, 0), (1, 1, 1)], name="gray"),
    'fire': Palette([
        (0, 0, 0),
        (0.5, 0, 0),        # Dark red
        (1, 0, 0),
        (1, 0.5, 0),        # Orange
        (1, 1, 0),
        (1, 1, 1),
    ], name="fire"),
    'ocean': Palette([
        (0, 0, 0.2),        # Deep blue
        (0, 0, 0.8),
        (0, 0.5, 1),
        (0, 1, 1),
        (0.5, 1, 1),
        (1, 1, 1),
    ], name="ocean"),
    'rainbow': Palette([
        (1, 0, 0),
        (1, 0.5, 0),
        (1, 1, 0),
        (0, 1, 0),
        (0, 1, 1),
        (0, 0, 1),
        (0.5, 0, 1),        # Purple
    ], name="rainbow"),
}


def list_gradients() -> List[str]:
    """Names accepted by get_gradient."""
    return [DEFAULT_GRADIENT, *BUILTIN_PALETTES, *MATPLOTLIB_GRADIENTS]


def get_gradient(name: str = DEFAULT_GRADIENT) -> GradientFunction:
    """
    Look up a gradient by name.

    Args:
        name: Built-in gradient name, or the path of a GIMP .gpl palette file

    Returns:
        Gradient callable
    """
    if name == DEFAULT_GRADIENT:
        return hot_cold
    if name in BUILTIN_PALETTES:
        return BUILTIN_PALETTES[name]
    if name in MATPLOTLIB_GRADIENTS:
        return Palette.from_matplotlib(name)
    if name.lower().endswith('.gpl'):
        palette = Palette.load_from_file(Path(name))
        logger.info(f"Loaded palette '{palette.name}' with {len(palette.colors)} colors")
        return palette

    available = ', '.join(list_gradients())
    raise ValueError(f"Unknown gradient '{name}'. Available: {available}")
