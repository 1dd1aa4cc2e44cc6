"""
Raster assembly and PNG export for fractal rendering.

The raster collects colored pixels in whatever order the pipeline delivers
them; the exporter encodes the finished raster as PNG with the render
metadata embedded in text chunks.
"""

import numpy as np
from typing import Any, BinaryIO, Callable, Dict, Iterable, Optional, Tuple, Union
from pathlib import Path
from dataclasses import dataclass, asdict
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from ..core.math_functions import ColoredPixel

logger = logging.getLogger(__name__)

METADATA_KEY = "FractalMetadata"


class Raster:
    """RGBA image buffer filled from an unordered stream of colored pixels."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def set(self, pixel: ColoredPixel) -> None:
        """Write one colored pixel at its own coordinate."""
        x, y = pixel.point
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster")
        self.pixels[y, x] = pixel.color

    def fill(self, stream: Iterable[ColoredPixel],
             progress_callback: Optional[Callable[[int, int], None]] = None) -> int:
        """
        Drain a pixel stream into the raster.

        Args:
            stream: Colored pixels in any order
            progress_callback: Called with (pixels_written, total_pixels)

        Returns:
            Number of pixels written
        """
        total = self.width * self.height
        written = 0
        for pixel in stream:
            self.set(pixel)
            written += 1
            if progress_callback is not None:
                progress_callback(written, total)
        return written

    def to_rgb(self) -> np.ndarray:
        """RGB view of the raster, shape (height, width, 3)."""
        return self.pixels[:, :, :3]

    def to_image(self) -> Image.Image:
        # (H, W, 4) uint8 is read as RGBA
        return Image.fromarray(self.pixels)


@dataclass
class RenderMetadata:
    """Metadata for fractal renders."""

    bounds: Tuple[float, float, float, float]  # xmin, ymin, xmax, ymax
    resolution: Tuple[int, int]  # width, height
    sampling_factor: int
    workers: int
    smooth: bool
    gradient: str
    backend: str
    max_iterations: int

    render_time_seconds: float = 0.0
    timestamp: str = ""
    software_version: str = ""

    def __post_init__(self):
        """Normalize JSON lists and set defaults."""
        self.bounds = tuple(self.bounds)
        self.resolution = tuple(self.resolution)

        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

        if not self.software_version:
            from .. import __version__
            self.software_version = __version__

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """PNG export with metadata support."""

    def __init__(self, compress_level: int = 6):
        """
        Initialize image exporter.

        Args:
            compress_level: zlib level, 0 (no compression) to 9
        """
        if not 0 <= compress_level <= 9:
            raise ValueError("compress_level must be between 0 and 9")
        self.compress_level = compress_level

    def _png_info(self, metadata: Optional[RenderMetadata]) -> PngImagePlugin.PngInfo:
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            width, height = metadata.resolution
            pnginfo.add_text("Title", f"Mandelbrot {width}x{height}")
            pnginfo.add_text("Software", f"fractal-pipeline v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        return pnginfo

    def save_png(self, raster: Raster, target: Union[str, Path, BinaryIO],
                 metadata: Optional[RenderMetadata] = None) -> None:
        """
        Encode the raster as PNG.

        Args:
            raster: Fully populated raster
            target: Output file path or writable binary stream
            metadata: Render metadata to embed
        """
        image = raster.to_image()
        if isinstance(target, (str, Path)):
            target = Path(target)

        image.save(target, "PNG", pnginfo=self._png_info(metadata),
                   compress_level=self.compress_level)

        if isinstance(target, Path):
            logger.info(f"Saved image: {target} ({raster.width}x{raster.height})")
        else:
            logger.info(f"Wrote PNG stream ({raster.width}x{raster.height})")

    def extract_metadata_from_image(self, filepath: Union[str, Path]) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved PNG.

        Returns:
            Extracted metadata or None
        """
        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if METADATA_KEY in text:
                return RenderMetadata.from_json(text[METADATA_KEY])
        return None
