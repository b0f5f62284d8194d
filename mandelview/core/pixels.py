"""
Supersampled pixel grid.

Each display pixel is covered by an S x S grid of subpixels. Samples are
addressed through a flat index space so the divergence phase can be split
into contiguous batches and dispatched to any number of workers:

    sample k -> pixel p = k // S^2, subpixel s = k % S^2
    pixel p  -> (x, y) = (p // height, p % height)    (column by column)
    subpixel s -> (i, j) = (s // S, s % S)

and the sample's normalized position is

    u = (S*x + i) / (S*width),  v = 1 - (S*y + j) / (S*height)

so increasing image rows map to decreasing imaginary parts.
"""

import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple
import logging

from .camera import Camera
from .errors import InvalidConfiguration
from .mandelbrot import Mandelbrot
from ..rendering.coloring import Color

logger = logging.getLogger(__name__)

DEFAULT_SUPERSAMPLING = 3


@dataclass(frozen=True)
class SampleGrid:
    """Geometry of the supersampled grid for a canvas."""

    width: int
    height: int
    supersampling: int = DEFAULT_SUPERSAMPLING

    def __post_init__(self):
        for name in ('width', 'height', 'supersampling'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfiguration(f"{name} must be a positive integer, got {value!r}")

    @property
    def subpixels_per_pixel(self) -> int:
        return self.supersampling * self.supersampling

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def sample_count(self) -> int:
        return self.pixel_count * self.subpixels_per_pixel

    def position(self, index: int) -> Tuple[float, float]:
        """Normalized (u, v) position of the sample with flat index ``index``."""
        s = self.supersampling
        pixel, sub = divmod(index, self.subpixels_per_pixel)
        x, y = divmod(pixel, self.height)
        i, j = divmod(sub, s)
        u = (s * x + i) / (s * self.width)
        v = 1 - (s * y + j) / (s * self.height)
        return u, v

    def positions(self, start: int = 0, stop: Optional[int] = None) -> Iterator[Tuple[float, float]]:
        """Iterate over the positions of samples ``start`` to ``stop``."""
        if stop is None:
            stop = self.sample_count
        for index in range(start, stop):
            yield self.position(index)


def sample_positions(width: int, height: int,
                     supersampling: int = DEFAULT_SUPERSAMPLING) -> Iterator[Tuple[float, float]]:
    """Iterate over every sample position of a canvas in flat index order."""
    return SampleGrid(width, height, supersampling).positions()


@dataclass
class SubPixel:
    """
    One sample of the plane.

    Attributes:
        value: Divergence value, ``math.inf`` for interior points
        index: Flat generation index, used to break ties when sorting
        color: Color assigned by equalization, ``None`` until then
    """

    value: float
    index: int = 0
    color: Optional[Color] = None

    @property
    def is_interior(self) -> bool:
        return math.isinf(self.value)

    def sort_key(self) -> Tuple[float, int]:
        return (self.value, self.index)

    def __lt__(self, other: 'SubPixel') -> bool:
        return self.sort_key() < other.sort_key()


@dataclass
class Pixel:
    """A display pixel and its S x S subpixels."""

    x: int
    y: int
    subpixels: List[SubPixel] = field(default_factory=list)

    @property
    def subpixel_colors(self) -> List[Optional[Color]]:
        return [sub.color for sub in self.subpixels]

    @property
    def color(self) -> Optional[Color]:
        """Mean of the subpixel colors, or ``None`` if any is still unset."""
        colors = self.subpixel_colors
        if not colors or any(c is None for c in colors):
            return None
        return Color.mean(colors)


def assemble_pixels(values: Sequence[float], grid: SampleGrid) -> List[Pixel]:
    """
    Group per-sample divergence values into pixels.

    Args:
        values: Divergence values in flat index order
        grid: Grid geometry the values were computed for

    Returns:
        Pixels ordered column by column, top to bottom within a column
    """
    if len(values) != grid.sample_count:
        raise InvalidConfiguration(
            f"Expected {grid.sample_count} samples, got {len(values)}"
        )

    per_pixel = grid.subpixels_per_pixel
    pixels = []
    for p in range(grid.pixel_count):
        x, y = divmod(p, grid.height)
        start = p * per_pixel
        subpixels = [SubPixel(float(values[k]), k) for k in range(start, start + per_pixel)]
        pixels.append(Pixel(x, y, subpixels))
    return pixels


def generate_pixels(width: int, height: int, camera: Camera, mandelbrot: Mandelbrot,
                    supersampling: int = DEFAULT_SUPERSAMPLING) -> List[Pixel]:
    """
    Sample the whole canvas sequentially.

    Every sample position goes through ``camera.to_complex`` and then through
    ``mandelbrot.divergence``. Colors are left unset.
    """
    grid = SampleGrid(width, height, supersampling)
    values = [mandelbrot.divergence(camera.to_complex(u, v)) for u, v in grid.positions()]
    logger.debug(f"Sampled {len(values)} subpixels for a {width}x{height} canvas")
    return assemble_pixels(values, grid)


def collect_subpixels(pixels: Sequence[Pixel]) -> List[SubPixel]:
    """Pool the subpixels of all pixels, in generation order."""
    return [sub for pixel in pixels for sub in pixel.subpixels]
