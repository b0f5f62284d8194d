"""
Colors, histogram gradients and rank equalization.

Divergence values are not mapped to colors by magnitude. Instead the
escaping samples are sorted and each one is colored by its normalized rank,
so the configured gradient is spread evenly over the image at any zoom
level. Interior samples are never ranked and receive a background color.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from ..core.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Color:
    """RGB color with channels in [0, 1]."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for component in (self.r, self.g, self.b):
            if not 0.0 <= component <= 1.0:
                raise InvalidConfiguration(f"RGB components must be between 0 and 1, got {self.to_tuple()}")

    @classmethod
    def rgb(cls, r: int, g: int, b: int) -> 'Color':
        """Create a color from 8-bit channels."""
        return cls(r / 255.0, g / 255.0, b / 255.0)

    @classmethod
    def gray(cls, level: float) -> 'Color':
        return cls(level, level, level)

    @classmethod
    def from_hex(cls, value: str) -> 'Color':
        """Create a color from ``#rrggbb``."""
        text = value.lstrip('#')
        if len(text) != 6:
            raise InvalidConfiguration(f"Invalid hex color: {value!r}")
        try:
            return cls.rgb(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
        except ValueError:
            raise InvalidConfiguration(f"Invalid hex color: {value!r}")

    @classmethod
    def parse(cls, value: Union[str, Sequence[float], 'Color']) -> 'Color':
        """Accept a Color, a ``#rrggbb`` string or an ``[r, g, b]`` float triple."""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        if isinstance(value, (list, tuple)) and len(value) == 3:
            return cls(*(float(c) for c in value))
        raise InvalidConfiguration(f"Invalid color format: {value!r}")

    @classmethod
    def mean(cls, colors: Sequence['Color']) -> 'Color':
        """Average of several colors."""
        n = len(colors)
        return cls(
            min(1.0, sum(c.r for c in colors) / n),
            min(1.0, sum(c.g for c in colors) / n),
            min(1.0, sum(c.b for c in colors) / n)
        )

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def to_uint8_tuple(self) -> Tuple[int, int, int]:
        """Convert to 8-bit RGB tuple."""
        return (round(self.r * 255), round(self.g * 255), round(self.b * 255))

    def to_hex(self) -> str:
        return '#{:02x}{:02x}{:02x}'.format(*self.to_uint8_tuple())


BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)


class Histogram:
    """
    Piecewise-linear color gradient over normalized rank.

    Breakpoints are positions in [0, 1] where a configured color is anchored;
    colors in between are interpolated channel by channel. Instances are
    immutable: use :meth:`with_colors` to derive a recolored gradient.
    """

    def __init__(self, breakpoints: Sequence[float], colors: Sequence[Color]):
        """
        Initialize and validate the gradient.

        Args:
            breakpoints: Strictly ascending ranks, starting at 0.0 and ending at 1.0
            colors: One color per breakpoint

        Raises:
            InvalidConfiguration: If the arrays do not describe a valid gradient
        """
        breakpoints = tuple(float(b) for b in breakpoints)
        colors = tuple(colors)

        if len(breakpoints) != len(colors):
            raise InvalidConfiguration(
                f"Got {len(breakpoints)} breakpoints but {len(colors)} colors"
            )
        if len(breakpoints) < 2:
            raise InvalidConfiguration("Histogram needs at least two breakpoints")
        if not all(math.isfinite(b) and 0.0 <= b <= 1.0 for b in breakpoints):
            raise InvalidConfiguration(f"Breakpoints must be finite values in [0, 1]: {breakpoints}")
        if breakpoints[0] != 0.0 or breakpoints[-1] != 1.0:
            raise InvalidConfiguration("Breakpoints must start at 0.0 and end at 1.0")
        if any(a >= b for a, b in zip(breakpoints, breakpoints[1:])):
            raise InvalidConfiguration(f"Breakpoints must be strictly ascending: {breakpoints}")
        if not all(isinstance(c, Color) for c in colors):
            raise InvalidConfiguration("Histogram colors must be Color instances")

        self._breakpoints = breakpoints
        self._colors = colors
        self._channels = np.array([c.to_tuple() for c in colors], dtype=np.float64)

    @property
    def breakpoints(self) -> Tuple[float, ...]:
        return self._breakpoints

    @property
    def colors(self) -> Tuple[Color, ...]:
        return self._colors

    def __eq__(self, other) -> bool:
        if not isinstance(other, Histogram):
            return NotImplemented
        return self._breakpoints == other._breakpoints and self._colors == other._colors

    def __hash__(self) -> int:
        return hash((self._breakpoints, self._colors))

    def __repr__(self) -> str:
        return f"Histogram(breakpoints={list(self._breakpoints)}, colors={list(self._colors)})"

    def _interpolate(self, ranks: np.ndarray) -> np.ndarray:
        """Interpolate an array of ranks into an (n, 3) array of channels."""
        rgb = np.empty((ranks.shape[0], 3), dtype=np.float64)
        for channel in range(3):
            rgb[:, channel] = np.interp(ranks, self._breakpoints, self._channels[:, channel])
        return np.clip(rgb, 0.0, 1.0)

    def color_at(self, rank: float) -> Color:
        """
        Color of the gradient at normalized rank ``rank``.

        Ranks that fall on a breakpoint return that breakpoint's color exactly.
        """
        if not 0.0 <= rank <= 1.0:
            raise ValueError(f"Rank must be in [0, 1], got {rank}")
        r, g, b = self._interpolate(np.array([rank], dtype=np.float64))[0]
        return Color(float(r), float(g), float(b))

    def generate(self, count: int) -> List[Color]:
        """
        Generate ``count`` colors evenly spread over the gradient by rank.

        Color ``i`` sits at rank ``i / (count - 1)``; a single color sits at
        rank 0.

        Args:
            count: Number of ranked samples

        Returns:
            List of colors, empty when ``count`` is 0
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count == 0:
            return []
        if count == 1:
            return [self._colors[0]]

        ranks = np.arange(count, dtype=np.float64) / (count - 1)
        rgb = self._interpolate(ranks)
        return [Color(float(r), float(g), float(b)) for r, g, b in rgb]

    def with_colors(self, colors: Sequence[Color]) -> 'Histogram':
        """Return a gradient with the same breakpoints and new colors."""
        return Histogram(self._breakpoints, colors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'breakpoints': list(self._breakpoints),
            'colors': [c.to_hex() for c in self._colors],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Histogram':
        """
        Create a histogram from a dictionary.

        Either ``{"preset": name}`` or explicit ``breakpoints`` and ``colors``
        (hex strings or float triples). A preset can be recolored by also
        giving ``colors``.
        """
        if 'preset' in data:
            histogram = get_histogram_preset(data['preset'])
            if 'colors' in data:
                histogram = histogram.with_colors([Color.parse(c) for c in data['colors']])
            return histogram

        if 'breakpoints' not in data or 'colors' not in data:
            raise InvalidConfiguration("Histogram config needs 'breakpoints' and 'colors' or a 'preset'")
        return cls(data['breakpoints'], [Color.parse(c) for c in data['colors']])

    @classmethod
    def uniform(cls, colors: Sequence[Color]) -> 'Histogram':
        """Create a gradient with evenly spaced breakpoints."""
        if len(colors) < 2:
            raise InvalidConfiguration("Histogram needs at least two colors")
        n = len(colors) - 1
        return cls([i / n for i in range(n)] + [1.0], colors)

    @classmethod
    def from_matplotlib(cls, cmap_name: str, n_samples: int = 16) -> 'Histogram':
        """Create an evenly spaced gradient by sampling a matplotlib colormap."""
        from matplotlib import colormaps

        try:
            cmap = colormaps[cmap_name]
        except KeyError:
            raise InvalidConfiguration(f"Unknown matplotlib colormap '{cmap_name}'")

        colors = []
        for t in np.linspace(0.0, 1.0, n_samples):
            rgba = cmap(float(t))
            colors.append(Color(float(rgba[0]), float(rgba[1]), float(rgba[2])))
        return cls.uniform(colors)


def equalize(subpixels: Sequence, histogram: Histogram,
             background: Optional[Color] = None) -> int:
    """
    Assign colors to subpixels by the rank of their divergence value.

    The escaping subpixels are stable-sorted by value, so equal values keep
    their generation order, and colored from ``histogram.generate``. Interior
    subpixels get ``background``, which defaults to the first (darkest)
    histogram color. The order of ``subpixels`` itself is left unchanged.

    Args:
        subpixels: Objects with a ``value`` and a writable ``color``
        histogram: Gradient to distribute over the ranks
        background: Color for interior subpixels

    Returns:
        Number of escaping (ranked) subpixels
    """
    if background is None:
        background = histogram.colors[0]

    escaping = []
    for sub in subpixels:
        if math.isinf(sub.value):
            sub.color = background
        else:
            escaping.append(sub)

    if not escaping:
        logger.debug("No escaping subpixels, nothing to rank")
        return 0

    escaping.sort(key=lambda sub: sub.value)
    for sub, color in zip(escaping, histogram.generate(len(escaping))):
        sub.color = color

    logger.debug(f"Equalized {len(escaping)} escaping subpixels, "
                 f"{len(subpixels) - len(escaping)} interior")
    return len(escaping)


HISTOGRAM_PRESETS: Dict[str, Histogram] = {
    'default': Histogram(
        [0.0, 0.75, 0.85, 0.95, 0.99, 1.0],
        [
            Color.gray(0.2),
            Color.gray(0.7),
            Color.rgb(55, 118, 145),
            Color.rgb(63, 74, 132),
            Color.rgb(145, 121, 82),
            Color.rgb(250, 250, 200),
        ]
    ),
    'grayscale': Histogram([0.0, 1.0], [BLACK, WHITE]),
    'fire': Histogram(
        [0.0, 0.5, 0.8, 0.95, 1.0],
        [BLACK, Color(0.5, 0.0, 0.0), Color(1.0, 0.0, 0.0), Color(1.0, 0.5, 0.0), Color(1.0, 1.0, 0.0)]
    ),
    'ocean': Histogram(
        [0.0, 0.6, 0.85, 0.97, 1.0],
        [Color(0.0, 0.0, 0.2), Color(0.0, 0.0, 0.8), Color(0.0, 0.5, 1.0), Color(0.0, 1.0, 1.0), WHITE]
    ),
}


def get_histogram_preset(name: str) -> Histogram:
    """Get a histogram preset by name."""
    histogram = HISTOGRAM_PRESETS.get(name.lower())
    if histogram is None:
        available = ', '.join(HISTOGRAM_PRESETS.keys())
        raise InvalidConfiguration(f"Unknown histogram preset '{name}'. Available: {available}")
    return histogram
