"""
Escape-time divergence engine for the Mandelbrot set.

The engine iterates ``z_{n+1} = z_n^2 + c`` from ``z_0 = 0`` and turns the
escape iteration into a smoothed, continuous divergence value. Points that
do not escape within the iteration budget get ``math.inf``.
"""

import math
from dataclasses import dataclass
import logging

import numpy as np

from .complex_number import Complex
from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

LOG2 = math.log(2.0)

DEFAULT_MAX_ITERATIONS = 500
DEFAULT_ESCAPE_BOUND = 4.0

# Smoothing needs a bailout radius of at least 2.
MIN_ESCAPE_BOUND = 4.0


@dataclass(frozen=True)
class Mandelbrot:
    """
    Mandelbrot divergence engine.

    Attributes:
        max_iterations: Iteration budget L
        escape_bound: Bound on the squared modulus that counts as escape
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    escape_bound: float = DEFAULT_ESCAPE_BOUND

    def __post_init__(self):
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int):
            raise InvalidConfiguration("max_iterations must be an integer")
        if self.max_iterations <= 0:
            raise InvalidConfiguration("max_iterations must be positive")
        if not math.isfinite(self.escape_bound) or self.escape_bound < MIN_ESCAPE_BOUND:
            raise InvalidConfiguration(
                f"escape_bound must be a finite value >= {MIN_ESCAPE_BOUND}, got {self.escape_bound}"
            )

    def divergence(self, c: Complex) -> float:
        """
        Compute the smoothed divergence value of ``c``.

        Args:
            c: Point of the complex plane

        Returns:
            A float in ``[0, max_iterations)`` for escaping points, or
            ``math.inf`` if the orbit stays bounded for the whole budget
        """
        c_real = c.real
        c_imag = c.imaginary
        x = 0.0
        y = 0.0

        for n in range(self.max_iterations):
            x, y = x * x - y * y + c_real, 2.0 * x * y + c_imag
            squared = x * x + y * y
            if squared > self.escape_bound:
                modulus = math.sqrt(squared)
                return max(0.0, n - math.log(math.log(modulus)) / LOG2)

        return math.inf

    def is_interior(self, c: Complex) -> bool:
        """Check whether ``c`` stays bounded for the whole budget."""
        return math.isinf(self.divergence(c))

    def divergence_grid(self, c: np.ndarray) -> np.ndarray:
        """
        Vectorised version of :meth:`divergence` for an array of points.

        Args:
            c: Array of complex coordinates (any shape)

        Returns:
            Float array of the same shape holding divergence values
        """
        points = np.asarray(c, dtype=np.complex128)
        flat = points.ravel()
        c_real = flat.real.copy()
        c_imag = flat.imag.copy()

        x = np.zeros_like(c_real)
        y = np.zeros_like(c_imag)
        values = np.full(c_real.shape, np.inf)
        active = np.arange(c_real.size)

        for n in range(self.max_iterations):
            if active.size == 0:
                break

            xa = x[active]
            ya = y[active]
            x_next = xa * xa - ya * ya + c_real[active]
            y_next = 2.0 * xa * ya + c_imag[active]
            squared = x_next * x_next + y_next * y_next

            escaped = squared > self.escape_bound
            if np.any(escaped):
                modulus = np.sqrt(squared[escaped])
                values[active[escaped]] = np.maximum(0.0, n - np.log(np.log(modulus)) / LOG2)

            remaining = ~escaped
            active = active[remaining]
            x[active] = x_next[remaining]
            y[active] = y_next[remaining]

        logger.debug(f"Divergence grid: {values.size} points, "
                     f"{int(np.isinf(values).sum())} interior")
        return values.reshape(points.shape)
