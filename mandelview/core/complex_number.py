"""
Immutable complex numbers.

This module provides the value type used to address points of the complex
plane. Equality is exact over both components; use :func:`isclose` when a
tolerance is needed.
"""

import math
from dataclasses import dataclass
from typing import Union

from .errors import DivisionByZero, InvalidConfiguration

DEFAULT_TOLERANCE = 1e-10


@dataclass(frozen=True)
class Complex:
    """Complex number with float real and imaginary parts."""

    real: float
    imaginary: float

    def __post_init__(self):
        object.__setattr__(self, 'real', float(self.real))
        object.__setattr__(self, 'imaginary', float(self.imaginary))

    @staticmethod
    def real_number(x: float) -> 'Complex':
        """Create the complex number ``x + 0i``."""
        return Complex(float(x), 0.0)

    @staticmethod
    def rotation(theta: float) -> 'Complex':
        """
        Create the unit complex number of argument ``theta``.

        Args:
            theta: Angle in radians

        Returns:
            ``cos(theta) + i sin(theta)``
        """
        return Complex(math.cos(theta), math.sin(theta))

    @classmethod
    def from_builtin(cls, value: Union[complex, float, int]) -> 'Complex':
        """Convert a Python number to Complex."""
        value = complex(value)
        return cls(value.real, value.imag)

    def to_builtin(self) -> complex:
        """Convert to a Python ``complex``."""
        return complex(self.real, self.imaginary)

    def add(self, other: 'Complex') -> 'Complex':
        return Complex(self.real + other.real, self.imaginary + other.imaginary)

    def subtract(self, other: 'Complex') -> 'Complex':
        return Complex(self.real - other.real, self.imaginary - other.imaginary)

    def multiply(self, other: 'Complex') -> 'Complex':
        return Complex(
            self.real * other.real - self.imaginary * other.imaginary,
            self.real * other.imaginary + self.imaginary * other.real
        )

    def negate(self) -> 'Complex':
        return Complex(-self.real, -self.imaginary)

    def conjugate(self) -> 'Complex':
        return Complex(self.real, -self.imaginary)

    def scale(self, factor: float) -> 'Complex':
        """Multiply both components by the real ``factor``."""
        return Complex(self.real * factor, self.imaginary * factor)

    def squared_modulus(self) -> float:
        return self.real * self.real + self.imaginary * self.imaginary

    def modulus(self) -> float:
        return math.sqrt(self.squared_modulus())

    def reciprocal(self) -> 'Complex':
        """
        Compute ``1 / self``.

        Raises:
            DivisionByZero: If the squared modulus is zero
        """
        squared = self.squared_modulus()
        if squared == 0:
            raise DivisionByZero(f"Reciprocal of zero: {self}")
        return Complex(self.real / squared, -self.imaginary / squared)

    def divide(self, divisor: 'Complex') -> 'Complex':
        """
        Compute ``self / divisor``.

        Raises:
            DivisionByZero: If the divisor has modulus zero
        """
        return self.multiply(divisor.reciprocal())

    def pow(self, exponent: int) -> 'Complex':
        """
        Raise to a non-negative integer power by repeated multiplication.

        Args:
            exponent: Power, ``pow(0)`` is ``ONE``

        Returns:
            ``self ** exponent``
        """
        if isinstance(exponent, bool) or not isinstance(exponent, int) or exponent < 0:
            raise InvalidConfiguration(f"Exponent must be a non-negative integer, got {exponent!r}")
        result = ONE
        for _ in range(exponent):
            result = result.multiply(self)
        return result

    # Python operators delegate to the named operations

    def __add__(self, other: 'Complex') -> 'Complex':
        return self.add(other)

    def __sub__(self, other: 'Complex') -> 'Complex':
        return self.subtract(other)

    def __mul__(self, other: 'Complex') -> 'Complex':
        return self.multiply(other)

    def __truediv__(self, other: 'Complex') -> 'Complex':
        return self.divide(other)

    def __neg__(self) -> 'Complex':
        return self.negate()

    def __abs__(self) -> float:
        return self.modulus()

    def __pow__(self, exponent: int) -> 'Complex':
        return self.pow(exponent)

    def __str__(self) -> str:
        return f"Complex{{real={self.real}, imaginary={self.imaginary}}}"


ZERO = Complex(0.0, 0.0)
ONE = Complex(1.0, 0.0)
I = Complex(0.0, 1.0)

Complex.ZERO = ZERO
Complex.ONE = ONE
Complex.I = I


def isclose(a: Complex, b: Complex, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """
    Compare two complex numbers component-wise within an absolute tolerance.

    Args:
        a, b: Values to compare
        tolerance: Maximum allowed absolute difference per component

    Returns:
        True if both components differ by at most ``tolerance``
    """
    return (abs(a.real - b.real) <= tolerance and
            abs(a.imaginary - b.imaginary) <= tolerance)
