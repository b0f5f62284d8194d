"""
Exception types raised by mandelview.

Configuration problems are reported when the offending object is built,
never deferred to render time.
"""


class MandelviewError(Exception):
    """Base class for all mandelview errors."""


class DivisionByZero(MandelviewError, ZeroDivisionError):
    """Raised when dividing by a complex number of modulus zero."""


class InvalidConfiguration(MandelviewError, ValueError):
    """Raised when a camera, histogram, engine or render config is invalid."""


class RenderCancelled(MandelviewError):
    """Raised when a render is cancelled before the equalization phase."""
