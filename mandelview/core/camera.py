"""
Viewport to complex-plane mapping.

A camera frames a rectangle of the complex plane. Normalized coordinates
``(u, v)`` in ``[0, 1]`` address that rectangle: ``(0, 0)`` is its lower-left
corner, ``(1, 1)`` its upper-right corner and ``(0.5, 0.5)`` its center.
Increasing ``v`` increases the imaginary part; callers that iterate over image
rows must pass ``v = 1 - row / height``.
"""

import math
from dataclasses import dataclass, replace
from typing import Dict, Any
import logging

from .complex_number import Complex, I
from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Camera:
    """
    Pan/zoom view of the complex plane.

    Attributes:
        center: Point shown at the middle of the viewport
        width: Width of the viewport in plane units (the zoom scale)
        aspect_ratio: Viewport width divided by viewport height
        angle: Rotation of the viewport in radians
    """

    center: Complex
    width: float
    aspect_ratio: float = 1.0
    angle: float = 0.0

    def __post_init__(self):
        if not isinstance(self.center, Complex):
            raise InvalidConfiguration("Camera center must be a Complex")
        if not (math.isfinite(self.center.real) and math.isfinite(self.center.imaginary)):
            raise InvalidConfiguration(f"Camera center must be finite, got {self.center}")
        if not math.isfinite(self.width) or self.width <= 0:
            raise InvalidConfiguration(f"Camera width must be positive, got {self.width}")
        if not math.isfinite(self.aspect_ratio) or self.aspect_ratio <= 0:
            raise InvalidConfiguration(f"Camera aspect ratio must be positive, got {self.aspect_ratio}")
        if not math.isfinite(self.angle):
            raise InvalidConfiguration("Camera angle must be finite")

    @property
    def height(self) -> float:
        """Height of the viewport in plane units."""
        return self.width / self.aspect_ratio

    @property
    def horizontal_axis(self) -> Complex:
        """Vector spanning the viewport from its left edge to its right edge."""
        return Complex.rotation(self.angle).scale(self.width)

    @property
    def vertical_axis(self) -> Complex:
        """Vector spanning the viewport from its bottom edge to its top edge."""
        return Complex.rotation(self.angle).multiply(I).scale(self.height)

    def to_complex(self, u: float, v: float) -> Complex:
        """
        Map normalized viewport coordinates to a point of the plane.

        Args:
            u: Horizontal position, 0 at the left edge and 1 at the right edge
            v: Vertical position, 0 at the bottom edge and 1 at the top edge

        Returns:
            The corresponding complex number
        """
        return (self.center
                .add(self.horizontal_axis.scale(u - 0.5))
                .add(self.vertical_axis.scale(v - 0.5)))

    def zoomed(self, factor: float) -> 'Camera':
        """Return a camera magnified by ``factor`` around the same center."""
        if not math.isfinite(factor) or factor <= 0:
            raise InvalidConfiguration(f"Zoom factor must be positive, got {factor}")
        return replace(self, width=self.width / factor)

    def panned(self, du: float, dv: float) -> 'Camera':
        """Return a camera moved by a fraction of the viewport size."""
        return replace(self, center=self.to_complex(0.5 + du, 0.5 + dv))

    def with_aspect_ratio(self, aspect_ratio: float) -> 'Camera':
        """Return the same view with a different aspect ratio, keeping the width."""
        return replace(self, aspect_ratio=aspect_ratio)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'center': [self.center.real, self.center.imaginary],
            'width': self.width,
            'aspect_ratio': self.aspect_ratio,
            'angle': self.angle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Camera':
        """
        Create a camera from a dictionary.

        The dictionary either names a preset (``{"preset": "classic"}``) or
        gives ``center`` as ``[real, imag]`` and ``width``. ``aspect_ratio``
        and ``angle`` are optional and override the preset values.
        """
        data = dict(data)
        if 'preset' in data:
            camera = get_camera_preset(data.pop('preset'))
            overrides = {k: _parse_float(k, data[k]) for k in ('width', 'aspect_ratio', 'angle') if k in data}
            if 'center' in data:
                overrides['center'] = _parse_center(data['center'])
            return replace(camera, **overrides)

        if 'center' not in data or 'width' not in data:
            raise InvalidConfiguration("Camera config needs 'center' and 'width' or a 'preset'")
        return cls(
            center=_parse_center(data['center']),
            width=_parse_float('width', data['width']),
            aspect_ratio=_parse_float('aspect_ratio', data.get('aspect_ratio', 1.0)),
            angle=_parse_float('angle', data.get('angle', 0.0)),
        )


def _parse_float(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Camera {name} must be a number, got {value!r}")


def _parse_center(value) -> Complex:
    try:
        real, imag = value
        return Complex(float(real), float(imag))
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Camera center must be [real, imag], got {value!r}")


CAMERA_PRESETS: Dict[str, Camera] = {
    'default': Camera(Complex(0.0, 0.0), 4.0, 1.0),
    'classic': Camera(Complex(-0.5, 0.0), 3.0, 4.0 / 3.0),
    'seahorse_valley': Camera(Complex(-0.743643887037151, 0.131825904205330), 0.01, 4.0 / 3.0),
    'elephant_valley': Camera(Complex(0.2925, 0.0153), 0.02, 4.0 / 3.0),
    'triple_spiral': Camera(Complex(-0.088, 0.654), 0.02, 4.0 / 3.0),
    'mini_mandelbrot': Camera(Complex(-1.7687788, 0.0017388), 0.0004, 4.0 / 3.0),
}


def get_camera_preset(name: str) -> Camera:
    """Get a camera preset by name."""
    camera = CAMERA_PRESETS.get(name.lower())
    if camera is None:
        available = ', '.join(CAMERA_PRESETS.keys())
        raise InvalidConfiguration(f"Unknown camera preset '{name}'. Available: {available}")
    return camera
