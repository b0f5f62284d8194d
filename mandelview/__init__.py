"""
Mandelbrot rendering with histogram-equalized coloring.

The library samples the complex plane on a supersampled grid, computes a
smoothed escape-time divergence value for every sample and colors the
escaping samples by their rank, so the configured gradient stays evenly
spread at any zoom level.

Example usage:
    >>> from mandelview import FractalRenderer, RenderConfig, CAMERA_PRESETS
    >>> renderer = FractalRenderer(RenderConfig(width=320, height=240))
    >>> result = renderer.render(CAMERA_PRESETS['classic'])
    >>> image = result.to_array()
"""

__version__ = "1.0.0"

from mandelview.core.errors import (
    MandelviewError, DivisionByZero, InvalidConfiguration, RenderCancelled
)
from mandelview.core.complex_number import Complex, ZERO, ONE, I, isclose
from mandelview.core.camera import Camera, CAMERA_PRESETS
from mandelview.core.mandelbrot import Mandelbrot
from mandelview.core.pixels import Pixel, SubPixel, SampleGrid, generate_pixels, collect_subpixels
from mandelview.rendering.coloring import Color, Histogram, HISTOGRAM_PRESETS, equalize
from mandelview.rendering.image_output import ImageExporter, RenderMetadata
from mandelview.acceleration.multiprocessing import CancellationToken

# Main API classes
from mandelview.api import FractalRenderer, FractalExplorer, RenderConfig, RenderResult

__all__ = [
    "FractalRenderer",
    "FractalExplorer",
    "RenderConfig",
    "RenderResult",
    "Complex",
    "ZERO",
    "ONE",
    "I",
    "isclose",
    "Camera",
    "CAMERA_PRESETS",
    "Mandelbrot",
    "Pixel",
    "SubPixel",
    "SampleGrid",
    "generate_pixels",
    "collect_subpixels",
    "Color",
    "Histogram",
    "HISTOGRAM_PRESETS",
    "equalize",
    "ImageExporter",
    "RenderMetadata",
    "CancellationToken",
    "MandelviewError",
    "DivisionByZero",
    "InvalidConfiguration",
    "RenderCancelled",
]
