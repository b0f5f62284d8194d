"""
Main API classes for rendering the Mandelbrot set.

This module wires the camera, the divergence engine, the sample grid and
the rank equalizer into a two-phase pipeline:

1. divergence phase: every sample position is mapped to a divergence value
   (batched, optionally in a process pool);
2. equalization phase: once every value is known, all subpixels are pooled,
   ranked and colored.
"""

import numpy as np
from typing import Optional, Dict, Any, List, Tuple, Callable
from dataclasses import dataclass, asdict, fields
from pathlib import Path
import logging
import time

from .acceleration.multiprocessing import CancellationToken, DivergenceMapper
from .core.camera import Camera, get_camera_preset
from .core.errors import InvalidConfiguration
from .core.mandelbrot import Mandelbrot, DEFAULT_ESCAPE_BOUND, DEFAULT_MAX_ITERATIONS
from .core.pixels import Pixel, SampleGrid, assemble_pixels, collect_subpixels, DEFAULT_SUPERSAMPLING
from .rendering.coloring import Color, Histogram, equalize, get_histogram_preset
from .rendering.image_output import (
    ImageExporter, RenderMetadata, pixels_to_array, subpixels_to_array
)

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for a render."""

    # Canvas
    width: int = 800
    height: int = 600
    supersampling: int = DEFAULT_SUPERSAMPLING

    # Engine
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    escape_bound: float = DEFAULT_ESCAPE_BOUND

    # View and coloring presets used when no camera/histogram is passed
    camera_preset: str = 'classic'
    histogram_preset: str = 'default'
    lock_aspect: bool = True  # camera aspect ratio follows width / height
    inside_color: Optional[str] = None  # hex, defaults to the first histogram color

    # Performance
    num_processes: int = 1
    batch_size: int = 4096
    vectorized: bool = True

    # Output
    jpeg_quality: int = 95
    save_metadata: bool = True

    def validate(self):
        """Validate configuration parameters."""
        for name in ('width', 'height', 'supersampling', 'max_iterations', 'batch_size'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfiguration(f"{name} must be a positive integer, got {value!r}")

        if self.num_processes is not None and self.num_processes < 1:
            raise InvalidConfiguration("num_processes must be >= 1")

        if not 1 <= self.jpeg_quality <= 100:
            raise InvalidConfiguration("jpeg_quality must be between 1 and 100")

        # Raise early on unknown presets or a bad inside color
        get_camera_preset(self.camera_preset)
        get_histogram_preset(self.histogram_preset)
        if self.inside_color is not None:
            Color.from_hex(self.inside_color)
        Mandelbrot(self.max_iterations, self.escape_bound)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        """Create a config from a dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfiguration(f"Unknown configuration parameters: {', '.join(sorted(unknown))}")
        config = cls(**data)
        config.validate()
        return config


@dataclass
class RenderResult:
    """Pixels produced by a render, ready for an external renderer."""

    pixels: List[Pixel]
    width: int
    height: int
    supersampling: int
    camera: Camera
    histogram: Histogram
    mandelbrot: Mandelbrot
    interior_samples: int
    escaped_samples: int
    render_time: float = 0.0

    def pixel_at(self, x: int, y: int) -> Pixel:
        return self.pixels[x * self.height + y]

    def to_array(self, supersampled: bool = False) -> np.ndarray:
        """
        RGB image of the render.

        Args:
            supersampled: Return one entry per subpixel instead of the
                per-pixel mean color

        Returns:
            Float array (height, width, 3), or (S*height, S*width, 3)
        """
        if supersampled:
            return subpixels_to_array(self.pixels, self.width, self.height, self.supersampling)
        return pixels_to_array(self.pixels, self.width, self.height)

    def divergence_array(self) -> np.ndarray:
        """Divergence values of all subpixels in flat index order."""
        return np.array([sub.value for sub in collect_subpixels(self.pixels)], dtype=np.float64)

    def metadata(self) -> RenderMetadata:
        return RenderMetadata(
            center=(self.camera.center.real, self.camera.center.imaginary),
            view_width=self.camera.width,
            aspect_ratio=self.camera.aspect_ratio,
            resolution=(self.width, self.height),
            supersampling=self.supersampling,
            max_iterations=self.mandelbrot.max_iterations,
            escape_bound=self.mandelbrot.escape_bound,
            histogram=self.histogram.to_dict(),
            render_time_seconds=self.render_time,
            interior_samples=self.interior_samples,
            escaped_samples=self.escaped_samples,
        )


class FractalRenderer:
    """Main rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.mandelbrot = Mandelbrot(self.config.max_iterations, self.config.escape_bound)
        self.grid = SampleGrid(self.config.width, self.config.height, self.config.supersampling)
        self.mapper = DivergenceMapper(
            num_processes=self.config.num_processes,
            batch_size=self.config.batch_size,
            vectorized=self.config.vectorized
        )
        self.image_exporter = ImageExporter()

        logger.info(f"FractalRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"supersampling={self.config.supersampling}, "
                    f"max_iterations={self.config.max_iterations}")

    def resolve_camera(self, camera: Optional[Camera] = None) -> Camera:
        """Camera actually used for a render, after the aspect policy."""
        if camera is None:
            camera = get_camera_preset(self.config.camera_preset)
        if self.config.lock_aspect:
            camera = camera.with_aspect_ratio(self.config.width / self.config.height)
        return camera

    def render(self, camera: Optional[Camera] = None, histogram: Optional[Histogram] = None,
               cancel_token: Optional[CancellationToken] = None,
               progress_callback: Optional[Callable[[int, int], None]] = None) -> RenderResult:
        """
        Render the Mandelbrot set.

        Args:
            camera: View to render (defaults to the configured preset)
            histogram: Gradient to equalize with (defaults to the configured preset)
            cancel_token: Checked between divergence batches
            progress_callback: Called with (completed_batches, total_batches)

        Returns:
            RenderResult with colored pixels

        Raises:
            RenderCancelled: If ``cancel_token`` is cancelled during the divergence phase
        """
        start_time = time.time()
        camera = self.resolve_camera(camera)
        if histogram is None:
            histogram = get_histogram_preset(self.config.histogram_preset)

        logger.info(f"Starting render: center={camera.center}, width={camera.width}")

        values = self.mapper.map(camera, self.mandelbrot, self.grid,
                                 cancel_token, progress_callback)

        pixels = assemble_pixels(values, self.grid)
        subpixels = collect_subpixels(pixels)

        background = Color.from_hex(self.config.inside_color) if self.config.inside_color else None
        escaped = equalize(subpixels, histogram, background)

        render_time = time.time() - start_time
        logger.info(f"Render complete: {render_time:.2f}s, {escaped} escaped, "
                    f"{len(subpixels) - escaped} interior samples")

        return RenderResult(
            pixels=pixels,
            width=self.config.width,
            height=self.config.height,
            supersampling=self.config.supersampling,
            camera=camera,
            histogram=histogram,
            mandelbrot=self.mandelbrot,
            interior_samples=len(subpixels) - escaped,
            escaped_samples=escaped,
            render_time=render_time,
        )

    def render_to_file(self, output_path: Path, camera: Optional[Camera] = None,
                       histogram: Optional[Histogram] = None,
                       cancel_token: Optional[CancellationToken] = None,
                       progress_callback: Optional[Callable[[int, int], None]] = None) -> RenderResult:
        """Render and save the image, with metadata if configured."""
        result = self.render(camera, histogram, cancel_token, progress_callback)
        metadata = result.metadata() if self.config.save_metadata else None
        self.image_exporter.save_image(result.to_array(), Path(output_path), metadata,
                                       self.config.jpeg_quality)
        return result


class FractalExplorer:
    """Interactive exploration state: current view, gradient and history."""

    def __init__(self, initial_config: Optional[RenderConfig] = None,
                 camera: Optional[Camera] = None, histogram: Optional[Histogram] = None):
        self.config = initial_config or RenderConfig(width=800, height=800)
        self.renderer = FractalRenderer(self.config)
        self.camera = self.renderer.resolve_camera(camera)
        self.histogram = histogram or get_histogram_preset(self.config.histogram_preset)
        self.history: List[Tuple[Camera, Histogram]] = []
        self.current: Optional[RenderResult] = None

    def render_current(self, cancel_token: Optional[CancellationToken] = None) -> RenderResult:
        """Render the current view."""
        self.current = self.renderer.render(self.camera, self.histogram, cancel_token)
        return self.current

    def _advance(self, camera: Camera, histogram: Histogram):
        """Record the current state and move to the new one."""
        self.history.append((self.camera, self.histogram))
        self.camera = camera
        self.histogram = histogram

    def zoom_to_pixel(self, x: int, y: int, zoom_factor: float = 2.0):
        """
        Center the view on a canvas pixel and magnify it.

        Args:
            x, y: Pixel coordinates, y growing downwards
            zoom_factor: Magnification factor
        """
        u = (x + 0.5) / self.config.width
        v = 1 - (y + 0.5) / self.config.height
        camera = self.camera.panned(u - 0.5, v - 0.5).zoomed(zoom_factor)
        self._advance(camera, self.histogram)
        logger.info(f"Zoomed to {self.camera.center} with factor {zoom_factor}")

    def zoom_out(self, zoom_factor: float = 2.0):
        if not zoom_factor > 0:
            raise InvalidConfiguration(f"Zoom factor must be positive, got {zoom_factor}")
        self._advance(self.camera.zoomed(1.0 / zoom_factor), self.histogram)

    def pan(self, du: float, dv: float):
        """Move the view by a fraction of its size."""
        self._advance(self.camera.panned(du, dv), self.histogram)

    def recolor(self, colors: List[Color]):
        """Replace the gradient colors, keeping the breakpoints."""
        self._advance(self.camera, self.histogram.with_colors(colors))

    def go_back(self) -> bool:
        """Return to the previous view. Returns False if there is no history."""
        if not self.history:
            logger.warning("No history available")
            return False
        self.camera, self.histogram = self.history.pop()
        return True
