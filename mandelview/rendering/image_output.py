"""
Image export for rendered pixel grids.

This module turns equalized pixels into RGB arrays and writes them with
Pillow as PNG, TIFF or JPEG, embedding the render parameters so an image can
be reproduced later.
"""

import numpy as np
from typing import Dict, Any, Optional, Sequence, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

from ..core.pixels import Pixel

logger = logging.getLogger(__name__)

METADATA_KEY = "MandelviewMetadata"


@dataclass
class RenderMetadata:
    """Metadata for a rendered image."""

    # View
    center: Tuple[float, float]
    view_width: float
    aspect_ratio: float
    resolution: Tuple[int, int]  # width, height
    supersampling: int

    # Engine
    max_iterations: int
    escape_bound: float

    # Coloring
    histogram: Dict[str, Any] = field(default_factory=dict)

    render_time_seconds: float = 0.0
    interior_samples: int = 0
    escaped_samples: int = 0

    timestamp: str = ""
    software_version: str = ""

    def __post_init__(self):
        """Set default timestamp and version if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        if not self.software_version:
            from .. import __version__
            self.software_version = __version__
        self.center = tuple(self.center)
        self.resolution = tuple(self.resolution)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        return cls.from_dict(json.loads(json_str))


def pixels_to_array(pixels: Sequence[Pixel], width: int, height: int) -> np.ndarray:
    """
    Build an RGB image from the mean color of each pixel.

    Args:
        pixels: Equalized pixels
        width, height: Canvas size in pixels

    Returns:
        Float array of shape (height, width, 3) with values 0-1
    """
    image = np.zeros((height, width, 3), dtype=np.float64)
    for pixel in pixels:
        color = pixel.color
        if color is None:
            raise ValueError(f"Pixel ({pixel.x}, {pixel.y}) has not been colored")
        image[pixel.y, pixel.x] = color.to_tuple()
    return image


def subpixels_to_array(pixels: Sequence[Pixel], width: int, height: int,
                       supersampling: int) -> np.ndarray:
    """
    Build a full-resolution RGB image with one entry per subpixel.

    Subpixel ``(i, j)`` of pixel ``(x, y)`` lands at row ``S*y + j`` and
    column ``S*x + i``.
    """
    s = supersampling
    image = np.zeros((height * s, width * s, 3), dtype=np.float64)
    for pixel in pixels:
        for index, sub in enumerate(pixel.subpixels):
            if sub.color is None:
                raise ValueError(f"Subpixel {sub.index} has not been colored")
            i, j = divmod(index, s)
            image[s * pixel.y + j, s * pixel.x + i] = sub.color.to_tuple()
    return image


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   quality: int = 95) -> None:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: RGB image array (height, width, 3) with values 0-1
            filepath: Output file path
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        image_array = self._prepare_image_array(image_array)
        pil_image = Image.fromarray(image_array)

        filepath.parent.mkdir(parents=True, exist_ok=True)
        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")

    def _prepare_image_array(self, image_array: np.ndarray) -> np.ndarray:
        """Prepare and validate image array for export."""
        if len(image_array.shape) != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype != np.uint8:
            if np.issubdtype(image_array.dtype, np.floating):
                image_array = np.clip(image_array, 0.0, 1.0)
                image_array = np.round(image_array * 255).astype(np.uint8)
            else:
                image_array = np.clip(image_array, 0, 255).astype(np.uint8)

        return image_array

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata in text chunks."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", "Mandelbrot set")
            pnginfo.add_text("Software", f"mandelview v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo, compress_level=6)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as TIFF, metadata goes into the ImageDescription tag."""
        save_kwargs = {'format': 'TIFF', 'compression': 'tiff_lzw'}
        if metadata:
            save_kwargs['description'] = metadata.to_json()
            save_kwargs['software'] = f"mandelview v{metadata.software_version}"
        pil_image.save(filepath, **save_kwargs)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG, metadata goes into a companion JSON file."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)

        if metadata:
            json_path = filepath.with_suffix('.json')
            json_path.write_text(metadata.to_json())
            logger.info(f"Saved metadata: {json_path}")

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None if the image carries none
        """
        filepath = Path(filepath)

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if METADATA_KEY in text:
                return RenderMetadata.from_json(text[METADATA_KEY])

            if hasattr(img, 'tag_v2') and 270 in img.tag_v2:
                return RenderMetadata.from_json(img.tag_v2[270])

        if filepath.suffix.lower() in ('.jpg', '.jpeg'):
            json_path = filepath.with_suffix('.json')
            if json_path.exists():
                return RenderMetadata.from_json(json_path.read_text())

        return None
