"""
Configuration file handling.

A configuration file is a JSON document with up to three sections:

    {
        "render": {"width": 800, "height": 600, "max_iterations": 1000},
        "camera": {"center": [-0.5, 0.0], "width": 3.0},
        "histogram": {"preset": "default", "colors": ["#333333", ...]}
    }

Missing sections fall back to the presets named in the render section.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import logging

from .api import RenderConfig
from .core.camera import Camera, get_camera_preset
from .core.errors import InvalidConfiguration
from .rendering.coloring import Histogram, get_histogram_preset

logger = logging.getLogger(__name__)


def parse_config(data: Dict[str, Any]) -> Tuple[RenderConfig, Camera, Histogram]:
    """
    Build the render objects from a configuration dictionary.

    Args:
        data: Dictionary with optional ``render``, ``camera`` and ``histogram`` sections

    Returns:
        Tuple of (render config, camera, histogram)
    """
    if not isinstance(data, dict):
        raise InvalidConfiguration("Configuration must be a JSON object")

    unknown = set(data) - {'render', 'camera', 'histogram'}
    if unknown:
        raise InvalidConfiguration(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    config = RenderConfig.from_dict(data.get('render', {}))

    if 'camera' in data:
        camera = Camera.from_dict(data['camera'])
    else:
        camera = get_camera_preset(config.camera_preset)

    if 'histogram' in data:
        histogram = Histogram.from_dict(data['histogram'])
    else:
        histogram = get_histogram_preset(config.histogram_preset)

    return config, camera, histogram


def load_config(path: Union[str, Path]) -> Tuple[RenderConfig, Camera, Histogram]:
    """Load a JSON configuration file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise InvalidConfiguration(f"Invalid JSON in {path}: {e}")

    logger.info(f"Loaded configuration: {path}")
    return parse_config(data)


def save_config(path: Union[str, Path], config: RenderConfig,
                camera: Optional[Camera] = None,
                histogram: Optional[Histogram] = None) -> None:
    """Write a configuration file that :func:`load_config` reads back."""
    data: Dict[str, Any] = {'render': config.to_dict()}
    if camera is not None:
        data['camera'] = camera.to_dict()
    if histogram is not None:
        data['histogram'] = histogram.to_dict()

    Path(path).write_text(json.dumps(data, indent=2))
    logger.info(f"Saved configuration: {path}")
