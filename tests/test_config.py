import json

import pytest

from mandelview.api import RenderConfig
from mandelview.config import load_config, parse_config, save_config
from mandelview.core.camera import CAMERA_PRESETS, Camera
from mandelview.core.complex_number import Complex
from mandelview.core.errors import InvalidConfiguration
from mandelview.rendering.coloring import HISTOGRAM_PRESETS, WHITE, Color, Histogram


def test_empty_config_uses_presets():
    config, camera, histogram = parse_config({})
    assert config == RenderConfig()
    assert camera == CAMERA_PRESETS['classic']
    assert histogram == HISTOGRAM_PRESETS['default']


def test_presets_from_render_section():
    config, camera, histogram = parse_config({
        'render': {'camera_preset': 'seahorse_valley', 'histogram_preset': 'ocean'}
    })
    assert camera == CAMERA_PRESETS['seahorse_valley']
    assert histogram == HISTOGRAM_PRESETS['ocean']


def test_explicit_sections():
    config, camera, histogram = parse_config({
        'render': {'width': 320, 'height': 200, 'max_iterations': 1000},
        'camera': {'center': [-0.75, 0.1], 'width': 0.5},
        'histogram': {'breakpoints': [0.0, 1.0], 'colors': ['#000000', [1.0, 1.0, 1.0]]},
    })
    assert (config.width, config.height, config.max_iterations) == (320, 200, 1000)
    assert camera == Camera(Complex(-0.75, 0.1), 0.5)
    assert histogram.colors[-1] == WHITE


@pytest.mark.parametrize("data", [
    {'output': {}},
    {'render': {'width': -1}},
    {'render': {'unknown_option': True}},
    {'camera': {'center': [0, 0]}},
    {'histogram': {'preset': 'nope'}},
    [1, 2, 3],
])
def test_invalid_configs(data):
    with pytest.raises(InvalidConfiguration):
        parse_config(data)


def test_save_and_load(tmp_path):
    path = tmp_path / 'view.json'
    config = RenderConfig(width=64, height=48, max_iterations=250, histogram_preset='fire')
    camera = Camera(Complex(-0.75, 0.1), 2.5, 4.0 / 3.0)
    histogram = Histogram([0.0, 0.5, 1.0], [Color.rgb(10, 20, 30), Color.rgb(200, 100, 50), WHITE])

    save_config(path, config, camera, histogram)
    assert json.loads(path.read_text())['render']['width'] == 64

    assert load_config(path) == (config, camera, histogram)


def test_save_without_camera(tmp_path):
    path = tmp_path / 'render.json'
    save_config(path, RenderConfig(camera_preset='mini_mandelbrot'))
    _, camera, _ = load_config(path)
    assert camera == CAMERA_PRESETS['mini_mandelbrot']


def test_invalid_json(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"render": ')
    with pytest.raises(InvalidConfiguration):
        load_config(path)
