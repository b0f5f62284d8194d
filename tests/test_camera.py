import math

import pytest

from mandelview.core.camera import Camera, CAMERA_PRESETS, get_camera_preset
from mandelview.core.complex_number import Complex, isclose
from mandelview.core.errors import InvalidConfiguration
from mandelview.core.pixels import SampleGrid


def test_center_maps_to_center():
    camera = Camera(Complex(-0.75, 0.25), 3.0, 1.5)
    assert camera.to_complex(0.5, 0.5) == Complex(-0.75, 0.25)


def test_default_corners():
    camera = CAMERA_PRESETS['default']
    assert isclose(camera.to_complex(0, 0), Complex(-2, -2))
    assert isclose(camera.to_complex(1, 1), Complex(2, 2))
    assert isclose(camera.to_complex(1, 0), Complex(2, -2))
    assert isclose(camera.to_complex(0, 1), Complex(-2, 2))


def test_aspect_ratio_sets_height():
    camera = Camera(Complex(-0.5, 0), 3.0, 4.0 / 3.0)
    assert camera.height == pytest.approx(2.25)
    assert isclose(camera.to_complex(0, 0), Complex(-2.0, -1.125))
    assert isclose(camera.to_complex(1, 1), Complex(1.0, 1.125))


def test_rotation():
    camera = Camera(Complex(0, 0), 2.0, 1.0, angle=math.pi / 2)
    # the horizontal axis now points along +i
    assert isclose(camera.to_complex(1, 0.5), Complex(0, 1))
    assert isclose(camera.to_complex(0.5, 1), Complex(-1, 0))


def test_image_rows_grow_downwards():
    camera = CAMERA_PRESETS['default']
    grid = SampleGrid(10, 10, 1)
    top = camera.to_complex(*grid.position(0))
    bottom = camera.to_complex(*grid.position(grid.sample_count - 1))
    assert top.imaginary > bottom.imaginary
    assert top.imaginary == pytest.approx(2.0)


def test_zoomed():
    camera = Camera(Complex(1, 1), 4.0)
    zoomed = camera.zoomed(4.0)
    assert zoomed.width == 1.0
    assert zoomed.center == camera.center
    assert camera.width == 4.0


@pytest.mark.parametrize("factor", [0, -2.0, math.nan])
def test_invalid_zoom(factor):
    with pytest.raises(InvalidConfiguration):
        Camera(Complex(0, 0), 4.0).zoomed(factor)


def test_panned():
    camera = Camera(Complex(0, 0), 4.0)
    assert isclose(camera.panned(0.25, -0.25).center, Complex(1, -1))


@pytest.mark.parametrize("kwargs", [
    {'width': 0},
    {'width': -1.0},
    {'width': math.inf},
    {'width': 1.0, 'aspect_ratio': 0},
    {'width': 1.0, 'angle': math.nan},
])
def test_invalid_camera(kwargs):
    with pytest.raises(InvalidConfiguration):
        Camera(Complex(0, 0), **kwargs)


def test_center_must_be_complex():
    with pytest.raises(InvalidConfiguration):
        Camera((0, 0), 1.0)


@pytest.mark.parametrize("center", [Complex(math.nan, 0), Complex(0, math.inf), Complex(-math.inf, math.nan)])
def test_center_must_be_finite(center):
    with pytest.raises(InvalidConfiguration):
        Camera(center, 4.0)


def test_dict_round_trip():
    camera = Camera(Complex(-0.743, 0.131), 0.01, 4.0 / 3.0, 0.3)
    assert Camera.from_dict(camera.to_dict()) == camera


def test_from_dict_preset_with_overrides():
    camera = Camera.from_dict({'preset': 'classic', 'width': 1.0, 'center': [0.25, 0.0]})
    assert camera.width == 1.0
    assert camera.center == Complex(0.25, 0.0)
    assert camera.aspect_ratio == CAMERA_PRESETS['classic'].aspect_ratio


@pytest.mark.parametrize("data", [
    {'width': 1.0},
    {'center': [0, 0]},
    {'center': 'origin', 'width': 1.0},
    {'preset': 'nowhere'},
    {'preset': 'classic', 'width': 'wide'},
    {'preset': 'classic', 'angle': None},
    {'center': [0, 0], 'width': 1.0, 'aspect_ratio': 'square'},
])
def test_from_dict_invalid(data):
    with pytest.raises(InvalidConfiguration):
        Camera.from_dict(data)


def test_get_camera_preset():
    assert get_camera_preset('CLASSIC') is CAMERA_PRESETS['classic']
    with pytest.raises(InvalidConfiguration):
        get_camera_preset('missing')
