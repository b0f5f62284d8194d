"""
Command-line interface for mandelview.

Renders Mandelbrot images to PNG, TIFF or JPEG and lists the available
camera and histogram presets.
"""

import click
import sys
import multiprocessing as mp
from pathlib import Path
import logging
import time

from .. import __version__
from ..acceleration.multiprocessing import get_optimal_process_count
from ..api import FractalRenderer, RenderConfig
from ..config import load_config
from ..core.camera import CAMERA_PRESETS, Camera, get_camera_preset
from ..core.complex_number import Complex
from ..rendering.coloring import HISTOGRAM_PRESETS, Color, get_histogram_preset

logger = logging.getLogger(__name__)


def _parse_center(text: str) -> Complex:
    try:
        real, imag = (float(x.strip()) for x in text.split(','))
    except ValueError:
        raise click.BadParameter("Use 'real,imag'", param_hint='--center')
    return Complex(real, imag)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    mandelview - Mandelbrot renderer with histogram-equalized coloring.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"mandelview v{__version__}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('output', type=click.Path())
@click.option('--config', 'config_file', type=click.Path(exists=True), help='JSON configuration file')
@click.option('--width', '-w', type=int, help='Image width')
@click.option('--height', '-h', type=int, help='Image height')
@click.option('--supersampling', '-s', type=int, help='Subpixel grid size per pixel')
@click.option('--max-iter', type=int, help='Maximum iterations')
@click.option('--camera', 'camera_preset', type=click.Choice(list(CAMERA_PRESETS)), help='Camera preset')
@click.option('--center', type=str, help='View center "real,imag"')
@click.option('--view-width', type=float, help='View width in the complex plane')
@click.option('--histogram', 'histogram_preset', type=click.Choice(list(HISTOGRAM_PRESETS)),
              help='Histogram preset')
@click.option('--colors', type=str, help='Comma-separated hex colors replacing the histogram colors')
@click.option('--processes', type=int, help='Number of processes for the divergence phase')
@click.pass_context
def render(ctx, output, config_file, width, height, supersampling, max_iter,
           camera_preset, center, view_width, histogram_preset, colors, processes):
    """
    Render a Mandelbrot image.

    OUTPUT: Output image file path
    """
    try:
        if config_file:
            render_config, camera, histogram = load_config(config_file)
        else:
            render_config = RenderConfig()
            camera = None
            histogram = None

        overrides = {
            'width': width,
            'height': height,
            'supersampling': supersampling,
            'max_iterations': max_iter,
            'num_processes': processes,
        }
        for key, value in overrides.items():
            if value is not None:
                setattr(render_config, key, value)

        if camera_preset:
            camera = get_camera_preset(camera_preset)
        if camera is None:
            camera = get_camera_preset(render_config.camera_preset)
        if center:
            camera = Camera(_parse_center(center), camera.width, camera.aspect_ratio, camera.angle)
        if view_width is not None:
            camera = Camera(camera.center, view_width, camera.aspect_ratio, camera.angle)

        if histogram_preset:
            histogram = get_histogram_preset(histogram_preset)
        if histogram is None:
            histogram = get_histogram_preset(render_config.histogram_preset)
        if colors:
            histogram = histogram.with_colors([Color.parse(c.strip()) for c in colors.split(',')])

        logger.debug(f"Camera: {camera}, histogram: {histogram}")
        renderer = FractalRenderer(render_config)

        def progress_callback(completed, total):
            if ctx.obj.get('verbose'):
                click.echo(f"Progress: {completed / total * 100:.1f}%")

        click.echo("Rendering Mandelbrot set...")
        start_time = time.time()
        result = renderer.render_to_file(Path(output), camera, histogram,
                                         progress_callback=progress_callback)

        click.echo(f"Render complete: {time.time() - start_time:.2f}s "
                   f"({result.escaped_samples} escaped, {result.interior_samples} interior samples)")
        click.echo(f"Saved: {output}")

    except click.BadParameter:
        raise
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
@click.pass_context
def list_presets(ctx):
    """List available camera and histogram presets."""
    click.echo("Camera presets:")
    for name, camera in CAMERA_PRESETS.items():
        click.echo(f"  {name}: center = {camera.center.to_builtin()}, width = {camera.width}")

    click.echo("\nHistogram presets:")
    for name, histogram in HISTOGRAM_PRESETS.items():
        click.echo(f"  {name}")
        if ctx.obj.get('verbose'):
            for breakpoint, color in zip(histogram.breakpoints, histogram.colors):
                click.echo(f"    {breakpoint:.2f}: {color.to_hex()}")


@main.command()
def info():
    """Display version and system capabilities."""
    click.echo(f"mandelview v{__version__}")
    click.echo(f"Python: {sys.version.split()[0]}")
    click.echo(f"CPU cores: {mp.cpu_count()}")
    click.echo(f"Recommended processes: {get_optimal_process_count()}")


if __name__ == '__main__':
    main()
