"""
Command-line interface for fractal generation.

This module provides the CLI for rendering Mandelbrot images through the
parallel pixel pipeline and writing them as PNG.
"""

import click
import sys
from typing import Tuple
import logging
import time

from .. import __version__
from ..api import FractalRenderer, MAX_FACTOR, MIN_FACTOR
from ..acceleration.pipeline import BACKENDS, MAX_WORKERS, MIN_WORKERS
from ..io.config import ConfigManager, ConfigurationError
from ..rendering.coloring import list_gradients

logger = logging.getLogger(__name__)


def parse_bounds(value: str) -> Tuple[float, float, float, float]:
    """Parse "xmin,ymin,xmax,ymax"."""
    try:
        bounds = tuple(float(x.strip()) for x in value.split(','))
    except ValueError:
        raise click.BadParameter("use 'xmin,ymin,xmax,ymax'", param_hint='--bounds')
    if len(bounds) != 4:
        raise click.BadParameter("expected four comma-separated numbers", param_hint='--bounds')
    return bounds


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    Fractal Pipeline - parallel Mandelbrot image generation.

    Renders the Mandelbrot set with a pool of workers, optional
    super-sampling and smooth coloring, and writes a PNG image.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Fractal Pipeline v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@main.command()
@click.argument('output', type=click.Path(dir_okay=False, allow_dash=True))
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON configuration file')
@click.option('--width', type=int, help='width of png image in pixels (default 1536)')
@click.option('--height', type=int, help='height of png image in pixels (default 1024)')
@click.option('--factor', type=int,
              help=f'scale factor for super sampling, [{MIN_FACTOR}, {MAX_FACTOR}] (default 2)')
@click.option('--workers', type=int,
              help=f'number of workers for calculation, [{MIN_WORKERS}, {MAX_WORKERS}] (default 2)')
@click.option('--smooth/--no-smooth', default=None, help='enables smooth color transition')
@click.option('--bounds', help='Complex plane bounds: "xmin,ymin,xmax,ymax"')
@click.option('--gradient', help='Gradient name or path of a .gpl palette')
@click.option('--backend', type=click.Choice(BACKENDS), help='Worker type (default thread)')
@click.pass_context
def render(ctx, output, config_file, width, height, factor, workers, smooth,
           bounds, gradient, backend):
    """
    Render a Mandelbrot image.

    OUTPUT: Output PNG file path, or - for standard output
    """
    verbose = (ctx.obj or {}).get('verbose')
    try:
        manager = ConfigManager(config_file)
        manager.update({
            'width': width,
            'height': height,
            'sampling_factor': factor,
            'workers': workers,
            'smooth': smooth,
            'bounds': parse_bounds(bounds) if bounds else None,
            'gradient': gradient,
            'backend': backend,
        })
        config = manager.create_render_config()
    except ConfigurationError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    try:
        renderer = FractalRenderer(config)

        start_time = time.time()
        if output == '-':
            renderer.render_to(click.get_binary_stream('stdout'))
        else:
            renderer.render_to(output)
            click.echo(f"Saved: {output}", err=True)

        logger.info(f"Render complete: {time.time() - start_time:.2f}s")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
def gradients():
    """List available gradient names."""
    for name in list_gradients():
        click.echo(name)


if __name__ == '__main__':
    main()
