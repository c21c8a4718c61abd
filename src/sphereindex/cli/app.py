"""
sphereindex Command Line Interface.

Main entry point for the sphereindex CLI application.
"""

import logging
import math
import sys
import time
from pathlib import Path
from typing import Optional

import click
import yaml

from sphereindex import __version__
from sphereindex.cli.utils import (
    format_address,
    format_duration,
    format_size,
    parse_polygon,
    setup_logging,
)
from sphereindex.config.schema import Config
from sphereindex.core.geometry.spherical import EARTH_RADIUS_KM, EARTH_RADIUS_MILES, LatLon, dist_radians
from sphereindex.core.regions.cap import SphericalCap
from sphereindex.core.regions.polygon import SphericalPolygon
from sphereindex.core.tessellation.address import MAX_DEPTH_64, address_from_string, pack, unpack
from sphereindex.core.tessellation.index import DEFAULT_ARENA_DEPTH, TessellationIndex
from sphereindex.core.tessellation.node import level_offset, level_size
from sphereindex.exceptions import SphereIndexError

logger = logging.getLogger(__name__)

# Accept negative coordinates as positional arguments
_NUMERIC_ARGS = {"ignore_unknown_options": True}

# Arena bytes per node: vertices and normals (2 x 9 float64) plus the tolerance
_BYTES_PER_NODE = 19 * 8


def _arena_depth(ctx: click.Context, depth: int) -> int:
    arena = ctx.obj["config"].tessellation.arena_depth
    return min(depth, DEFAULT_ARENA_DEPTH if arena is None else arena)


def _build_index(ctx: click.Context, depth: int) -> TessellationIndex:
    cfg: Config = ctx.obj["config"]
    start = time.perf_counter()
    index = TessellationIndex.build(
        depth,
        parallel=cfg.tessellation.parallel,
        max_workers=cfg.tessellation.max_workers,
        tolerance_factor=cfg.tessellation.tolerance_factor,
        arena_depth=_arena_depth(ctx, depth),
    )
    logger.info("Built %r in %s", index, format_duration(time.perf_counter() - start))
    return index


def _query_depth(ctx: click.Context, depth: Optional[int]) -> int:
    cfg: Config = ctx.obj["config"]
    if depth is not None:
        return depth
    if cfg.query.default_depth is not None:
        return cfg.query.default_depth
    return cfg.tessellation.depth


# Create main CLI group
@click.group()
@click.version_option(version=__version__, prog_name="sphereindex")
@click.option(
    "-v", "--verbose",
    count=True,
    help="Increase verbosity (use -vv for debug output)"
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Suppress non-error output"
)
@click.option(
    "-c", "--config-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Configuration file (.toml, .yaml or .yml)"
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool, config_file: Optional[str]) -> None:
    """
    sphereindex: hierarchical triangular index of the sphere.

    Locate coordinates in a recursive octahedral tessellation, pack
    their addresses into 32 or 64-bit integers, and test points against
    spherical caps and polygons.

    \b
    Commands:
      locate      Address of the triangle containing a coordinate
      pack        Pack a dotted address into an integer
      unpack      Unpack an integer into a dotted address
      distance    Great-circle distance between two coordinates
      contains    Test a coordinate against a polygon
      cover       Triangles overlapping a spherical cap
      config      Manage configuration
      info        Show package and tessellation information

    Use 'sphereindex COMMAND --help' for command-specific help.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    config = Config.from_file(config_file) if config_file else Config()

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config"] = config

    # Setup logging based on verbosity
    if quiet:
        log_level = "ERROR"
    elif verbose:
        log_level = "DEBUG" if verbose > 1 else "INFO"
    else:
        log_level = config.logging.level.value
    setup_logging(log_level, config.logging.format)


@cli.command()
@click.option("--depth", type=click.IntRange(0, MAX_DEPTH_64), default=None, help="Depth to describe")
@click.pass_context
def info(ctx: click.Context, depth: Optional[int]) -> None:
    """Show package and tessellation information."""
    import platform
    from importlib import metadata

    import numpy
    import pydantic

    depth = _query_depth(ctx, depth)

    click.echo("\nsphereindex Information")
    click.echo("=" * 40)

    # Package info
    click.echo(f"sphereindex Version: {__version__}")
    click.echo(f"Python Version: {platform.python_version()}")
    click.echo(f"Platform: {platform.system()} {platform.release()}")
    click.echo(f"NumPy: {numpy.__version__}")
    click.echo(f"Pydantic: {pydantic.VERSION}")
    click.echo(f"Click: {metadata.version('click')}")

    click.echo(f"\nTessellation at depth {depth}:")
    nodes = level_offset(depth + 1)
    arena_depth = _arena_depth(ctx, depth)
    click.echo(f"  Triangles at depth: {level_size(depth):,}")
    click.echo(f"  Total nodes: {nodes:,}")
    click.echo(f"  Arena depth: {arena_depth}")
    click.echo(f"  Arena size: {format_size(level_offset(arena_depth + 1) * _BYTES_PER_NODE)}")
    if depth > 0:
        area = 4.0 * math.pi * EARTH_RADIUS_KM ** 2 / level_size(depth)
        click.echo(f"  Mean cell area on Earth: {area:,.4f} km^2")


@cli.command(context_settings=_NUMERIC_ARGS)
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.option("--depth", type=click.IntRange(0, MAX_DEPTH_64), default=None, help="Address length")
@click.option("--bits", type=click.Choice(["32", "64"]), default=None, help="Packed width")
@click.option(
    "--format", "fmt",
    type=click.Choice(["dotted", "packed", "hex"]),
    default=None,
    help="Address output format"
)
@click.pass_context
def locate(ctx: click.Context, lat: float, lon: float, depth: Optional[int], bits: Optional[str], fmt: Optional[str]) -> None:
    """Print the address of the triangle containing LAT LON."""
    cfg: Config = ctx.obj["config"]
    depth = _query_depth(ctx, depth)
    width = int(bits) if bits else cfg.query.default_bits
    fmt = fmt or cfg.query.address_format.value

    index = _build_index(ctx, depth)
    address = index.locate(LatLon(lat, lon).normalized(), depth)
    click.echo(format_address(address, fmt, width))


@cli.command("pack")
@click.argument("address")
@click.option("--bits", type=click.Choice(["32", "64"]), default="64", help="Packed width")
def pack_command(address: str, bits: str) -> None:
    """Pack a dotted ADDRESS such as 5.2.1.3."""
    click.echo(pack(address_from_string(address), bits=int(bits)))


@cli.command("unpack")
@click.argument("value")
@click.option("--bits", type=click.Choice(["32", "64"]), default="64", help="Packed width")
def unpack_command(value: str, bits: str) -> None:
    """Unpack VALUE (decimal or 0x-prefixed hex) into a dotted address."""
    try:
        packed = int(value, 0)
    except ValueError:
        raise click.BadParameter(f"Not an integer: {value!r}", param_hint="VALUE")
    click.echo(format_address(unpack(packed, bits=int(bits))))


@cli.command(context_settings=_NUMERIC_ARGS)
@click.argument("lat1", type=float)
@click.argument("lon1", type=float)
@click.argument("lat2", type=float)
@click.argument("lon2", type=float)
@click.option(
    "--unit",
    type=click.Choice(["rad", "deg", "km", "mi"]),
    default="km",
    help="Distance unit"
)
def distance(lat1: float, lon1: float, lat2: float, lon2: float, unit: str) -> None:
    """Great-circle distance between LAT1 LON1 and LAT2 LON2."""
    d = dist_radians(LatLon(lat1, lon1), LatLon(lat2, lon2))
    scale = {
        "rad": 1.0,
        "deg": math.degrees(1.0),
        "km": EARTH_RADIUS_KM,
        "mi": EARTH_RADIUS_MILES,
    }[unit]
    click.echo(f"{d * scale:.6f}")


@cli.command(context_settings=_NUMERIC_ARGS)
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.option(
    "--polygon",
    required=True,
    help="Vertices as 'lat,lon;lat,lon;...'"
)
def contains(lat: float, lon: float, polygon: str) -> None:
    """Test whether LAT LON lies inside a polygon."""
    poly = SphericalPolygon(parse_polygon(polygon))
    if poly.is_degenerate:
        raise click.BadParameter("A polygon needs at least 3 vertices", param_hint="--polygon")
    point = LatLon(lat, lon)
    result = poly.contains(point)
    d = poly.signed_distance(point)
    click.echo(f"{result.name.lower()} (signed distance {math.degrees(d):.6f} deg)")


@cli.command(context_settings=_NUMERIC_ARGS)
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.argument("radius", type=click.FloatRange(0.0, 180.0))
@click.option("--depth", type=click.IntRange(0, MAX_DEPTH_64), default=None, help="Address length")
@click.pass_context
def cover(ctx: click.Context, lat: float, lon: float, radius: float, depth: Optional[int]) -> None:
    """Addresses of triangles overlapping the cap at LAT LON of RADIUS degrees."""
    depth = _query_depth(ctx, depth)
    index = _build_index(ctx, depth)
    cap = SphericalCap(LatLon(lat, lon), radius)
    for address in index.cover_cap(cap, depth):
        click.echo(format_address(address))


@cli.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Manage configuration settings."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    cfg: Config = ctx.obj["config"]

    click.echo("\nCurrent Configuration:")
    click.echo("=" * 40)

    # Show as YAML-like format
    def show_dict(d, indent=0):
        for key, value in d.items():
            prefix = "  " * indent
            if isinstance(value, dict):
                click.echo(f"{prefix}{key}:")
                show_dict(value, indent + 1)
            else:
                click.echo(f"{prefix}{key}: {value}")

    show_dict(cfg.model_dump(mode="json"))


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
def config_validate(config_file: str) -> None:
    """Validate a configuration file."""
    try:
        Config.from_file(config_file)
        click.echo(f"Configuration is valid: {config_file}")
    except (ValueError, OSError, yaml.YAMLError) as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@config.command("init")
@click.option(
    "--format",
    type=click.Choice(["toml", "yaml"]),
    default="toml",
    help="Configuration format"
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Output file path"
)
@click.pass_context
def config_init(ctx: click.Context, format: str, output: Optional[str]) -> None:
    """Write the current configuration to a new file."""
    cfg: Config = ctx.obj["config"]

    # Determine output path
    if output is None:
        output = f"sphereindex.{format}"
    output_path = Path(output)

    if format == "toml":
        cfg.to_toml(output_path)
    else:
        cfg.to_yaml(output_path)
    click.echo(f"Created configuration file: {output_path}")


def main() -> int:
    """Main entry point for CLI."""
    try:
        cli(obj={}, standalone_mode=False)
        return 0
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except SphereIndexError as e:
        click.echo(f"Error: {e}", err=True)
        return 1
    except (ValueError, OSError, yaml.YAMLError) as e:
        # Raised while loading the configuration file in the group callback
        click.echo(f"Configuration error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
