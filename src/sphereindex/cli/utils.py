"""
CLI utility functions.

Helper functions for the command-line interface.
"""

import logging
import sys
from typing import List, Optional, Sequence

import click

from sphereindex.core.geometry.spherical import LatLon
from sphereindex.core.tessellation.address import address_to_string, pack
from sphereindex.utils.text import point_from_string

__all__ = [
    "setup_logging",
    "format_size",
    "format_duration",
    "format_address",
    "parse_polygon",
]


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        fmt: Optional format string for the handler

    Returns:
        Configured logger
    """
    logger = logging.getLogger("sphereindex")
    logger.setLevel(getattr(logging, level.upper()))

    # Create console handler if not exists
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(getattr(logging, level.upper()))

        formatter = logging.Formatter(
            fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def format_size(size_bytes: float) -> str:
    """
    Format byte size to human readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 GB")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(size_bytes) < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


def format_duration(seconds: float) -> str:
    """
    Format duration to human readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1m 23s")
    """
    if seconds < 60:
        return f"{seconds:.2f}s"

    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"

    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m {secs}s"


def format_address(address: Sequence[int], fmt: str = "dotted", bits: int = 64) -> str:
    """Render an address as dotted text, a packed integer, or packed hex."""
    if fmt == "packed":
        return str(pack(address, bits=bits))
    if fmt == "hex":
        return f"0x{pack(address, bits=bits):0{bits // 4}x}"
    return address_to_string(address) or "(root)"


def parse_polygon(text: str) -> List[LatLon]:
    """
    Parse ``"lat,lon;lat,lon;..."`` into coordinates.

    Raises:
        click.BadParameter: If a vertex is not a pair of numbers
    """
    vertices = []
    for part in text.split(";"):
        part = part.strip()
        if not part:
            continue
        point = point_from_string(part)
        if point is None or len(point) != 2:
            raise click.BadParameter(f"Expected 'lat,lon', got {part!r}", param_hint="--polygon")
        vertices.append(LatLon(point[0], point[1]))
    return vertices
