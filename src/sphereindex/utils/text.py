"""
Plain-text forms of points, rectangles and polygons.

Numeric fields are comma separated. A field that is not a number parses to
NaN; a string with the wrong number of fields parses to None.
"""

import math
from typing import List, Optional, Sequence, Tuple, Type, TypeVar

from sphereindex.core.geometry.planar import Polygon2, Rect2

__all__ = [
    "parse_float",
    "parse_fields",
    "point_from_string",
    "point_to_string",
    "rect_from_ltrb",
    "rect_to_ltrb",
    "polygon_to_wkt",
]

R = TypeVar("R", bound=Rect2)


def parse_float(text: str) -> float:
    """Parse a number, returning NaN instead of raising."""
    try:
        return float(text)
    except (TypeError, ValueError):
        return math.nan


def parse_fields(text: Optional[str], min_count: int, max_count: int) -> Optional[List[float]]:
    """
    Split ``text`` on commas and parse each field.

    Args:
        text: Input string
        min_count: Fewest fields accepted
        max_count: Most fields accepted

    Returns:
        Parsed values, or None if the field count is out of range
    """
    if not text:
        return None
    parts = text.split(",")
    if not min_count <= len(parts) <= max_count:
        return None
    return [parse_float(p.strip()) for p in parts]


def point_from_string(text: Optional[str]) -> Optional[Tuple[float, ...]]:
    """Parse ``"x,y"`` or ``"x,y,z"``."""
    values = parse_fields(text, 2, 3)
    return None if values is None else tuple(values)


def point_to_string(point: Sequence[float]) -> str:
    return ",".join(repr(float(v)) for v in point)


def rect_from_ltrb(text: Optional[str], cls: Type[R] = Rect2) -> Optional[R]:
    """
    Parse ``"left,top,right,bottom"``.

    Args:
        text: Input string
        cls: Rectangle class to build (``Rect2`` or a subclass)

    Returns:
        The rectangle (possibly with NaN sides), or None for a malformed string
    """
    values = parse_fields(text, 4, 4)
    if values is None:
        return None
    left, top, right, bottom = values
    return cls(left=left, right=right, top=top, bottom=bottom)


def rect_to_ltrb(rect: Rect2) -> str:
    return ",".join(repr(float(v)) for v in (rect.left, rect.top, rect.right, rect.bottom))


def polygon_to_wkt(points: Sequence[Sequence[float]], precision: Optional[int] = None) -> str:
    """Well-known text for a ring of (x, y) points; see :meth:`Polygon2.to_wkt`."""
    return Polygon2(points).to_wkt(precision)
