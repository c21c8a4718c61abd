"""
Planar (2D) primitives used by the spherical polygon.

Polygons are reprojected into a centroid-relative (lon, lat) plane where
these helpers run the point-in-polygon and segment intersection tests.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

__all__ = [
    "Point2",
    "Line2",
    "Rect2",
    "Path2",
    "Polygon2",
    "segment_intersection",
]

Point2 = Tuple[float, float]


def _sign(x: float) -> int:
    if x < 0.0:
        return -1
    if x > 0.0:
        return 1
    return 0


def _is_empty(p: Point2) -> bool:
    return not (math.isfinite(p[0]) and math.isfinite(p[1]))


class Line2:
    """
    A line ``a + bx * x + by * y = 0`` with ``bx² + by² = 1``.
    """

    __slots__ = ("a", "bx", "by")

    def __init__(self, a: float = 0.0, bx: float = 1.0, by: float = 0.0):
        self.a = a
        self.bx = bx
        self.by = by

    @classmethod
    def from_points(cls, p: Point2, q: Point2) -> Optional["Line2"]:
        """Line through two distinct points, or None if they coincide or are empty."""
        if p is None or q is None or _is_empty(p) or _is_empty(q) or tuple(p) == tuple(q):
            return None
        dx = q[0] - p[0]
        dy = q[1] - p[1]
        norm = math.hypot(dx, dy)
        line = cls(0.0, dy / norm, -dx / norm)
        line.a = -line.signed_distance(p)
        return line

    def signed_distance(self, p: Point2) -> float:
        return self.bx * p[0] + self.by * p[1] + self.a

    def conjugate(self) -> "Line2":
        return Line2(-self.a, -self.bx, -self.by)

    def segment_limits(self, p: Point2, q: Point2) -> Tuple["Line2", "Line2"]:
        """
        Two lines perpendicular to this one through ``p`` and ``q``.

        The segment p-q is where both limits have non-negative signed distance.
        """
        lo = Line2(0.0, self.by, -self.bx)
        hi = Line2(0.0, self.by, -self.bx)
        lo.a = -lo.signed_distance(p)
        hi.a = -hi.signed_distance(q)
        if lo.signed_distance(q) < 0.0:
            lo = lo.conjugate()
        if hi.signed_distance(p) < 0.0:
            hi = hi.conjugate()
        return lo, hi

    def __repr__(self) -> str:
        return f"Line2(a={self.a:.6f}, bx={self.bx:.6f}, by={self.by:.6f})"


def segment_intersection(a0: Point2, a1: Point2, b0: Point2, b1: Point2) -> Optional[Point2]:
    """
    Intersection point of segments a0-a1 and b0-b1.

    Collinear overlapping segments are not reported as intersecting; a
    segment touching the other at an endpoint is.

    Returns:
        The point of intersection, or None
    """
    if any(p is None or _is_empty(p) for p in (a0, a1, b0, b1)):
        return None
    if tuple(b0) == tuple(b1):
        return None
    line = Line2.from_points(a0, a1)
    if line is None:
        return None

    d0 = line.signed_distance(b0)
    d1 = line.signed_distance(b1)
    if _sign(d0) == _sign(d1):
        return None

    d0, d1 = abs(d0), abs(d1)
    total = d0 + d1
    x = (
        (d1 * b0[0] + d0 * b1[0]) / total,
        (d1 * b0[1] + d0 * b1[1]) / total,
    )
    lo, hi = line.segment_limits(a0, a1)
    if lo.signed_distance(x) >= 0.0 and hi.signed_distance(x) >= 0.0:
        return x
    return None


class Rect2:
    """An axis-aligned rectangle in the plane."""

    __slots__ = ("left", "right", "top", "bottom")

    def __init__(self, left: float = 0.0, right: float = 0.0, top: float = 0.0, bottom: float = 0.0):
        self.left = left
        self.right = right
        self.top = top
        self.bottom = bottom

    @classmethod
    def bound(cls, p: Point2, q: Point2) -> "Rect2":
        """Smallest rectangle containing both points."""
        return cls(min(p[0], q[0]), max(p[0], q[0]), max(p[1], q[1]), min(p[1], q[1]))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def is_empty(self) -> bool:
        return not all(math.isfinite(v) for v in (self.left, self.right, self.top, self.bottom))

    def contains(self, x: float, y: float) -> bool:
        """True if (x, y) is inside or on the boundary."""
        return self.left <= x <= self.right and self.bottom <= y <= self.top

    def corners(self) -> List[Point2]:
        return [
            (self.left, self.top),
            (self.left, self.bottom),
            (self.right, self.top),
            (self.right, self.bottom),
        ]

    def overlaps(self, other: "Rect2") -> bool:
        """True if the rectangles share area or touch along an edge."""
        return any(self.contains(*c) for c in other.corners()) or any(
            other.contains(*c) for c in self.corners()
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect2):
            return NotImplemented
        return (self.left, self.right, self.top, self.bottom) == (
            other.left, other.right, other.top, other.bottom,
        )

    def __repr__(self) -> str:
        return f"Rect2(left={self.left}, top={self.top}, right={self.right}, bottom={self.bottom})"


class Path2:
    """
    An open sequence of 2D vertices.

    Derived metadata (bounding rectangle, length and the edge tolerance
    ``tiny``) is cached by :meth:`on_vertices_set`, which must be called
    once the vertices are final.
    """

    def __init__(self, vertices: Iterable[Sequence[float]] = ()):
        arr = np.asarray(list(vertices), dtype=np.float64)
        self.vertices = arr.reshape(-1, 2)
        self._bounding_rect: Optional[Rect2] = None
        self._length: Optional[float] = None
        self._tiny: Optional[float] = None

    def __len__(self) -> int:
        return len(self.vertices)

    def _edges(self) -> Iterable[Tuple[Point2, Point2]]:
        pts = [tuple(v) for v in self.vertices]
        return zip(pts[:-1], pts[1:])

    def intersects(self, a0: Point2, a1: Point2) -> bool:
        """True if any edge of the path intersects segment a0-a1."""
        return any(segment_intersection(a0, a1, p, q) is not None for p, q in self._edges())

    def on_vertices_set(self) -> None:
        """Cache bounding rectangle, path length and edge tolerance."""
        self._length = 0.0
        self._tiny = 0.0
        if len(self.vertices) < 1:
            self._bounding_rect = None
            return

        xs = self.vertices[:, 0]
        ys = self.vertices[:, 1]
        self._bounding_rect = Rect2(float(xs.min()), float(xs.max()), float(ys.max()), float(ys.min()))
        self._length = float(sum(math.dist(p, q) for p, q in self._edges()))

        extent = min(self._bounding_rect.width, self._bounding_rect.height)
        if extent <= 0.0:
            extent = max(self._bounding_rect.width, self._bounding_rect.height)
        self._tiny = 1e-6 * extent

    @property
    def bounding_rect(self) -> Optional[Rect2]:
        if self._bounding_rect is None:
            self.on_vertices_set()
        return self._bounding_rect

    @property
    def length(self) -> float:
        if self._length is None:
            self.on_vertices_set()
        return self._length

    @property
    def tiny(self) -> float:
        """Distance that is negligible relative to the size of the path."""
        if self._tiny is None:
            self.on_vertices_set()
        return self._tiny


class Polygon2(Path2):
    """
    A closed planar polygon.

    ``contains`` uses a quadrant-winding test: each vertex is assigned the
    quadrant it occupies relative to the query point, and signed quadrant
    transitions are summed around the ring. A non-zero sum means inside.
    """

    INSIDE = 1
    ON_EDGE = 0
    OUTSIDE = -1

    def _edges(self) -> Iterable[Tuple[Point2, Point2]]:
        pts = [tuple(v) for v in self.vertices]
        return zip(pts[-1:] + pts[:-1], pts)

    def contains(self, x: float, y: float) -> int:
        """
        Locate (x, y) relative to the polygon.

        Returns:
            1 if inside, 0 if on (or within ``tiny`` of) an edge, -1 if outside
        """
        if len(self.vertices) < 3:
            return self.OUTSIDE
        sq_tiny = self.tiny * self.tiny

        rel = self.vertices - np.array([x, y])
        x2, y2 = rel[:, 0], rel[:, 1]
        x1, y1 = np.roll(x2, 1), np.roll(y2, 1)

        dot = x1 * x2 + y1 * y2
        crs = x1 * y2 - x2 * y1
        sign_cross = np.where(crs < -sq_tiny, -1, np.where(crs > sq_tiny, 1, 0))
        if np.any((sign_cross == 0) & (dot <= 0.0)):
            return self.ON_EDGE

        # Quadrants 0..3 counter-clockwise, starting at +x/+y
        right = x2 > 0.0
        up = y2 > 0.0
        quad = np.where(up, np.where(right, 0, 1), np.where(right, 3, 2))
        diff = quad - np.roll(quad, 1)
        diff = np.where(diff == 3, -1, diff)
        diff = np.where(diff == -3, 1, diff)
        diff = np.where(np.abs(diff) == 2, 2 * sign_cross, diff)

        if int(diff.sum()) != 0:
            return self.INSIDE
        return self.OUTSIDE

    def is_clockwise(self) -> bool:
        """
        True if the interior lies to the right when walking the vertices.

        Computed from the sum of turning angles between successive edges.
        """
        n = len(self.vertices)
        if n < 3:
            return False
        delta = np.roll(self.vertices, -1, axis=0) - self.vertices
        heading = np.arctan2(delta[:, 1], delta[:, 0])
        turn = heading - np.roll(heading, 1)
        # Wrap each turn into (-pi, pi]
        turn = np.pi - np.mod(np.pi - turn, 2 * np.pi)
        return float(turn.sum()) < 0.0

    def reverse(self) -> None:
        self.vertices = self.vertices[::-1].copy()

    def ensure_clockwise(self) -> bool:
        """
        Reverse the vertex order if the polygon is counter-clockwise.

        Returns:
            True if the order was reversed
        """
        if self.is_clockwise():
            return False
        self.reverse()
        return True

    def to_wkt(self, precision: Optional[int] = None) -> str:
        """
        Well-known text, closing on the first vertex.

        Example: ``POLYGON((0 0, 10 0, 0 10, 0 0))``
        """
        if len(self.vertices) == 0:
            return "POLYGON(())"
        fmt = (lambda v: repr(float(v))) if precision is None else (lambda v: f"{v:.{precision}f}")
        ring = [tuple(v) for v in self.vertices] + [tuple(self.vertices[0])]
        return "POLYGON((" + ", ".join(f"{fmt(x)} {fmt(y)}" for x, y in ring) + "))"
