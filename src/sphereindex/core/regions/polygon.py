"""
Polygons on the surface of a sphere.

A :class:`SphericalPolygon` is rotated so that its centroid sits at the
reference point (lat 0, lon 0) and then flattened to planar (lon, lat)
pairs. Containment and overlap tests run in that local plane, which keeps
them correct for polygons crossing the antimeridian or covering a pole.

Polygons with a vertex farther than ``MAX_EXTENT_DEGREES`` from the
centroid are rejected.
"""

import math
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from sphereindex.core.geometry.planar import Polygon2
from sphereindex.core.geometry.spherical import (
    LatLon,
    arc_distance,
    haversine,
    lat_lon_to_unit_vectors,
    unit_vectors_to_lat_lon,
)
from sphereindex.core.geometry.vector import Matrix3, UnitVector3, normalize
from sphereindex.core.regions.cap import SphericalCap
from sphereindex.core.regions.rect import SurfaceRect
from sphereindex.exceptions import InvalidGeometryError, UnsupportedOperationError

__all__ = [
    "Containment",
    "SphericalPolygon",
    "MAX_EXTENT_DEGREES",
    "POLE_EPSILON",
]

# Farthest a vertex may lie from the centroid before the local ring becomes unreliable
MAX_EXTENT_DEGREES = math.degrees(math.acos(-1.0 / 3.0))

POLE_EPSILON = 1e-3

_NORTH_POLE = np.array([0.0, 1.0, 0.0])
_SOUTH_POLE = np.array([0.0, -1.0, 0.0])


class Containment(IntEnum):
    """Result of a point-in-polygon test."""

    INSIDE = Polygon2.INSIDE
    ON_EDGE = Polygon2.ON_EDGE
    OUTSIDE = Polygon2.OUTSIDE


PointLike = Union[LatLon, UnitVector3]


class SphericalPolygon:
    """
    A simple polygon on the unit sphere.

    Attributes:
        cap: Bounding cap centered on the centroid; unset when degenerate
        centroid_uvec: Perimeter-weighted centroid direction
        centroid_to_origin: Rotation carrying the centroid to (0, 0, -1)
        local_polygon: Clockwise planar ring of (lon, lat) in the rotated frame
        perimeter: Total edge length in degrees

    The centroid is the limit of the mean of N points spaced evenly along the
    boundary as N grows, projected back onto the sphere. Fewer than three
    vertices give a degenerate polygon that contains and overlaps nothing.

    Polygons reaching farther than ``MAX_EXTENT_DEGREES`` from their
    centroid are refused outright rather than built with a local ring that
    may fold over itself.

    Raises:
        InvalidGeometryError: A vertex is missing or empty
        UnsupportedOperationError: A vertex lies more than
            ``MAX_EXTENT_DEGREES`` from the centroid

    Example:
        >>> tri = SphericalPolygon([LatLon(0, 0), LatLon(10, 0), LatLon(0, 10)])
        >>> tri.contains(tri.centroid)
        <Containment.INSIDE: 1>
    """

    def __init__(self, vertices: Optional[Sequence[Optional[LatLon]]]):
        verts = list(vertices) if vertices is not None else []
        self.cap = SphericalCap()
        self.centroid_uvec: Optional[UnitVector3] = None
        self.centroid_to_origin: Optional[Matrix3] = None
        self.local_polygon: Optional[Polygon2] = None
        self.perimeter = 0.0
        self._vertices: Tuple[LatLon, ...] = ()
        self._uvecs = np.empty((0, 3))

        if len(verts) < 3:
            return
        for i, v in enumerate(verts):
            if v is None or v.is_empty:
                raise InvalidGeometryError(f"Polygon vertex {i} is missing or empty")

        lat = np.array([v.lat for v in verts])
        lon = np.array([v.lon for v in verts])
        uvecs = lat_lon_to_unit_vectors(lat, lon)

        # Edge i joins vertex i to vertex i + 1
        edges = haversine(np.radians(lat), np.radians(lon), np.radians(np.roll(lat, -1)), np.radians(np.roll(lon, -1)))
        weights = edges + np.roll(edges, 1)
        avg = (weights[:, None] * uvecs).sum(axis=0)

        self.centroid_uvec = UnitVector3.from_array(avg)
        self.centroid_to_origin = Matrix3.rotation_to_origin(avg)
        self.perimeter = math.degrees(0.5 * float(weights.sum()))

        self.cap = SphericalCap(LatLon.from_unit_vector(avg), 0.0)
        for v in verts:
            self.cap.expand_to_include(v)
        if self.cap.dome_radius > MAX_EXTENT_DEGREES:
            raise UnsupportedOperationError(
                f"Polygon extends {self.cap.dome_radius:.2f} degrees from its centroid; "
                f"at most {MAX_EXTENT_DEGREES:.2f} is supported"
            )

        local = Polygon2(self._to_local(uvecs))
        local.ensure_clockwise()
        local.on_vertices_set()

        self.local_polygon = local
        self._vertices = tuple(LatLon(v.lat, v.lon) for v in verts)
        self._uvecs = uvecs
        self._uvecs.setflags(write=False)

    @property
    def vertices(self) -> Tuple[LatLon, ...]:
        """The vertices as given to the constructor."""
        return self._vertices

    @property
    def centroid(self) -> Optional[LatLon]:
        if self.centroid_uvec is None:
            return None
        return LatLon.from_unit_vector(self.centroid_uvec)

    @property
    def is_degenerate(self) -> bool:
        return self.local_polygon is None

    def num_vertices(self) -> int:
        if self.local_polygon is None:
            return 0
        return len(self.local_polygon)

    def _to_local(self, uvecs: np.ndarray) -> np.ndarray:
        """Rotate unit vectors into the centroid frame as (lon, lat) rows."""
        lat, lon = unit_vectors_to_lat_lon(self.centroid_to_origin.apply(uvecs))
        return np.stack([lon, lat], axis=-1).reshape(-1, 2)

    @staticmethod
    def _as_uvec(point: PointLike) -> Optional[np.ndarray]:
        if point is None:
            return None
        if isinstance(point, LatLon):
            if point.is_empty:
                return None
            return point.to_unit_vector().to_array()
        if isinstance(point, UnitVector3):
            return None if point.is_empty else point.to_array()
        arr = np.asarray(point, dtype=np.float64)
        return normalize(arr) if np.all(np.isfinite(arr)) else None

    def contains(self, point: PointLike) -> Containment:
        """
        Locate a point relative to the polygon.

        Args:
            point: LatLon or UnitVector3

        Returns:
            INSIDE, ON_EDGE or OUTSIDE; OUTSIDE for an empty point or a
            degenerate polygon
        """
        u = self._as_uvec(point)
        if self.local_polygon is None or u is None:
            return Containment.OUTSIDE
        x, y = self._to_local(u)[0]
        return Containment(self.local_polygon.contains(x, y))

    def _overlaps_ring(self, ring: np.ndarray) -> bool:
        """Overlap test against a planar ring already in the local frame."""
        local = self.local_polygon
        if any(local.contains(x, y) >= 0 for x, y in ring):
            return True
        proxy = Polygon2(ring)
        if any(proxy.contains(x, y) >= 0 for x, y in local.vertices):
            return True
        pts = [tuple(p) for p in ring]
        return any(local.intersects(a, b) for a, b in zip(pts[-1:] + pts[:-1], pts))

    def overlaps(self, rect: Optional[SurfaceRect]) -> bool:
        """
        True if the polygon and a surface rectangle share any area.

        The rectangle is represented by its four corners, or by a triangle
        ending at the pole when it reaches within ``POLE_EPSILON`` degrees
        of one. A rectangle reaching both poles overlaps every polygon.
        """
        if self.local_polygon is None or rect is None:
            return False

        north = rect.top > 90.0 - POLE_EPSILON
        south = rect.bottom < -90.0 + POLE_EPSILON
        if north and south:
            return True
        if north:
            corners = lat_lon_to_unit_vectors([rect.bottom, rect.bottom], [rect.right, rect.left])
            corners = np.vstack([corners, _NORTH_POLE])
        elif south:
            corners = lat_lon_to_unit_vectors([rect.top, rect.top], [rect.left, rect.right])
            corners = np.vstack([corners, _SOUTH_POLE])
        else:
            corners = lat_lon_to_unit_vectors(
                [rect.bottom, rect.bottom, rect.top, rect.top],
                [rect.right, rect.left, rect.left, rect.right],
            )
        return self._overlaps_ring(self._to_local(corners))

    def overlaps_triangle(self, vertices: np.ndarray) -> bool:
        """
        True if the polygon and a spherical triangle share any area.

        Args:
            vertices: Triangle vertices as unit vectors, shape (3, 3)
        """
        if self.local_polygon is None:
            return False
        tri = np.asarray(vertices, dtype=np.float64)
        normals = np.cross(tri, np.roll(tri, -1, axis=0))
        centroid = tri.mean(axis=0)
        normals = np.where((normals @ centroid)[:, None] < 0.0, -normals, normals)
        if np.any(np.all(self._uvecs @ normals.T >= 0.0, axis=1)):
            return True
        return self._overlaps_ring(self._to_local(tri))

    def signed_distance(self, point: PointLike) -> float:
        """
        Signed great-circle distance to the polygon boundary.

        Args:
            point: LatLon or UnitVector3

        Returns:
            Radians; negative inside, positive outside, zero on an edge; NaN
            for an empty point or a degenerate polygon
        """
        u = self._as_uvec(point)
        if self.local_polygon is None or u is None:
            return math.nan
        d = float(arc_distance(u, self._uvecs, np.roll(self._uvecs, -1, axis=0)).min())
        if self.contains(u) == Containment.INSIDE:
            return -d
        return d

    def to_wkt(self, precision: Optional[int] = None) -> str:
        """Well-known text of the local (centroid-frame) ring."""
        if self.local_polygon is None:
            return "POLYGON(())"
        return self.local_polygon.to_wkt(precision)

    def to_lat_lon_list(self) -> List[Tuple[float, float]]:
        return [(v.lat, v.lon) for v in self._vertices]

    def __repr__(self) -> str:
        return f"SphericalPolygon(num_vertices={self.num_vertices()}, perimeter={self.perimeter:.4f})"
