"""
Spherical coordinate utilities for the tessellation.

This module provides latitude/longitude coordinates, conversion to and
from unit vectors, haversine great-circle distances, and range
normalization of angles.

Convention:
    (lat, lon) is a sequence of rotations applied to the reference
    vector (0, 0, -1): lat is a clockwise rotation about x, then lon is a
    clockwise rotation about y. Hence

        ux =  cos(lat) sin(lon)
        uy =  sin(lat)
        uz = -cos(lat) cos(lon)

        lat = asin(uy)
        lon = atan2(ux, -uz)
"""

import math
from typing import Optional, Tuple, Union

import numpy as np

from sphereindex.core.geometry.vector import Matrix3, UnitVector3, normalize

__all__ = [
    "EARTH_RADIUS_KM",
    "EARTH_RADIUS_MILES",
    "LatLon",
    "dist_radians",
    "dist_degrees",
    "haversine",
    "lat_lon_to_unit_vectors",
    "unit_vectors_to_lat_lon",
    "angular_separation",
    "arc_distance",
    "normalize_degrees",
    "normalize_latitude",
    "normalize_radians",
]

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_MILES = 3959.0


def normalize_degrees(degrees: float) -> float:
    """
    Normalize an angle to the range (-180, 180].

    Args:
        degrees: Angle in degrees

    Returns:
        Equivalent angle in (-180, 180]; NaN stays NaN
    """
    if -180.0 < degrees <= 180.0:
        return degrees
    r = (degrees + 180.0) % 360.0 - 180.0
    return 180.0 if r == -180.0 else r


def normalize_latitude(degrees: float) -> float:
    """
    Normalize a latitude to [-90, 90].

    The angle is first normalized like a longitude, then reflected:
    ``lat > 90 -> 180 - lat`` and ``lat <= -90 -> -180 - lat``.
    """
    degrees = normalize_degrees(degrees)
    if degrees <= -90.0:
        return -180.0 - degrees
    if degrees > 90.0:
        return 180.0 - degrees
    return degrees


def normalize_radians(r: float) -> float:
    """Normalize an angle to the range (-pi, pi]."""
    if -math.pi < r <= math.pi:
        return r
    r = (r + math.pi) % (2 * math.pi) - math.pi
    return math.pi if r == -math.pi else r


def haversine(
    lat1: Union[float, np.ndarray],
    lon1: Union[float, np.ndarray],
    lat2: Union[float, np.ndarray],
    lon2: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Great-circle distance between coordinates given in radians.

    Uses the haversine formula for numerical stability at short and
    near-antipodal distances:

        h = sin²(Δlat/2) + cos(lat₁) cos(lat₂) sin²(Δlon/2)
        d = 2 atan2(√h, √(1 - h))

    Args:
        lat1, lon1: First point(s) in radians
        lat2, lon2: Second point(s) in radians

    Returns:
        Angular distance in radians, range [0, π]; NaN for NaN input
    """
    sdlat = np.sin(0.5 * (lat2 - lat1))
    sdlon = np.sin(0.5 * (lon2 - lon1))
    h = sdlat * sdlat + np.cos(lat1) * np.cos(lat2) * sdlon * sdlon
    # Rounding can push h marginally past 1 for antipodal points
    h = np.clip(h, 0.0, 1.0)
    d = 2.0 * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))
    return float(d) if np.ndim(d) == 0 else d


class LatLon:
    """
    A coordinate on the surface of a sphere, in degrees.

    Attributes:
        lat: Latitude in [-90, 90]
        lon: Longitude; normalized values fall in (-180, 180]

    The coordinate is "empty" when either component is not finite; empty
    coordinates propagate through conversions and distances as NaN.
    Instances are immutable.
    """

    __slots__ = ("lat", "lon")

    def __init__(self, lat: float, lon: float):
        object.__setattr__(self, "lat", float(lat))
        object.__setattr__(self, "lon", float(lon))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def empty(cls) -> "LatLon":
        """Return the sentinel coordinate signalling an absent location."""
        return cls(math.nan, math.nan)

    @classmethod
    def from_unit_vector(cls, vec: Union[UnitVector3, np.ndarray, Tuple[float, float, float]]) -> "LatLon":
        """
        Create a coordinate from a direction in 3D space.

        The vector is normalized first; the result is range-normalized.
        Empty vectors produce the empty coordinate.
        """
        if not isinstance(vec, UnitVector3):
            vec = UnitVector3.from_array(vec)
        if vec.is_empty:
            return cls.empty()
        lat = math.degrees(math.asin(max(-1.0, min(1.0, vec.y))))
        lon = math.degrees(math.atan2(vec.x, -vec.z))
        return cls(lat, lon).normalized()

    @classmethod
    def from_point(cls, x: float, y: float) -> "LatLon":
        """Create a coordinate from a planar point where x=lon, y=lat."""
        return cls(y, x)

    @property
    def is_empty(self) -> bool:
        return not (math.isfinite(self.lat) and math.isfinite(self.lon))

    def normalized(self) -> "LatLon":
        """Return a copy with lon in (-180, 180] and lat in [-90, 90]."""
        return LatLon(normalize_latitude(self.lat), normalize_degrees(self.lon))

    def to_unit_vector(self) -> UnitVector3:
        """Return the unit vector for this coordinate."""
        lat = math.radians(self.lat)
        lon = math.radians(self.lon)
        c_lat = math.cos(lat)
        return UnitVector3(c_lat * math.sin(lon), math.sin(lat), -c_lat * math.cos(lon))

    def to_point(self) -> Tuple[float, float]:
        """Return the planar point (x=lon, y=lat)."""
        return (self.lon, self.lat)

    def to_rotation_matrix(self) -> Matrix3:
        """
        Matrix carrying (0, 0, -1) onto this coordinate's unit vector.

        The transpose (see :meth:`to_rotation_matrix_inverse`) carries the
        unit vector back onto (0, 0, -1).
        """
        return Matrix3.from_lat_lon_radians(math.radians(self.lat), math.radians(self.lon))

    def to_rotation_matrix_inverse(self) -> Matrix3:
        return self.to_rotation_matrix().transpose()

    def distance_to(self, other: "LatLon") -> float:
        """Great-circle distance to another coordinate in radians."""
        return dist_radians(self, other)

    def distance_km(self, other: "LatLon", radius: float = EARTH_RADIUS_KM) -> float:
        """Great-circle distance on a sphere of the given radius."""
        return dist_radians(self, other) * radius

    def __iter__(self):
        return iter((self.lat, self.lon))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LatLon):
            return NotImplemented
        return self.lat == other.lat and self.lon == other.lon

    def __hash__(self) -> int:
        return hash((self.lat, self.lon))

    def __repr__(self) -> str:
        return f"LatLon(lat={self.lat:.6f}, lon={self.lon:.6f})"


def dist_radians(a: Optional[LatLon], b: Optional[LatLon]) -> float:
    """
    Haversine distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Length in radians of the shortest arc joining a and b; NaN if either
        coordinate is missing or empty
    """
    if a is None or b is None:
        return math.nan
    return haversine(
        math.radians(a.lat), math.radians(a.lon),
        math.radians(b.lat), math.radians(b.lon),
    )


def dist_degrees(a: Optional[LatLon], b: Optional[LatLon]) -> float:
    """Haversine distance in degrees."""
    return math.degrees(dist_radians(a, b))


def lat_lon_to_unit_vectors(lat: np.ndarray, lon: np.ndarray) -> np.ndarray:
    """
    Vectorized conversion of coordinates in degrees to unit vectors.

    Args:
        lat: Latitudes in degrees, shape (N,)
        lon: Longitudes in degrees, shape (N,)

    Returns:
        Unit vectors of shape (N, 3)
    """
    lat = np.radians(np.asarray(lat, dtype=np.float64))
    lon = np.radians(np.asarray(lon, dtype=np.float64))
    c_lat = np.cos(lat)
    return np.stack([c_lat * np.sin(lon), np.sin(lat), -c_lat * np.cos(lon)], axis=-1)


def unit_vectors_to_lat_lon(vecs: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized inverse of :func:`lat_lon_to_unit_vectors`.

    Args:
        vecs: Vectors of shape (N, 3), normalized internally

    Returns:
        (lat, lon) arrays in degrees
    """
    u = normalize(vecs)
    lat = np.degrees(np.arcsin(np.clip(u[..., 1], -1.0, 1.0)))
    lon = np.degrees(np.arctan2(u[..., 0], -u[..., 2]))
    return lat, lon


def angular_separation(u: np.ndarray, v: np.ndarray) -> Union[float, np.ndarray]:
    """
    Angle in radians between unit vectors, via atan2(|u x v|, u . v).

    Accurate for both tiny and near-antipodal separations. Broadcasts over
    leading axes.
    """
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    cs = np.sum(u * v, axis=-1)
    ss = np.linalg.norm(np.cross(u, v), axis=-1)
    d = np.arctan2(ss, cs)
    return float(d) if np.ndim(d) == 0 else d


def arc_distance(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Angular distance from a point to great-circle arcs.

    Each arc is the shorter great-circle path from ``a[i]`` to ``b[i]``.
    When the foot of the perpendicular from ``p`` falls on the arc the
    distance is to that foot, otherwise it is to the nearer endpoint.
    Degenerate arcs (coincident or antipodal endpoints) use the endpoints.

    Args:
        p: Unit vector, shape (3,)
        a: Arc start points, shape (N, 3)
        b: Arc end points, shape (N, 3)

    Returns:
        Distances in radians, shape (N,)
    """
    p = np.asarray(p, dtype=np.float64)
    a = np.atleast_2d(np.asarray(a, dtype=np.float64))
    b = np.atleast_2d(np.asarray(b, dtype=np.float64))

    n = np.cross(a, b)
    norm = np.linalg.norm(n, axis=-1, keepdims=True)
    valid = norm[:, 0] > 0.0
    n = n / np.where(norm > 0.0, norm, 1.0)

    # p lies between the planes through the endpoints perpendicular to the arc
    on_arc = (np.cross(n, a) @ p >= 0.0) & (np.cross(n, b) @ p <= 0.0) & valid
    perp = np.abs(0.5 * np.pi - angular_separation(p[None, :], n))
    ends = np.minimum(angular_separation(p[None, :], a), angular_separation(p[None, :], b))
    return np.where(on_arc, perp, ends)
