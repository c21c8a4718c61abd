"""
Geometry primitives on and around the unit sphere.
"""

from sphereindex.core.geometry.vector import (
    REFERENCE_DIRECTION,
    Matrix3,
    Plane,
    UnitVector3,
    cross,
    dot,
    normalize,
)
from sphereindex.core.geometry.spherical import (
    EARTH_RADIUS_KM,
    EARTH_RADIUS_MILES,
    LatLon,
    angular_separation,
    arc_distance,
    dist_degrees,
    dist_radians,
    haversine,
    lat_lon_to_unit_vectors,
    normalize_degrees,
    normalize_latitude,
    normalize_radians,
    unit_vectors_to_lat_lon,
)
from sphereindex.core.geometry.planar import (
    Line2,
    Path2,
    Point2,
    Polygon2,
    Rect2,
    segment_intersection,
)

__all__ = [
    # Vector algebra
    "REFERENCE_DIRECTION",
    "Matrix3",
    "Plane",
    "UnitVector3",
    "cross",
    "dot",
    "normalize",
    # Coordinates
    "EARTH_RADIUS_KM",
    "EARTH_RADIUS_MILES",
    "LatLon",
    "angular_separation",
    "arc_distance",
    "dist_degrees",
    "dist_radians",
    "haversine",
    "lat_lon_to_unit_vectors",
    "normalize_degrees",
    "normalize_latitude",
    "normalize_radians",
    "unit_vectors_to_lat_lon",
    # Planar
    "Line2",
    "Path2",
    "Point2",
    "Polygon2",
    "Rect2",
    "segment_intersection",
]
