"""
Spherical caps: circular regions on the surface of the sphere.

A cap is described by its center coordinate and its dome radius, the
great-circle distance from the center to the rim measured in degrees.
Caps are used as cheap bounding regions: they grow by
:meth:`SphericalCap.expand_to_include` and never shrink.

To convert the dome radius to a distance on Earth:

    km    = radians(dome_radius) * EARTH_RADIUS_KM
    miles = radians(dome_radius) * EARTH_RADIUS_MILES
"""

import math
from typing import Iterable, Optional

import numpy as np

from sphereindex.core.geometry.spherical import (
    EARTH_RADIUS_KM,
    LatLon,
    dist_degrees,
    dist_radians,
    lat_lon_to_unit_vectors,
)

__all__ = ["SphericalCap"]


class SphericalCap:
    """
    A circular area on the unit sphere.

    Attributes:
        center: Tip of the cap; None until the first point is included
        dome_radius: Radius in degrees along the surface; NaN when unset

    The center never moves once set, so the cap produced by repeated
    expansion bounds every included point but is not the smallest such cap.
    """

    __slots__ = ("center", "dome_radius")

    def __init__(self, center: Optional[LatLon] = None, dome_radius: float = math.nan):
        self.center = center
        self.dome_radius = float(dome_radius)

    @classmethod
    def from_points(cls, points: Iterable[Optional[LatLon]]) -> "SphericalCap":
        """Cap centered on the first point and expanded over the rest."""
        cap = cls()
        for p in points:
            cap.expand_to_include(p)
        return cap

    @classmethod
    def bounding(cls, points: Iterable[Optional[LatLon]]) -> "SphericalCap":
        """
        Cap centered on the mean direction of the points, covering all of them.

        Usually tighter than :meth:`from_points`. None and empty points are
        ignored; an input with no usable points gives an unset cap.
        """
        pts = [p for p in points if p is not None and not p.is_empty]
        if not pts:
            return cls()
        vecs = lat_lon_to_unit_vectors([p.lat for p in pts], [p.lon for p in pts])
        cap = cls(LatLon.from_unit_vector(vecs.sum(axis=0)), 0.0)
        for p in pts:
            cap.expand_to_include(p)
        return cap

    @property
    def is_empty(self) -> bool:
        """True until a center and a radius are both known."""
        return self.center is None or self.center.is_empty or math.isnan(self.dome_radius)

    @property
    def dome_radius_km(self) -> float:
        return math.radians(self.dome_radius) * EARTH_RADIUS_KM

    def expand_to_include(self, point: Optional[LatLon]) -> None:
        """
        Grow the cap to include ``point``.

        The first point becomes the center; a preset non-negative radius is
        kept, otherwise the radius starts at 0. Later points only increase
        the radius. None and empty points are ignored.
        """
        if point is None or point.is_empty:
            return
        if self.center is None:
            self.center = LatLon(point.lat, point.lon)
            if math.isnan(self.dome_radius) or self.dome_radius < 0.0:
                self.dome_radius = 0.0
            return

        dist = dist_degrees(self.center, point)
        if math.isnan(self.dome_radius) or dist > self.dome_radius:
            self.dome_radius = dist

    def sign_dist_radians(self, point: Optional[LatLon]) -> float:
        """
        Signed distance from the rim of the cap.

        Args:
            point: The coordinate

        Returns:
            Radians; negative inside the cap, zero on the rim, positive
            outside; NaN when the point or the cap is unset
        """
        if point is None or self.center is None or math.isnan(self.dome_radius):
            return math.nan
        return dist_radians(point, self.center) - math.radians(self.dome_radius)

    def contains(self, point: Optional[LatLon]) -> bool:
        """True if the point is inside the cap or on its rim."""
        return bool(self.sign_dist_radians(point) <= 0.0)

    def intersects_cap(self, other: "SphericalCap") -> bool:
        """True if the two caps share at least one point."""
        if self.is_empty or other.is_empty:
            return False
        sep = dist_degrees(self.center, other.center)
        return bool(sep <= self.dome_radius + other.dome_radius)

    def to_unit_vector(self) -> np.ndarray:
        """Center as a unit vector array; NaN when unset."""
        if self.center is None:
            return np.full(3, np.nan)
        return self.center.to_unit_vector().to_array()

    def __repr__(self) -> str:
        return f"SphericalCap(center={self.center!r}, dome_radius={self.dome_radius:.6f})"
