"""
Latitude/longitude rectangles on the sphere.

Sides follow lines of latitude (top, bottom) and meridians (left, right).
A rectangle whose right side is west of its left side (``right < left``)
crosses the antimeridian.
"""

import math
from typing import Optional, Union

import numpy as np

from sphereindex.core.geometry.planar import Rect2
from sphereindex.core.geometry.spherical import (
    LatLon,
    arc_distance,
    dist_radians,
    lat_lon_to_unit_vectors,
)

__all__ = ["SurfaceRect"]


class SurfaceRect(Rect2):
    """
    A rectangle on the surface of the sphere, in degrees.

    Attributes:
        left: Western longitude
        right: Eastern longitude
        top: Northern latitude
        bottom: Southern latitude
    """

    __slots__ = ()

    @classmethod
    def from_ltrb(cls, text: Optional[str]) -> Optional["SurfaceRect"]:
        """Parse ``"left,top,right,bottom"``; None for a malformed string."""
        from sphereindex.utils.text import rect_from_ltrb

        return rect_from_ltrb(text, cls=cls)

    @property
    def wraps(self) -> bool:
        """True if the rectangle crosses the antimeridian."""
        return self.right < self.left

    @property
    def width(self) -> float:
        w = self.right - self.left
        return w + 360.0 if w < 0.0 else w

    def _lon_inside(self, lon: float) -> bool:
        if self.wraps:
            return lon >= self.left or lon <= self.right
        return self.left <= lon <= self.right

    def contains(self, x: Union[LatLon, float], y: Optional[float] = None) -> bool:
        """
        True if a point is inside the rectangle or on its boundary.

        Args:
            x: LatLon, or longitude when ``y`` is given
            y: Latitude
        """
        if isinstance(x, LatLon):
            lon, lat = x.lon, x.lat
        else:
            lon, lat = x, y
        return self.bottom <= lat <= self.top and self._lon_inside(lon)

    def centroid(self) -> LatLon:
        """Midpoint of the diagonal from the south-west to the north-east corner."""
        uvec = lat_lon_to_unit_vectors([self.bottom, self.top], [self.left, self.right]).sum(axis=0)
        return LatLon.from_unit_vector(uvec)

    def _parallel_distance(self, point: LatLon, lat: float) -> float:
        if self._lon_inside(point.lon):
            return math.radians(abs(point.lat - lat))
        return min(
            dist_radians(point, LatLon(lat, self.left)),
            dist_radians(point, LatLon(lat, self.right)),
        )

    def _meridian_distance(self, p: np.ndarray, lon: float) -> float:
        # Split each meridian side at its midpoint so no arc spans 180 degrees
        mid = 0.5 * (self.top + self.bottom)
        lats = [self.bottom, mid, self.top]
        v = lat_lon_to_unit_vectors(lats, [lon] * 3)
        return float(arc_distance(p, v[:2], v[1:]).min())

    def signed_distance(self, point: Optional[LatLon]) -> float:
        """
        Signed great-circle distance to the boundary.

        Args:
            point: The coordinate

        Returns:
            Radians; negative inside, positive outside; NaN for a missing
            or empty point
        """
        if point is None or point.is_empty or self.is_empty:
            return math.nan
        p = point.to_unit_vector().to_array()
        d = min(
            self._parallel_distance(point, self.top),
            self._parallel_distance(point, self.bottom),
            self._meridian_distance(p, self.left),
            self._meridian_distance(p, self.right),
        )
        return -d if self.contains(point) else d

    def __repr__(self) -> str:
        return f"SurfaceRect(left={self.left}, top={self.top}, right={self.right}, bottom={self.bottom})"
