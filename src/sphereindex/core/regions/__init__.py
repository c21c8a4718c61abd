"""
Regions on the sphere: caps, latitude/longitude rectangles and polygons.
"""

from sphereindex.core.regions.cap import SphericalCap
from sphereindex.core.regions.rect import SurfaceRect
from sphereindex.core.regions.polygon import Containment, SphericalPolygon

__all__ = ["SphericalCap", "SurfaceRect", "Containment", "SphericalPolygon"]
