"""
Core modules for sphereindex.

Subpackages:
    geometry: Vectors, planes, coordinates and planar primitives
    tessellation: Recursive subdivision, point location and address packing
    regions: Spherical caps, rectangles and polygons
"""

from sphereindex.core import geometry
from sphereindex.core import tessellation
from sphereindex.core import regions

__all__ = ["geometry", "tessellation", "regions"]
