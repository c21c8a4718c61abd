"""
sphereindex: hierarchical triangular tessellation of the sphere.

This package provides a recursive octahedral index of the unit sphere with
O(depth) point location, fixed-width packing of node addresses, and
approximate spherical regions (caps, rectangles and polygons).
"""

__version__ = "0.1.0"
__author__ = "sphereindex Contributors"

# Lazy imports to keep `import sphereindex` light
def __getattr__(name: str):
    """Lazy import module attributes."""
    if name == "geometry":
        from sphereindex.core import geometry
        return geometry
    elif name == "tessellation":
        from sphereindex.core import tessellation
        return tessellation
    elif name == "regions":
        from sphereindex.core import regions
        return regions
    elif name == "LatLon":
        from sphereindex.core.geometry.spherical import LatLon
        return LatLon
    elif name == "UnitVector3":
        from sphereindex.core.geometry.vector import UnitVector3
        return UnitVector3
    elif name == "TessellationIndex":
        from sphereindex.core.tessellation.index import TessellationIndex
        return TessellationIndex
    elif name == "build":
        from sphereindex.core.tessellation.index import build
        return build
    elif name == "locate":
        from sphereindex.core.tessellation.index import locate
        return locate
    elif name in ("pack32", "unpack32", "pack64", "unpack64"):
        from sphereindex.core.tessellation import address
        return getattr(address, name)
    elif name == "SphericalCap":
        from sphereindex.core.regions.cap import SphericalCap
        return SphericalCap
    elif name == "SphericalPolygon":
        from sphereindex.core.regions.polygon import SphericalPolygon
        return SphericalPolygon
    elif name == "SurfaceRect":
        from sphereindex.core.regions.rect import SurfaceRect
        return SurfaceRect
    elif name == "Config":
        from sphereindex.config.schema import Config
        return Config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    "__version__",
    "geometry",
    "tessellation",
    "regions",
    "LatLon",
    "UnitVector3",
    "TessellationIndex",
    "build",
    "locate",
    "pack32",
    "unpack32",
    "pack64",
    "unpack64",
    "SphericalCap",
    "SphericalPolygon",
    "SurfaceRect",
    "Config",
]
