#!/usr/bin/env python3
"""
Example 02: Region Queries

This example tests points against a spherical polygon and lists the
triangles of the index that overlap a cap and the polygon.

Usage:
    python 02_region_queries.py
"""

import math


def main():
    """Run region query example."""
    from sphereindex.core.geometry.spherical import EARTH_RADIUS_KM, LatLon
    from sphereindex.core.regions.cap import SphericalCap
    from sphereindex.core.regions.polygon import SphericalPolygon
    from sphereindex.core.regions.rect import SurfaceRect
    from sphereindex.core.tessellation.index import TessellationIndex

    # Rough outline of the Iberian peninsula
    iberia = SphericalPolygon([
        LatLon(43.4, -9.3),
        LatLon(43.6, -1.5),
        LatLon(42.4, 3.2),
        LatLon(36.7, -2.1),
        LatLon(36.0, -5.6),
        LatLon(37.0, -9.0),
    ])
    print(f"Polygon: {iberia}")
    print(f"  Centroid: {iberia.centroid}")
    print(f"  Bounding cap radius: {iberia.cap.dome_radius_km:.1f} km")
    print()

    print("Point tests:")
    for name, point in [("Madrid", LatLon(40.4168, -3.7038)), ("Rome", LatLon(41.9028, 12.4964))]:
        d = iberia.signed_distance(point) * EARTH_RADIUS_KM
        print(f"  {name:8s} {iberia.contains(point).name.lower():8s} {d:9.1f} km from the boundary")

    rect = SurfaceRect(left=-5.0, right=0.0, top=41.0, bottom=39.0)
    print(f"\n{rect} overlaps polygon: {iberia.overlaps(rect)}")

    index = TessellationIndex.build(7)
    cells = index.cover_polygon(iberia)
    print(f"\nDepth-7 triangles overlapping the polygon: {len(cells)}")

    cap = SphericalCap(LatLon(40.4168, -3.7038), math.degrees(100.0 / EARTH_RADIUS_KM))
    cells = index.cover_cap(cap)
    print(f"Depth-7 triangles within 100 km of Madrid: {len(cells)}")
    for address in cells[:5]:
        print(f"  {'.'.join(map(str, address))}")


if __name__ == "__main__":
    main()
