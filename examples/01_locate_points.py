#!/usr/bin/env python3
"""
Example 01: Locating Points

This example builds a tessellation index and prints the address of the
triangle containing each coordinate, in dotted and packed form.

Usage:
    python 01_locate_points.py [depth]
"""

import sys


def main():
    """Run point location example."""
    depth = int(sys.argv[1]) if len(sys.argv) > 1 else 8

    from sphereindex.core.geometry.spherical import LatLon
    from sphereindex.core.tessellation.address import pack32, pack64, unpack64
    from sphereindex.core.tessellation.index import TessellationIndex

    print(f"Building index to depth {depth}...")
    index = TessellationIndex.build(depth, parallel=True)
    print(f"  {index.num_nodes:,} nodes, {index.num_arena_nodes:,} stored")
    print()

    cities = {
        "Paris": LatLon(48.8566, 2.3522),
        "Sydney": LatLon(-33.8688, 151.2093),
        "Honolulu": LatLon(21.3069, -157.8583),
        "Reykjavik": LatLon(64.1466, -21.9426),
    }

    print("Addresses:")
    for name, point in cities.items():
        address = index.locate(point)
        packed = pack64(address)
        print(f"  {name:10s} {'.'.join(map(str, address))}")
        print(f"  {'':10s} 64-bit: {packed:#018x}  32-bit: {pack32(address):#010x}")
        assert unpack64(packed) == address

    # Prefixes of an address name the enclosing triangles
    paris = index.locate(cities["Paris"])
    print("\nTriangles enclosing Paris:")
    for d in range(1, min(depth, 4) + 1):
        node = index.node(paris[:d])
        corners = ", ".join(f"({p.lat:.2f}, {p.lon:.2f})" for p in node.vertices_lat_lon())
        print(f"  depth {d}: {corners}")


if __name__ == "__main__":
    main()
