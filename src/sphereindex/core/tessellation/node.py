"""
Subtriangle nodes and the geometry of recursive subdivision.

The root node is the whole sphere. Depth 1 holds the eight octants cut by
the equator and the meridian planes at lon 0/180 and lon ±90. Every deeper
level quadrisects each triangle by joining the great-circle midpoints of
its edges.

Octant selectors (first address element):
    0 -> lat >= 0,   90 <= lon <= 180
    1 -> lat >= 0,    0 <= lon <   90
    2 -> lat >= 0,  -90 <= lon <    0
    3 -> lat >= 0, -180 <  lon <  -90
    4..7 -> as 0..3 with lat < 0

Quadrant selectors (later elements), for a parent with vertices
(v0 = extreme latitude, v1 = west, v2 = east):
    0 -> central triangle (m12, m01, m20)
    1 -> triangle at v0    (v0, m01, m20)
    2 -> triangle at v1    (m01, v1, m12)
    3 -> triangle at v2    (m20, m12, v2)

Nodes live in an arena indexed by integer ids. Ids are assigned level by
level and are a pure function of the address, so independent subtrees can
be filled concurrently without coordination.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from sphereindex.core.geometry.spherical import LatLon
from sphereindex.core.geometry.vector import Plane, UnitVector3, normalize
from sphereindex.core.tessellation.address import Address
from sphereindex.exceptions import InvalidGeometryError

__all__ = [
    "SubtriangleNode",
    "calc_planes",
    "calc_plane_normals",
    "octant_vertices",
    "quadrisect",
    "level_offset",
    "level_size",
    "node_id",
    "address_of",
    "parent_id",
    "child_ids",
]

_UP = (0.0, 1.0, 0.0)
_DOWN = (0.0, -1.0, 0.0)
_LON_0 = (0.0, 0.0, -1.0)
_LON_90 = (1.0, 0.0, 0.0)
_LON_180 = (0.0, 0.0, 1.0)
_LON_M90 = (-1.0, 0.0, 0.0)

# (west, east) equatorial vertices for octants 0..3 (and 4..7)
_OCTANT_EDGES = (
    (_LON_90, _LON_180),
    (_LON_0, _LON_90),
    (_LON_M90, _LON_0),
    (_LON_180, _LON_M90),
)


def octant_vertices() -> np.ndarray:
    """
    Vertices of the eight octants.

    Returns:
        Array of shape (8, 3, 3): octant, vertex (pole, west, east), xyz
    """
    out = np.empty((8, 3, 3))
    for i in range(8):
        pole = _UP if i < 4 else _DOWN
        west, east = _OCTANT_EDGES[i % 4]
        out[i] = (pole, west, east)
    return out


def quadrisect(vertices: np.ndarray) -> np.ndarray:
    """
    Split every triangle into its four children.

    Args:
        vertices: Array of shape (N, 3, 3)

    Returns:
        Array of shape (4N, 3, 3); children of triangle i are rows 4i..4i+3
        in quadrant-selector order
    """
    v0, v1, v2 = vertices[:, 0], vertices[:, 1], vertices[:, 2]
    m01 = normalize(v0 + v1)
    m12 = normalize(v1 + v2)
    m20 = normalize(v2 + v0)
    children = (
        (m12, m01, m20),
        (v0, m01, m20),
        (m01, v1, m12),
        (m20, m12, v2),
    )
    stacked = np.stack([np.stack(c, axis=1) for c in children], axis=1)
    return stacked.reshape(-1, 3, 3)


def calc_plane_normals(vertices: np.ndarray) -> np.ndarray:
    """
    Unit normals of the three bounding planes of each triangle.

    Plane k passes through the origin and vertices k and (k + 1) % 3, and
    is oriented so the triangle's centroid has non-negative signed distance.

    Args:
        vertices: Array of shape (N, 3, 3)

    Returns:
        Array of shape (N, 3, 3): triangle, plane, normal xyz
    """
    rolled = np.roll(vertices, -1, axis=1)
    normals = normalize(np.cross(vertices, rolled))
    centroid = vertices.mean(axis=1, keepdims=True)
    side = np.sum(normals * centroid, axis=-1, keepdims=True)
    return np.where(side < 0.0, -normals, normals)


def calc_planes(vertices: Sequence[UnitVector3]) -> Tuple[Plane, Plane, Plane]:
    """
    The three planes bounding a spherical triangle.

    Each plane passes through the sphere's center and two vertices
    (0-1, 1-2, 2-0); signed distance is non-negative on the triangle.

    Args:
        vertices: Three vertices on the unit sphere

    Returns:
        Tuple of three planes
    """
    if vertices is None or len(vertices) < 3:
        raise InvalidGeometryError("3 vertices are required to construct the bounding planes")
    pts = [v.to_array() if isinstance(v, UnitVector3) else np.asarray(v, dtype=np.float64) for v in vertices[:3]]
    centroid = (pts[0] + pts[1] + pts[2]) / 3.0
    return tuple(Plane.through_origin(pts[k], pts[(k + 1) % 3], centroid) for k in range(3))


def level_size(depth: int) -> int:
    """Number of nodes at a depth: 1 for the root, then 8 * 4^(depth-1)."""
    return 1 if depth == 0 else 8 * 4 ** (depth - 1)


def level_offset(depth: int) -> int:
    """Id of the first node at a depth."""
    if depth == 0:
        return 0
    return 1 + 8 * (4 ** (depth - 1) - 1) // 3


def _index_in_level(address: Sequence[int]) -> int:
    idx = address[0]
    for q in address[1:]:
        idx = 4 * idx + q
    return idx


def node_id(address: Sequence[int]) -> int:
    """Arena id of the node with this address."""
    if not address:
        return 0
    return level_offset(len(address)) + _index_in_level(address)


def address_of(nid: int) -> Address:
    """Inverse of :func:`node_id`."""
    if nid < 0:
        raise InvalidGeometryError(f"Node id must be non-negative, got {nid}")
    depth = 0
    while level_offset(depth + 1) <= nid:
        depth += 1
    if depth == 0:
        return ()
    idx = nid - level_offset(depth)
    quads = []
    for _ in range(depth - 1):
        quads.append(idx & 0b11)
        idx >>= 2
    return (idx,) + tuple(reversed(quads))


def parent_id(nid: int) -> Optional[int]:
    """Id of the parent node; None for the root."""
    addr = address_of(nid)
    if not addr:
        return None
    return node_id(addr[:-1])


def child_ids(nid: int, max_depth: int) -> Tuple[int, ...]:
    """Ids of the children of a node in a tree of the given depth."""
    addr = address_of(nid)
    depth = len(addr)
    if depth >= max_depth:
        return ()
    if depth == 0:
        return tuple(range(level_offset(1), level_offset(1) + 8))
    first = level_offset(depth + 1) + 4 * _index_in_level(addr)
    return tuple(range(first, first + 4))


@dataclass(frozen=True)
class SubtriangleNode:
    """
    A spherical triangle in the tessellation hierarchy.

    Attributes:
        node_id: Arena id
        address: Path of selectors from the root; its length is the depth
        vertices: (extreme-latitude, west, east) unit vectors; empty for the root
        planes: Bounding planes 0-1, 1-2, 2-0; empty for the root
        parent_id: Id of the parent (lookup only); None for the root
        child_ids: Ids of the 0, 4 or 8 children
    """

    node_id: int
    address: Address
    vertices: Tuple[UnitVector3, ...] = ()
    planes: Tuple[Plane, ...] = ()
    parent_id: Optional[int] = None
    child_ids: Tuple[int, ...] = field(default=())

    @property
    def depth(self) -> int:
        return len(self.address)

    @property
    def is_root(self) -> bool:
        return not self.address

    @property
    def is_leaf(self) -> bool:
        return not self.child_ids

    def centroid(self) -> UnitVector3:
        """Normalized mean of the vertices (the reference direction for the root)."""
        if self.is_root:
            return UnitVector3(0.0, 0.0, -1.0)
        return UnitVector3.from_array(sum(v.to_array() for v in self.vertices))

    def vertices_lat_lon(self) -> Tuple[LatLon, ...]:
        return tuple(LatLon.from_unit_vector(v) for v in self.vertices)

    def contains(self, point, tolerance: float = 0.0) -> bool:
        """
        True if the point lies on this triangle.

        Args:
            point: LatLon or UnitVector3
            tolerance: Allowed negative signed distance to each plane
        """
        if self.is_root:
            return True
        if isinstance(point, LatLon):
            point = point.to_unit_vector()
        return all(p.signed_distance(point) >= -tolerance for p in self.planes)

    def __repr__(self) -> str:
        return f"SubtriangleNode(id={self.node_id}, address={self.address})"
