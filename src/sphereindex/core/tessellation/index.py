"""
Hierarchical triangular index of the sphere.

The index is built once to a fixed depth and is read-only afterwards, so
any number of threads may query it concurrently. Node geometry for the
upper levels is kept in flat numpy arrays (the arena) indexed by node id;
nodes below the arena are quadrisected on demand from their deepest arena
ancestor. :class:`SubtriangleNode` objects are materialized on request.

Example:
    >>> index = TessellationIndex.build(depth=8)
    >>> index.locate(LatLon(45.0, 45.0), depth=1)
    (1,)
    >>> pack64(index.locate(LatLon(48.85, 2.35)))
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from sphereindex.core.geometry.spherical import LatLon
from sphereindex.core.geometry.vector import Plane, UnitVector3, normalize
from sphereindex.core.tessellation.address import MAX_DEPTH_64, Address, pack, validate_address
from sphereindex.core.tessellation.node import (
    SubtriangleNode,
    address_of,
    calc_plane_normals,
    child_ids,
    level_offset,
    level_size,
    node_id,
    octant_vertices,
    parent_id,
    quadrisect,
)
from sphereindex.exceptions import InvalidGeometryError, TessellationInvariantError
from sphereindex.utils.cancellation import StopToken

__all__ = [
    "DEFAULT_ARENA_DEPTH",
    "DEFAULT_TOLERANCE_FACTOR",
    "MAX_ARENA_DEPTH",
    "TessellationIndex",
    "build",
    "locate",
]

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_FACTOR = 1e-9

# Arena rows hold 19 float64 values; depth 8 is ~26 MB and depth 10 ~425 MB
DEFAULT_ARENA_DEPTH = 8
MAX_ARENA_DEPTH = 10

PointLike = Union[LatLon, UnitVector3, Sequence[float], np.ndarray]


def _to_unit_array(point: PointLike) -> np.ndarray:
    """Convert a query point to a unit vector array, rejecting empty input."""
    if isinstance(point, LatLon):
        if point.is_empty:
            raise InvalidGeometryError("Cannot locate an empty coordinate")
        point = point.to_unit_vector()
    if isinstance(point, UnitVector3):
        if point.is_empty:
            raise InvalidGeometryError("Cannot locate an empty vector")
        return point.to_array()
    arr = np.asarray(point, dtype=np.float64)
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        raise InvalidGeometryError(f"Expected a finite 3-vector, got {point!r}")
    return normalize(arr)


def _bounding_caps(vertices: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Centers (N, 3) and angular radii (N,) of caps circumscribing triangles."""
    centers = normalize(vertices.sum(axis=1))
    cosines = np.clip(np.sum(vertices * centers[:, None, :], axis=-1), -1.0, 1.0)
    return centers, np.arccos(cosines).max(axis=1)


def _edge_tolerances(vertices: np.ndarray, tolerance_factor: float) -> np.ndarray:
    """Per-triangle boundary tolerance scaled by the chord of the first edge."""
    return tolerance_factor * np.linalg.norm(vertices[:, 0] - vertices[:, 1], axis=-1)


class TessellationIndex:
    """
    A tessellation of the unit sphere into 8 * 4^(d-1) triangles at depth d.

    Attributes:
        max_depth: Number of levels below the root
        arena_depth: Deepest level whose geometry is stored in the arena
        tolerance_factor: Boundary tolerance as a fraction of edge length

    Use :meth:`build` to construct an index.
    """

    def __init__(
        self,
        max_depth: int,
        vertices: np.ndarray,
        normals: np.ndarray,
        tolerances: np.ndarray,
        tolerance_factor: float = DEFAULT_TOLERANCE_FACTOR,
        arena_depth: Optional[int] = None,
    ):
        self.max_depth = max_depth
        self.arena_depth = max_depth if arena_depth is None else arena_depth
        self.tolerance_factor = tolerance_factor
        for arr in (vertices, normals, tolerances):
            arr.setflags(write=False)
        self._vertices = vertices
        self._normals = normals
        self._tolerances = tolerances

    @classmethod
    def build(
        cls,
        depth: int,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        tolerance_factor: float = DEFAULT_TOLERANCE_FACTOR,
        stop_token: Optional[StopToken] = None,
        arena_depth: Optional[int] = None,
    ) -> "TessellationIndex":
        """
        Build the node arena and return an index reaching ``depth``.

        Only levels down to ``arena_depth`` are stored. Deeper nodes are
        derived during queries, so ``depth`` may go as far as a 64-bit
        address allows while memory stays bounded by the arena.

        Args:
            depth: Levels below the root, at most ``MAX_DEPTH_64``; 0 yields
                only the root
            parallel: Build the eight octant subtrees on a thread pool
            max_workers: Thread pool size (default: executor default)
            tolerance_factor: Boundary tolerance as a fraction of edge chord
            stop_token: Checked between levels; raises OperationStopped
            arena_depth: Stored levels, between 1 and ``MAX_ARENA_DEPTH``
                (default: ``min(depth, DEFAULT_ARENA_DEPTH)``)

        Returns:
            The built index

        Raises:
            InvalidGeometryError: Depth or arena depth out of range
        """
        if isinstance(depth, bool) or not isinstance(depth, (int, np.integer)) or not 0 <= depth <= MAX_DEPTH_64:
            raise InvalidGeometryError(f"Depth must be an integer in [0, {MAX_DEPTH_64}], got {depth!r}")
        depth = int(depth)
        if arena_depth is None:
            arena_depth = min(depth, DEFAULT_ARENA_DEPTH)
        if (
            isinstance(arena_depth, bool)
            or not isinstance(arena_depth, (int, np.integer))
            or not min(depth, 1) <= arena_depth <= min(depth, MAX_ARENA_DEPTH)
        ):
            raise InvalidGeometryError(
                f"Arena depth must be an integer in [{min(depth, 1)}, {min(depth, MAX_ARENA_DEPTH)}], "
                f"got {arena_depth!r}"
            )
        arena_depth = int(arena_depth)
        stop_token = stop_token or StopToken.never()

        total = level_offset(arena_depth + 1)
        logger.info(
            "Building tessellation: depth=%d, arena_depth=%d, nodes=%d, parallel=%s",
            depth,
            arena_depth,
            total,
            parallel,
        )

        vertices = np.full((total, 3, 3), np.nan)
        normals = np.full((total, 3, 3), np.nan)
        tolerances = np.zeros(total)

        def fill(start: int, verts: np.ndarray) -> None:
            stop = start + len(verts)
            vertices[start:stop] = verts
            normals[start:stop] = calc_plane_normals(verts)
            tolerances[start:stop] = _edge_tolerances(verts, tolerance_factor)

        def build_octant(octant: int, verts: np.ndarray) -> None:
            level = verts[None, :, :]
            for d in range(2, arena_depth + 1):
                stop_token.raise_if_stopped()
                level = quadrisect(level)
                fill(level_offset(d) + octant * 4 ** (d - 1), level)
            logger.debug("Octant %d built to depth %d", octant, arena_depth)

        if depth >= 1:
            stop_token.raise_if_stopped()
            octants = octant_vertices()
            fill(level_offset(1), octants)

            if parallel:
                with ThreadPoolExecutor(max_workers=max_workers) as pool:
                    futures = [pool.submit(build_octant, i, octants[i]) for i in range(8)]
                    try:
                        for f in futures:
                            f.result()
                    except BaseException:
                        for f in futures:
                            f.cancel()
                        raise
            else:
                for i in range(8):
                    build_octant(i, octants[i])

        logger.info("Tessellation built: %d arena nodes", total)
        return cls(depth, vertices, normals, tolerances, tolerance_factor, arena_depth)

    @property
    def num_nodes(self) -> int:
        """Number of nodes in the tree, stored or derived."""
        return level_offset(self.max_depth + 1)

    @property
    def num_arena_nodes(self) -> int:
        return len(self._vertices)

    @property
    def root(self) -> SubtriangleNode:
        return self.node_by_id(0)

    def level_size(self, depth: int) -> int:
        """Number of nodes at ``depth``."""
        self._check_depth(depth)
        return level_size(depth)

    def _check_depth(self, depth: int) -> int:
        if depth is None:
            return self.max_depth
        if not 0 <= depth <= self.max_depth:
            raise InvalidGeometryError(f"Depth must be in [0, {self.max_depth}], got {depth}")
        return int(depth)

    # ------------------------------------------------------------------
    # Node access
    # ------------------------------------------------------------------

    def _node_geometry(self, address: Address) -> Tuple[np.ndarray, np.ndarray]:
        """Vertices and plane normals of a non-root node, shape (3, 3) each."""
        if len(address) <= self.arena_depth:
            nid = node_id(address)
            return self._vertices[nid], self._normals[nid]
        verts = self._vertices[node_id(address[:self.arena_depth])]
        for q in address[self.arena_depth:]:
            verts = quadrisect(verts[None])[q]
        return verts, calc_plane_normals(verts[None])[0]

    def node_by_id(self, nid: int) -> SubtriangleNode:
        """Materialize the node with id ``nid``."""
        if not 0 <= nid < self.num_nodes:
            raise InvalidGeometryError(f"Node id {nid} is outside the index (0..{self.num_nodes - 1})")
        address = address_of(nid)
        if not address:
            return SubtriangleNode(node_id=0, address=(), child_ids=child_ids(0, self.max_depth))
        vertices, normals = self._node_geometry(address)
        verts = tuple(UnitVector3.from_array(v) for v in vertices)
        planes = tuple(Plane(0.0, *n) for n in normals)
        return SubtriangleNode(
            node_id=nid,
            address=address,
            vertices=verts,
            planes=planes,
            parent_id=parent_id(nid),
            child_ids=child_ids(nid, self.max_depth),
        )

    def node(self, address: Sequence[int]) -> SubtriangleNode:
        """Materialize the node with the given address."""
        addr = validate_address(address)
        self._check_depth(len(addr))
        return self.node_by_id(node_id(addr))

    def parent(self, node: SubtriangleNode) -> Optional[SubtriangleNode]:
        if node.parent_id is None:
            return None
        return self.node_by_id(node.parent_id)

    def children(self, node: SubtriangleNode) -> Tuple[SubtriangleNode, ...]:
        return tuple(self.node_by_id(c) for c in node.child_ids)

    def iter_level(self, depth: int) -> Iterator[SubtriangleNode]:
        """Yield every node at ``depth`` in id order."""
        depth = self._check_depth(depth)
        start = level_offset(depth)
        for nid in range(start, start + level_size(depth)):
            yield self.node_by_id(nid)

    # ------------------------------------------------------------------
    # Point location
    # ------------------------------------------------------------------

    def locate(self, point: PointLike, depth: Optional[int] = None) -> Address:
        """
        Address of the triangle containing ``point`` at ``depth``.

        At each level the children are tested in selector order and the
        first whose three planes all give signed distance >= -tolerance is
        taken, so points on a shared edge go to the lower-indexed child.
        A child's tolerance is never smaller than the one that admitted its
        parent; a point accepted just outside a parent edge therefore stays
        inside one of the children along that edge. If rounding still
        leaves every child rejecting the point, the child with the largest
        minimum signed distance is taken.

        Below the arena the children are quadrisected from the current
        node, which keeps the descent O(depth) at any depth.

        Args:
            point: LatLon, UnitVector3 or 3-vector
            depth: Target depth (default: the index depth)

        Returns:
            Address tuple of length ``depth``

        Raises:
            InvalidGeometryError: Empty point or depth out of range
            TessellationInvariantError: Child geometry is not finite
        """
        depth = self._check_depth(depth)
        u = _to_unit_array(point)

        address: List[int] = []
        idx = 0
        slack = 0.0
        verts: Optional[np.ndarray] = None
        for level in range(depth):
            if level < self.arena_depth:
                if level == 0:
                    first, count = level_offset(1), 8
                else:
                    first, count = level_offset(level + 1) + 4 * idx, 4
                normals = self._normals[first:first + count]
                tolerances = self._tolerances[first:first + count]
            else:
                if verts is None:
                    verts = self._vertices[level_offset(level) + idx]
                kids = quadrisect(verts[None])
                normals = calc_plane_normals(kids)
                tolerances = _edge_tolerances(kids, self.tolerance_factor)
            tolerances = np.maximum(tolerances, slack)
            margins = (normals @ u + tolerances[:, None]).min(axis=1)
            hits = np.flatnonzero(margins >= 0.0)
            if len(hits):
                c = int(hits[0])
            elif np.any(np.isfinite(margins)):
                # Rounding in the plane normals of tiny triangles
                c = int(np.nanargmax(margins))
                logger.debug("Level %d: no child within tolerance, nearest is %d", level + 1, c)
            else:
                raise TessellationInvariantError(
                    f"No child of node {tuple(address)} contains {point!r} at depth {level + 1}"
                )
            address.append(c)
            slack = float(tolerances[c])
            idx = c if level == 0 else 4 * idx + c
            if level >= self.arena_depth:
                verts = kids[c]
        return tuple(address)

    def locate_node(self, point: PointLike, depth: Optional[int] = None) -> SubtriangleNode:
        """Like :meth:`locate`, returning the node."""
        return self.node_by_id(node_id(self.locate(point, depth)))

    def locate_packed(self, point: PointLike, depth: Optional[int] = None, bits: int = 64) -> int:
        """Like :meth:`locate`, returning the packed address."""
        return pack(self.locate(point, depth), bits=bits)

    # ------------------------------------------------------------------
    # Range queries
    # ------------------------------------------------------------------

    def _cover(self, depth: int, keep, stop_token: Optional[StopToken]) -> List[Address]:
        """
        Breadth-first descent keeping nodes accepted by ``keep``.

        ``keep(ids, vertices, final)`` returns a boolean mask over the
        candidate ids of one level.
        """
        depth = self._check_depth(depth)
        stop_token = stop_token or StopToken.never()
        if depth == 0:
            return [()]

        frontier = np.arange(level_offset(1), level_offset(1) + 8, dtype=np.int64)
        verts = self._vertices[frontier]
        for level in range(1, depth + 1):
            stop_token.raise_if_stopped()
            if level > 1:
                base = level_offset(level) + 4 * (frontier - level_offset(level - 1))
                frontier = (base[:, None] + np.arange(4)).ravel()
                verts = self._vertices[frontier] if level <= self.arena_depth else quadrisect(verts)
            mask = keep(frontier, verts, level == depth)
            frontier = frontier[mask]
            verts = verts[mask]
            logger.debug("Cover level %d: %d candidate nodes", level, len(frontier))
            if len(frontier) == 0:
                return []
        return sorted(address_of(int(n)) for n in frontier)

    def cover_cap(self, cap, depth: Optional[int] = None, stop_token: Optional[StopToken] = None) -> List[Address]:
        """
        Addresses of nodes at ``depth`` that may intersect a spherical cap.

        A node is kept when its circumscribing cap intersects ``cap``, so the
        result over-approximates the cap but never misses a node that
        overlaps it.

        Args:
            cap: SphericalCap with a center set
            depth: Target depth (default: the index depth)
            stop_token: Checked once per level

        Returns:
            Sorted list of addresses
        """
        depth = self._check_depth(depth)
        if cap.center is None or cap.center.is_empty:
            return []
        center = cap.center.to_unit_vector().to_array()
        radius = cap.dome_radius if math.isfinite(cap.dome_radius) else 0.0
        radius = math.radians(radius)

        def keep(ids, verts, final):
            centers, radii = _bounding_caps(verts)
            sep = np.arccos(np.clip(centers @ center, -1.0, 1.0))
            return sep <= radius + radii + 1e-12

        return self._cover(depth, keep, stop_token)

    def cover_polygon(self, polygon, depth: Optional[int] = None, stop_token: Optional[StopToken] = None) -> List[Address]:
        """
        Addresses of nodes at ``depth`` that may intersect a spherical polygon.

        Coarse levels are pruned against the polygon's bounding cap; nodes
        at the target depth are then tested against the polygon itself.

        Args:
            polygon: SphericalPolygon
            depth: Target depth (default: the index depth)
            stop_token: Checked once per level

        Returns:
            Sorted list of addresses
        """
        depth = self._check_depth(depth)
        if polygon.num_vertices() == 0:
            return []
        cap = polygon.cap
        center = cap.center.to_unit_vector().to_array()
        radius = math.radians(cap.dome_radius)

        def keep(ids, verts, final):
            centers, radii = _bounding_caps(verts)
            sep = np.arccos(np.clip(centers @ center, -1.0, 1.0))
            mask = sep <= radius + radii + 1e-12
            if final:
                for i in np.flatnonzero(mask):
                    mask[i] = polygon.overlaps_triangle(verts[i])
            return mask

        return self._cover(depth, keep, stop_token)

    def __repr__(self) -> str:
        return f"TessellationIndex(max_depth={self.max_depth}, arena_depth={self.arena_depth})"


def build(depth: int, **kwargs) -> TessellationIndex:
    """Build a :class:`TessellationIndex`; see :meth:`TessellationIndex.build`."""
    return TessellationIndex.build(depth, **kwargs)


def locate(index: TessellationIndex, point: PointLike, depth: Optional[int] = None) -> Address:
    """Locate ``point`` in ``index``; see :meth:`TessellationIndex.locate`."""
    return index.locate(point, depth)
