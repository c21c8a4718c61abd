import math
import random

import numpy as np
import pytest

from sphereindex.core.geometry.spherical import LatLon
from sphereindex.core.geometry.vector import UnitVector3
from sphereindex.core.regions.cap import SphericalCap
from sphereindex.core.regions.polygon import SphericalPolygon
from sphereindex.core.tessellation.address import MAX_DEPTH_64, pack32, pack64, unpack64
from sphereindex.core.tessellation.index import MAX_ARENA_DEPTH, TessellationIndex, build, locate
from sphereindex.exceptions import InvalidGeometryError
from sphereindex.utils.cancellation import OperationStopped, StopTrigger


@pytest.fixture(scope="module")
def index3():
    return TessellationIndex.build(3)


def random_points(n, seed=7):
    rng = random.Random(seed)
    pts = []
    for _ in range(n):
        v = np.array([rng.gauss(0.0, 1.0) for _ in range(3)])
        pts.append(UnitVector3.from_array(v))
    return pts


def test_depth_one_octant():
    index = build(1)
    assert locate(index, LatLon(45.0, 45.0)) == (1,)


def test_octant_rule():
    index = build(1)
    cases = [
        ((45.0, 135.0), 0),
        ((45.0, 45.0), 1),
        ((45.0, -45.0), 2),
        ((45.0, -135.0), 3),
        ((-45.0, 135.0), 4),
        ((-45.0, 45.0), 5),
        ((-45.0, -45.0), 6),
        ((-45.0, -135.0), 7),
    ]
    for (lat, lon), octant in cases:
        assert index.locate(LatLon(lat, lon)) == (octant,)


def test_boundary_ties_go_to_lower_octant():
    index = build(1)
    assert index.locate(LatLon(30.0, 0.0)) == (1,)
    assert index.locate(LatLon(30.0, 90.0)) == (0,)
    assert index.locate(LatLon(30.0, -90.0)) == (2,)
    assert index.locate(LatLon(30.0, 180.0)) == (0,)
    assert index.locate(LatLon(0.0, 45.0)) == (1,)
    assert index.locate(LatLon(0.0, -135.0)) == (3,)
    assert index.locate(LatLon(90.0, 0.0)) == (0,)


def test_child_selectors():
    index = build(2)
    assert index.locate(LatLon(89.0, 45.0)) == (1, 1)
    assert index.locate(LatLon(35.26, 45.0)) == (1, 0)
    assert index.locate(LatLon(5.0, 5.0)) == (1, 2)
    assert index.locate(LatLon(5.0, 85.0)) == (1, 3)


def test_locate_accepts_vectors(index3):
    p = LatLon(12.5, -33.0)
    expected = index3.locate(p)
    assert index3.locate(p.to_unit_vector()) == expected
    assert index3.locate(p.to_unit_vector().to_array()) == expected
    assert index3.locate(p, depth=2) == expected[:2]
    assert index3.locate(p, depth=0) == ()


def test_num_nodes():
    assert build(0).num_nodes == 1
    assert build(1).num_nodes == 9
    assert build(2).num_nodes == 41


def test_depth_zero_is_root_only():
    index = build(0)
    assert index.root.is_root
    assert index.root.is_leaf
    assert index.locate(LatLon(10.0, 10.0)) == ()


def test_hierarchical_containment(index3):
    for leaf in index3.iter_level(3):
        centroid = leaf.centroid()
        node = index3.parent(leaf)
        while node is not None and not node.is_root:
            assert node.contains(centroid)
            node = index3.parent(node)


def test_total_point_location(index3):
    leaves = list(index3.iter_level(3))
    for p in random_points(200):
        address = index3.locate(p)
        assert len(address) == 3
        node = index3.node(address)
        assert node.contains(p, tolerance=1e-12)
        assert sum(1 for leaf in leaves if leaf.contains(p)) == 1


def test_node_navigation(index3):
    node = index3.node((1, 2))
    assert node.depth == 2
    assert index3.parent(node).address == (1,)
    kids = index3.children(node)
    assert [k.address for k in kids] == [(1, 2, q) for q in range(4)]
    assert index3.children(index3.node((1, 2, 0))) == ()
    assert len(index3.root.child_ids) == 8
    assert [n.address for n in index3.iter_level(1)] == [(i,) for i in range(8)]
    assert index3.level_size(3) == 128


def test_node_vertices_are_stored_in_order(index3):
    node = index3.node((1,))
    lat_lon = node.vertices_lat_lon()
    assert abs(lat_lon[0].lat - 90.0) < 1e-9
    assert abs(lat_lon[1].lon) < 1e-9
    assert abs(lat_lon[2].lon - 90.0) < 1e-9


def test_locate_packed(index3):
    assert index3.locate_packed(LatLon(45.0, 45.0), depth=1, bits=32) == pack32((1,))
    assert index3.locate_node(LatLon(45.0, 45.0), depth=1).address == (1,)


def test_parallel_build_matches_serial():
    serial = TessellationIndex.build(4)
    threaded = TessellationIndex.build(4, parallel=True, max_workers=4)
    assert np.array_equal(serial._vertices, threaded._vertices, equal_nan=True)
    assert np.array_equal(serial._normals, threaded._normals, equal_nan=True)
    for p in random_points(20, seed=3):
        assert serial.locate(p) == threaded.locate(p)


def test_stopped_build_raises():
    trigger = StopTrigger()
    trigger.stop()
    with pytest.raises(OperationStopped):
        TessellationIndex.build(3, stop_token=trigger.token)
    with pytest.raises(OperationStopped):
        TessellationIndex.build(3, parallel=True, stop_token=trigger.token)


def test_invalid_input(index3):
    with pytest.raises(InvalidGeometryError):
        index3.locate(LatLon.empty())
    with pytest.raises(InvalidGeometryError):
        index3.locate(UnitVector3.empty())
    with pytest.raises(InvalidGeometryError):
        index3.locate(LatLon(0.0, 0.0), depth=4)
    with pytest.raises(InvalidGeometryError):
        TessellationIndex.build(-1)
    with pytest.raises(InvalidGeometryError):
        index3.node_by_id(index3.num_nodes)


def test_cover_whole_sphere(index3):
    cap = SphericalCap(LatLon(0.0, 0.0), 180.0)
    assert len(index3.cover_cap(cap, 3)) == 128
    assert index3.cover_cap(cap, 0) == [()]


def test_cover_small_cap(index3):
    center = LatLon(45.0, 45.0)
    cap = SphericalCap(center, 1.0)
    cover = index3.cover_cap(cap)
    assert cover == sorted(cover)
    assert all(a[0] == 1 for a in cover)
    for dlat, dlon in [(0.0, 0.0), (0.5, 0.5), (-0.5, 0.5), (0.5, -0.5), (-0.5, -0.5)]:
        assert index3.locate(LatLon(45.0 + dlat, 45.0 + dlon)) in cover


def test_cover_empty_cap(index3):
    assert index3.cover_cap(SphericalCap(), 2) == []


def test_cover_polygon(index3):
    poly = SphericalPolygon([LatLon(20.0, 20.0), LatLon(30.0, 20.0), LatLon(20.0, 30.0)])
    cover = index3.cover_polygon(poly)
    assert 0 < len(cover) < 128
    assert all(a[0] == 1 for a in cover)
    for lat, lon in [(20.0, 20.0), (30.0, 20.0), (20.0, 30.0), (23.0, 23.0)]:
        assert index3.locate(LatLon(lat, lon)) in cover
    assert index3.cover_polygon(SphericalPolygon([LatLon(0.0, 0.0)])) == []


def test_stopped_cover_raises(index3):
    trigger = StopTrigger()
    trigger.stop()
    with pytest.raises(OperationStopped):
        index3.cover_cap(SphericalCap(LatLon(0.0, 0.0), 5.0), stop_token=trigger.token)


def test_point_just_outside_octant_edge_is_located():
    # 1e-9 rad west of lon 0: inside octant 1 only by its edge tolerance
    c30 = math.cos(math.radians(30.0))
    p = UnitVector3(c30 * math.sin(-1e-9), 0.5, -c30 * math.cos(-1e-9))
    for depth in (1, 2, 5):
        address = build(depth).locate(p)
        assert len(address) == depth
        assert address[0] == 1


def test_point_just_outside_equator_is_located():
    p = UnitVector3(math.sin(math.radians(40.0)), -1e-9, -math.cos(math.radians(40.0)))
    address = build(4).locate(p)
    assert len(address) == 4
    assert address[0] == 1


def test_locate_below_arena_matches_full_arena():
    full = TessellationIndex.build(5, arena_depth=5)
    shallow = TessellationIndex.build(5, arena_depth=2)
    assert shallow.arena_depth == 2
    assert shallow.num_nodes == full.num_nodes
    assert shallow.num_arena_nodes < full.num_arena_nodes
    for p in random_points(50, seed=11):
        assert shallow.locate(p) == full.locate(p)
    a = full.node((1, 2, 3, 0, 1))
    b = shallow.node((1, 2, 3, 0, 1))
    for u, v in zip(a.vertices, b.vertices):
        assert np.allclose(u.to_array(), v.to_array())


def test_deep_locate_reaches_full_address_depth():
    index = TessellationIndex.build(MAX_DEPTH_64, arena_depth=3)
    p = LatLon(48.85, 2.35)
    address = index.locate(p)
    assert len(address) == MAX_DEPTH_64
    assert address[:3] == build(3).locate(p)
    assert unpack64(pack64(address)) == address
    node = index.node(address)
    assert node.depth == MAX_DEPTH_64
    assert node.is_leaf
    assert index.parent(node).address == address[:-1]


def test_cover_below_arena_matches_full_arena():
    cap = SphericalCap(LatLon(10.0, -20.0), 3.0)
    full = TessellationIndex.build(4, arena_depth=4)
    shallow = TessellationIndex.build(4, arena_depth=1)
    assert shallow.cover_cap(cap) == full.cover_cap(cap)
    poly = SphericalPolygon([LatLon(20.0, 20.0), LatLon(30.0, 20.0), LatLon(20.0, 30.0)])
    assert shallow.cover_polygon(poly) == full.cover_polygon(poly)


def test_depth_limits():
    with pytest.raises(InvalidGeometryError):
        TessellationIndex.build(MAX_DEPTH_64 + 1)
    with pytest.raises(InvalidGeometryError):
        TessellationIndex.build(MAX_ARENA_DEPTH + 2, arena_depth=MAX_ARENA_DEPTH + 1)
    with pytest.raises(InvalidGeometryError):
        TessellationIndex.build(3, arena_depth=4)
    with pytest.raises(InvalidGeometryError):
        TessellationIndex.build(3, arena_depth=0)
    assert TessellationIndex.build(12).arena_depth == 8
    assert TessellationIndex.build(2).arena_depth == 2
