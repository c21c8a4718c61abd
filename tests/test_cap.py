import math
import random

from sphereindex.core.geometry.spherical import LatLon, dist_degrees
from sphereindex.core.regions.cap import SphericalCap


def test_expand_keeps_first_center():
    cap = SphericalCap.from_points([LatLon(0.0, 0.0), LatLon(0.0, 10.0)])
    assert cap.center == LatLon(0.0, 0.0)
    assert abs(cap.dome_radius - 10.0) < 1e-9


def test_radius_is_monotonic_and_covers_points():
    rng = random.Random(5)
    cap = SphericalCap()
    points = []
    last = 0.0
    for _ in range(50):
        p = LatLon(rng.uniform(-30.0, 30.0), rng.uniform(-30.0, 30.0))
        cap.expand_to_include(p)
        points.append(p)
        assert cap.dome_radius >= last
        last = cap.dome_radius
    for p in points:
        assert cap.sign_dist_radians(p) <= 1e-12


def test_missing_points_are_ignored():
    cap = SphericalCap()
    cap.expand_to_include(None)
    cap.expand_to_include(LatLon.empty())
    assert cap.center is None
    assert cap.is_empty


def test_preset_radius_is_kept():
    cap = SphericalCap(dome_radius=5.0)
    cap.expand_to_include(LatLon(10.0, 10.0))
    assert cap.center == LatLon(10.0, 10.0)
    assert cap.dome_radius == 5.0
    cap.expand_to_include(LatLon(10.0, 11.0))
    assert cap.dome_radius == 5.0


def test_sign_dist_radians():
    cap = SphericalCap(LatLon(0.0, 0.0), 10.0)
    assert abs(cap.sign_dist_radians(LatLon(0.0, 0.0)) + math.radians(10.0)) < 1e-12
    assert abs(cap.sign_dist_radians(LatLon(0.0, 25.0)) - math.radians(15.0)) < 1e-12
    assert cap.contains(LatLon(5.0, 5.0))
    assert not cap.contains(LatLon(20.0, 0.0))


def test_unset_cap_distances_are_nan():
    assert math.isnan(SphericalCap().sign_dist_radians(LatLon(0.0, 0.0)))
    assert math.isnan(SphericalCap(LatLon(0.0, 0.0), 1.0).sign_dist_radians(None))
    assert not SphericalCap().contains(LatLon(0.0, 0.0))
    assert all(math.isnan(v) for v in SphericalCap().to_unit_vector())


def test_dome_radius_km():
    cap = SphericalCap(LatLon(0.0, 0.0), 1.0)
    assert abs(cap.dome_radius_km - 111.19492664) < 1e-6


def test_bounding_cap():
    pts = [LatLon(0.0, -10.0), LatLon(0.0, 10.0), None]
    cap = SphericalCap.bounding(pts)
    assert abs(cap.center.lat) < 1e-9
    assert abs(cap.center.lon) < 1e-9
    assert abs(cap.dome_radius - 10.0) < 1e-9
    assert SphericalCap.bounding([]).is_empty


def test_bounding_is_tighter_than_first_point():
    pts = [LatLon(0.0, 0.0), LatLon(0.0, 20.0), LatLon(10.0, 10.0)]
    assert SphericalCap.bounding(pts).dome_radius < SphericalCap.from_points(pts).dome_radius


def test_intersects_cap():
    a = SphericalCap(LatLon(0.0, 0.0), 5.0)
    assert a.intersects_cap(SphericalCap(LatLon(0.0, 9.0), 5.0))
    assert not a.intersects_cap(SphericalCap(LatLon(0.0, 11.0), 5.0))
    assert not a.intersects_cap(SphericalCap())
    assert abs(dist_degrees(a.center, LatLon(0.0, 9.0)) - 9.0) < 1e-9
