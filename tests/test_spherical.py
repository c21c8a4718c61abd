import math
import random

import numpy as np

from sphereindex.core.geometry.spherical import (
    LatLon,
    angular_separation,
    arc_distance,
    dist_degrees,
    dist_radians,
    lat_lon_to_unit_vectors,
    normalize_degrees,
    normalize_latitude,
    normalize_radians,
    unit_vectors_to_lat_lon,
)


def test_quarter_turn_along_equator():
    d = dist_radians(LatLon(0.0, 0.0), LatLon(0.0, 90.0))
    assert abs(d - math.pi / 2) < 1e-6


def test_haversine_symmetry_and_identity():
    rng = random.Random(7)
    for _ in range(200):
        a = LatLon(rng.uniform(-90, 90), rng.uniform(-180, 180))
        b = LatLon(rng.uniform(-90, 90), rng.uniform(-180, 180))
        assert dist_radians(a, b) == dist_radians(b, a)
        assert dist_radians(a, a) == 0.0


def test_antipodal_distance():
    d = dist_degrees(LatLon(10.0, 20.0), LatLon(-10.0, -160.0))
    assert abs(d - 180.0) < 1e-9


def test_empty_coordinates_propagate_nan():
    assert math.isnan(dist_radians(LatLon.empty(), LatLon(0.0, 0.0)))
    assert math.isnan(dist_radians(None, LatLon(0.0, 0.0)))
    assert LatLon.from_unit_vector((math.nan, 0.0, 0.0)).is_empty


def test_unit_vector_convention():
    u = LatLon(0.0, 0.0).to_unit_vector()
    assert u.to_tuple() == (0.0, 0.0, -1.0)
    u = LatLon(90.0, 0.0).to_unit_vector()
    assert abs(u.y - 1.0) < 1e-12
    u = LatLon(0.0, 90.0).to_unit_vector()
    assert abs(u.x - 1.0) < 1e-12


def test_unit_vector_round_trip():
    rng = random.Random(3)
    for _ in range(100):
        ll = LatLon(rng.uniform(-89, 89), rng.uniform(-179, 179))
        back = LatLon.from_unit_vector(ll.to_unit_vector())
        assert abs(back.lat - ll.lat) < 1e-9
        assert abs(back.lon - ll.lon) < 1e-9


def test_vectorized_conversions_match_scalar():
    lat = np.array([10.0, -45.0, 80.0])
    lon = np.array([-170.0, 0.0, 35.0])
    vecs = lat_lon_to_unit_vectors(lat, lon)
    for i in range(3):
        assert np.allclose(vecs[i], LatLon(lat[i], lon[i]).to_unit_vector().to_array())
    lat2, lon2 = unit_vectors_to_lat_lon(vecs)
    assert np.allclose(lat2, lat)
    assert np.allclose(lon2, lon)


def test_normalize_degrees():
    assert normalize_degrees(190.0) == -170.0
    assert normalize_degrees(-190.0) == 170.0
    assert normalize_degrees(180.0) == 180.0
    assert normalize_degrees(-180.0) == 180.0
    assert normalize_degrees(540.0) == 180.0
    assert normalize_degrees(-370.0) == -10.0
    assert normalize_degrees(45.0) == 45.0
    assert math.isnan(normalize_degrees(math.nan))


def test_normalize_latitude_reflects():
    assert normalize_latitude(100.0) == 80.0
    assert normalize_latitude(-100.0) == -80.0
    assert normalize_latitude(90.0) == 90.0
    assert normalize_latitude(-90.0) == -90.0


def test_normalize_radians():
    assert abs(normalize_radians(math.pi + 0.1) - (-math.pi + 0.1)) < 1e-12
    assert normalize_radians(-math.pi) == math.pi


def test_normalized_coordinate():
    ll = LatLon(10.0, 200.0).normalized()
    assert ll.lat == 10.0
    assert abs(ll.lon + 160.0) < 1e-12


def test_rotation_matrix_round_trip():
    ll = LatLon(33.0, -117.0)
    m = ll.to_rotation_matrix()
    u = m @ LatLon(0.0, 0.0).to_unit_vector()
    back = LatLon.from_unit_vector(u)
    assert abs(back.lat - 33.0) < 1e-9
    assert abs(back.lon + 117.0) < 1e-9
    r = ll.to_rotation_matrix_inverse() @ ll.to_unit_vector()
    assert abs(r.z + 1.0) < 1e-12


def test_distance_km():
    d = LatLon(0.0, 0.0).distance_km(LatLon(0.0, 1.0))
    assert abs(d - 111.19492664) < 1e-6


def test_angular_separation():
    assert abs(angular_separation([1.0, 0.0, 0.0], [0.0, 0.0, -1.0]) - math.pi / 2) < 1e-12


def test_arc_distance_foot_inside_and_outside_arc():
    a = lat_lon_to_unit_vectors([0.0], [0.0])
    b = lat_lon_to_unit_vectors([0.0], [10.0])
    p = LatLon(3.0, 5.0).to_unit_vector().to_array()
    assert abs(arc_distance(p, a, b)[0] - math.radians(3.0)) < 1e-12

    q = LatLon(0.0, 20.0).to_unit_vector().to_array()
    assert abs(arc_distance(q, a, b)[0] - math.radians(10.0)) < 1e-12
