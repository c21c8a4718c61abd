import math

import numpy as np
import pytest

from sphereindex.core.geometry.vector import Matrix3, Plane, UnitVector3, normalize


def test_unit_vector_normalizes():
    v = UnitVector3(3.0, 0.0, 4.0)
    assert abs(v.x - 0.6) < 1e-12
    assert v.y == 0.0
    assert abs(v.z - 0.8) < 1e-12


def test_zero_vector_maps_to_reference_direction():
    assert UnitVector3(0.0, 0.0, 0.0).to_tuple() == (0.0, 0.0, -1.0)


def test_non_finite_vector_is_empty():
    v = UnitVector3(math.nan, 1.0, 0.0)
    assert v.is_empty
    assert math.isnan(v.x)
    assert UnitVector3.empty().is_empty
    assert not UnitVector3(1.0, 0.0, 0.0).is_empty


def test_unit_vector_is_immutable():
    v = UnitVector3(1.0, 0.0, 0.0)
    with pytest.raises(AttributeError):
        v.x = 2.0


def test_normalize_array_rows():
    out = normalize(np.array([[2.0, 0.0, 0.0], [0.0, 0.0, 0.0], [np.nan, 0.0, 0.0]]))
    assert np.allclose(out[0], [1.0, 0.0, 0.0])
    assert np.allclose(out[1], [0.0, 0.0, -1.0])
    assert np.all(np.isnan(out[2, :1]))


def test_angle_to():
    a = UnitVector3(1.0, 0.0, 0.0)
    b = UnitVector3(0.0, 1.0, 0.0)
    assert abs(a.angle_to(b) - math.pi / 2) < 1e-12
    assert a.angle_to(a) == 0.0


def test_midpoint_is_on_bisector():
    m = UnitVector3(1.0, 0.0, 0.0).midpoint(UnitVector3(0.0, 1.0, 0.0))
    assert abs(m.x - math.sqrt(0.5)) < 1e-12
    assert abs(m.y - math.sqrt(0.5)) < 1e-12


def test_rotation_to_origin_carries_vector_to_reference():
    u = UnitVector3(0.3, -0.5, 0.8)
    m = Matrix3.rotation_to_origin(u)
    r = m @ u
    assert abs(r.x) < 1e-12
    assert abs(r.y) < 1e-12
    assert abs(r.z + 1.0) < 1e-12


def test_rotation_transpose_is_inverse():
    m = Matrix3.from_lat_lon_radians(0.4, -1.2)
    assert (m @ m.transpose()).allclose(Matrix3.identity())


def test_matrix_requires_3x3():
    with pytest.raises(ValueError):
        Matrix3([[1.0, 0.0], [0.0, 1.0]])


def test_plane_through_origin_orientation():
    p = Plane.through_origin((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
    assert p.a == 0.0
    assert p.signed_distance((0.0, 0.0, 1.0)) > 0.0
    assert p.signed_distance((0.0, 0.0, -1.0)) < 0.0


def test_plane_from_points():
    p = Plane.from_points((0.0, 0.0, 1.0), (1.0, 0.0, 1.0), (0.0, 1.0, 1.0), reference=(0.0, 0.0, 0.0))
    assert abs(p.norm() - 1.0) < 1e-12
    assert abs(p.signed_distance((0.0, 0.0, 0.0)) - 1.0) < 1e-12
    assert abs(p.signed_distance((5.0, -3.0, 1.0))) < 1e-12


def test_plane_from_collinear_points_is_degenerate():
    p = Plane.from_points((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
    assert (p.bx, p.by, p.bz) == (1.0, 0.0, 0.0)


def test_plane_normalized_and_conjugate():
    p = Plane(2.0, 0.0, 0.0, 2.0).normalized()
    assert (p.a, p.bz) == (1.0, 1.0)
    assert Plane(0.0, 0.0, 0.0, 0.0).normalized().bx == 1.0
    c = p.conjugate()
    assert c.signed_distance((0.0, 0.0, 1.0)) == -p.signed_distance((0.0, 0.0, 1.0))


def test_plane_signed_distance_propagates_nan():
    p = Plane(0.0, 1.0, 0.0, 0.0)
    assert math.isnan(p.signed_distance(UnitVector3.empty()))
