"""
Three-dimensional vector algebra for the unit sphere.

This module provides unit vectors, 3x3 rotation matrices and half-space
planes, together with array-level helpers used when many vectors are
processed at once (for example while building a tessellation level).

Coordinate system (left-handed):
    - x-axis points right
    - y-axis points up (the north pole is (0, 1, 0))
    - z-axis points forward; the reference direction (lat=0, lon=0) is (0, 0, -1)
"""

import math
from typing import Iterable, Optional, Tuple, Union

import numpy as np

__all__ = [
    "REFERENCE_DIRECTION",
    "UnitVector3",
    "Matrix3",
    "Plane",
    "dot",
    "cross",
    "normalize",
]

REFERENCE_DIRECTION: Tuple[float, float, float] = (0.0, 0.0, -1.0)

ArrayLike = Union[np.ndarray, Tuple[float, float, float], "UnitVector3"]


def _as_array(v: ArrayLike) -> np.ndarray:
    if isinstance(v, UnitVector3):
        return v.to_array()
    return np.asarray(v, dtype=np.float64)


def dot(a: ArrayLike, b: ArrayLike) -> Union[float, np.ndarray]:
    """
    Dot product along the last axis.

    Args:
        a, b: Vectors of shape (3,) or stacks of shape (..., 3)

    Returns:
        Scalar or array of dot products
    """
    return np.sum(_as_array(a) * _as_array(b), axis=-1)


def cross(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Cross product along the last axis."""
    return np.cross(_as_array(a), _as_array(b))


def normalize(v: ArrayLike) -> np.ndarray:
    """
    Scale vector(s) to unit length.

    Zero-length rows are replaced by the reference direction (0, 0, -1).
    Rows containing NaN stay NaN.

    Args:
        v: Vector of shape (3,) or stack of shape (..., 3)

    Returns:
        Array of the same shape with unit-length rows
    """
    arr = _as_array(v)
    norm = np.linalg.norm(arr, axis=-1, keepdims=True)
    zero = norm == 0.0
    safe = np.where(zero, 1.0, norm)
    out = arr / safe
    if np.any(zero):
        out = np.where(zero, np.asarray(REFERENCE_DIRECTION), out)
    return out


class UnitVector3:
    """
    A direction in 3D space, normalized on construction.

    Attributes:
        x, y, z: Components of the unit vector

    A zero input maps to the reference direction (0, 0, -1). Inputs with a
    non-finite component are kept as given and the vector is "empty".
    """

    __slots__ = ("x", "y", "z")

    def __init__(self, x: float, y: float, z: float):
        x, y, z = float(x), float(y), float(z)
        if math.isfinite(x) and math.isfinite(y) and math.isfinite(z):
            norm = math.sqrt(x * x + y * y + z * z)
            if norm == 0.0:
                x, y, z = REFERENCE_DIRECTION
            elif norm != 1.0:
                x, y, z = x / norm, y / norm, z / norm
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "z", z)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def from_array(cls, arr: Iterable[float]) -> "UnitVector3":
        """Create a unit vector from any 3-element sequence."""
        x, y, z = arr
        return cls(x, y, z)

    @classmethod
    def empty(cls) -> "UnitVector3":
        """Return the empty (all-NaN) vector."""
        return cls(math.nan, math.nan, math.nan)

    @property
    def is_empty(self) -> bool:
        """True if any component is not finite."""
        return not (math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z))

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def dot(self, other: "UnitVector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "UnitVector3") -> Tuple[float, float, float]:
        """Cross product as a raw (not normalized) tuple."""
        return (
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def midpoint(self, other: "UnitVector3") -> "UnitVector3":
        """Spherical midpoint: the normalized sum of both vectors."""
        return UnitVector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def angle_to(self, other: "UnitVector3") -> float:
        """Angular separation in radians, via atan2(|a x b|, a . b)."""
        cx, cy, cz = self.cross(other)
        return math.atan2(math.sqrt(cx * cx + cy * cy + cz * cz), self.dot(other))

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnitVector3):
            return NotImplemented
        return self.to_tuple() == other.to_tuple()

    def __hash__(self) -> int:
        return hash(self.to_tuple())

    def __repr__(self) -> str:
        return f"UnitVector3({self.x:.6f}, {self.y:.6f}, {self.z:.6f})"


class Matrix3:
    """
    A 3x3 matrix, used for rotations of unit vectors.

    The matrix is stored as a read-only numpy array of shape (3, 3) and
    multiplies column vectors from the left: ``m @ v``.
    """

    __slots__ = ("_m",)

    def __init__(self, values: Optional[Iterable[Iterable[float]]] = None):
        m = np.eye(3) if values is None else np.array(values, dtype=np.float64)
        if m.shape != (3, 3):
            raise ValueError(f"Matrix3 requires shape (3, 3), got {m.shape}")
        m.setflags(write=False)
        self._m = m

    @classmethod
    def identity(cls) -> "Matrix3":
        return cls()

    @classmethod
    def zero(cls) -> "Matrix3":
        return cls(np.zeros((3, 3)))

    @classmethod
    def rotation_to_origin(cls, uvec: ArrayLike) -> "Matrix3":
        """
        Rotation that carries ``uvec`` onto the reference direction (0, 0, -1).

        With lat = asin(uy) and lon = atan2(ux, -uz) the matrix is the
        inverse of the (lat, lon) rotation, so that::

            Matrix3.rotation_to_origin(u) @ u == (0, 0, -1)

        Args:
            uvec: Direction to rotate (normalized internally)

        Returns:
            Rotation matrix
        """
        x, y, z = normalize(uvec)
        lat = math.asin(max(-1.0, min(1.0, y)))
        lon = math.atan2(x, -z)
        return cls.from_lat_lon_radians(lat, lon).transpose()

    @classmethod
    def from_lat_lon_radians(cls, lat: float, lon: float) -> "Matrix3":
        """
        Rotation that carries (0, 0, -1) onto the direction at (lat, lon).

        Latitude is applied first as a clockwise rotation about x, then
        longitude as a clockwise rotation about y.
        """
        cosa, sina = math.cos(lon), math.sin(lon)
        cosb, sinb = math.cos(lat), math.sin(lat)
        return cls(
            [
                [cosa, -sina * sinb, -sina * cosb],
                [0.0, cosb, -sinb],
                [sina, cosa * sinb, cosa * cosb],
            ]
        )

    @property
    def values(self) -> np.ndarray:
        return self._m

    def transpose(self) -> "Matrix3":
        return Matrix3(self._m.T)

    def apply(self, v: ArrayLike) -> np.ndarray:
        """Multiply vector(s) of shape (3,) or (N, 3) by this matrix."""
        arr = _as_array(v)
        return arr @ self._m.T

    def __matmul__(self, other):
        if isinstance(other, Matrix3):
            return Matrix3(self._m @ other._m)
        if isinstance(other, UnitVector3):
            return UnitVector3.from_array(self._m @ other.to_array())
        return self.apply(other)

    def allclose(self, other: "Matrix3", tol: float = 1e-9) -> bool:
        return bool(np.allclose(self._m, other._m, atol=tol, rtol=0.0))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix3):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self._m.tobytes())

    def __repr__(self) -> str:
        rows = ", ".join("[" + ", ".join(f"{v:.4f}" for v in row) + "]" for row in self._m)
        return f"Matrix3([{rows}])"


class Plane:
    """
    A half-space ``a + b . x = 0`` with ``|b| = 1``.

    Signed distance is non-negative on the "inside" half, which is fixed
    when the plane is created (see :meth:`through_origin` and
    :meth:`from_points`).

    Attributes:
        a: Additive coefficient
        bx, by, bz: Unit normal
    """

    __slots__ = ("a", "bx", "by", "bz")

    def __init__(self, a: float = 0.0, bx: float = 1.0, by: float = 0.0, bz: float = 0.0):
        object.__setattr__(self, "a", float(a))
        object.__setattr__(self, "bx", float(bx))
        object.__setattr__(self, "by", float(by))
        object.__setattr__(self, "bz", float(bz))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def through_origin(
        cls,
        p: ArrayLike,
        q: ArrayLike,
        inside: ArrayLike,
    ) -> "Plane":
        """
        Plane through the origin and the points ``p`` and ``q``.

        The normal is the normalized cross product ``p x q``, flipped so that
        ``inside`` has non-negative signed distance.
        """
        n = normalize(cross(p, q))
        plane = cls(0.0, *n)
        if plane.signed_distance(inside) < 0.0:
            plane = plane.conjugate()
        return plane

    @classmethod
    def from_points(
        cls,
        p: ArrayLike,
        q: ArrayLike,
        r: ArrayLike,
        reference: Optional[ArrayLike] = None,
    ) -> "Plane":
        """
        Plane passing through three points.

        The normal is ``normalize((q - p) x (r - p))``. When ``reference`` is
        given, the plane is oriented so that it lies on the non-negative side.
        Collinear points yield the degenerate normal (1, 0, 0) through ``p``.

        Args:
            p, q, r: Points on the plane
            reference: Optional point that must be "inside"

        Returns:
            The plane
        """
        p_arr, q_arr, r_arr = _as_array(p), _as_array(q), _as_array(r)
        n = cross(q_arr - p_arr, r_arr - p_arr)
        norm = float(np.linalg.norm(n))
        if norm == 0.0 or not math.isfinite(norm):
            n = np.array([1.0, 0.0, 0.0])
        else:
            n = n / norm
        plane = cls(-float(np.dot(n, p_arr)), *n)
        if reference is not None and plane.signed_distance(reference) < 0.0:
            plane = plane.conjugate()
        return plane

    @property
    def normal(self) -> np.ndarray:
        return np.array([self.bx, self.by, self.bz])

    def norm(self) -> float:
        """Euclidean norm of (bx, by, bz); 1.0 in standard form."""
        return math.sqrt(self.bx * self.bx + self.by * self.by + self.bz * self.bz)

    def normalized(self) -> "Plane":
        """Copy scaled to standard form. A zero normal becomes (1, 0, 0)."""
        n = self.norm()
        if n == 0.0:
            return Plane(self.a, 1.0, 0.0, 0.0)
        if n == 1.0:
            return self
        return Plane(self.a / n, self.bx / n, self.by / n, self.bz / n)

    def conjugate(self) -> "Plane":
        """Same plane with opposite orientation."""
        return Plane(-self.a, -self.bx, -self.by, -self.bz)

    def signed_distance(self, v: ArrayLike) -> Union[float, np.ndarray]:
        """
        Signed distance from point(s) to the plane.

        Args:
            v: Point of shape (3,), stack of shape (N, 3), or UnitVector3

        Returns:
            Scalar or array; non-finite input propagates as NaN
        """
        if isinstance(v, UnitVector3):
            return self.a + self.bx * v.x + self.by * v.y + self.bz * v.z
        arr = _as_array(v)
        d = self.a + arr @ self.normal
        return float(d) if np.ndim(d) == 0 else d

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Plane):
            return NotImplemented
        return (self.a, self.bx, self.by, self.bz) == (other.a, other.bx, other.by, other.bz)

    def __hash__(self) -> int:
        return hash((self.a, self.bx, self.by, self.bz))

    def __repr__(self) -> str:
        return f"Plane(a={self.a:.6f}, b=({self.bx:.6f}, {self.by:.6f}, {self.bz:.6f}))"
