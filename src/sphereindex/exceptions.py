"""
Exception types raised by sphereindex.

Geometric degeneracies (empty coordinates, zero-length edges) never raise;
they degrade to NaN or other sentinel values. Only the classes below abort
an operation.
"""

__all__ = [
    "SphereIndexError",
    "InvalidGeometryError",
    "UnsupportedOperationError",
    "TessellationInvariantError",
]


class SphereIndexError(Exception):
    """Base class for all sphereindex errors."""
    pass


class InvalidGeometryError(SphereIndexError, ValueError):
    """Raised when caller-supplied geometry or arguments fail validation."""
    pass


class UnsupportedOperationError(SphereIndexError, NotImplementedError):
    """Raised for operations that are outside the supported envelope."""
    pass


class TessellationInvariantError(SphereIndexError, RuntimeError):
    """Raised when the tessellation is malformed (a defect, not a user error)."""
    pass
