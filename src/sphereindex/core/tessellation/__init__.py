"""
Recursive triangular tessellation of the sphere.
"""

from sphereindex.core.tessellation.address import (
    MAX_DEPTH_32,
    MAX_DEPTH_64,
    Address,
    address_from_string,
    address_to_string,
    pack,
    pack32,
    pack64,
    unpack,
    unpack32,
    unpack64,
    validate_address,
)
from sphereindex.core.tessellation.node import SubtriangleNode, calc_planes
from sphereindex.core.tessellation.index import TessellationIndex, build, locate

__all__ = [
    "MAX_DEPTH_32",
    "MAX_DEPTH_64",
    "Address",
    "address_from_string",
    "address_to_string",
    "pack",
    "pack32",
    "pack64",
    "unpack",
    "unpack32",
    "unpack64",
    "validate_address",
    "SubtriangleNode",
    "calc_planes",
    "TessellationIndex",
    "build",
    "locate",
]
