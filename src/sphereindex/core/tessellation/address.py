"""
Fixed-width packing of hierarchical subtriangle addresses.

An address is the path from the root to a node: the first element selects
an octant (0-7, 3 bits), every further element selects a quadrant (0-3,
2 bits). Packed layouts, most significant bits first:

    32-bit:  [length:5][octant:3][q1:2][q2:2] ... up to 13 elements
    64-bit:  [length:5][octant:3][q1:2][q2:2] ... up to 29 elements

At 32 bits a depth-13 cell on an Earth-sized sphere covers about four
square kilometres; at 64 bits a depth-29 cell is well under a square
metre. Addresses longer than the cap are truncated when packed.
"""

from typing import Iterable, Optional, Sequence, Tuple

from sphereindex.exceptions import InvalidGeometryError

__all__ = [
    "Address",
    "MAX_DEPTH_32",
    "MAX_DEPTH_64",
    "validate_address",
    "pack",
    "unpack",
    "pack32",
    "unpack32",
    "pack64",
    "unpack64",
    "address_to_string",
    "address_from_string",
]

Address = Tuple[int, ...]

MAX_DEPTH_32 = 13
MAX_DEPTH_64 = 29

_LENGTH_BITS = 5
_OCTANT_BITS = 3
_QUADRANT_BITS = 2


def validate_address(address: Iterable[int]) -> Address:
    """
    Check the element ranges of an address.

    Args:
        address: Sequence of integers

    Returns:
        The address as a tuple

    Raises:
        InvalidGeometryError: If the octant is outside [0, 7] or any later
            element is outside [0, 3]
    """
    addr = tuple(int(a) for a in address)
    if addr and not 0 <= addr[0] <= 7:
        raise InvalidGeometryError(f"Octant selector must be in [0, 7], got {addr[0]}")
    for i, q in enumerate(addr[1:], start=1):
        if not 0 <= q <= 3:
            raise InvalidGeometryError(f"Quadrant selector at position {i} must be in [0, 3], got {q}")
    return addr


def pack(address: Optional[Sequence[int]], bits: int = 64) -> int:
    """
    Pack an address into a non-negative integer of ``bits`` width.

    Args:
        address: The address; None or empty packs to 0
        bits: 32 or 64

    Returns:
        Packed address
    """
    if bits not in (32, 64):
        raise InvalidGeometryError(f"Packed width must be 32 or 64 bits, got {bits}")
    if not address:
        return 0
    cap = MAX_DEPTH_32 if bits == 32 else MAX_DEPTH_64
    addr = validate_address(address)[:cap]

    shift = bits - _LENGTH_BITS
    packed = len(addr) << shift
    shift -= _OCTANT_BITS
    packed |= addr[0] << shift
    for q in addr[1:]:
        shift -= _QUADRANT_BITS
        packed |= q << shift
    return packed


def unpack(packed: int, bits: int = 64) -> Address:
    """
    Inverse of :func:`pack`.

    Args:
        packed: Packed address; negative values are read as two's complement
        bits: 32 or 64

    Returns:
        The address as a tuple
    """
    if bits not in (32, 64):
        raise InvalidGeometryError(f"Packed width must be 32 or 64 bits, got {bits}")
    packed &= (1 << bits) - 1

    shift = bits - _LENGTH_BITS
    length = packed >> shift
    if length == 0:
        return ()
    cap = MAX_DEPTH_32 if bits == 32 else MAX_DEPTH_64
    if length > cap:
        raise InvalidGeometryError(f"Packed length {length} exceeds the {bits}-bit maximum of {cap}")

    shift -= _OCTANT_BITS
    out = [(packed >> shift) & 0b111]
    for _ in range(length - 1):
        shift -= _QUADRANT_BITS
        out.append((packed >> shift) & 0b11)
    return tuple(out)


def pack32(address: Optional[Sequence[int]]) -> int:
    """Pack an address of up to 13 elements into 32 bits."""
    return pack(address, bits=32)


def unpack32(packed: int) -> Address:
    return unpack(packed, bits=32)


def pack64(address: Optional[Sequence[int]]) -> int:
    """Pack an address of up to 29 elements into 64 bits."""
    return pack(address, bits=64)


def unpack64(packed: int) -> Address:
    return unpack(packed, bits=64)


def address_to_string(address: Sequence[int]) -> str:
    """Render an address as dotted text, e.g. ``"5.2.1.3"``."""
    return ".".join(str(int(a)) for a in address)


def address_from_string(text: str) -> Address:
    """Parse dotted text produced by :func:`address_to_string`."""
    text = text.strip()
    if not text:
        return ()
    try:
        return validate_address(int(part) for part in text.split("."))
    except ValueError as e:
        if isinstance(e, InvalidGeometryError):
            raise
        raise InvalidGeometryError(f"Malformed address: {text!r}") from e
