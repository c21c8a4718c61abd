import random

import pytest

from sphereindex.core.tessellation.address import (
    MAX_DEPTH_32,
    MAX_DEPTH_64,
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
from sphereindex.exceptions import InvalidGeometryError


def random_address(rng, length):
    return (rng.randrange(8),) + tuple(rng.randrange(4) for _ in range(length - 1))


def test_pack32_known_value():
    packed = pack32([5, 2, 1, 3])
    assert packed == (4 << 27) | (5 << 24) | (2 << 22) | (1 << 20) | (3 << 18)
    assert unpack32(packed) == (5, 2, 1, 3)


def test_round_trip_32():
    rng = random.Random(13)
    for length in range(1, MAX_DEPTH_32 + 1):
        for _ in range(20):
            addr = random_address(rng, length)
            packed = pack32(addr)
            assert 0 <= packed < 2 ** 32
            assert unpack32(packed) == addr


def test_round_trip_64():
    rng = random.Random(29)
    for length in range(1, MAX_DEPTH_64 + 1):
        for _ in range(20):
            addr = random_address(rng, length)
            packed = pack64(addr)
            assert 0 <= packed < 2 ** 64
            assert unpack64(packed) == addr


def test_extreme_addresses_round_trip():
    for addr in [(7,) + (3,) * 28, (0,) * 29, (7,)]:
        assert unpack64(pack64(addr)) == addr
    assert unpack32(pack32((7,) + (3,) * 12)) == (7,) + (3,) * 12


def test_empty_address_packs_to_zero():
    assert pack32(None) == 0
    assert pack64(()) == 0
    assert unpack32(0) == ()
    assert unpack64(0) == ()


def test_long_address_is_truncated():
    addr = (1,) + (2,) * 20
    assert unpack32(pack32(addr)) == addr[:MAX_DEPTH_32]
    assert unpack64(pack64(addr)) == addr


def test_invalid_elements_raise():
    with pytest.raises(InvalidGeometryError):
        pack32([8])
    with pytest.raises(InvalidGeometryError):
        pack64([1, 4])
    with pytest.raises(InvalidGeometryError):
        validate_address([-1])


def test_oversized_length_field_raises():
    with pytest.raises(InvalidGeometryError):
        unpack32(14 << 27)
    with pytest.raises(InvalidGeometryError):
        unpack64(30 << 59)


def test_unsupported_width():
    with pytest.raises(InvalidGeometryError):
        pack([1], bits=16)
    with pytest.raises(InvalidGeometryError):
        unpack(0, bits=48)


def test_dotted_strings():
    assert address_to_string((5, 2, 1, 3)) == "5.2.1.3"
    assert address_from_string("5.2.1.3") == (5, 2, 1, 3)
    assert address_from_string(" ") == ()
    with pytest.raises(InvalidGeometryError):
        address_from_string("5.x")
    with pytest.raises(InvalidGeometryError):
        address_from_string("9.1")
