"""Lossless conversions between item values and their stored representation.

The backing store has no unsigned 64-bit type and no exact float column, so
ids are kept as two's-complement signed values and wear as the raw float32
bit pattern.
"""

from __future__ import annotations

import math
import struct
from typing import NamedTuple

U64_MAX = (1 << 64) - 1
I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1
I32_MIN = -(1 << 31)
I32_MAX = (1 << 31) - 1

_BYTE = 0xFF
_FLOAT32 = struct.Struct(">f")
_INT32 = struct.Struct(">i")


def unsigned64_to_signed(value: int) -> int:
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"not an unsigned 64-bit value: {value}")
    return value - (1 << 64) if value > I64_MAX else value


def signed64_to_unsigned(value: int) -> int:
    if not I64_MIN <= value <= I64_MAX:
        raise ValueError(f"not a signed 64-bit value: {value}")
    return value + (1 << 64) if value < 0 else value


def encode_wear(wear: float) -> int:
    """Reinterpret a float32 wear as int32.

    Only valid for finite, non-negative values, where the integer order
    matches the float order. The input is rounded to the nearest float32.
    """
    if not math.isfinite(wear) or math.copysign(1.0, wear) < 0:
        raise ValueError(f"wear must be finite and non-negative, got {wear!r}")
    try:
        packed = _FLOAT32.pack(wear)
    except OverflowError as exc:
        raise ValueError(f"wear {wear!r} does not fit in a float32") from exc
    return _INT32.unpack(packed)[0]


def decode_wear(value: int) -> float:
    if not I32_MIN <= value <= I32_MAX:
        raise ValueError(f"not a signed 32-bit value: {value}")
    return _FLOAT32.unpack(_INT32.pack(value))[0]


class Properties(NamedTuple):
    origin: int
    quality: int
    rarity: int


# Layout of the packed word:
#   bits 24..31  reserved (zero)
#   bits 16..23  rarity
#   bits  8..15  quality
#   bits  0..7   origin
def pack_properties(origin: int, quality: int, rarity: int) -> int:
    for name, value in (("origin", origin), ("quality", quality), ("rarity", rarity)):
        if not 0 <= value <= _BYTE:
            raise ValueError(f"{name} must fit in 8 bits, got {value}")
    return origin | (quality << 8) | (rarity << 16)


def unpack_properties(packed: int) -> Properties:
    return Properties(
        origin=packed & _BYTE,
        quality=(packed >> 8) & _BYTE,
        rarity=(packed >> 16) & _BYTE,
    )


def is_steam_id64(value: int) -> bool:
    """Tell account ids apart from market listing ids.

    Both share the holder column. Account ids carry a universe in the top
    byte (0..5), a non-zero account type in bits 52..55 and a small instance
    number in bits 32..51; listing ids do not fit that shape.
    """
    if not 0 < value <= U64_MAX:
        return False
    universe = value >> 56
    if universe > 5:
        return False
    if (value >> 52) & 0xF == 0:
        return False
    instance = (value >> 32) & ((1 << 20) - 1)
    return instance <= 32
