"""
Fixed-width integer helpers for the pair engine.

Python integers are unbounded, so every fixed-width slot of the reserve
store is enforced explicitly:

  - reserves are uint112, written through a checked cast that raises
  - timestamps are uint32 and subtract modulo 2**32
  - price accumulators are uint256 and wrap modulo 2**256
  - prices are UQ112x112: a uint224 with 112 fractional bits
"""

from __future__ import annotations

import math

from pairswap.constants import Q112, UINT112_MAX, UINT256_MOD, UINT32_MOD
from pairswap.exceptions import ReserveOverflowError

UINT224_MAX = 2 ** 224 - 1


def to_uint112(value: int) -> int:
    """Checked cast into a reserve slot."""
    if value < 0 or value > UINT112_MAX:
        raise ReserveOverflowError(f"Value {value} does not fit in uint112")
    return value


def to_uint32(timestamp: int) -> int:
    """Truncate a timestamp to 32 bits."""
    return timestamp % UINT32_MOD


def elapsed_uint32(now: int, then: int) -> int:
    """Seconds from ``then`` to ``now``, both uint32, correct across one wrap."""
    return (now - then) % UINT32_MOD


def wrapping_add_uint256(a: int, b: int) -> int:
    return (a + b) % UINT256_MOD


def wrapping_sub_uint256(a: int, b: int) -> int:
    return (a - b) % UINT256_MOD


def encode(y: int) -> int:
    """uint112 -> UQ112x112."""
    return to_uint112(y) * Q112


def uqdiv(x: int, y: int) -> int:
    """UQ112x112 divided by a non-zero uint112, floored."""
    if y == 0:
        raise ZeroDivisionError("UQ112x112 division by zero")
    return x // y


def fraction(numerator: int, denominator: int) -> int:
    """numerator / denominator as UQ112x112 (both uint112)."""
    result = uqdiv(encode(numerator), to_uint112(denominator))
    assert result <= UINT224_MAX
    return result


def decode144(x: int) -> int:
    """Integer part of a UQ144x112 product."""
    return x >> 112


def mul_decode(price: int, amount: int) -> int:
    """``amount`` converted at UQ112x112 ``price``, floored."""
    return decode144(price * amount)


isqrt = math.isqrt
