"""
Test suite for the fixed-width integer helpers
"""

import pytest

from pairswap.constants import Q112, UINT112_MAX, UINT256_MOD
from pairswap.exceptions import ReserveOverflowError
from pairswap.exchange import uq112


class TestFixedWidth:

    def test_uint112_bounds(self):
        assert uq112.to_uint112(0) == 0
        assert uq112.to_uint112(UINT112_MAX) == UINT112_MAX
        with pytest.raises(ReserveOverflowError):
            uq112.to_uint112(UINT112_MAX + 1)
        with pytest.raises(ReserveOverflowError):
            uq112.to_uint112(-1)

    def test_timestamp_truncation(self):
        assert uq112.to_uint32(2 ** 32 + 7) == 7

    def test_elapsed_across_wrap(self):
        assert uq112.elapsed_uint32(3, 2 ** 32 - 2) == 5
        assert uq112.elapsed_uint32(100, 40) == 60
        assert uq112.elapsed_uint32(40, 40) == 0

    def test_uint256_wrap(self):
        assert uq112.wrapping_add_uint256(UINT256_MOD - 1, 2) == 1
        assert uq112.wrapping_sub_uint256(1, 2) == UINT256_MOD - 1
        # Differences survive an overflowing accumulator
        start = UINT256_MOD - 10
        end = uq112.wrapping_add_uint256(start, 25)
        assert uq112.wrapping_sub_uint256(end, start) == 25


class TestUQ112x112:

    def test_encode(self):
        assert uq112.encode(1) == Q112

    def test_fraction(self):
        assert uq112.fraction(1, 2) == Q112 // 2
        assert uq112.fraction(3, 1) == 3 * Q112

    def test_fraction_extremes_fit_uint224(self):
        assert uq112.fraction(UINT112_MAX, 1) <= uq112.UINT224_MAX

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            uq112.uqdiv(Q112, 0)

    def test_mul_decode(self):
        assert uq112.mul_decode(Q112, 12345) == 12345
        assert uq112.mul_decode(Q112 // 2, 11) == 5

    def test_isqrt_floors(self):
        assert uq112.isqrt(99) == 9
        assert uq112.isqrt(10 ** 36) == 10 ** 18
