"""
PairSwap TWAP Guard

Time-weighted price gate over a pair's cumulative-price accumulators:
  - One stored observation per pair (timestamp + both accumulators)
  - Windowed execution: mean price over at least ``window`` seconds
  - Output capped by BOTH the time-weighted price and the current spot
    quote, so a spot distorted just before the call cannot inflate it
  - Accumulator differences taken modulo 2**256, elapsed time modulo 2**32

Security features:
  - Observation must be strictly newer than the one it replaces
  - The window cannot be satisfied within a single call
  - Zero accumulator movement is rejected (no trade happened to price it)
  - Slippage protection (min_amount_out)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from pairswap.constants import FEE_DENOMINATOR, FEE_MULTIPLIER, TWAP_WINDOW_SECONDS
from pairswap.exceptions import (
    InsufficientOutputAmountError,
    NoObservationError,
    TimeNotAdvancedError,
    ValidationError,
    WindowNotElapsedError,
    ZeroPriceDeltaError,
)
from pairswap.exchange import uq112
from pairswap.exchange.journal import atomic
from pairswap.exchange.library import get_amount_out
from pairswap.exchange.pair import Pair
from pairswap.tokens.ledger import make_address

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Observation:
    """Accumulator snapshot of one pair at one point in time."""
    timestamp: int
    price0_cumulative: int
    price1_cumulative: int


def current_cumulative_prices(pair: Pair, now: Optional[int] = None) -> Tuple[int, int, int]:
    """
    Accumulators as they would read if the pair were updated at ``now``.

    Adds the in-progress interval at the current reserves without writing
    pair state.

    Returns:
        (price0_cumulative, price1_cumulative, uint32 timestamp)
    """
    block_timestamp = uq112.to_uint32(pair.now() if now is None else now)
    price0 = pair.price0_cumulative_last
    price1 = pair.price1_cumulative_last
    reserve0, reserve1, last = pair.get_reserves()
    if last != block_timestamp and reserve0 != 0 and reserve1 != 0:
        elapsed = uq112.elapsed_uint32(block_timestamp, last)
        price0 = uq112.wrapping_add_uint256(price0, uq112.fraction(reserve1, reserve0) * elapsed)
        price1 = uq112.wrapping_add_uint256(price1, uq112.fraction(reserve0, reserve1) * elapsed)
    return price0, price1, block_timestamp


# ---------------------------------------------------------------------------
# TWAP Guard
# ---------------------------------------------------------------------------

class TWAPGuard:
    """
    Gates trades on a pair's time-weighted average price.

    Traders approve the guard's address on the input asset.
    """

    def __init__(self, address: Optional[str] = None, default_window: int = TWAP_WINDOW_SECONDS):
        if default_window <= 0:
            raise ValidationError("TWAP window must be positive")
        self.address = address or make_address("twap-guard")
        self.default_window = default_window
        self._observations: Dict[str, Observation] = {}

    def observation(self, pair: Pair) -> Optional[Observation]:
        return self._observations.get(pair.address)

    # -- Recording ----------------------------------------------------------

    def record_observation(self, pair: Pair) -> Observation:
        """
        Store the pair's current accumulators.

        Raises:
            TimeNotAdvancedError: the pair has not been updated since the
                stored observation
        """
        timestamp = pair.block_timestamp_last
        prev = self._observations.get(pair.address)
        if prev is not None and uq112.elapsed_uint32(timestamp, prev.timestamp) == 0:
            raise TimeNotAdvancedError(
                f"Pair timestamp {timestamp} has not advanced past observation {prev.timestamp}"
            )

        obs = self._snapshot_pair(pair)
        self._observations[pair.address] = obs
        logger.info("Observation recorded for pair %s at %d", pair.address, timestamp)
        return obs

    # -- Windowed execution -------------------------------------------------

    def quote_windowed(
        self,
        pair: Pair,
        amount_in: int,
        window: Optional[int] = None,
        zero_for_one: bool = True,
    ) -> int:
        """Output ``execute_windowed`` would deliver, without executing."""
        window = self.default_window if window is None else window
        if window <= 0:
            raise ValidationError("TWAP window must be positive")
        if amount_in <= 0:
            raise ValidationError("Amount in must be positive")

        obs = self._observations.get(pair.address)
        if obs is None:
            raise NoObservationError(f"No observation for pair {pair.address}")

        elapsed = uq112.elapsed_uint32(pair.block_timestamp_last, obs.timestamp)
        if elapsed < window:
            raise WindowNotElapsedError(f"Window not elapsed: {elapsed}s < {window}s")

        if zero_for_one:
            delta = uq112.wrapping_sub_uint256(pair.price0_cumulative_last, obs.price0_cumulative)
        else:
            delta = uq112.wrapping_sub_uint256(pair.price1_cumulative_last, obs.price1_cumulative)
        if delta == 0:
            raise ZeroPriceDeltaError("No price accumulated since the observation")

        mean_price = delta // elapsed
        twap_out = uq112.mul_decode(mean_price, amount_in) * FEE_MULTIPLIER // FEE_DENOMINATOR

        reserve0, reserve1, _ = pair.get_reserves()
        reserve_in, reserve_out = (reserve0, reserve1) if zero_for_one else (reserve1, reserve0)
        spot_out = get_amount_out(amount_in, reserve_in, reserve_out)

        return min(twap_out, spot_out)

    def execute_windowed(
        self,
        pair: Pair,
        trader: str,
        amount_in: int,
        min_amount_out: int,
        window: Optional[int] = None,
        zero_for_one: bool = True,
        to: Optional[str] = None,
    ) -> int:
        """
        Swap ``amount_in`` from ``trader`` at no better than the TWAP allows.

        Returns:
            The output amount delivered to ``to`` (defaults to ``trader``)

        Raises:
            NoObservationError, WindowNotElapsedError, ZeroPriceDeltaError,
            InsufficientOutputAmountError
        """
        amount_out = self.quote_windowed(pair, amount_in, window, zero_for_one)
        if amount_out == 0 or amount_out < min_amount_out:
            raise InsufficientOutputAmountError(
                f"TWAP output {amount_out} below minimum {min_amount_out}"
            )

        token_in = pair.token0 if zero_for_one else pair.token1
        amount0_out, amount1_out = (0, amount_out) if zero_for_one else (amount_out, 0)
        with atomic(self, pair, pair.token0, pair.token1):
            token_in.transfer_from(self.address, trader, pair.address, amount_in)
            pair.swap(amount0_out, amount1_out, to or trader, sender=self.address)
            self._observations[pair.address] = self._snapshot_pair(pair)

        logger.info(
            "TWAP order executed on pair %s: trader=%s in=%d out=%d",
            pair.address, trader, amount_in, amount_out,
        )
        return amount_out

    # -- Consult ------------------------------------------------------------

    def consult(self, pair: Pair, token: str, amount_in: int) -> int:
        """Time-weighted output for ``amount_in`` of ``token`` since the stored observation."""
        obs = self._observations.get(pair.address)
        if obs is None:
            raise NoObservationError(f"No observation for pair {pair.address}")

        price0, price1, now = current_cumulative_prices(pair)
        elapsed = uq112.elapsed_uint32(now, obs.timestamp)
        if elapsed == 0:
            raise TimeNotAdvancedError("No time elapsed since the observation")

        if token == pair.token0.address:
            average = uq112.wrapping_sub_uint256(price0, obs.price0_cumulative) // elapsed
        elif token == pair.token1.address:
            average = uq112.wrapping_sub_uint256(price1, obs.price1_cumulative) // elapsed
        else:
            raise ValidationError(f"Token {token} is not in pair {pair.address}")
        return uq112.mul_decode(average, amount_in)

    # -- Helpers ------------------------------------------------------------

    @staticmethod
    def _snapshot_pair(pair: Pair) -> Observation:
        return Observation(
            timestamp=pair.block_timestamp_last,
            price0_cumulative=pair.price0_cumulative_last,
            price1_cumulative=pair.price1_cumulative_last,
        )

    def snapshot(self) -> Dict[str, Observation]:
        return dict(self._observations)

    def restore(self, snapshot: Dict[str, Observation]) -> None:
        self._observations = dict(snapshot)
