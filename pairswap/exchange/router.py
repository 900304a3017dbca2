"""
PairSwap Router  (periphery)

Composes calls into the pair engine:
  - add / remove liquidity at the pool ratio (liquidity-ratio solver)
  - exact-in and exact-out swaps along multi-hop paths
  - intermediate outputs are sent straight to the next pair

Security features:
  - Deadline enforcement (rejects stale transactions)
  - Slippage enforcement (amount_out_min / amount_in_max / amount_*_min)
  - Quotes come from the same integer math the pair enforces
  - All-or-nothing across every pair and asset touched
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from pairswap.constants import DEFAULT_DEADLINE_SECONDS
from pairswap.exceptions import (
    ExcessiveInputAmountError,
    ExpiredError,
    InsufficientAmountError,
    InsufficientOutputAmountError,
    InvalidPathError,
)
from pairswap.exchange import library
from pairswap.exchange.factory import PairFactory
from pairswap.exchange.journal import atomic
from pairswap.exchange.liquidity import optimal_amounts
from pairswap.exchange.pair import Clock, Pair
from pairswap.tokens.ledger import Token, make_address

logger = logging.getLogger(__name__)


class Router:
    """
    Convenience layer in front of a PairFactory.

    Callers approve the router's address on each input asset (or on the
    pair's claim token for removals) before calling.
    """

    def __init__(
        self,
        factory: PairFactory,
        address: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        self.factory = factory
        self.address = address or make_address("router", factory.address)
        self._clock: Clock = clock or factory.clock

    # -- Deadlines ----------------------------------------------------------

    def ensure(self, deadline: int) -> None:
        if self._clock() > deadline:
            raise ExpiredError(f"Transaction expired: deadline {deadline}")

    def deadline_from_now(self, seconds: Optional[int] = None) -> int:
        return self._clock() + (DEFAULT_DEADLINE_SECONDS if seconds is None else seconds)

    # -- Quoting (read-only) ------------------------------------------------

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        return library.get_amounts_out(self.factory, amount_in, path)

    def get_amounts_in(self, amount_out: int, path: Sequence[str]) -> List[int]:
        return library.get_amounts_in(self.factory, amount_out, path)

    # -- Liquidity ----------------------------------------------------------

    def add_liquidity(
        self,
        provider: str,
        token_a: Token,
        token_b: Token,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> Tuple[int, int, int]:
        """
        Deposit at the pool ratio and mint claims to ``to``.

        Creates the pair on first use.

        Returns:
            (amount_a, amount_b, liquidity)
        """
        self.ensure(deadline)
        with atomic(self.factory, token_a, token_b):
            pair = self.factory.get_pair(token_a.address, token_b.address)
            if pair is None:
                pair = self.factory.create_pair(token_a, token_b)

            reserve_a, reserve_b = library.get_reserves(self.factory, token_a.address, token_b.address)
            amount_a, amount_b = optimal_amounts(
                amount_a_desired, amount_b_desired, amount_a_min, amount_b_min, reserve_a, reserve_b,
            )

            token_a.transfer_from(self.address, provider, pair.address, amount_a)
            token_b.transfer_from(self.address, provider, pair.address, amount_b)
            liquidity = pair.mint(to, sender=self.address)

        logger.info(
            "Liquidity added: %s/%s amount_a=%d amount_b=%d liquidity=%d to=%s",
            token_a.symbol, token_b.symbol, amount_a, amount_b, liquidity, to,
        )
        return amount_a, amount_b, liquidity

    def remove_liquidity(
        self,
        provider: str,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
    ) -> Tuple[int, int]:
        """
        Return ``liquidity`` claims to the pair and burn them.

        Returns:
            (amount_a, amount_b) sent to ``to``
        """
        self.ensure(deadline)
        pair = self.factory.get_pair_or_raise(token_a, token_b)
        with atomic(pair, pair.token0, pair.token1):
            pair.transfer_from(self.address, provider, pair.address, liquidity)
            amount0, amount1 = pair.burn(to, sender=self.address)

            token0, _ = library.sort_tokens(token_a, token_b)
            amount_a, amount_b = (amount0, amount1) if token_a == token0 else (amount1, amount0)
            if amount_a < amount_a_min:
                raise InsufficientAmountError(f"Insufficient A amount: {amount_a} < minimum {amount_a_min}")
            if amount_b < amount_b_min:
                raise InsufficientAmountError(f"Insufficient B amount: {amount_b} < minimum {amount_b_min}")

        logger.info(
            "Liquidity removed: pair=%s liquidity=%d amount_a=%d amount_b=%d to=%s",
            pair.address, liquidity, amount_a, amount_b, to,
        )
        return amount_a, amount_b

    # -- Swaps --------------------------------------------------------------

    def swap_exact_tokens_for_tokens(
        self,
        trader: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> List[int]:
        """Sell exactly ``amount_in`` of path[0]; returns the amount at every hop."""
        self.ensure(deadline)
        amounts = self.get_amounts_out(amount_in, path)
        if amounts[-1] < amount_out_min:
            raise InsufficientOutputAmountError(
                f"Insufficient output amount: {amounts[-1]} < minimum {amount_out_min}"
            )
        self._execute(trader, amounts, path, to)
        return amounts

    def swap_tokens_for_exact_tokens(
        self,
        trader: str,
        amount_out: int,
        amount_in_max: int,
        path: Sequence[str],
        to: str,
        deadline: int,
    ) -> List[int]:
        """Buy exactly ``amount_out`` of path[-1]; returns the amount at every hop."""
        self.ensure(deadline)
        amounts = self.get_amounts_in(amount_out, path)
        if amounts[0] > amount_in_max:
            raise ExcessiveInputAmountError(
                f"Excessive input amount: {amounts[0]} > maximum {amount_in_max}"
            )
        self._execute(trader, amounts, path, to)
        return amounts

    # -- Internal -----------------------------------------------------------

    def _pairs_along(self, path: Sequence[str]) -> List[Pair]:
        if len(path) < 2:
            raise InvalidPathError(f"Path needs at least two assets, got {len(path)}")
        return [self.factory.get_pair_or_raise(a, b) for a, b in zip(path, path[1:])]

    def _execute(self, trader: str, amounts: List[int], path: Sequence[str], to: str) -> None:
        pairs = self._pairs_along(path)
        participants = []
        for pair in pairs:
            participants.extend((pair, pair.token0, pair.token1))

        first = pairs[0]
        token_in = first.token0 if first.token0.address == path[0] else first.token1
        with atomic(*participants):
            token_in.transfer_from(self.address, trader, first.address, amounts[0])
            self._swap(amounts, path, pairs, to)

        logger.debug(
            "Routed swap: trader=%s hops=%d in=%d out=%d to=%s",
            trader, len(pairs), amounts[0], amounts[-1], to,
        )

    def _swap(self, amounts: List[int], path: Sequence[str], pairs: List[Pair], to: str) -> None:
        """Requires the first pair to already hold amounts[0]."""
        for i, (pair, (token_in, token_out)) in enumerate(zip(pairs, zip(path, path[1:]))):
            token0, _ = library.sort_tokens(token_in, token_out)
            amount_out = amounts[i + 1]
            amount0_out, amount1_out = (0, amount_out) if token_in == token0 else (amount_out, 0)
            recipient = pairs[i + 1].address if i < len(pairs) - 1 else to
            pair.swap(amount0_out, amount1_out, recipient, sender=self.address)
