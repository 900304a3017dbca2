"""
PairSwap Pair Registry

Creates and indexes one Pair per unordered asset set:
  - Canonical ordering: (X, Y) and (Y, X) resolve to the same pair
  - Duplicate, identical-asset and zero-address creation rejected
  - Check-and-insert is atomic under a lock
  - Deterministic pair addresses (blake2b of the sorted asset addresses)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pairswap.constants import ZERO_ADDRESS
from pairswap.exceptions import (
    IdenticalAddressesError,
    PairExistsError,
    PairNotFoundError,
    ZeroAddressError,
)
from pairswap.exchange.pair import Clock, Pair, wall_clock
from pairswap.tokens.ledger import Token, make_address

logger = logging.getLogger(__name__)


def sort_addresses(address_a: str, address_b: str) -> Tuple[str, str]:
    """Canonical (token0, token1) order of two asset addresses."""
    if address_a == address_b:
        raise IdenticalAddressesError(f"Identical addresses: {address_a}")
    token0, token1 = (address_a, address_b) if address_a < address_b else (address_b, address_a)
    if token0 == ZERO_ADDRESS:
        raise ZeroAddressError("Zero address")
    return token0, token1


@dataclass(frozen=True)
class PairCreatedEvent:
    token0: str
    token1: str
    pair: str
    index: int


class PairFactory:
    """
    Registry of all pairs.

    Handles:
      - Pair creation with canonical ordering and dedup
      - Pair lookup by asset addresses in either order
      - Enumeration in creation order
    """

    def __init__(self, clock: Optional[Clock] = None, address: Optional[str] = None) -> None:
        self.clock: Clock = clock or wall_clock
        self.address = address or make_address("factory")
        self._pairs: Dict[Tuple[str, str], Pair] = {}
        self._all_pairs: List[Pair] = []
        self._events: List[PairCreatedEvent] = []
        self._lock = threading.Lock()

    @property
    def pair_count(self) -> int:
        return len(self._all_pairs)

    @property
    def all_pairs(self) -> List[Pair]:
        return list(self._all_pairs)

    @property
    def events(self) -> List[PairCreatedEvent]:
        return list(self._events)

    def create_pair(self, token_a: Token, token_b: Token) -> Pair:
        """
        Create the pair for ``token_a``/``token_b``.

        Raises:
            IdenticalAddressesError, ZeroAddressError, PairExistsError
        """
        token0_addr, _ = sort_addresses(token_a.address, token_b.address)
        token0, token1 = (token_a, token_b) if token_a.address == token0_addr else (token_b, token_a)
        key = (token0.address, token1.address)

        with self._lock:
            if key in self._pairs:
                raise PairExistsError(f"Pair exists for {token0.symbol}/{token1.symbol}")
            pair = Pair(
                token0,
                token1,
                address=make_address("pair", self.address, *key),
                factory=self.address,
                clock=self.clock,
            )
            self._pairs[key] = pair
            self._all_pairs.append(pair)
            self._events.append(PairCreatedEvent(key[0], key[1], pair.address, len(self._all_pairs)))

        logger.info(
            "PairCreated: %s/%s at %s (pairs=%d)",
            token0.symbol, token1.symbol, pair.address, len(self._all_pairs),
        )
        return pair

    def get_pair(self, address_x: str, address_y: str) -> Optional[Pair]:
        if address_x == address_y:
            return None
        key = (address_x, address_y) if address_x < address_y else (address_y, address_x)
        return self._pairs.get(key)

    def get_pair_or_raise(self, address_x: str, address_y: str) -> Pair:
        pair = self.get_pair(address_x, address_y)
        if pair is None:
            raise PairNotFoundError(f"No pair for {address_x}/{address_y}")
        return pair

    # -- Snapshot / restore -------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "pairs": dict(self._pairs),
            "all_pairs": list(self._all_pairs),
            "event_count": len(self._events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        with self._lock:
            self._pairs = dict(snapshot["pairs"])
            self._all_pairs = list(snapshot["all_pairs"])
            del self._events[snapshot["event_count"]:]

    def __repr__(self) -> str:
        return f"<PairFactory pairs={len(self._all_pairs)}>"
