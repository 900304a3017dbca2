"""
PairSwap Resting-Order Book

Orders that rest until the pair's spot price satisfies them:
  - place: the maker's input is escrowed by the book
  - execute: any keeper may trigger the swap once the spot quote meets
    the order's minimum output; proceeds go to the maker
  - cancel: maker-only, refunds the escrow

Security features:
  - Owner-only cancel
  - Per-address open order limit
  - Deterministic order IDs (blake2b(maker:seq))
  - Escrow transfer and swap are all-or-nothing
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from pairswap.exceptions import (
    InsufficientInputAmountError,
    InsufficientOutputAmountError,
    OrderError,
)
from pairswap.exchange.factory import PairFactory
from pairswap.exchange.journal import atomic
from pairswap.exchange.library import get_amount_out, get_reserves
from pairswap.exchange.pair import Pair
from pairswap.tokens.ledger import Token, make_address

logger = logging.getLogger(__name__)

MAX_ORDERS_PER_ADDRESS = 200


class OrderStatus(str, Enum):
    OPEN = "open"
    FILLED = "filled"
    CANCELLED = "cancelled"


@dataclass
class Order:
    """A resting swap order."""
    id: str
    maker: str
    token_in: str
    token_out: str
    amount_in: int
    min_amount_out: int
    status: OrderStatus = OrderStatus.OPEN
    amount_out: int = 0
    created_at: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == OrderStatus.OPEN


class OrderBook:
    """Resting orders executed against factory pairs."""

    def __init__(self, factory: PairFactory, address: Optional[str] = None):
        self.factory = factory
        self.address = address or make_address("order-book", factory.address)
        self._orders: Dict[str, Order] = {}
        self._sequence: int = 0

    # -- Queries ------------------------------------------------------------

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def open_orders(self, maker: Optional[str] = None) -> List[Order]:
        return [
            o for o in self._orders.values()
            if o.is_active and (maker is None or o.maker == maker)
        ]

    def quote(self, order_id: str) -> int:
        """Current spot output for an order."""
        order = self._require_order(order_id)
        reserve_in, reserve_out = get_reserves(self.factory, order.token_in, order.token_out)
        return get_amount_out(order.amount_in, reserve_in, reserve_out)

    def is_executable(self, order_id: str) -> bool:
        order = self._require_order(order_id)
        return order.is_active and self.quote(order_id) >= order.min_amount_out

    # -- Mutations ----------------------------------------------------------

    def place_order(
        self,
        maker: str,
        token_in: str,
        token_out: str,
        amount_in: int,
        min_amount_out: int,
    ) -> Order:
        """Escrow ``amount_in`` of ``token_in`` from ``maker`` and rest the order."""
        if amount_in <= 0:
            raise InsufficientInputAmountError("Order amount must be positive")
        if min_amount_out <= 0:
            raise InsufficientOutputAmountError("Order minimum output must be positive")
        if len(self.open_orders(maker)) >= MAX_ORDERS_PER_ADDRESS:
            raise OrderError(f"Order limit reached ({MAX_ORDERS_PER_ADDRESS} per address)")

        pair = self.factory.get_pair_or_raise(token_in, token_out)
        asset = self._asset(pair, token_in)

        with atomic(self, asset):
            asset.transfer_from(self.address, maker, self.address, amount_in)
            self._sequence += 1
            order = Order(
                id=self._deterministic_order_id(maker, self._sequence),
                maker=maker,
                token_in=token_in,
                token_out=token_out,
                amount_in=amount_in,
                min_amount_out=min_amount_out,
                created_at=self.factory.clock(),
            )
            self._orders[order.id] = order

        logger.info(
            "Order placed: %s maker=%s in=%d %s min_out=%d",
            order.id, maker, amount_in, asset.symbol, min_amount_out,
        )
        return order

    def cancel_order(self, order_id: str, caller: str) -> Order:
        order = self._require_order(order_id)
        if order.maker != caller:
            raise OrderError("Only the maker can cancel an order")
        if not order.is_active:
            raise OrderError(f"Order {order_id} is {order.status.value}")

        asset = self._asset(self.factory.get_pair_or_raise(order.token_in, order.token_out), order.token_in)
        with atomic(self, asset):
            asset.transfer(self.address, order.maker, order.amount_in)
            order.status = OrderStatus.CANCELLED

        logger.info("Order cancelled: %s", order_id)
        return order

    def execute_order(self, order_id: str, keeper: str = "") -> int:
        """
        Swap an order's escrow through its pair if spot meets its minimum.

        Returns:
            The output delivered to the maker
        """
        order = self._require_order(order_id)
        if not order.is_active:
            raise OrderError(f"Order {order_id} is {order.status.value}")

        pair = self.factory.get_pair_or_raise(order.token_in, order.token_out)
        amount_out = self.quote(order_id)
        if amount_out < order.min_amount_out:
            raise InsufficientOutputAmountError(
                f"Spot output {amount_out} below order minimum {order.min_amount_out}"
            )

        zero_for_one = order.token_in == pair.token0.address
        amount0_out, amount1_out = (0, amount_out) if zero_for_one else (amount_out, 0)
        with atomic(self, pair, pair.token0, pair.token1):
            self._asset(pair, order.token_in).transfer(self.address, pair.address, order.amount_in)
            pair.swap(amount0_out, amount1_out, order.maker, sender=self.address)
            order.status = OrderStatus.FILLED
            order.amount_out = amount_out

        logger.info("Order executed: %s keeper=%s out=%d", order_id, keeper, amount_out)
        return amount_out

    # -- Helpers ------------------------------------------------------------

    def _require_order(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderError(f"Order {order_id} not found")
        return order

    @staticmethod
    def _asset(pair: Pair, address: str) -> Token:
        return pair.token0 if pair.token0.address == address else pair.token1

    @staticmethod
    def _deterministic_order_id(maker: str, seq: int) -> str:
        raw = f"{maker}:{seq}".encode()
        return hashlib.blake2b(raw, digest_size=8).hexdigest()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "orders": {k: replace(v) for k, v in self._orders.items()},
            "sequence": self._sequence,
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._orders = {k: replace(v) for k, v in snapshot["orders"].items()}
        self._sequence = snapshot["sequence"]
