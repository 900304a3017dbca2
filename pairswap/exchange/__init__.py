"""
PairSwap Exchange Engine

Components:
  - Pair Engine (constant product, uint112 reserves, UQ112x112 accumulators)
  - Pair Registry (canonical ordering, one pair per asset set)
  - Quoting Engine (single-hop and multi-hop integer quotes)
  - Liquidity-Ratio Solver
  - Router (periphery: deadlines, liquidity, multi-hop swaps)
  - TWAP Guard (windowed, spot-capped execution)
  - Resting-Order Book
"""

from .pair import (
    Pair,
    PairState,
    SyncEvent,
    MintEvent,
    BurnEvent,
    SwapEvent,
    wall_clock,
)
from .factory import (
    PairFactory,
    PairCreatedEvent,
    sort_addresses,
)
from .library import (
    sort_tokens,
    get_reserves,
    quote,
    get_amount_out,
    get_amount_in,
    get_amounts_out,
    get_amounts_in,
)
from .liquidity import optimal_amounts
from .router import Router
from .oracle import (
    Observation,
    TWAPGuard,
    current_cumulative_prices,
)
from .orderbook import (
    Order,
    OrderBook,
    OrderStatus,
    MAX_ORDERS_PER_ADDRESS,
)
from .journal import atomic

__all__ = [
    # Pair
    "Pair", "PairState", "SyncEvent", "MintEvent", "BurnEvent", "SwapEvent",
    "wall_clock",
    # Registry
    "PairFactory", "PairCreatedEvent", "sort_addresses",
    # Quoting
    "sort_tokens", "get_reserves", "quote", "get_amount_out", "get_amount_in",
    "get_amounts_out", "get_amounts_in",
    # Liquidity
    "optimal_amounts",
    # Router
    "Router",
    # Oracle
    "Observation", "TWAPGuard", "current_cumulative_prices",
    # Order book
    "Order", "OrderBook", "OrderStatus", "MAX_ORDERS_PER_ADDRESS",
    # Execution
    "atomic",
]
