"""
PairSwap Quoting Engine

Stateless integer math shared by the router, the order book and the TWAP
guard. Uses the same fee constants as the pair's invariant check, so a
quote from get_amount_out is exactly what the pair will accept.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from pairswap.constants import FEE_DENOMINATOR, FEE_MULTIPLIER
from pairswap.exceptions import (
    InsufficientAmountError,
    InsufficientInputAmountError,
    InsufficientLiquidityError,
    InsufficientOutputAmountError,
    InvalidPathError,
)
from pairswap.exchange.factory import PairFactory, sort_addresses


def sort_tokens(token_a: str, token_b: str) -> Tuple[str, str]:
    return sort_addresses(token_a, token_b)


def get_reserves(factory: PairFactory, token_a: str, token_b: str) -> Tuple[int, int]:
    """Reserves of the token_a/token_b pair, in (token_a, token_b) order."""
    token0, _ = sort_tokens(token_a, token_b)
    pair = factory.get_pair_or_raise(token_a, token_b)
    reserve0, reserve1, _ = pair.get_reserves()
    return (reserve0, reserve1) if token_a == token0 else (reserve1, reserve0)


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Equivalent amount of the other asset at the reserve ratio (no fee)."""
    if amount_a <= 0:
        raise InsufficientAmountError("Insufficient amount")
    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity")
    return amount_a * reserve_b // reserve_a


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Maximum output for an exact input, net of the 0.3% fee."""
    if amount_in <= 0:
        raise InsufficientInputAmountError("Insufficient input amount")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity")
    amount_in_with_fee = amount_in * FEE_MULTIPLIER
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Minimum input for an exact output, net of the 0.3% fee."""
    if amount_out <= 0:
        raise InsufficientOutputAmountError("Insufficient output amount")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("Insufficient liquidity")
    if amount_out >= reserve_out:
        raise InsufficientLiquidityError("Output would drain reserve")
    numerator = reserve_in * amount_out * FEE_DENOMINATOR
    denominator = (reserve_out - amount_out) * FEE_MULTIPLIER
    return numerator // denominator + 1


def _check_path(path: Sequence[str]) -> None:
    if len(path) < 2:
        raise InvalidPathError(f"Path needs at least two assets, got {len(path)}")


def get_amounts_out(factory: PairFactory, amount_in: int, path: Sequence[str]) -> List[int]:
    """Chained get_amount_out along ``path``; one amount per path node."""
    _check_path(path)
    amounts = [amount_in]
    for token_in, token_out in zip(path, path[1:]):
        reserve_in, reserve_out = get_reserves(factory, token_in, token_out)
        amounts.append(get_amount_out(amounts[-1], reserve_in, reserve_out))
    return amounts


def get_amounts_in(factory: PairFactory, amount_out: int, path: Sequence[str]) -> List[int]:
    """Chained get_amount_in backwards along ``path``; one amount per path node."""
    _check_path(path)
    amounts = [amount_out]
    for token_in, token_out in zip(reversed(path[:-1]), reversed(path[1:])):
        reserve_in, reserve_out = get_reserves(factory, token_in, token_out)
        amounts.append(get_amount_in(amounts[-1], reserve_in, reserve_out))
    amounts.reverse()
    return amounts
