"""
Liquidity-ratio solver.

Picks the deposit pair that matches the pool's current ratio without
exceeding either desired amount, and enforces the caller's minimums
against reserve drift between quote time and execution.
"""

from __future__ import annotations

from typing import Tuple

from pairswap.exceptions import InsufficientAmountError
from pairswap.exchange.library import quote


def optimal_amounts(
    amount_a_desired: int,
    amount_b_desired: int,
    amount_a_min: int,
    amount_b_min: int,
    reserve_a: int,
    reserve_b: int,
) -> Tuple[int, int]:
    if reserve_a == 0 and reserve_b == 0:
        # First provision sets the ratio
        return amount_a_desired, amount_b_desired

    amount_b_optimal = quote(amount_a_desired, reserve_a, reserve_b)
    if amount_b_optimal <= amount_b_desired:
        if amount_b_optimal < amount_b_min:
            raise InsufficientAmountError(
                f"Insufficient B amount: {amount_b_optimal} < minimum {amount_b_min}"
            )
        return amount_a_desired, amount_b_optimal

    amount_a_optimal = quote(amount_b_desired, reserve_b, reserve_a)
    assert amount_a_optimal <= amount_a_desired
    if amount_a_optimal < amount_a_min:
        raise InsufficientAmountError(
            f"Insufficient A amount: {amount_a_optimal} < minimum {amount_a_min}"
        )
    return amount_a_optimal, amount_b_desired
