"""
Test suite for the PairSwap TWAP guard

Covers:
  - Observation recording and freshness
  - Honest windowed execution (output near the fee-adjusted mean price)
  - Manipulation resistance: unsatisfied window, spot cap
  - Zero accumulator movement
  - Counterfactual cumulative prices and consult
"""

import pytest

from conftest import ALICE, BOB, CAROL, E18, INITIAL_BALANCE, provide
from pairswap.constants import Q112, TWAP_WINDOW_SECONDS
from pairswap.exceptions import (
    InsufficientAllowanceError,
    InsufficientOutputAmountError,
    NoObservationError,
    TimeNotAdvancedError,
    ValidationError,
    WindowNotElapsedError,
    ZeroPriceDeltaError,
)
from pairswap.exchange.library import get_amount_out
from pairswap.exchange.oracle import TWAPGuard, current_cumulative_prices

WINDOW = 3600


@pytest.fixture()
def guard(pair):
    guard = TWAPGuard()
    pair.token0.approve(BOB, guard.address, 2 ** 200)
    pair.token1.approve(BOB, guard.address, 2 ** 200)
    return guard


@pytest.fixture()
def seeded(pair):
    provide(pair, 1000 * E18, 1000 * E18)
    return pair


class TestObservation:

    def test_default_window(self):
        assert TWAPGuard().default_window == TWAP_WINDOW_SECONDS

    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            TWAPGuard(default_window=0)

    def test_record(self, guard, seeded):
        obs = guard.record_observation(seeded)
        assert obs.timestamp == seeded.block_timestamp_last
        assert guard.observation(seeded) == obs

    def test_record_requires_newer_timestamp(self, guard, seeded, clock):
        guard.record_observation(seeded)
        with pytest.raises(TimeNotAdvancedError):
            guard.record_observation(seeded)

        # Clock movement alone is not enough; the pair must update
        clock.advance(60)
        with pytest.raises(TimeNotAdvancedError):
            guard.record_observation(seeded)

        seeded.sync()
        guard.record_observation(seeded)


class TestWindowedExecution:

    def test_honest_path(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(WINDOW)
        seeded.sync()

        spot = get_amount_out(E18, 1000 * E18, 1000 * E18)
        out = guard.execute_windowed(seeded, BOB, E18, 0, window=WINDOW)

        # 1:1 mean price less the 0.3% fee, capped by spot slippage
        assert out == min(E18 * 997 // 1000, spot)
        assert out > E18 * 99 // 100
        assert seeded.token1.balance_of(BOB) == INITIAL_BALANCE + out
        assert guard.observation(seeded).timestamp == seeded.block_timestamp_last

    def test_recipient_override(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(WINDOW)
        seeded.sync()
        out = guard.execute_windowed(seeded, BOB, E18, 0, window=WINDOW, to=CAROL)
        assert seeded.token1.balance_of(CAROL) == out

    def test_reverse_direction(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(WINDOW)
        seeded.sync()
        out = guard.execute_windowed(seeded, BOB, E18, 0, window=WINDOW, zero_for_one=False)
        assert seeded.token0.balance_of(BOB) == INITIAL_BALANCE + out

    def test_manipulation_within_window_is_rejected(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(10)

        # Attacker pushes spot in the trader's favour
        seeded.token1.transfer(ALICE, seeded.address, 500 * E18)
        seeded.swap(get_amount_out(500 * E18, 1000 * E18, 1000 * E18), 0, ALICE)

        with pytest.raises(WindowNotElapsedError):
            guard.execute_windowed(seeded, BOB, E18, 0, window=WINDOW)
        assert seeded.token0.balance_of(BOB) == INITIAL_BALANCE

    def test_distorted_spot_is_capped_by_mean(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(WINDOW)

        # The manipulation lands after an honest window; the interval is
        # priced at the reserves that held before it
        seeded.token1.transfer(ALICE, seeded.address, 500 * E18)
        seeded.swap(get_amount_out(500 * E18, 1000 * E18, 1000 * E18), 0, ALICE)

        reserve0, reserve1, _ = seeded.get_reserves()
        spot = get_amount_out(E18, reserve0, reserve1)
        out = guard.quote_windowed(seeded, E18, window=WINDOW)

        assert spot > E18
        assert out == E18 * 997 // 1000

    def test_no_observation(self, guard, seeded):
        with pytest.raises(NoObservationError):
            guard.execute_windowed(seeded, BOB, E18, 0)

    def test_zero_price_delta(self, guard, pair, clock):
        # Observed while empty; the first provision moves the timestamp
        # but accumulates nothing
        guard.record_observation(pair)
        clock.advance(WINDOW)
        provide(pair, 1000 * E18, 1000 * E18)

        with pytest.raises(ZeroPriceDeltaError):
            guard.execute_windowed(pair, BOB, E18, 0, window=WINDOW)

    def test_minimum_output(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(WINDOW)
        seeded.sync()
        expected = guard.quote_windowed(seeded, E18, window=WINDOW)
        observation = guard.observation(seeded)

        with pytest.raises(InsufficientOutputAmountError):
            guard.execute_windowed(seeded, BOB, E18, expected + 1, window=WINDOW)

        assert seeded.token0.balance_of(BOB) == INITIAL_BALANCE
        assert guard.observation(seeded) == observation

    def test_missing_allowance_rolls_back(self, seeded, clock):
        guard = TWAPGuard(address="0x" + "9a" * 20)
        guard.record_observation(seeded)
        clock.advance(WINDOW)
        seeded.sync()
        reserves = seeded.get_reserves()

        with pytest.raises(InsufficientAllowanceError):
            guard.execute_windowed(seeded, BOB, E18, 0, window=WINDOW)
        assert seeded.get_reserves() == reserves


class TestConsult:

    def test_counterfactual_accumulators(self, seeded, clock):
        before = current_cumulative_prices(seeded)
        assert before[:2] == (0, 0)

        clock.advance(100)
        price0, price1, timestamp = current_cumulative_prices(seeded)
        assert (price0, price1) == (Q112 * 100, Q112 * 100)
        assert timestamp == clock()
        # Pair state is untouched
        assert seeded.price0_cumulative_last == 0

    def test_consult(self, guard, seeded, clock):
        guard.record_observation(seeded)
        clock.advance(100)
        assert guard.consult(seeded, seeded.token0.address, E18) == E18
        assert guard.consult(seeded, seeded.token1.address, E18) == E18

    def test_consult_unknown_token(self, guard, seeded, clock, token_c):
        guard.record_observation(seeded)
        clock.advance(100)
        with pytest.raises(ValidationError):
            guard.consult(seeded, token_c.address, E18)

    def test_consult_without_elapsed_time(self, guard, seeded):
        guard.record_observation(seeded)
        with pytest.raises(TimeNotAdvancedError):
            guard.consult(seeded, seeded.token0.address, E18)
