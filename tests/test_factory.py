"""
Test suite for the PairSwap pair registry

Covers:
  - Canonical ordering and lookup in either order
  - Duplicate / identical / zero-address rejection
  - Enumeration and PairCreated events
  - Concurrent creation of the same pair
"""

import threading

import pytest

from pairswap.constants import ZERO_ADDRESS
from pairswap.exceptions import (
    IdenticalAddressesError,
    PairExistsError,
    PairNotFoundError,
    ZeroAddressError,
)
from pairswap.exchange.factory import PairFactory, sort_addresses
from pairswap.tokens.ledger import Token


class TestSortAddresses:

    def test_orders_ascending(self):
        assert sort_addresses("0xbb", "0xaa") == ("0xaa", "0xbb")
        assert sort_addresses("0xaa", "0xbb") == ("0xaa", "0xbb")

    def test_identical(self):
        with pytest.raises(IdenticalAddressesError):
            sort_addresses("0xaa", "0xaa")

    def test_zero_address(self):
        with pytest.raises(ZeroAddressError):
            sort_addresses(ZERO_ADDRESS, "0xaa")


class TestPairFactory:
    """Pair registry behaviour"""

    def test_create_pair(self, factory, token_a, token_b):
        pair = factory.create_pair(token_a, token_b)
        assert factory.pair_count == 1
        assert factory.all_pairs == [pair]
        assert pair.factory == factory.address
        assert pair.token0.address < pair.token1.address

    def test_lookup_in_either_order(self, factory, token_a, token_b):
        pair = factory.create_pair(token_b, token_a)
        assert factory.get_pair(token_a.address, token_b.address) is pair
        assert factory.get_pair(token_b.address, token_a.address) is pair

    def test_duplicate_in_either_order(self, factory, token_a, token_b):
        factory.create_pair(token_a, token_b)
        with pytest.raises(PairExistsError):
            factory.create_pair(token_a, token_b)
        with pytest.raises(PairExistsError):
            factory.create_pair(token_b, token_a)
        assert factory.pair_count == 1

    def test_identical_assets(self, factory, token_a):
        with pytest.raises(IdenticalAddressesError):
            factory.create_pair(token_a, token_a)

    def test_zero_address_asset(self, factory, token_a):
        null = Token("Null", "NUL", address=ZERO_ADDRESS)
        with pytest.raises(ZeroAddressError):
            factory.create_pair(null, token_a)
        assert factory.pair_count == 0

    def test_missing_pair(self, factory, token_a, token_b):
        assert factory.get_pair(token_a.address, token_b.address) is None
        assert factory.get_pair(token_a.address, token_a.address) is None
        with pytest.raises(PairNotFoundError):
            factory.get_pair_or_raise(token_a.address, token_b.address)

    def test_pair_address_is_deterministic(self, token_a, token_b):
        one = PairFactory(address="0xfactory").create_pair(token_a, token_b)
        two = PairFactory(address="0xfactory").create_pair(token_b, token_a)
        other = PairFactory(address="0xelsewhere").create_pair(token_a, token_b)
        assert one.address == two.address
        assert one.address != other.address

    def test_pair_created_event(self, factory, token_a, token_b, token_c):
        first = factory.create_pair(token_a, token_b)
        second = factory.create_pair(token_a, token_c)
        events = factory.events
        assert [e.index for e in events] == [1, 2]
        assert events[0].pair == first.address
        assert events[1].pair == second.address
        assert events[0].token0 == first.token0.address

    def test_pairs_share_the_factory_clock(self, factory, token_a, token_b, clock):
        pair = factory.create_pair(token_a, token_b)
        clock.advance(42)
        assert pair.now() == clock()

    def test_snapshot_restore(self, factory, token_a, token_b):
        snap = factory.snapshot()
        factory.create_pair(token_a, token_b)
        factory.restore(snap)
        assert factory.pair_count == 0
        assert factory.get_pair(token_a.address, token_b.address) is None
        assert factory.events == []

    def test_concurrent_creation_yields_one_pair(self, factory, token_a, token_b):
        results, errors = [], []

        def create():
            try:
                results.append(factory.create_pair(token_a, token_b))
            except PairExistsError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=create) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 1
        assert len(errors) == 7
        assert factory.pair_count == 1
