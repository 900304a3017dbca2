"""Shared fixtures for the PairSwap test suite."""

import pytest

from pairswap.exchange.factory import PairFactory
from pairswap.exchange.pair import Pair
from pairswap.tokens.ledger import Token

E18 = 10 ** 18
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c0" * 20
INITIAL_BALANCE = 10 ** 9 * E18
START_TIME = 1_700_000_000


class ManualClock:
    """Deterministic integer-second clock."""

    def __init__(self, start: int = START_TIME):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


def make_token(name: str, symbol: str) -> Token:
    token = Token(name, symbol, total_supply=2 * INITIAL_BALANCE, deployer=ALICE)
    token.transfer(ALICE, BOB, INITIAL_BALANCE)
    return token


def provide(pair: Pair, amount0: int, amount1: int, provider: str = ALICE) -> int:
    """Deposit into ``pair`` and mint claims to ``provider``."""
    pair.token0.transfer(provider, pair.address, amount0)
    pair.token1.transfer(provider, pair.address, amount1)
    return pair.mint(provider, sender=provider)


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def factory(clock):
    return PairFactory(clock=clock)


@pytest.fixture()
def token_a():
    return make_token("Token A", "TKA")


@pytest.fixture()
def token_b():
    return make_token("Token B", "TKB")


@pytest.fixture()
def token_c():
    return make_token("Token C", "TKC")


@pytest.fixture()
def pair(factory, token_a, token_b):
    return factory.create_pair(token_a, token_b)
