"""
Test suite for the PairSwap resting-order book
"""

import pytest

from conftest import ALICE, BOB, CAROL, E18, INITIAL_BALANCE, provide
from pairswap.exceptions import (
    InsufficientInputAmountError,
    InsufficientOutputAmountError,
    OrderError,
    PairNotFoundError,
)
from pairswap.exchange import orderbook as orderbook_module
from pairswap.exchange.library import get_amount_out
from pairswap.exchange.orderbook import OrderBook, OrderStatus


@pytest.fixture()
def book(factory, pair):
    provide(pair, 100 * E18, 100 * E18)
    book = OrderBook(factory)
    pair.token0.approve(BOB, book.address, 2 ** 200)
    pair.token1.approve(BOB, book.address, 2 ** 200)
    return book


def sell_token0(book, pair, min_out, amount=E18):
    return book.place_order(BOB, pair.token0.address, pair.token1.address, amount, min_out)


class TestPlaceOrder:

    def test_escrows_input(self, book, pair, clock):
        order = sell_token0(book, pair, E18 // 2)
        assert order.status == OrderStatus.OPEN
        assert order.created_at == clock()
        assert pair.token0.balance_of(book.address) == E18
        assert pair.token0.balance_of(BOB) == INITIAL_BALANCE - E18
        assert book.get_order(order.id) is order
        assert book.open_orders(BOB) == [order]

    def test_ids_are_unique(self, book, pair):
        first = sell_token0(book, pair, 1)
        second = sell_token0(book, pair, 1)
        assert first.id != second.id

    def test_zero_amount(self, book, pair):
        with pytest.raises(InsufficientInputAmountError):
            sell_token0(book, pair, 1, amount=0)

    def test_zero_minimum(self, book, pair):
        with pytest.raises(InsufficientOutputAmountError):
            sell_token0(book, pair, 0)

    def test_unknown_pair(self, book, pair, token_c):
        with pytest.raises(PairNotFoundError):
            book.place_order(BOB, pair.token0.address, token_c.address, E18, 1)

    def test_order_limit(self, book, pair, monkeypatch):
        monkeypatch.setattr(orderbook_module, "MAX_ORDERS_PER_ADDRESS", 2)
        sell_token0(book, pair, 1)
        sell_token0(book, pair, 1)
        with pytest.raises(OrderError, match="limit"):
            sell_token0(book, pair, 1)


class TestExecuteOrder:

    def test_execute_when_spot_meets_minimum(self, book, pair):
        spot = get_amount_out(E18, 100 * E18, 100 * E18)
        order = sell_token0(book, pair, spot)

        assert book.is_executable(order.id)
        out = book.execute_order(order.id, keeper=CAROL)

        assert out == spot
        assert order.status == OrderStatus.FILLED
        assert order.amount_out == spot
        assert pair.token1.balance_of(BOB) == INITIAL_BALANCE + spot
        assert pair.token0.balance_of(book.address) == 0
        assert book.open_orders() == []

    def test_rests_until_price_moves(self, book, pair):
        order = sell_token0(book, pair, E18 + E18 // 10)
        assert not book.is_executable(order.id)
        with pytest.raises(InsufficientOutputAmountError):
            book.execute_order(order.id)
        assert pair.token0.balance_of(book.address) == E18

        # Someone buys token0, making it dearer
        pair.token1.transfer(ALICE, pair.address, 20 * E18)
        pair.swap(get_amount_out(20 * E18, 100 * E18, 100 * E18), 0, ALICE)

        assert book.is_executable(order.id)
        out = book.execute_order(order.id)
        assert out >= order.min_amount_out

    def test_cannot_execute_twice(self, book, pair):
        order = sell_token0(book, pair, 1)
        book.execute_order(order.id)
        with pytest.raises(OrderError):
            book.execute_order(order.id)

    def test_unknown_order(self, book):
        with pytest.raises(OrderError, match="not found"):
            book.execute_order("deadbeef")


class TestCancelOrder:

    def test_refunds_escrow(self, book, pair):
        order = sell_token0(book, pair, 1)
        book.cancel_order(order.id, BOB)
        assert order.status == OrderStatus.CANCELLED
        assert pair.token0.balance_of(BOB) == INITIAL_BALANCE
        assert pair.token0.balance_of(book.address) == 0

    def test_only_maker(self, book, pair):
        order = sell_token0(book, pair, 1)
        with pytest.raises(OrderError, match="maker"):
            book.cancel_order(order.id, CAROL)
        assert order.is_active

    def test_cannot_cancel_filled(self, book, pair):
        order = sell_token0(book, pair, 1)
        book.execute_order(order.id)
        with pytest.raises(OrderError):
            book.cancel_order(order.id, BOB)
