"""Matching engine routing orders to per-symbol books."""

from __future__ import annotations

import dataclasses
import random
import threading
from typing import Callable, Dict, List, Optional, Tuple

from .order import Order, OrderSide, OrderStatus, OrderType
from .orderbook import OrderBook
from .trade import Trade

TradeCallback = Callable[[Trade], None]


def _new_trade_id() -> str:
    return str(random.randint(0, 2**31 - 1))


class MatchingEngine:
    """Matches incoming orders against resting liquidity with price-time priority.

    ``order_books`` maps each symbol seen so far to its :class:`OrderBook`.
    Orders passed to :meth:`process_order` are updated in place: their status,
    and for partial fills their remaining quantity.
    """

    def __init__(self) -> None:
        self.order_books: Dict[str, OrderBook] = {}
        self._books_lock = threading.Lock()
        self._on_trade: Optional[TradeCallback] = None

    def set_on_trade(self, callback: Optional[TradeCallback]) -> None:
        """Register a callable invoked once for every executed trade."""
        self._on_trade = callback

    def process_order(self, order: Order) -> List[Trade]:
        """Match ``order`` according to its type and return the resulting trades."""
        book = self._book_for(order.symbol)
        handlers = {
            OrderType.MARKET: self._match_market,
            OrderType.LIMIT: self._match_limit,
            OrderType.IOC: self._match_ioc,
            OrderType.FOK: self._match_fok,
        }
        handler = handlers.get(order.order_type)
        if handler is None:
            raise ValueError("Unknown order type")
        trades = handler(book, order)
        callback = self._on_trade
        if callback is not None:
            for trade in trades:
                callback(trade)
        return trades

    def _book_for(self, symbol: str) -> OrderBook:
        with self._books_lock:
            book = self.order_books.get(symbol)
            if book is None:
                book = OrderBook(symbol)
                self.order_books[symbol] = book
            return book

    @staticmethod
    def _opposite_levels(book: OrderBook, order: Order):
        """The opposite side's price map and its prices, best first."""
        if order.side is OrderSide.BUY:
            return book.asks, sorted(book.asks)
        return book.bids, sorted(book.bids, reverse=True)

    @staticmethod
    def _crosses(order: Order, price: float, limit: Optional[float]) -> bool:
        if limit is None:
            return True
        if order.side is OrderSide.BUY:
            return price <= limit
        return price >= limit

    def _sweep(
        self, book: OrderBook, order: Order, limit: Optional[float]
    ) -> Tuple[List[Trade], float]:
        """Consume opposite liquidity; the caller must hold ``book.lock``."""
        trades: List[Trade] = []
        remaining = order.quantity
        aggressor = "buy" if order.side is OrderSide.BUY else "sell"
        levels, prices = self._opposite_levels(book, order)
        for price in prices:
            if remaining <= 0:
                break
            if not self._crosses(order, price, limit):
                break
            queue = levels[price]
            while queue and remaining > 0:
                resting = queue[0]
                match_qty = min(remaining, resting.quantity)
                trades.append(
                    Trade(
                        trade_id=_new_trade_id(),
                        timestamp=order.timestamp,
                        symbol=order.symbol,
                        price=resting.price,
                        quantity=match_qty,
                        aggressor_side=aggressor,
                        maker_order_id=resting.order_id,
                        taker_order_id=order.order_id,
                    )
                )
                remaining -= match_qty
                resting.quantity -= match_qty
                if resting.quantity == 0:
                    resting.status = OrderStatus.FILLED
                    queue.popleft()
                else:
                    resting.status = OrderStatus.PARTIALLY_FILLED
            if not queue:
                del levels[price]
        return trades, remaining

    def _available(self, book: OrderBook, order: Order, limit: float) -> float:
        """Quantity resting within ``limit``, counted until it covers the order."""
        available = 0.0
        wanted = order.quantity
        levels, prices = self._opposite_levels(book, order)
        for price in prices:
            if available >= wanted:
                break
            if not self._crosses(order, price, limit):
                break
            for resting in levels[price]:
                if available >= wanted:
                    break
                available += resting.quantity
        return available

    def _match_market(self, book: OrderBook, order: Order) -> List[Trade]:
        with book.lock:
            trades, remaining = self._sweep(book, order, None)
        if remaining == 0:
            order.status = OrderStatus.FILLED
        elif remaining < order.quantity:
            order.status = OrderStatus.PARTIALLY_FILLED
            order.quantity = remaining
        else:
            order.status = OrderStatus.NEW
        return trades

    def _match_limit(self, book: OrderBook, order: Order) -> List[Trade]:
        with book.lock:
            trades, remaining = self._sweep(book, order, order.price)
        if remaining > 0:
            if remaining < order.quantity:
                order.status = OrderStatus.PARTIALLY_FILLED
            else:
                order.status = OrderStatus.NEW
            order.quantity = remaining
            book.add_order(dataclasses.replace(order))
        else:
            order.status = OrderStatus.FILLED
        return trades

    def _match_ioc(self, book: OrderBook, order: Order) -> List[Trade]:
        with book.lock:
            trades, remaining = self._sweep(book, order, order.price)
        if remaining == 0:
            order.status = OrderStatus.FILLED
        elif remaining < order.quantity:
            order.status = OrderStatus.PARTIALLY_FILLED
            order.quantity = remaining
        else:
            order.status = OrderStatus.CANCELLED
        return trades

    def _match_fok(self, book: OrderBook, order: Order) -> List[Trade]:
        with book.lock:
            if self._available(book, order, order.price) < order.quantity:
                order.status = OrderStatus.CANCELLED
                return []
            trades, _ = self._sweep(book, order, order.price)
        order.status = OrderStatus.FILLED
        return trades