"""Price-time priority order book for a single symbol."""

from __future__ import annotations

import json
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Tuple

from .order import Order, OrderSide

PriceLevel = Deque[Order]


def _level_quantity(level: PriceLevel) -> float:
    return sum((order.quantity for order in level), 0.0)


class OrderBook:
    """Resting orders grouped by price level, FIFO within a level.

    ``bids`` and ``asks`` map a price to its queue of orders; bids are best
    when highest, asks when lowest. ``lock`` guards both maps.
    """

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self.bids: Dict[float, PriceLevel] = {}
        self.asks: Dict[float, PriceLevel] = {}
        self.lock = threading.Lock()
        self._best_bid = 0.0
        self._best_ask = 0.0
        self._on_change: Optional[Callable[[], None]] = None

    def _bid_prices(self) -> List[float]:
        return sorted(self.bids, reverse=True)

    def _ask_prices(self) -> List[float]:
        return sorted(self.asks)

    def add_order(self, order: Order) -> None:
        """Queue ``order`` at the back of its price level."""
        with self.lock:
            price = order.price
            if order.side is OrderSide.BUY:
                self.bids.setdefault(price, deque()).append(order)
                if price > self._best_bid or self._best_bid == 0.0:
                    self._best_bid = price
            else:
                self.asks.setdefault(price, deque()).append(order)
                if self._best_ask == 0.0 or price < self._best_ask:
                    self._best_ask = price
        self._notify_change()

    def remove_order(self, order_id: str, side: OrderSide, price: float) -> None:
        """Remove the order with ``order_id`` from the level at ``price``."""
        with self.lock:
            book = self.bids if side is OrderSide.BUY else self.asks
            level = book.get(price)
            if level is not None:
                kept = deque(o for o in level if o.order_id != order_id)
                if kept:
                    book[price] = kept
                else:
                    del book[price]
            self._update_bbo()
        self._notify_change()

    def bbo(self) -> Tuple[float, float]:
        """Best bid and best ask; 0.0 stands for an empty side."""
        with self.lock:
            return self._best_bid, self._best_ask

    def depth(self, side: OrderSide, levels: int) -> List[Tuple[float, float]]:
        """Aggregated (price, quantity) pairs for the best levels of ``side``.

        At least one level is returned when the side is not empty.
        """
        with self.lock:
            if side is OrderSide.BUY:
                book, prices = self.bids, self._bid_prices()
            else:
                book, prices = self.asks, self._ask_prices()
            return [(p, _level_quantity(book[p])) for p in prices[: max(levels, 1)]]

    def market_depth(self, levels: int) -> str:
        """JSON of the best ``levels`` ask and bid levels with a timestamp."""
        with self.lock:
            count = max(levels, 0)
            data = {
                "timestamp": str(time.time_ns()),
                "symbol": self.symbol,
                "asks": [
                    [[p, _level_quantity(self.asks[p])]]
                    for p in self._ask_prices()[:count]
                ],
                "bids": [
                    [[p, _level_quantity(self.bids[p])]]
                    for p in self._bid_prices()[:count]
                ],
            }
        return json.dumps(data, sort_keys=True, separators=(",", ":"))

    def snapshot(self) -> str:
        """JSON of every bid and ask level."""
        with self.lock:
            data = {
                "symbol": self.symbol,
                "bids": [
                    [[p, _level_quantity(self.bids[p])]] for p in self._bid_prices()
                ],
                "asks": [
                    [[p, _level_quantity(self.asks[p])]] for p in self._ask_prices()
                ],
            }
        return json.dumps(data, sort_keys=True, separators=(",", ":"))

    def set_on_change(self, callback: Optional[Callable[[], None]]) -> None:
        """Register a callable invoked after every add or remove."""
        with self.lock:
            self._on_change = callback

    def _update_bbo(self) -> None:
        self._best_bid = max(self.bids) if self.bids else 0.0
        self._best_ask = min(self.asks) if self.asks else 0.0

    def _notify_change(self) -> None:
        callback = self._on_change
        if callback is not None:
            callback()