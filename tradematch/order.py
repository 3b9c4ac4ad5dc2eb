"""Orders and the enumerations that describe them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OrderType(Enum):
    """How an order is matched against the book."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"
    IOC = "IOC"
    FOK = "FOK"


class OrderSide(Enum):
    """Which side of the book an order trades on."""

    BUY = "BUY"
    SELL = "SELL"


class OrderStatus(Enum):
    """Lifecycle state of an order."""

    NEW = "NEW"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"


@dataclass
class Order:
    """An order; quantity holds what is still open and status tracks fills."""

    order_id: str
    symbol: str
    order_type: OrderType
    side: OrderSide
    quantity: float
    price: float
    timestamp: str
    status: OrderStatus = OrderStatus.NEW