"""Executed trades."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass


@dataclass
class Trade:
    """A single execution between a resting (maker) and incoming (taker) order."""

    trade_id: str = ""
    timestamp: str = ""
    symbol: str = ""
    price: float = 0.0
    quantity: float = 0.0
    aggressor_side: str = ""
    maker_order_id: str = ""
    taker_order_id: str = ""

    def to_json(self) -> str:
        """Serialise as compact JSON with keys in sorted order."""
        return json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))