import json

from tradematch.trade import Trade


def _sample():
    return Trade(
        trade_id="42",
        timestamp="2025-06-14T10:01:00.000000Z",
        symbol="BTC-USDT",
        price=50000.0,
        quantity=1.0,
        aggressor_side="buy",
        maker_order_id="s1",
        taker_order_id="b1",
    )


def test_to_json_round_trip():
    trade = _sample()
    data = json.loads(trade.to_json())
    assert Trade(**data) == trade


def test_to_json_is_compact_and_sorted():
    text = _sample().to_json()
    assert " " not in text
    keys = list(json.loads(text))
    assert keys == sorted(keys)
    assert text.startswith('{"aggressor_side":"buy"')


def test_to_json_has_all_fields():
    data = json.loads(_sample().to_json())
    assert set(data) == {
        "trade_id",
        "timestamp",
        "symbol",
        "price",
        "quantity",
        "aggressor_side",
        "maker_order_id",
        "taker_order_id",
    }
    assert data["price"] == 50000.0
    assert data["maker_order_id"] == "s1"