import json
import queue
import socket
import threading
import time

import pytest
from websockets.exceptions import ConnectionClosed
from websockets.sync.server import serve

from tradematch.client import TradingClient, order_message, subscription_message


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _echo(connection):
    try:
        for message in connection:
            connection.send(message)
    except ConnectionClosed:
        pass


def _close_at_once(connection):
    connection.close()


def _running_server(handler):
    server = serve(handler, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, thread, f"ws://127.0.0.1:{server.socket.getsockname()[1]}"


@pytest.fixture
def echo_uri():
    server, thread, uri = _running_server(_echo)
    yield uri
    server.shutdown()
    thread.join(5)


@pytest.fixture
def closing_uri():
    server, thread, uri = _running_server(_close_at_once)
    yield uri
    server.shutdown()
    thread.join(5)


def test_order_message_with_price():
    message = order_message("BTC-USDT", "limit", "buy", 1.5, 50000.0)
    assert json.loads(message) == {
        "type": "order",
        "symbol": "BTC-USDT",
        "order_type": "limit",
        "side": "buy",
        "quantity": 1.5,
        "price": 50000.0,
    }
    assert " " not in message


def test_order_message_omits_non_positive_price():
    assert "price" not in json.loads(order_message("BTC-USDT", "market", "sell", 2, 0.0))
    assert "price" not in json.loads(order_message("BTC-USDT", "market", "sell", 2, -1.0))


def test_subscription_message():
    assert json.loads(subscription_message("subscribe", "BTC-USDT")) == {
        "type": "subscribe",
        "symbol": "BTC-USDT",
    }
    assert json.loads(subscription_message("unsubscribe", "BTC-USDT"))["type"] == "unsubscribe"


def test_not_connected_initially():
    client = TradingClient("ws://127.0.0.1:1")
    assert client.is_connected() is False


def test_place_order_without_connection_fails(capsys):
    client = TradingClient("ws://127.0.0.1:1")
    assert client.place_order("BTC-USDT", "limit", "buy", 1.0, 50000.0) is False
    assert "Not connected to server" in capsys.readouterr().err


def test_subscribe_and_unsubscribe_without_connection_fail():
    client = TradingClient("ws://127.0.0.1:1")
    assert client.subscribe("BTC-USDT") is False
    assert client.unsubscribe("BTC-USDT") is False


def test_connect_refused_returns_false(capsys):
    client = TradingClient(f"ws://127.0.0.1:{_free_port()}")
    assert client.connect() is False
    assert client.is_connected() is False
    assert "Connection error" in capsys.readouterr().err


def test_connect_invalid_uri_returns_false(capsys):
    client = TradingClient("not a uri")
    assert client.connect() is False
    assert "Could not create connection" in capsys.readouterr().err


def test_round_trip_through_echo_server(echo_uri):
    received = queue.Queue()
    statuses = []
    client = TradingClient(echo_uri)
    client.set_message_handler(received.put)
    client.set_connection_status_handler(statuses.append)

    assert client.connect() is True
    assert client.is_connected() is True
    assert client.connect() is True

    assert client.subscribe("BTC-USDT") is True
    assert json.loads(received.get(timeout=5)) == {"type": "subscribe", "symbol": "BTC-USDT"}

    assert client.place_order("BTC-USDT", "ioc", "sell", 1.0, 50000.0) is True
    echoed = json.loads(received.get(timeout=5))
    assert echoed["order_type"] == "ioc"
    assert echoed["price"] == 50000.0

    client.disconnect()
    assert client.is_connected() is False
    assert statuses == [True, False]


def test_context_manager_disconnects(echo_uri):
    with TradingClient(echo_uri) as client:
        assert client.connect() is True
    assert client.is_connected() is False


def test_server_close_reports_disconnect(closing_uri):
    statuses = []
    client = TradingClient(closing_uri)
    client.set_connection_status_handler(statuses.append)
    assert client.connect() is True
    assert _wait_for(lambda: statuses == [True, False])
    assert client.is_connected() is False
    assert client.place_order("BTC-USDT", "limit", "buy", 1.0, 1.0) is False