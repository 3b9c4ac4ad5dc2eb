import json
import socket
import threading
import time
import urllib.error
import urllib.request

import pytest

from tradematch.engine import MatchingEngine
from tradematch.server_main import main, run_servers


@pytest.fixture
def busy_port():
    sock = socket.socket()
    sock.bind(("0.0.0.0", 0))
    sock.listen()
    yield sock.getsockname()[1]
    sock.close()


def _free_port():
    with socket.socket() as sock:
        sock.bind(("0.0.0.0", 0))
        return sock.getsockname()[1]


def _post_order(port, payload):
    request = urllib.request.Request(
        f"http://127.0.0.1:{port}/orders",
        data=json.dumps(payload).encode(),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    deadline = time.monotonic() + 5
    while True:
        try:
            with urllib.request.urlopen(request, timeout=5) as response:
                return response.status, json.loads(response.read())
        except (urllib.error.URLError, ConnectionError):
            if time.monotonic() > deadline:
                raise
            time.sleep(0.05)


def test_returns_zero_when_stopped(capsys):
    stop = threading.Event()
    stop.set()
    assert run_servers(MatchingEngine(), 0, 0, stop) == 0
    out = capsys.readouterr().out
    assert "Matching Engine is running. Press Ctrl+C to stop." in out
    assert "Matching Engine shutdown complete." in out


def test_rest_port_in_use_fails(busy_port, capsys):
    stop = threading.Event()
    assert run_servers(MatchingEngine(), busy_port, 0, stop) == 1
    assert "Failed to start servers" in capsys.readouterr().out


def test_websocket_port_in_use_fails(busy_port, capsys):
    stop = threading.Event()
    assert run_servers(MatchingEngine(), 0, busy_port, stop) == 1
    out = capsys.readouterr().out
    assert "WebSocket server error" in out
    assert "Matching Engine is running" not in out


def test_serves_orders_until_stopped():
    engine = MatchingEngine()
    stop = threading.Event()
    rest_port = _free_port()
    results = []
    thread = threading.Thread(
        target=lambda: results.append(run_servers(engine, rest_port, 0, stop)),
        daemon=True,
    )
    thread.start()
    try:
        status, body = _post_order(
            rest_port,
            {
                "symbol": "BTC-USDT",
                "order_type": "limit",
                "side": "sell",
                "quantity": 1.0,
                "price": 50000.0,
            },
        )
    finally:
        stop.set()
        thread.join(10)
    assert status == 200
    assert body["status"] == "success"
    assert body["executions"] == []
    assert "BTC-USDT" in engine.order_books
    assert results == [0]


def test_main_fails_on_busy_port(busy_port, capsys):
    assert main(["--rest-port", str(busy_port), "--ws-port", "0"]) == 1
    out = capsys.readouterr().out
    assert "Matching Engine starting up..." in out
    assert "Failed to start servers" in out