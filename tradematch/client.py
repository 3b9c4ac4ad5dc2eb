"""WebSocket trading client that sends orders and subscriptions."""

from __future__ import annotations

import json
import queue
import sys
import threading
from typing import Callable, Optional

from websockets.exceptions import ConnectionClosed, InvalidURI
from websockets.sync.client import ClientConnection
from websockets.sync.client import connect as ws_connect

DEFAULT_URI = "ws://localhost:9002"

MessageHandler = Callable[[str], None]
ConnectionStatusHandler = Callable[[bool], None]


def _report(message: str) -> None:
    print(message, file=sys.stderr)


def _dump(data: dict) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def order_message(
    symbol: str, order_type: str, side: str, quantity: float, price: float = 0.0
) -> str:
    """JSON text of an order request; the price is included only when positive."""
    data = {
        "type": "order",
        "symbol": symbol,
        "order_type": order_type,
        "side": side,
        "quantity": float(quantity),
    }
    if price > 0:
        data["price"] = float(price)
    return _dump(data)


def subscription_message(kind: str, symbol: str) -> str:
    """JSON text of a ``subscribe`` or ``unsubscribe`` request."""
    return _dump({"type": kind, "symbol": symbol})


class TradingClient:
    """Connects to the matching engine's WebSocket endpoint.

    Incoming messages are queued and handed to the message handler on a
    worker thread; the status handler is told when the connection opens or
    closes.
    """

    def __init__(self, uri: str = DEFAULT_URI, open_timeout: float = 5.0) -> None:
        self.uri = uri
        self._open_timeout = open_timeout
        self._connection: Optional[ClientConnection] = None
        self._connected = False
        self._state_lock = threading.Lock()
        self._send_lock = threading.Lock()
        self._stop = threading.Event()
        self._messages: "queue.Queue[str]" = queue.Queue()
        self._message_handler: Optional[MessageHandler] = None
        self._status_handler: Optional[ConnectionStatusHandler] = None
        self._receiver: Optional[threading.Thread] = None
        self._processor: Optional[threading.Thread] = None

    def __enter__(self) -> "TradingClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    def connect(self) -> bool:
        """Open the connection; True when connected (or already connected)."""
        if self._connected:
            return True
        try:
            connection = ws_connect(self.uri, open_timeout=self._open_timeout)
        except InvalidURI as exc:
            _report(f"Could not create connection: {exc}")
            return False
        except TimeoutError:
            _report("Connection timeout")
            return False
        except Exception as exc:
            _report(f"Connection error: {exc}")
            return False

        stop = threading.Event()
        messages: "queue.Queue[str]" = queue.Queue()
        self._stop = stop
        self._messages = messages
        self._connection = connection
        with self._state_lock:
            self._connected = True
        self._notify_status(True)
        self._receiver = threading.Thread(
            target=self._receive,
            args=(connection, stop, messages),
            name="trading-client-receiver",
            daemon=True,
        )
        self._processor = threading.Thread(
            target=self._process_messages,
            args=(stop, messages),
            name="trading-client-messages",
            daemon=True,
        )
        self._receiver.start()
        self._processor.start()
        return True

    def disconnect(self) -> None:
        """Close the connection and stop the worker threads."""
        if not self._connected:
            return
        self._stop.set()
        processor = self._processor
        if processor is not None and processor is not threading.current_thread():
            processor.join()
        was_connected = self._mark_disconnected()
        connection = self._connection
        if connection is not None:
            try:
                connection.close(code=1000, reason="Client disconnecting")
            except Exception as exc:
                _report(f"Error closing connection: {exc}")
        receiver = self._receiver
        if receiver is not None and receiver is not threading.current_thread():
            receiver.join(timeout=5)
        if was_connected:
            self._notify_status(False)

    def is_connected(self) -> bool:
        return self._connected

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        """Register ``handler(message)`` for messages from the server."""
        self._message_handler = handler

    def set_connection_status_handler(
        self, handler: Optional[ConnectionStatusHandler]
    ) -> None:
        """Register ``handler(connected)`` for connection changes."""
        self._status_handler = handler

    def place_order(
        self,
        symbol: str,
        order_type: str,
        side: str,
        quantity: float,
        price: float = 0.0,
    ) -> bool:
        """Send an order; False if it could not be sent."""
        try:
            self._send(order_message(symbol, order_type, side, quantity, price))
            return True
        except Exception as exc:
            _report(f"Error placing order: {exc}")
            return False

    def subscribe(self, symbol: str) -> bool:
        """Ask for market data on ``symbol``; False if it could not be sent."""
        try:
            self._send(subscription_message("subscribe", symbol))
            return True
        except Exception as exc:
            _report(f"Error subscribing to market data: {exc}")
            return False

    def unsubscribe(self, symbol: str) -> bool:
        """Stop market data on ``symbol``; False if it could not be sent."""
        try:
            self._send(subscription_message("unsubscribe", symbol))
            return True
        except Exception as exc:
            _report(f"Error unsubscribing from market data: {exc}")
            return False

    def _send(self, message: str) -> None:
        connection = self._connection
        if not self._connected or connection is None:
            raise RuntimeError("Not connected to server")
        try:
            with self._send_lock:
                connection.send(message)
        except Exception as exc:
            error = f"Error sending message: {exc}"
            _report(f"Send error: {error}")
            raise RuntimeError(error) from exc

    def _mark_disconnected(self) -> bool:
        with self._state_lock:
            was_connected = self._connected
            self._connected = False
            return was_connected

    def _notify_status(self, connected: bool) -> None:
        handler = self._status_handler
        if handler is not None:
            handler(connected)

    def _receive(
        self,
        connection: ClientConnection,
        stop: threading.Event,
        messages: "queue.Queue[str]",
    ) -> None:
        try:
            for message in connection:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                if self._message_handler is not None:
                    messages.put(message)
        except ConnectionClosed:
            pass
        except Exception as exc:
            _report(f"Client run error: {exc}")
        if self._mark_disconnected():
            stop.set()
            self._notify_status(False)

    def _process_messages(
        self, stop: threading.Event, messages: "queue.Queue[str]"
    ) -> None:
        while not stop.is_set():
            try:
                message = messages.get(timeout=0.01)
            except queue.Empty:
                continue
            handler = self._message_handler
            if message and handler is not None:
                try:
                    handler(message)
                except Exception as exc:
                    _report(f"Message handler error: {exc}")