"""WebSocket endpoint that tracks clients and fans messages out to them."""

from __future__ import annotations

import json
import threading
from typing import Callable, Dict, List, Optional, Set, Union

from websockets.exceptions import ConnectionClosedError
from websockets.sync.server import Server, ServerConnection, serve

from . import logger
from .engine import MatchingEngine

MessageHandler = Callable[[ServerConnection, str], None]


class WebSocketServer:
    """Accepts WebSocket clients on a background thread.

    Incoming text is passed to the registered message handler together with
    the connection it came from; a handler that raises makes the server send
    an error message back to that client.
    """

    def __init__(
        self, engine: MatchingEngine, port: int = 9002, host: str = "0.0.0.0"
    ) -> None:
        self.engine = engine
        self._host = host
        self._port = port
        self._handler: Optional[MessageHandler] = None
        self._running = False
        self._server: Optional[Server] = None
        self._thread: Optional[threading.Thread] = None
        self._connections: Dict[ServerConnection, threading.Lock] = {}
        self._connections_lock = threading.Lock()
        self._subscriptions: Dict[ServerConnection, Set[str]] = {}
        self._subscriptions_lock = threading.Lock()

    @property
    def port(self) -> int:
        """The port in use; the bound port once started."""
        return self._port

    @property
    def running(self) -> bool:
        return self._running

    @property
    def connections(self) -> List[ServerConnection]:
        """The currently open client connections."""
        with self._connections_lock:
            return list(self._connections)

    def start(self) -> None:
        """Bind the port and accept clients on a background thread."""
        if self._running:
            return
        try:
            server = serve(self._serve_connection, self._host, self._port)
        except OSError as exc:
            logger.err(f"Error setting up WebSocket server: {exc}")
            raise
        self._server = server
        self._port = server.socket.getsockname()[1]
        self._running = True
        self._thread = threading.Thread(
            target=self._run, name="websocket-server", daemon=True
        )
        self._thread.start()
        logger.info(f"WebSocket server started on port {self._port}")

    def _run(self) -> None:
        server = self._server
        if server is None:
            return
        try:
            server.serve_forever()
        except Exception as exc:
            logger.err(f"Server error: {exc}")
            self._running = False

    def stop(self) -> None:
        """Stop accepting clients and close every open connection."""
        if not self._running:
            return
        self._running = False
        server, self._server = self._server, None
        if server is not None:
            server.shutdown()
        for connection in self.connections:
            try:
                connection.close()
            except Exception as exc:
                logger.err(f"Error closing connection: {exc}")
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("WebSocket server stopped")

    def set_message_handler(self, handler: Optional[MessageHandler]) -> None:
        """Register ``handler(connection, payload)`` for incoming messages."""
        self._handler = handler

    def broadcast(self, message: str) -> None:
        """Send ``message`` to every connected client."""
        with self._connections_lock:
            for connection, send_lock in self._connections.items():
                try:
                    with send_lock:
                        connection.send(message)
                except Exception as exc:
                    logger.err(f"Error broadcasting message: {exc}")

    def _serve_connection(self, connection: ServerConnection) -> None:
        with self._connections_lock:
            self._connections[connection] = threading.Lock()
        logger.info("New WebSocket connection established")
        try:
            for message in connection:
                self._on_message(connection, message)
        except ConnectionClosedError:
            logger.err("WebSocket error occurred")
        else:
            logger.info("WebSocket connection closed")
        finally:
            self._cleanup(connection)

    def _on_message(self, connection: ServerConnection, message: Union[str, bytes]) -> None:
        handler = self._handler
        if handler is None:
            return
        payload = (
            message.decode("utf-8", errors="replace")
            if isinstance(message, bytes)
            else message
        )
        try:
            handler(connection, payload)
        except Exception as exc:
            logger.err(f"Error handling message: {exc}")
            self._send_error(connection, "Error processing message")

    def _send_error(self, connection: ServerConnection, error_msg: str) -> None:
        error = json.dumps(
            {"type": "error", "message": error_msg},
            sort_keys=True,
            separators=(",", ":"),
        )
        with self._connections_lock:
            send_lock = self._connections.get(connection) or threading.Lock()
        try:
            with send_lock:
                connection.send(error)
        except Exception as exc:
            logger.err(f"Error sending error message: {exc}")

    def _cleanup(self, connection: ServerConnection) -> None:
        with self._connections_lock:
            self._connections.pop(connection, None)
        with self._subscriptions_lock:
            self._subscriptions.pop(connection, None)