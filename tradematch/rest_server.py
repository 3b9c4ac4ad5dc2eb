"""HTTP endpoint that accepts orders and hands them to the matching engine."""

from __future__ import annotations

import json
import math
import re
import threading
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

from . import logger
from .engine import MatchingEngine
from .order import Order, OrderSide, OrderType
from .utils import current_timestamp, to_upper

_JSON = "application/json"
_CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
_ORDER_TYPES = {t.value: t for t in OrderType}
_SIDES = {s.value: s for s in OrderSide}
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class RestResponse:
    """Status, body and headers of an HTTP reply."""

    status: int
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """The body decoded as JSON."""
        return json.loads(self.body)


class _Rejected(Exception):
    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason


def _error_response(message: str) -> RestResponse:
    body = json.dumps({"error": message}, separators=(",", ":"))
    return RestResponse(400, body, {**_CORS_HEADERS, "Content-Type": _JSON})


def _preflight_response() -> RestResponse:
    return RestResponse(204, "", dict(_CORS_HEADERS))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid literal: {name}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_leading_float(text: str) -> float:
    """Parse the longest numeric prefix of ``text``, ignoring what follows."""
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"no conversion: {text!r}")
    literal = match.group(1)
    value = float(literal)
    if math.isinf(value) and "inf" not in literal.lower():
        raise ValueError(f"out of range: {literal}")
    return value


def _to_double(value: Any) -> float:
    if isinstance(value, str):
        return _parse_leading_float(value)
    if _is_number(value):
        return float(value)
    raise TypeError("type must be number")


class RestServer:
    """Serves ``POST /orders`` (and its CORS preflight) on a background thread."""

    def __init__(
        self, engine: MatchingEngine, port: int = 8080, host: str = "0.0.0.0"
    ) -> None:
        self.engine = engine
        self._host = host
        self._port = port
        self._running = False
        self._httpd: Optional[_OrderHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        """The port in use; the bound port once started."""
        return self._port

    @property
    def running(self) -> bool:
        return self._running

    def handle_order(self, body: Union[str, bytes]) -> RestResponse:
        """Validate an order request body, submit it and build the reply."""
        try:
            return self._submit(body)
        except _Rejected as rejected:
            logger.err(f"Order rejected: {rejected.reason}")
            return _error_response(rejected.message)
        except Exception as exc:  # any failure becomes a 400 reply
            logger.err(f"Order rejected: {exc}")
            return _error_response(str(exc))

    def _submit(self, body: Union[str, bytes]) -> RestResponse:
        data = json.loads(body, parse_constant=_reject_constant)
        if not isinstance(data, dict):
            data = {}
        for key in ("symbol", "order_type", "side"):
            if not isinstance(data.get(key), str):
                raise _Rejected(
                    f"Missing or invalid '{key}' (string)", f"missing/invalid {key}"
                )
        raw_quantity = data.get("quantity")
        if not (isinstance(raw_quantity, str) or _is_number(raw_quantity)):
            raise _Rejected(
                "Missing or invalid 'quantity' (string or number)",
                "missing/invalid quantity",
            )

        symbol: str = data["symbol"]
        order_type = to_upper(data["order_type"])
        side = to_upper(data["side"])

        try:
            quantity = _to_double(raw_quantity)
        except (ValueError, TypeError, OverflowError):
            raise _Rejected("Invalid 'quantity' value", "invalid quantity value")
        if quantity <= 0:
            raise _Rejected("'quantity' must be positive", "non-positive quantity")

        price = 0.0
        if "price" in data:
            try:
                price = _to_double(data["price"])
            except (ValueError, TypeError, OverflowError):
                raise _Rejected("Invalid 'price' value", "invalid price value")
            if price < 0:
                raise _Rejected("'price' must be non-negative", "negative price")

        kind = _ORDER_TYPES.get(order_type)
        if kind is None:
            raise _Rejected(
                "Invalid 'order_type' (must be limit, market, ioc, fok)",
                "invalid order_type",
            )
        order_side = _SIDES.get(side)
        if order_side is None:
            raise _Rejected("Invalid 'side' (must be buy or sell)", "invalid side")

        order_id = current_timestamp() + symbol + order_type + side
        order = Order(
            order_id, symbol, kind, order_side, quantity, price, current_timestamp()
        )
        logger.info(
            f"Order received: {order_id} {symbol} {order_type} {side}"
            f" qty={quantity:f} price={price:f}"
        )

        trades = self.engine.process_order(order)
        reply = {
            "order_id": order_id,
            "status": "success",
            "message": "Order submitted successfully",
            "executions": [json.loads(trade.to_json()) for trade in trades],
        }
        body_text = json.dumps(reply, sort_keys=True, separators=(",", ":"))
        return RestResponse(200, body_text, {**_CORS_HEADERS, "Content-Type": _JSON})

    def start(self) -> None:
        """Bind and serve on a background thread; a bind failure is logged."""
        if self._running:
            return
        try:
            httpd = _OrderHTTPServer((self._host, self._port), _RequestHandler, self)
        except OSError as exc:
            logger.err(f"Failed to start REST server on port {self._port}: {exc}")
            return
        self._httpd = httpd
        self._port = httpd.server_address[1]
        self._running = True
        logger.info(f"REST server listening on port {self._port}")
        self._thread = threading.Thread(
            target=self._serve, name="rest-server", daemon=True
        )
        self._thread.start()

    def _serve(self) -> None:
        httpd = self._httpd
        if httpd is None:
            return
        try:
            httpd.serve_forever(poll_interval=0.2)
        except Exception as exc:
            logger.err(f"REST server error: {exc}")
            self._running = False

    def stop(self) -> None:
        """Stop serving and wait for the server thread to finish."""
        if not self._running:
            return
        self._running = False
        httpd, self._httpd = self._httpd, None
        if httpd is not None:
            httpd.shutdown()
            httpd.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        logger.info("REST server stopped")


class _OrderHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, address, handler_class, rest: RestServer) -> None:
        self.rest = rest
        super().__init__(address, handler_class)


class _RequestHandler(BaseHTTPRequestHandler):
    server: _OrderHTTPServer
    protocol_version = "HTTP/1.1"

    def _is_orders(self) -> bool:
        return urlsplit(self.path).path == "/orders"

    def _reply(self, response: RestResponse) -> None:
        payload = response.body.encode("utf-8")
        self.send_response(response.status)
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if payload:
            self.wfile.write(payload)

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length > 0 else b""

    def do_OPTIONS(self) -> None:
        if not self._is_orders():
            self._reply(RestResponse(404))
            return
        self._reply(_preflight_response())

    def do_POST(self) -> None:
        body = self._read_body()
        if not self._is_orders():
            self._reply(RestResponse(404))
            return
        self._reply(self.server.rest.handle_order(body))

    def _not_found(self) -> None:
        self._reply(RestResponse(404))

    do_GET = _not_found
    do_PUT = _not_found
    do_DELETE = _not_found

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug(format % args)