# tradematch

An order matching engine with price-time priority, an HTTP endpoint for
submitting orders, a WebSocket server that tracks clients and broadcasts to
them, and a small interactive WebSocket client.

- **Order book** (`tradematch.orderbook.OrderBook`), one per symbol: bids
  best-first (highest price), asks best-first (lowest price), FIFO within a
  price level.
- **Matching engine** (`tradematch.engine.MatchingEngine`) with order types
  `MARKET`, `LIMIT`, `IOC` (immediate-or-cancel) and `FOK` (fill-or-kill).
- **REST server** (`tradematch.rest_server.RestServer`): `POST /orders`
  takes a JSON order and returns the executions it produced.
- **WebSocket server** (`tradematch.websocket_server.WebSocketServer`):
  accepts clients, passes their messages to a handler you register, and
  sends a message to every connected client with `broadcast()`.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running the servers

```
tradematch-server
```

This starts the REST server on port 8080 and the WebSocket server on port
9002, both listening on all interfaces, and runs until Ctrl+C or SIGTERM.
The ports can be changed with `--rest-port` and `--ws-port`. If either
server cannot start, the command exits with status 1.

Place an order over HTTP:

```
POST /orders
Content-Type: application/json

{"symbol": "BTC-USDT", "order_type": "limit", "side": "buy", "quantity": 1.5, "price": 50000}
```

- `symbol`, `order_type` and `side` must be strings; `order_type` and
  `side` are case-insensitive.
- `quantity` (required, must be positive) and `price` (optional, must not be
  negative, defaults to 0) may be numbers or numeric strings.
- The order id is built from the current UTC timestamp, the symbol, the
  order type and the side.

A successful reply has status 200:

```json
{"executions": [...], "message": "Order submitted successfully", "order_id": "...", "status": "success"}
```

Each execution carries `trade_id`, `timestamp`, `symbol`, `price`,
`quantity`, `aggressor_side` (`"buy"` or `"sell"`), `maker_order_id` and
`taker_order_id`. Invalid requests get status 400 with a body of the form
`{"error": "..."}`. `OPTIONS /orders` answers the CORS preflight with
status 204; every other path gets 404.

## The trading client

```
tradematch-client
```

It connects to `ws://localhost:9002` (change with `--uri`) and reads
commands from standard input:

```
help                                            - Show the help message
connect                                         - Connect to the server
disconnect                                      - Disconnect from the server
order <symbol> <type> <side> <quantity> [price] - Place an order
  types: market, limit, ioc, fok
  sides: buy, sell
subscribe <symbol>                              - Subscribe to market data
unsubscribe <symbol>                            - Unsubscribe from market data
quit                                            - Exit the program
```

Messages arriving from the server are printed as `Received: ...`, and
connection changes as `Connection status: Connected` / `Disconnected`.

`tradematch.client.TradingClient` can also be used directly: `connect()`,
`disconnect()`, `place_order(...)`, `subscribe(symbol)` and
`unsubscribe(symbol)`, with `set_message_handler()` and
`set_connection_status_handler()` for callbacks. `order_message()` and
`subscription_message()` build the JSON text that is sent.

## Using the engine as a library

```python
from tradematch.engine import MatchingEngine
from tradematch.order import Order, OrderSide, OrderType

engine = MatchingEngine()
engine.process_order(Order("s1", "BTC-USDT", OrderType.LIMIT, OrderSide.SELL, 1.0, 50000.0, "2025-06-14T10:00:00.000000Z"))

buy = Order("b1", "BTC-USDT", OrderType.LIMIT, OrderSide.BUY, 2.0, 50000.0, "2025-06-14T10:01:00.000000Z")
trades = engine.process_order(buy)

print(trades[0].to_json())
print(buy.status)   # OrderStatus.PARTIALLY_FILLED; the rest is resting on the book
```

`process_order` updates the order in place: its status, and for partial
fills its remaining quantity. Unfilled limit quantity rests on the book;
market and IOC orders never rest; a FOK order either fills completely or
is cancelled with no trades.

`engine.order_books` maps each symbol to its `OrderBook`, which offers
`bbo()`, `depth(side, levels)`, `market_depth(levels)` and `snapshot()`,
and `set_on_change(callback)` to hear about every add or remove.
`MatchingEngine.set_on_trade(callback)` is called once for each trade.

`tradematch.logger` writes timestamped lines to standard output, or to a
file after `set_log_file(filename)`; `set_level()` chooses the lowest level
written.

## What it does not do

- `tradematch-server` registers no message handler on the WebSocket server,
  so orders, `subscribe` and `unsubscribe` requests sent by the trading
  client are received but not acted on. Orders reach the engine only
  through `POST /orders`.
- No market data or trades are streamed to WebSocket clients; the server
  only sends what `broadcast()` is given.
- There is no way to cancel or query orders over HTTP, and the order books
  live in memory only: nothing is stored between runs.