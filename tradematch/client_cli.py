"""Interactive command line for the trading client."""

from __future__ import annotations

import argparse
import re
import signal
import threading
from dataclasses import dataclass
from typing import List, Optional, Protocol

from .client import DEFAULT_URI, TradingClient

_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_HELP_LINES = [
    "Available commands:",
    "  help                    - Show this help message",
    "  connect                 - Connect to the server",
    "  disconnect              - Disconnect from the server",
    "  order <symbol> <type> <side> <quantity> [price] - Place an order",
    "    types: market, limit, ioc, fok",
    "    sides: buy, sell",
    "  subscribe <symbol>      - Subscribe to market data",
    "  unsubscribe <symbol>    - Unsubscribe from market data",
    "  quit                    - Exit the program",
]


class _Client(Protocol):
    def connect(self) -> bool: ...

    def disconnect(self) -> None: ...

    def place_order(
        self, symbol: str, order_type: str, side: str, quantity: float, price: float
    ) -> bool: ...

    def subscribe(self, symbol: str) -> bool: ...

    def unsubscribe(self, symbol: str) -> bool: ...


@dataclass(frozen=True)
class CommandResult:
    """What a command printed and whether the session should end."""

    output: str = ""
    quit: bool = False


class _Terminated(Exception):
    def __init__(self, signum: int) -> None:
        super().__init__(signum)
        self.signum = signum


def help_text() -> str:
    """The list of available commands."""
    return "\n".join(_HELP_LINES)


def _number(token: str) -> Optional[float]:
    return float(token) if _NUMBER.fullmatch(token) else None


def _order(client: _Client, args: str) -> CommandResult:
    tokens = args.split()
    quantity = _number(tokens[3]) if len(tokens) >= 4 else None
    if quantity is None:
        return CommandResult(
            "Invalid order command format. "
            "Use: order <symbol> <type> <side> <quantity> [price]"
        )
    symbol, order_type, side = tokens[:3]
    price = (_number(tokens[4]) if len(tokens) >= 5 else None) or 0.0
    if client.place_order(symbol, order_type, side, quantity, price):
        return CommandResult("Order placed successfully")
    return CommandResult("Failed to place order")


def _subscribe(client: _Client, args: str) -> CommandResult:
    tokens = args.split()
    if not tokens:
        return CommandResult(
            "Invalid subscribe command format. Use: subscribe <symbol>"
        )
    symbol = tokens[0]
    if client.subscribe(symbol):
        return CommandResult(f"Subscribed to {symbol} market data")
    return CommandResult("Failed to subscribe to market data")


def _unsubscribe(client: _Client, args: str) -> CommandResult:
    tokens = args.split()
    if not tokens:
        return CommandResult(
            "Invalid unsubscribe command format. Use: unsubscribe <symbol>"
        )
    symbol = tokens[0]
    if client.unsubscribe(symbol):
        return CommandResult(f"Unsubscribed from {symbol} market data")
    return CommandResult("Failed to unsubscribe from market data")


def execute(client: _Client, command: str) -> CommandResult:
    """Run one command line against ``client``."""
    if command == "quit":
        return CommandResult(quit=True)
    if command == "help":
        return CommandResult(help_text())
    if command == "connect":
        if client.connect():
            return CommandResult("Successfully connected to server")
        return CommandResult("Failed to connect to server")
    if command == "disconnect":
        client.disconnect()
        return CommandResult("Disconnected from server")
    if command.startswith("order"):
        return _order(client, command[6:])
    if command.startswith("subscribe"):
        return _subscribe(client, command[10:])
    if command.startswith("unsubscribe"):
        return _unsubscribe(client, command[12:])
    return CommandResult("Unknown command. Type 'help' for available commands.")


def _print_message(message: str) -> None:
    print(f"\nReceived: {message}")


def _print_status(connected: bool) -> None:
    print(f"\nConnection status: {'Connected' if connected else 'Disconnected'}")


def _raise_terminated(signum: int, frame: object) -> None:
    raise _Terminated(signum)


def main(argv: Optional[List[str]] = None) -> int:
    """Read commands from standard input until ``quit`` or end of input."""
    parser = argparse.ArgumentParser(
        prog="tradematch-client", description="Interactive trading client."
    )
    parser.add_argument("--uri", default=DEFAULT_URI, help="server WebSocket URI")
    args = parser.parse_args(argv)

    client = TradingClient(args.uri)
    client.set_message_handler(_print_message)
    client.set_connection_status_handler(_print_status)

    previous = None
    in_main_thread = threading.current_thread() is threading.main_thread()
    if in_main_thread and hasattr(signal, "SIGTERM"):
        previous = signal.signal(signal.SIGTERM, _raise_terminated)

    print(f"\n{help_text()}")
    try:
        while True:
            try:
                command = input("\nEnter command (or 'help'): ")
            except EOFError:
                break
            result = execute(client, command)
            if result.output:
                print(f"\n{result.output}")
            if result.quit:
                break
    except KeyboardInterrupt:
        print(f"\nReceived signal {int(signal.SIGINT)}, shutting down...")
    except _Terminated as exc:
        print(f"\nReceived signal {exc.signum}, shutting down...")
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)

    client.disconnect()
    print("\nTrading client shutdown complete.")
    return 0