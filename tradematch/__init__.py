"""Price-time priority order matching engine with a REST order endpoint, a WebSocket server and a trading client."""

__version__ = "1.0.0"