"""Entry point that runs the REST and WebSocket servers around one engine."""

from __future__ import annotations

import argparse
import signal
import threading
from typing import List, Optional

from . import logger
from .engine import MatchingEngine
from .rest_server import RestServer
from .websocket_server import WebSocketServer


def run_servers(
    engine: MatchingEngine, rest_port: int, ws_port: int, stop_event: threading.Event
) -> int:
    """Serve until ``stop_event`` is set; 0 on a clean stop, 1 if startup fails."""
    rest = RestServer(engine, rest_port)
    ws = WebSocketServer(engine, ws_port)
    try:
        logger.info(f"Starting REST server on port {rest_port}...")
        rest.start()
        if not rest.running:
            logger.err("Failed to start servers")
            return 1

        logger.info(f"Starting WebSocket server on port {ws_port}...")
        try:
            ws.start()
        except Exception as exc:
            logger.err(f"WebSocket server error: {exc}")
            logger.err("Failed to start servers")
            return 1

        logger.info("Matching Engine is running. Press Ctrl+C to stop.")
        while not stop_event.wait(1.0):
            pass
        logger.info("Shutting down servers...")
    finally:
        ws.stop()
        rest.stop()
    logger.info("Matching Engine shutdown complete.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Run the matching engine servers until interrupted."""
    parser = argparse.ArgumentParser(
        prog="tradematch-server", description="Run the matching engine servers."
    )
    parser.add_argument("--rest-port", type=int, default=8080)
    parser.add_argument("--ws-port", type=int, default=9002)
    args = parser.parse_args(argv)

    logger.set_level(logger.Level.INFO)
    logger.info("Matching Engine starting up...")

    stop_event = threading.Event()

    def _on_signal(signum: int, frame: object) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        stop_event.set()

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for name in ("SIGINT", "SIGTERM"):
            signum = getattr(signal, name, None)
            if signum is not None:
                previous[signum] = signal.signal(signum, _on_signal)
    try:
        engine = MatchingEngine()
        return run_servers(engine, args.rest_port, args.ws_port, stop_event)
    except Exception as exc:
        logger.err(f"Fatal error: {exc}")
        return 1
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)