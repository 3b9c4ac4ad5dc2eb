"""Process-wide logger writing timestamped lines to stdout or a file."""

from __future__ import annotations

import sys
import threading
from datetime import datetime
from enum import IntEnum
from typing import Optional, TextIO


class Level(IntEnum):
    """Severity levels in increasing order."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERR = 3


class _LoggerState:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.level = Level.INFO
        self.file: Optional[TextIO] = None


_state = _LoggerState()


def set_log_file(filename: Optional[str]) -> None:
    """Append log lines to ``filename``; None or an unopenable path means stdout."""
    with _state.lock:
        if _state.file is not None:
            _state.file.close()
            _state.file = None
        if filename is None:
            return
        try:
            _state.file = open(filename, "a", encoding="utf-8")
        except OSError:
            _state.file = None


def set_level(level: Level) -> None:
    """Set the lowest level that is written."""
    _state.level = Level(level)


def log(level: Level, msg: str) -> None:
    """Write ``msg`` at ``level`` if the level is enabled."""
    level = Level(level)
    if level < _state.level:
        return
    _write(level.name, msg)


def debug(msg: str) -> None:
    log(Level.DEBUG, msg)


def info(msg: str) -> None:
    log(Level.INFO, msg)


def warn(msg: str) -> None:
    log(Level.WARN, msg)


def err(msg: str) -> None:
    log(Level.ERR, msg)


def _write(level_name: str, msg: str) -> None:
    with _state.lock:
        now = datetime.now()
        stamp = f"{now:%Y-%m-%dT%H:%M:%S}.{now.microsecond // 1000:03d}"
        line = f"{stamp} [{level_name}] {msg}\n"
        if _state.file is not None and not _state.file.closed:
            _state.file.write(line)
            _state.file.flush()
        else:
            sys.stdout.write(line)