"""Small helpers for timestamps and ASCII case conversion."""

from __future__ import annotations

import string
from datetime import datetime, timezone

_UPPER = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def current_timestamp() -> str:
    """Current UTC time as ISO 8601 with microseconds and a trailing Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def to_upper(text: str) -> str:
    """Upper-case ASCII letters only, leaving other characters alone."""
    return text.translate(_UPPER)


def to_lower(text: str) -> str:
    """Lower-case ASCII letters only, leaving other characters alone."""
    return text.translate(_LOWER)