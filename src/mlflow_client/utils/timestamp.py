"""Unix-millisecond timestamps used by the tracking API."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Return the current time as Unix milliseconds."""
    return time.time_ns() // 1_000_000


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000


def parse_to_ms(value: int | float | str | datetime) -> int:
    """Convert a metric timestamp to Unix milliseconds.

    Numbers are already milliseconds (floats are truncated). Naive datetimes
    and ISO 8601 strings without an offset are taken as UTC; a trailing "Z"
    is accepted.

    Raises:
        ValueError: If the value is None, a bool, an empty or malformed
            string, or of any other type.

    Examples:
        >>> parse_to_ms("2024-01-15T12:30:45Z")
        1705321845000
    """
    if value is None:
        raise ValueError("Timestamp cannot be None")
    if isinstance(value, bool):
        raise ValueError("Timestamp cannot be a bool")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp type: {type(value)}")

    text = value.strip()
    if not text:
        raise ValueError("Timestamp string cannot be empty")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _datetime_to_ms(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"Invalid timestamp format: {value!r}") from None
