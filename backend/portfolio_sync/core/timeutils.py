"""Epoch-millisecond conversions used on the wire."""

from datetime import datetime, timedelta, timezone
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    return (ensure_utc(value) - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: float) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)


def coerce_epoch_ms(value: Any) -> Any:
    """Pydantic before-validator: numbers are epoch milliseconds.

    Strings and datetimes pass through to pydantic's own datetime parsing.
    Booleans are rejected rather than read as 0/1, and numbers outside the
    datetime range (or NaN) fail validation instead of overflowing.
    """
    if isinstance(value, bool):
        raise ValueError("timestamp must be epoch milliseconds or ISO-8601")
    if isinstance(value, (int, float)):
        try:
            return from_epoch_ms(value)
        except (OverflowError, ValueError):
            raise ValueError("timestamp out of range")
    return value
