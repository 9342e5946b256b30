from datetime import datetime, timezone
from typing import Any, Mapping

# Epoch values above this are treated as milliseconds (year ~5138 in seconds)
_MILLIS_THRESHOLD = 100_000_000_000


def utc_now() -> datetime:
    """Return timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def _from_epoch(seconds: Any, divisor: int = 1, nanos: Any = 0) -> datetime:
    # Out of range for the platform clock counts as unreadable
    try:
        return datetime.fromtimestamp(seconds / divisor + nanos / 1_000_000_000, tz=timezone.utc)
    except (OverflowError, OSError, TypeError, ValueError):
        return utc_now()


def to_instant(value: Any) -> datetime:
    """
    Normalize a stored timestamp into a timezone-aware UTC datetime.

    Order records arrive from two stores with different encodings:
    datetimes from SQLAlchemy, ISO-8601 strings from the live-sync mirror,
    plus epoch numbers and ``{"seconds": ..., "nanoseconds": ...}`` mappings
    written by older clients. Missing or unreadable values become "now".
    """
    if value is None:
        return utc_now()

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, bool):
        return utc_now()

    if isinstance(value, (int, float)):
        return _from_epoch(value, 1000 if abs(value) >= _MILLIS_THRESHOLD else 1)

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return utc_now()
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        return _from_epoch(seconds, nanos=nanos)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return utc_now()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_instant(datetime.fromisoformat(text))
        except ValueError:
            pass
        try:
            return to_instant(float(text))
        except ValueError:
            return utc_now()

    return utc_now()
