"""
Time semantics utilities for device fix times.

Idle durations are measured between device fix times, never against the
wall clock. These helpers normalize timestamps to UTC and express
differences in milliseconds.
"""

from datetime import UTC, datetime
from typing import Optional, Union


def ensure_utc(ts: datetime) -> datetime:
    """
    Return a timezone-aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def from_epoch_ms(value: Union[int, float]) -> datetime:
    """Convert epoch milliseconds to a UTC datetime."""
    return datetime.fromtimestamp(value / 1000.0, tz=UTC)


def to_epoch_ms(ts: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return int(round(ensure_utc(ts).timestamp() * 1000))


def duration_ms(start: datetime, end: datetime) -> int:
    """
    Calculate elapsed milliseconds between two fix times.

    Args:
        start: Earlier timestamp (e.g. idle onset)
        end: Later timestamp (e.g. current fix time)

    Returns:
        Elapsed time in whole milliseconds, negative if end precedes start
    """
    return to_epoch_ms(end) - to_epoch_ms(start)


def parse_timestamp(value: Union[str, int, float, datetime, None]) -> Optional[datetime]:
    """
    Parse a timestamp from ISO-8601 text, epoch milliseconds or a datetime.

    Returns:
        UTC datetime, or None when value is None

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return from_epoch_ms(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return from_epoch_ms(int(text))
        # fromisoformat handles the trailing "Z" from Python 3.11 on
        return ensure_utc(datetime.fromisoformat(text))
    raise ValueError(f"Invalid timestamp: {value!r}")


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as ISO-8601 for events and logging."""
    if ts is None:
        return None
    return ensure_utc(ts).isoformat()
