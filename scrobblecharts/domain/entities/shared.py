"""Shared utilities for domain entities."""

from datetime import UTC, datetime


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure datetime is timezone-aware, treating naive values as UTC."""
    if dt is None:
        return None
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt


def from_unix_seconds(value: int | None) -> datetime | None:
    """Convert epoch seconds to an aware UTC datetime.

    Values outside the range datetime can represent give None.
    """
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (ValueError, OverflowError, OSError):
        return None
