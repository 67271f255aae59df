"""Time utilities for consistent timestamp handling."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def from_epoch_seconds(epoch_s: int) -> datetime | None:
    """Convert protobuf epoch seconds to an aware UTC datetime.

    Returns None when the value is outside the platform's datetime range.
    """
    try:
        return datetime.fromtimestamp(epoch_s, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
