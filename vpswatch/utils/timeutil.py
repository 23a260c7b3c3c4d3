"""Time helpers.

All persisted datetimes are naive UTC, matching what SQLite hands back.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch(moment: datetime) -> int:
    """Convert a naive UTC datetime to integer epoch seconds."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp())


def from_epoch(seconds: int) -> datetime:
    """Convert epoch seconds to a naive UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
