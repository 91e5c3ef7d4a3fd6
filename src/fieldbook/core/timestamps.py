"""
UTC timestamp helpers.

Stored timestamps are always timezone-aware UTC. SQLite hands datetimes back
without an offset, so values are normalised on the way in and on the way out.
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator


def to_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize(value: Any) -> Any:
    """Convert datetimes to UTC, leave anything else untouched"""
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, (list, tuple)):
        return type(value)(normalize(item) for item in value)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]

__all__ = ["UtcDatetime", "normalize", "to_utc", "utcnow"]
