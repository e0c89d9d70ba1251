from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to aware UTC.

    PostgreSQL returns aware values for DateTime(timezone=True) columns, SQLite
    returns naive ones; both are written in UTC so a naive value is UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_now(now: Optional[datetime] = None) -> datetime:
    return ensure_utc(now) if now is not None else utcnow()
