"""
bittap.engine.clock — UTC helpers
==================================

Every timestamp in BitTap is written from Python in UTC.  Some backends
(SQLite) hand datetimes back without tzinfo, so values read from the DB go
through :func:`as_utc` before any arithmetic.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; convert an aware one."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def resolve_now(now: datetime | None) -> datetime:
    """Use the caller's clock when given (tests, batch jobs), else the wall clock."""
    return utcnow() if now is None else as_utc(now)
