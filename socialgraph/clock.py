"""Timestamp helpers shared by the store adapters."""
from datetime import datetime, timedelta, timezone
from typing import Optional

TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Naive UTC now; every adapter stores naive UTC datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def advance(previous: Optional[datetime], now: datetime) -> datetime:
    """Next updated_at for an entity: `now`, or one tick past `previous` if the clock has not moved."""
    if previous is None or now > previous:
        return now
    return previous + TICK
