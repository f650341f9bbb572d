"""
Timestamp helpers.

All timestamps are written timezone-aware in UTC. SQLite hands DateTime
columns back without tzinfo, so values read from the store go through
as_utc() before they are compared with utc_now().
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive value; convert an aware one to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
