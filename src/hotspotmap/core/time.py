"""
Timestamp helpers.

Position samples carry timezone-aware datetimes; mixing naive and aware values
raises at comparison time, so anything coming from outside goes through `ensure_tz`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo


def ensure_tz(dt: datetime, tz: str = "UTC") -> datetime:
    """Ensure `dt` has tzinfo; attach `tz` if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(tz))
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
