from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_bounds(day: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    Return the [start, end) UTC-naive bounds of the calendar day containing `day`.

    - None -> today (UTC)
    - aware datetimes are converted to UTC first; naive ones are taken as UTC
    """
    ref = day or utcnow()
    if ref.tzinfo is not None:
        ref = ref.astimezone(timezone.utc)
    start = datetime(ref.year, ref.month, ref.day)
    return start, start + timedelta(days=1)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
