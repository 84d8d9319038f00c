from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

"""
Canonical time handling (authoritative)

- All internal datetimes are UTC-naive (tzinfo=None).
- Every date-scoped record is keyed by calendar day. A day is the half-open
  window [midnight UTC, next midnight UTC), never "now minus 24h".
- Date-only strings ("YYYY-MM-DD") are turned into days by appending a fixed
  midnight-UTC time. Strings carrying a time or offset are rejected so that
  callers cannot introduce timezone drift.
"""

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def business_day(now: Optional[datetime] = None) -> date:
    """Calendar day (UTC) that `now` falls in; defaults to the current day."""
    return (now or utcnow()).date()


def day_window(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC-naive window for one calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def parse_day(value: str) -> date:
    """
    Parse a date-only string into a calendar day.

    Raises ValueError for anything that is not exactly YYYY-MM-DD.
    """
    if not isinstance(value, str) or not _DATE_ONLY.match(value.strip()):
        raise ValueError(f"expected a YYYY-MM-DD date, got {value!r}")
    return datetime.fromisoformat(value.strip() + "T00:00:00").date()


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


def to_day_str(day: Optional[date]) -> Optional[str]:
    return day.isoformat() if day is not None else None
