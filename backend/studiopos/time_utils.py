from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


# All timestamps are stored as naive UTC. Conversion to and from aware
# values happens only at the API edge, in the helpers below.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO-8601 string to naive UTC.

    Accepts a bare date ("2026-10-19", midnight), a naive datetime (taken as
    UTC) or an offset/"Z" datetime (converted). Blank input gives None;
    anything unparseable raises ValueError.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Second-precision ISO-8601 with a trailing Z; naive input is UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) bounds of a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def week_start(dt: datetime) -> date:
    """Monday of the week containing dt."""
    d = dt.date()
    return d - timedelta(days=d.weekday())
