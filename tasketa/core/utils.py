"""
Task ETA Risk — Shared time utilities.

Pure functions used across the whole package. No imports from other tasketa
modules; only the standard library and tasketa.core.constants are allowed.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tasketa.core.constants import SECONDS_PER_HOUR

# Latest representable instant; stands in for results past year 9999.
FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime.  Naive values are read as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Hour arithmetic
# ---------------------------------------------------------------------------

def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from ``start`` to ``end``."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / SECONDS_PER_HOUR


def add_hours(ts: datetime, hours: float) -> datetime:
    return ensure_utc(ts) + timedelta(seconds=hours * SECONDS_PER_HOUR)


def coerce_hours(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None.

    Booleans and strings are rejected: stored payloads carry real numbers
    only.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


# ---------------------------------------------------------------------------
# Parsing / formatting
# ---------------------------------------------------------------------------

def resolve_zone(name: str) -> timezone | ZoneInfo:
    """Look up an IANA zone name, falling back to UTC for unknown names."""
    if not name or name.upper() in {"UTC", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def end_of_day(day: date, zone_name: str = "UTC") -> datetime:
    """Last millisecond of ``day`` in ``zone_name``, expressed in UTC."""
    local = datetime.combine(day, time(23, 59, 59, 999000), tzinfo=resolve_zone(zone_name))
    try:
        return local.astimezone(timezone.utc)
    except OverflowError:
        return FAR_FUTURE


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into aware UTC.

    Returns None for anything that is not a parseable timestamp.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` tracker due date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def to_iso(ts: Optional[datetime]) -> Optional[str]:
    """``2024-01-10T23:59:59.999Z`` style string, or None."""
    if ts is None:
        return None
    ts = ensure_utc(ts)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def format_hours(hours: Optional[float], decimals: int = 1) -> str:
    """Human-readable hour figure, e.g. ``12.5 h``; ``-`` when unknown."""
    if hours is None or not math.isfinite(hours):
        return "-"
    return f"{hours:.{decimals}f} h"
