"""
Time helpers.

All stored timestamps are timezone-aware (UTC). Calendar-day bucketing happens
in the reporting timezone, so two instants on the same local day share a key.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

SECONDS_PER_DAY = 86400
# Forward tolerance for "within the last N days" to absorb clock skew.
FUTURE_TOLERANCE = timedelta(seconds=1)


def now_utc() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Coerce a datetime to timezone-aware UTC.

    Naive datetimes (e.g. read back from SQLite) are treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def resolve_timezone(name: str | None) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_date(instant: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of `instant` in the reporting timezone."""
    return ensure_utc(instant).astimezone(tz or timezone.utc).date()


def day_key(instant: datetime | date, tz: tzinfo | None = None) -> str:
    """Stable YYYY-MM-DD identifier for the calendar day containing `instant`."""
    if isinstance(instant, datetime):
        return local_date(instant, tz).isoformat()
    return instant.isoformat()


def in_last_n_days(instant: datetime, days: int | float, now: datetime | None = None) -> bool:
    """True iff `instant` is within [now - days, now + 1s]."""
    reference = ensure_utc(now) if now is not None else now_utc()
    moment = ensure_utc(instant)
    return reference - timedelta(seconds=days * SECONDS_PER_DAY) <= moment <= reference + FUTURE_TOLERANCE


def day_keys_ending(now: datetime, days: int, tz: tzinfo | None = None) -> list[str]:
    """`days` consecutive day keys, oldest first, the last one being today."""
    today = local_date(now, tz)
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
