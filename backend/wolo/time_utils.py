from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional

# Length of a bare "YYYY-MM-DD" value
_DATE_ONLY_LEN = 10


def utcnow() -> datetime:
    """Current time as a naive UTC datetime; every stored timestamp uses this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _clean(value) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def parse_iso_datetime(value) -> Optional[datetime]:
    """
    ISO-8601 text -> naive UTC datetime.

    Offsets (including a trailing "Z") are converted to UTC; values without
    an offset are taken to be UTC already. Blank input gives None.
    """
    if isinstance(value, datetime):
        return _as_naive_utc(value)
    s = _clean(value)
    if s is None:
        return None
    if s[-1] in "zZ":
        s = s[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(s))


def parse_iso_date(value) -> Optional[date]:
    """
    Parse a date-only value. Datetime strings are truncated to their date,
    so time-of-day never takes part in comparisons.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = _clean(value)
    if s is None:
        return None
    if len(s) == _DATE_ONLY_LEN:
        return date.fromisoformat(s)
    return parse_iso_datetime(s).date()


def parse_range_bound(value, *, end: bool = False) -> Optional[datetime]:
    """
    Parse one side of an inclusive datetime range.

    A date-only end bound ("2024-01-31") covers the whole day.
    """
    if isinstance(value, datetime):
        return _as_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.max if end else time.min)
    s = _clean(value)
    if s is None:
        return None
    if len(s) == _DATE_ONLY_LEN:
        return datetime.combine(date.fromisoformat(s), time.max if end else time.min)
    return parse_iso_datetime(s)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render as "YYYY-MM-DDTHH:MM:SSZ" (whole seconds); naive input is UTC."""
    if dt is None:
        return None
    naive = _as_naive_utc(dt).replace(microsecond=0)
    return naive.isoformat() + "Z"


def to_iso_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    return d.isoformat()
