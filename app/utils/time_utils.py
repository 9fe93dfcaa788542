"""
Time helpers shared by models, services and endpoints.

All timestamps handled by the service are timezone-aware UTC. Values read
back from drivers that drop tzinfo (SQLite) are treated as UTC.
"""
from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_utc_isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as an ISO-8601 UTC string"""
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def start_of_day(value: datetime) -> datetime:
    """Midnight of the day containing ``value`` (UTC)"""
    return ensure_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def week_key(value: Union[date, datetime]) -> str:
    """
    ISO-8601 year-week key for a date, e.g. ``"2026-07"``.

    Every day of a Monday-to-Sunday week maps to the same key. Week 1 is the
    week holding the year's first Thursday, so the year part is the ISO year:
    2020-12-31 and 2021-01-03 both map to ``"2020-53"``.
    """
    if isinstance(value, datetime):
        value = ensure_utc(value).date()
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-{iso_week:02d}"
