"""UTC datetime utilities."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def calendar_day(moment: datetime, tz_name: str = "UTC") -> date:
    """Calendar day of ``moment`` in the named timezone (order numbers are per-day)."""
    return moment.astimezone(ZoneInfo(tz_name)).date()
