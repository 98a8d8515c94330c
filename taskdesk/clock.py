# PURPOSE: time helpers shared by the task and notification services.

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from .config import settings
from .errors import ValidationError


def now_utc() -> datetime:
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


def app_tz() -> ZoneInfo:
    return ZoneInfo(settings.APP_TIMEZONE)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize to aware UTC; naive values (read back from SQLite) are UTC.

    Client input goes through from_client instead.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def from_client(value: datetime) -> datetime:
    """Interpret a client-supplied datetime and convert it to UTC.

    Raises ValidationError when the instant falls outside datetime's range
    once shifted to UTC (e.g. 9999-12-31T23:00-05:00).
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=app_tz())
    try:
        return value.astimezone(UTC)
    except OverflowError as err:
        raise ValidationError("dueDate out of range") from err


def local_day(value: datetime) -> date:
    """Calendar day of `value` in APP_TIMEZONE."""
    return as_utc(value).astimezone(app_tz()).date()


def today() -> date:
    return now_utc().astimezone(app_tz()).date()


def day_bounds_utc(day: date | None = None) -> tuple[datetime, datetime]:
    """[start, end) of a calendar day in APP_TIMEZONE, expressed in UTC."""
    day = day or today()
    start = datetime.combine(day, time.min, tzinfo=app_tz())
    end = start + timedelta(days=1)
    return start.astimezone(UTC), end.astimezone(UTC)
