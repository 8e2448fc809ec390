"""Time zone helpers shared by the todo pipeline."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from smart_todo.core.config import settings


@lru_cache
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_tz() -> ZoneInfo:
    """Return the configured application time zone."""
    return _zone(settings.app_timezone)


def now_local() -> datetime:
    return datetime.now(timezone.utc).astimezone(local_tz())


def to_local(value: datetime) -> datetime:
    """Convert to the application zone; naive values are read as local wall-clock time."""
    if value.tzinfo is None:
        return value.replace(tzinfo=local_tz())
    return value.astimezone(local_tz())


def start_of_day(value: datetime) -> datetime:
    return to_local(value).replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(value: datetime) -> datetime:
    """Monday 00:00 of the week containing ``value``."""
    day_start = start_of_day(value)
    return day_start - timedelta(days=day_start.weekday())


def sunday_first_weekday(value: date) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return (value.weekday() + 1) % 7
