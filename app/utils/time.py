"""
Clock and calendar helpers

All attendance timestamps are naive wall-clock datetimes in settings.TIMEZONE.
"""
import math
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.core.exceptions import ValidationError

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


def now_local(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in the attendance zone, without tzinfo"""
    zone = ZoneInfo(tz_name or settings.TIMEZONE)
    return datetime.now(zone).replace(tzinfo=None)


def to_local_naive(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert an aware datetime to the attendance zone; naive values pass through"""
    if not isinstance(value, datetime):
        raise ValidationError("Timestamp must be a datetime")
    if value.tzinfo is None:
        return value
    zone = ZoneInfo(tz_name or settings.TIMEZONE)
    return value.astimezone(zone).replace(tzinfo=None)


def to_day(value: datetime) -> date:
    return value.date()


def parse_day(value: Union[str, date, None]) -> date:
    """
    Parse a YYYY-MM-DD calendar day

    Raises:
        ValidationError: If the value is missing or malformed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not _DAY_PATTERN.match(value):
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


def parse_time_of_day(value: Union[str, time]) -> time:
    """
    Parse HH:MM or HH:MM:SS

    Raises:
        ValidationError: If the value is malformed
    """
    if isinstance(value, time):
        return value
    if not value or not _TIME_PATTERN.match(value):
        raise ValidationError("Invalid time format. Use HH:MM or HH:MM:SS")
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid time format. Use HH:MM or HH:MM:SS")


def set_time_on_date(day: date, time_of_day: Union[str, time]) -> datetime:
    return datetime.combine(day, parse_time_of_day(time_of_day))


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, floored (negative when end < start)"""
    return math.floor((end - start).total_seconds() / 60)


def clamp_min(minutes: int) -> int:
    return minutes if minutes > 0 else 0


def compute_notify_after(occurred_at: datetime, hour: int = 20) -> datetime:
    """
    Earliest permitted notification time for an incident

    20:00 on the day it occurred, or 20:00 the next day when it occurred
    at or after 20:00.
    """
    threshold = datetime.combine(occurred_at.date(), time(hour, 0, 0))
    if occurred_at >= threshold:
        threshold += timedelta(days=1)
    return threshold
