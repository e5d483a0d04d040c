"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, time, timezone
from typing import Union

DateLike = Union[date, datetime, str]


def to_utc_datetime(value: DateLike) -> datetime:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), bare dates (midnight UTC)
    and ISO-8601 strings of either form.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")


def days_between(start: DateLike, end: DateLike) -> float:
    """Fractional days elapsed from start to end (negative if start is later)"""
    delta = to_utc_datetime(end) - to_utc_datetime(start)
    return delta.total_seconds() / 86_400


def hours_between(start: DateLike, end: DateLike) -> float:
    """Fractional hours elapsed from start to end"""
    delta = to_utc_datetime(end) - to_utc_datetime(start)
    return delta.total_seconds() / 3_600


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
