"""
Business clock for the workshop's fixed UTC offset.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from carhub.config import get_settings


def business_tz() -> timezone:
    return timezone(timedelta(hours=get_settings().timezone_offset_hours))


def now_local() -> datetime:
    """Current aware datetime in the business timezone."""
    return datetime.now(business_tz())


def today() -> date:
    return now_local().date()


def utcnow() -> datetime:
    """Naive UTC now, matching how reminder timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def local_to_utc(day: date, at: Optional[time]) -> datetime:
    """Interpret a scheduled date/time in business time and return naive UTC."""
    local = datetime.combine(day, at or time(0, 0), tzinfo=business_tz())
    return local.astimezone(timezone.utc).replace(tzinfo=None)
