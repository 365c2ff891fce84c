from datetime import date, datetime, timedelta
from typing import Optional

import pytz

MINUTES_PER_DAY = 24 * 60
DATE_FORMAT = "%Y-%m-%d"


def get_timezone(name: Optional[str] = None):
    return pytz.timezone(name or "UTC")


def now_in(tz) -> datetime:
    return datetime.now(tz)


def parse_time_str(value: str) -> int:
    """'HH:MM' -> минута суток (0..1439)"""
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Неверный формат времени: {value!r} (ожидается HH:MM)")

    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Время вне диапазона: {value!r}")
    return hours * 60 + minutes


def format_minute(minute: int) -> str:
    return f"{minute // 60:02d}:{minute % 60:02d}"


def minute_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_date(date_str: str) -> date:
    return datetime.strptime(date_str, DATE_FORMAT).date()


def add_days(date_str: str, days: int) -> str:
    return format_date(parse_date(date_str) + timedelta(days=days))
