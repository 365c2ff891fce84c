"""
Lifestyle OS - Clock Sampler
Источник текущего времени для планировщика напоминаний

Все даты журнала выполнения считаются в локальной таймзоне пользователя,
поэтому часы всегда работают в одной заданной зоне (pytz).
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from utils.datetime_utils import format_date, get_timezone, minute_of_day, now_in


class Clock:
    """Часы с минутной гранулярностью"""

    def __init__(self, timezone: Optional[str] = None,
                 now_func: Optional[Callable[[], datetime]] = None):
        self.tz = get_timezone(timezone)
        self._now_func = now_func

    def now(self) -> datetime:
        if self._now_func is not None:
            return self._now_func()
        return now_in(self.tz)

    def sample(self) -> int:
        """Текущая минута суток: hour*60 + minute, 0..1439"""
        return minute_of_day(self.now())

    def today(self) -> str:
        return format_date(self.now().date())

    def yesterday(self) -> str:
        return format_date(self.now().date() - timedelta(days=1))
