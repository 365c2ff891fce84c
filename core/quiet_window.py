"""
Lifestyle OS - Quiet Window Gate
Режим "не беспокоить": интервал времени суток, в который напоминания
обнаруживаются, но не озвучиваются и не отправляются
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from utils.datetime_utils import parse_time_str


@dataclass
class QuietWindow:
    """Тихие часы, допускается переход через полночь (23:00-07:00)"""
    start: str
    end: str

    def __post_init__(self):
        # Бросает ValueError на неверном формате
        parse_time_str(self.start)
        parse_time_str(self.end)

    @property
    def start_minute(self) -> int:
        return parse_time_str(self.start)

    @property
    def end_minute(self) -> int:
        return parse_time_str(self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["QuietWindow"]:
        if not data or not data.get("start") or not data.get("end"):
            return None
        return cls(start=data["start"], end=data["end"])


def is_quiet_time(window: Optional[QuietWindow], minute: int) -> bool:
    """Активно ли окно тишины в минуту суток `minute`"""
    if window is None:
        return False

    start, end = window.start_minute, window.end_minute
    if start == end:
        # Пустое окно
        return False
    if start < end:
        return start <= minute < end
    return minute >= start or minute < end
