"""
Lifestyle OS - Completion Log
Разреженный журнал выполнения: дата -> id привычки -> значение

Значение - bool для привычек-галочек и неотрицательный счётчик для
числовых привычек. Отсутствие записи равносильно "не выполнено" / 0.
"""

import logging
from typing import Dict, Iterator, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CompletionValue = Union[bool, int]


class CompletionLog:
    """Журнал выполнения привычек по дням"""

    def __init__(self, entries: Optional[Dict[str, Dict[int, CompletionValue]]] = None):
        self._entries: Dict[str, Dict[int, CompletionValue]] = {}
        for day, values in (entries or {}).items():
            self._entries[day] = dict(values)

    def get(self, day: str, item_id: int) -> Optional[CompletionValue]:
        return self._entries.get(day, {}).get(item_id)

    def get_count(self, day: str, item_id: int) -> int:
        """Числовое значение записи (bool True считается как 1)"""
        value = self.get(day, item_id)
        if value is None or value is False:
            return 0
        if value is True:
            return 1
        return int(value)

    def has_activity(self, day: str, item_id: int) -> bool:
        """Есть ли за день хоть какое-то выполнение (частичное тоже)"""
        value = self.get(day, item_id)
        if isinstance(value, bool):
            return value
        return value is not None and value > 0

    def set(self, day: str, item_id: int, value: CompletionValue) -> None:
        if not isinstance(value, bool) and value < 0:
            raise ValueError(f"Отрицательное значение журнала: {value}")
        self._entries.setdefault(day, {})[item_id] = value

    def increment(self, day: str, item_id: int, amount: int) -> Tuple[int, int]:
        """
        Увеличить счётчик числовой привычки.

        Значение не опускается ниже нуля. Возвращает (старое, новое) значение,
        чтобы вызывающий код мог начислить XP по фактическому изменению.
        """
        old_value = self.get_count(day, item_id)
        new_value = max(0, old_value + amount)
        self._entries.setdefault(day, {})[item_id] = new_value
        return old_value, new_value

    def days(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def items(self) -> Iterator[Tuple[str, Dict[int, CompletionValue]]]:
        for day in sorted(self._entries):
            yield day, self._entries[day]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CompletionLog):
            return NotImplemented
        return self._entries == other._entries

    def to_dict(self) -> Dict[str, Dict[str, CompletionValue]]:
        # JSON-ключи всегда строки
        return {
            day: {str(item_id): value for item_id, value in values.items()}
            for day, values in self._entries.items()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, CompletionValue]]) -> "CompletionLog":
        entries: Dict[str, Dict[int, CompletionValue]] = {}
        for day, values in (data or {}).items():
            day_entries = {}
            for item_id_str, value in (values or {}).items():
                try:
                    day_entries[int(item_id_str)] = value
                except (TypeError, ValueError):
                    logger.warning(f"⚠️ Пропущена запись журнала {day}/{item_id_str}: неверный id")
            entries[day] = day_entries
        return cls(entries)
