#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lifestyle OS - Core Data Models
Модели данных с валидацией и типизацией

Версия: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from core.completion_log import CompletionLog, CompletionValue
from core.quiet_window import QuietWindow
from utils.datetime_utils import parse_time_str

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class ItemKind(Enum):
    """Виды отслеживаемых элементов"""
    HABIT = "habit"
    TASK = "task"

class HabitType(Enum):
    """Типы выполнения привычки"""
    CHECKBOX = "checkbox"
    NUMERIC = "numeric"

class HabitFrequency(Enum):
    """Период цели привычки"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class TriggerKind(Enum):
    """Типы срабатываний напоминаний"""
    ALARM = "alarm"    # Ежедневное время, требует явного ответа
    CHIME = "chime"    # Повтор по интервалу, закрывается сам

class RemoteActionType(Enum):
    """Действия из уведомления"""
    COMPLETE = "complete"
    DISMISS = "dismiss"

class SoundType(Enum):
    """Звуковые схемы"""
    MODERN = "modern"
    CLASSIC = "classic"
    RETRO = "retro"

class UserTheme(Enum):
    """Темы оформления"""
    LIGHT = "light"
    DARK = "dark"

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

def validate_text(text: str, min_length: int = 1, max_length: int = 200, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} должен быть строкой")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} должен содержать минимум {min_length} символов")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} должен содержать максимум {max_length} символов")

    return text

def validate_enum_value(value: str, enum_class: type, field_name: str = "value") -> str:
    """Валидация значений enum"""
    try:
        enum_class(value)
        return value
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} должен быть одним из: {valid_values}")

def validate_reminder_time(value: Optional[str]) -> Optional[str]:
    """Пустая строка и None означают "без напоминания" """
    if not value:
        return None
    try:
        parse_time_str(value)
    except ValueError as e:
        raise ValidationError(str(e))
    return value.strip()

def validate_interval(value: Optional[int]) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("reminder_interval должен быть целым числом минут")
    if value < 0:
        raise ValidationError("reminder_interval не может быть отрицательным")
    # 0 - интервал выключен
    return value or None

def validate_non_negative_int(value: int, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field_name} должен быть неотрицательным целым числом")
    return value

# ===== CORE MODELS =====

@dataclass
class CategoryDef:
    """Категория привычек"""
    id: str
    name: str
    color: str = "gray"

    def __post_init__(self):
        self.name = validate_text(self.name, max_length=50, field_name="name")

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategoryDef":
        return cls(id=str(data["id"]), name=data["name"], color=data.get("color", "gray"))


def default_categories() -> List[CategoryDef]:
    return [
        CategoryDef(id="str", name="Strength", color="red"),
        CategoryDef(id="int", name="Intellect", color="blue"),
        CategoryDef(id="vit", name="Vitality", color="emerald"),
    ]


@dataclass
class Habit:
    """Привычка: галочка или числовая цель"""
    id: int
    name: str
    category_id: Optional[str] = None
    type: str = HabitType.CHECKBOX.value
    target: Optional[int] = None
    unit: Optional[str] = None
    frequency: str = HabitFrequency.DAILY.value
    frequency_goal: int = 1  # дней за неделю или месяц
    reminder_time: Optional[str] = None  # "HH:MM"
    reminder_interval: Optional[int] = None  # в минутах
    xp_reward: Optional[int] = None  # за выполнение или за единицу

    kind: ClassVar[ItemKind] = ItemKind.HABIT

    def __post_init__(self):
        """Валидация после создания объекта"""
        self.id = validate_non_negative_int(self.id, "id")
        self.name = validate_text(self.name, field_name="name")
        self.type = validate_enum_value(self.type, HabitType, "type")
        self.frequency = validate_enum_value(self.frequency, HabitFrequency, "frequency")
        self.frequency_goal = validate_non_negative_int(self.frequency_goal, "frequency_goal")
        if self.frequency_goal < 1:
            raise ValidationError("frequency_goal должен быть положительным числом")
        self.reminder_time = validate_reminder_time(self.reminder_time)
        self.reminder_interval = validate_interval(self.reminder_interval)

        if self.is_numeric:
            if self.target is None:
                self.target = 1
            if isinstance(self.target, bool) or not isinstance(self.target, int) or self.target <= 0:
                raise ValidationError("target должен быть положительным числом")
            if not self.unit:
                self.unit = "units"

        # По умолчанию: 10 XP за галочку, 1 XP за единицу
        if self.xp_reward is None:
            self.xp_reward = 1 if self.is_numeric else 10
        self.xp_reward = validate_non_negative_int(self.xp_reward, "xp_reward")

    @property
    def is_numeric(self) -> bool:
        return self.type == HabitType.NUMERIC.value

    @property
    def is_daily(self) -> bool:
        return self.frequency == HabitFrequency.DAILY.value

    @property
    def has_reminder(self) -> bool:
        return self.reminder_time is not None or self.reminder_interval is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "type": self.type,
            "target": self.target,
            "unit": self.unit,
            "frequency": self.frequency,
            "frequency_goal": self.frequency_goal,
            "reminder_time": self.reminder_time,
            "reminder_interval": self.reminder_interval,
            "xp_reward": self.xp_reward,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        return cls(
            id=data["id"],
            name=data["name"],
            category_id=data.get("category_id"),
            type=data.get("type", HabitType.CHECKBOX.value),
            target=data.get("target"),
            unit=data.get("unit"),
            frequency=data.get("frequency") or HabitFrequency.DAILY.value,
            frequency_goal=data.get("frequency_goal") or 1,
            reminder_time=data.get("reminder_time"),
            reminder_interval=data.get("reminder_interval"),
            xp_reward=data.get("xp_reward"),
        )


@dataclass
class Task:
    """Разовая задача (to-do)"""
    id: int
    name: str
    done: bool = False
    reminder_time: Optional[str] = None
    reminder_interval: Optional[int] = None
    xp_reward: int = 10

    kind: ClassVar[ItemKind] = ItemKind.TASK

    def __post_init__(self):
        self.id = validate_non_negative_int(self.id, "id")
        self.name = validate_text(self.name, field_name="name")
        self.reminder_time = validate_reminder_time(self.reminder_time)
        self.reminder_interval = validate_interval(self.reminder_interval)
        self.xp_reward = validate_non_negative_int(self.xp_reward, "xp_reward")

    @property
    def has_reminder(self) -> bool:
        return self.reminder_time is not None or self.reminder_interval is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "done": self.done,
            "reminder_time": self.reminder_time,
            "reminder_interval": self.reminder_interval,
            "xp_reward": self.xp_reward,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            name=data["name"],
            done=bool(data.get("done", False)),
            reminder_time=data.get("reminder_time"),
            reminder_interval=data.get("reminder_interval"),
            xp_reward=data.get("xp_reward", 10),
        )


TrackableItem = Union[Habit, Task]


def is_item_complete(item: TrackableItem, value: Optional[CompletionValue]) -> bool:
    """
    Выполнен ли элемент с учётом записи журнала за день.

    Единственное место, где различаются варианты элементов:
    галочка, числовая привычка (сравнение с целью) и задача (флаг done).
    """
    if isinstance(item, Habit):
        if item.type == HabitType.CHECKBOX.value:
            return bool(value)
        if item.type == HabitType.NUMERIC.value:
            if isinstance(value, bool) or value is None:
                return False
            return value >= item.target
        raise TypeError(f"Неизвестный тип привычки: {item.type}")
    if isinstance(item, Task):
        return item.done
    raise TypeError(f"Неизвестный вид элемента: {type(item).__name__}")


@dataclass
class UserProgress:
    """Опыт и уровень пользователя"""
    xp: int = 0
    level: int = 1

    def __post_init__(self):
        self.xp = validate_non_negative_int(self.xp, "xp")
        if isinstance(self.level, bool) or not isinstance(self.level, int) or self.level < 1:
            raise ValidationError("level должен быть положительным числом")

    def to_dict(self) -> Dict[str, Any]:
        return {"xp": self.xp, "level": self.level}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProgress":
        return cls(xp=data.get("xp", 0), level=data.get("level", 1))


@dataclass
class UserSettings:
    """Настройки звука, вибрации и тихих часов"""
    theme: str = UserTheme.LIGHT.value
    sound_enabled: bool = True
    vibration_enabled: bool = True
    alarm_duration: int = 30  # секунды
    chime_duration: int = 5
    sound_type: str = SoundType.MODERN.value
    quiet_window: Optional[QuietWindow] = None

    def __post_init__(self):
        self.theme = validate_enum_value(self.theme, UserTheme, "theme")
        self.sound_type = validate_enum_value(self.sound_type, SoundType, "sound_type")

        for name in ("alarm_duration", "chime_duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 300:
                raise ValidationError(f"{name} должен быть от 1 до 300 секунд")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theme": self.theme,
            "sound_enabled": self.sound_enabled,
            "vibration_enabled": self.vibration_enabled,
            "alarm_duration": self.alarm_duration,
            "chime_duration": self.chime_duration,
            "sound_type": self.sound_type,
            "quiet_window": self.quiet_window.to_dict() if self.quiet_window else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSettings":
        data = dict(data or {})
        try:
            quiet_window = QuietWindow.from_dict(data.pop("quiet_window", None))
        except ValueError as e:
            raise ValidationError(str(e))
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(quiet_window=quiet_window, **known)


@dataclass
class RemoteAction:
    """Действие, пришедшее из уведомления вне основного интерфейса"""
    action: RemoteActionType
    item_kind: ItemKind
    item_id: int

    CALLBACK_PREFIX: ClassVar[str] = "rem"

    def to_callback_data(self) -> str:
        return f"{self.CALLBACK_PREFIX}:{self.action.value}:{self.item_kind.value}:{self.item_id}"

    @classmethod
    def from_callback_data(cls, data: str) -> "RemoteAction":
        """Формат: rem:<action>:<kind>:<id>"""
        parts = (data or "").split(":")
        if len(parts) != 4 or parts[0] != cls.CALLBACK_PREFIX:
            raise ValidationError(f"Неверный формат действия: {data!r}")
        try:
            return cls(
                action=RemoteActionType(parts[1]),
                item_kind=ItemKind(parts[2]),
                item_id=int(parts[3]),
            )
        except ValueError as e:
            raise ValidationError(f"Неверное действие {data!r}: {e}")


@dataclass
class AppState:
    """Весь документ приложения: сохраняется и импортируется целиком"""
    user: UserProgress = field(default_factory=UserProgress)
    settings: UserSettings = field(default_factory=UserSettings)
    categories: List[CategoryDef] = field(default_factory=default_categories)
    habits: List[Habit] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    log: CompletionLog = field(default_factory=CompletionLog)

    def get_habit(self, habit_id: int) -> Optional[Habit]:
        return next((h for h in self.habits if h.id == habit_id), None)

    def get_task(self, task_id: int) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def get_item(self, kind: ItemKind, item_id: int) -> Optional[TrackableItem]:
        if kind == ItemKind.HABIT:
            return self.get_habit(item_id)
        return self.get_task(item_id)

    def all_ids(self) -> List[int]:
        return [h.id for h in self.habits] + [t.id for t in self.tasks]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "settings": self.settings.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "habits": [h.to_dict() for h in self.habits],
            "tasks": [t.to_dict() for t in self.tasks],
            "logs": self.log.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppState":
        """Ожидает уже мигрированный документ (см. database.migrations)"""
        try:
            return cls(
                user=UserProgress.from_dict(data.get("user") or {}),
                settings=UserSettings.from_dict(data.get("settings") or {}),
                categories=[CategoryDef.from_dict(c) for c in data.get("categories") or []],
                habits=[Habit.from_dict(h) for h in data.get("habits") or []],
                tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
                log=CompletionLog.from_dict(data.get("logs") or {}),
            )
        except (KeyError, TypeError) as e:
            raise ValidationError(f"Неполный документ: {e}")
