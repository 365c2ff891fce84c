from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator, model_validator
from typing import List, Optional, Dict, Union
from datetime import datetime
from enum import Enum

# Базовые перечисления
class HabitType(str, Enum):
    CHECKBOX = "checkbox"
    NUMERIC = "numeric"

class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class SoundType(str, Enum):
    MODERN = "modern"
    CLASSIC = "classic"
    RETRO = "retro"

class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


def _check_time(v: Optional[str]) -> Optional[str]:
    if v in (None, ""):
        return None
    try:
        hours, minutes = (int(p) for p in v.split(":"))
    except ValueError:
        raise ValueError(f"Время должно быть в формате HH:MM: {v!r}")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Время вне диапазона: {v!r}")
    return v


# Схемы документа для проверки импорта
class ProgressSchema(BaseModel):
    xp: int = Field(0, ge=0)
    level: int = Field(1, ge=1)

class CategorySchema(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    name: str = Field(..., min_length=1, max_length=50)
    color: str = "gray"

class TrackableItemSchema(BaseModel):
    id: int = Field(..., ge=0)
    name: str = Field(..., min_length=1, max_length=200)
    reminder_time: Optional[str] = None
    reminder_interval: Optional[int] = Field(None, ge=0)
    xp_reward: Optional[int] = Field(None, ge=0)

    @field_validator('reminder_time')
    @classmethod
    def validate_reminder_time(cls, v):
        return _check_time(v)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Название не может быть пустым')
        return v

class HabitSchema(TrackableItemSchema):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    category_id: Optional[str] = None
    type: HabitType = HabitType.CHECKBOX
    target: Optional[int] = Field(None, ge=1)
    unit: Optional[str] = None
    frequency: Frequency = Frequency.DAILY
    frequency_goal: int = Field(1, ge=1)

class TaskSchema(TrackableItemSchema):
    done: bool = False

class QuietWindowSchema(BaseModel):
    start: str
    end: str

    @field_validator('start', 'end')
    @classmethod
    def validate_time(cls, v):
        if not _check_time(v):
            raise ValueError('Время тихих часов обязательно')
        return v

class SettingsSchema(BaseModel):
    theme: Theme = Theme.LIGHT
    sound_enabled: bool = True
    vibration_enabled: bool = True
    alarm_duration: int = Field(30, ge=1, le=300)
    chime_duration: int = Field(5, ge=1, le=300)
    sound_type: SoundType = SoundType.MODERN
    quiet_window: Optional[QuietWindowSchema] = None

class AppDocument(BaseModel):
    """Полный документ приложения; user и habits обязательны"""
    user: ProgressSchema
    habits: List[HabitSchema]
    tasks: List[TaskSchema] = []
    categories: List[CategorySchema] = []
    settings: SettingsSchema = SettingsSchema()
    logs: Dict[str, Dict[str, Union[StrictBool, StrictInt]]] = {}

    @field_validator('logs')
    @classmethod
    def validate_logs(cls, v):
        for day, values in v.items():
            try:
                datetime.strptime(day, "%Y-%m-%d")
            except ValueError:
                raise ValueError(f"Неверная дата в журнале: {day!r}")
            for item_id, value in values.items():
                if not item_id.lstrip("-").isdigit():
                    raise ValueError(f"Неверный id в журнале {day}: {item_id!r}")
                if not isinstance(value, bool) and value < 0:
                    raise ValueError(f"Отрицательное значение в журнале {day}/{item_id}")
        return v

    @model_validator(mode='after')
    def validate_unique_ids(self):
        for name, items in (("habits", self.habits), ("tasks", self.tasks)):
            ids = [item.id for item in items]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Повторяющиеся id в {name}")
        return self
