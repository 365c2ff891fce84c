# database/migrations.py

import copy
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

DEFAULT_CATEGORIES = [
    {"id": "str", "name": "Strength", "color": "red"},
    {"id": "int", "name": "Intellect", "color": "blue"},
    {"id": "vit", "name": "Vitality", "color": "emerald"},
]

# Старые (camelCase) имена полей -> текущие
HABIT_FIELD_ALIASES = {
    "categoryId": "category_id",
    "frequencyGoal": "frequency_goal",
    "reminderTime": "reminder_time",
    "reminderInterval": "reminder_interval",
    "xpReward": "xp_reward",
}

SETTINGS_FIELD_ALIASES = {
    "soundEnabled": "sound_enabled",
    "vibrationEnabled": "vibration_enabled",
    "alarmDuration": "alarm_duration",
    "chimeDuration": "chime_duration",
    "soundType": "sound_type",
    "theme": "theme",
}


def _rename_fields(item: Dict[str, Any], aliases: Dict[str, str]) -> None:
    for old_name, new_name in aliases.items():
        if old_name in item and new_name not in item:
            item[new_name] = item.pop(old_name)


def add_default_categories(data: Document) -> Document:
    if not data.get("categories"):
        data["categories"] = copy.deepcopy(DEFAULT_CATEGORIES)
    return data


def migrate_habit_fields(data: Document) -> Document:
    """Старое поле category переносится в category_id, пустые тип и частота - по умолчанию"""
    for habit in data.get("habits") or []:
        if not isinstance(habit, dict):
            continue
        _rename_fields(habit, HABIT_FIELD_ALIASES)
        legacy_category = habit.pop("category", None)
        if not habit.get("category_id") and legacy_category:
            habit["category_id"] = legacy_category
        if not habit.get("type"):
            habit["type"] = "checkbox"
        if not habit.get("frequency"):
            habit["frequency"] = "daily"
        if not habit.get("frequency_goal"):
            habit["frequency_goal"] = 1
    return data


def migrate_todos_to_tasks(data: Document) -> Document:
    if "tasks" not in data and "todos" in data:
        tasks = []
        for todo in data.pop("todos") or []:
            if isinstance(todo, dict):
                todo = dict(todo)
                if "name" not in todo and "text" in todo:
                    todo["name"] = todo.pop("text")
                _rename_fields(todo, HABIT_FIELD_ALIASES)
            tasks.append(todo)
        data["tasks"] = tasks
    data.setdefault("tasks", [])
    return data


def migrate_user_settings(data: Document) -> Document:
    """Настройки из старого объекта user переезжают в settings"""
    user = data.get("user")
    settings = data.get("settings")
    if not isinstance(settings, dict):
        settings = {}

    if isinstance(user, dict):
        for old_name, new_name in SETTINGS_FIELD_ALIASES.items():
            if old_name in user and new_name not in settings:
                settings[new_name] = user.pop(old_name)

        start, end = user.pop("dndStartTime", None), user.pop("dndEndTime", None)
        if start and end and "quiet_window" not in settings:
            settings["quiet_window"] = {"start": start, "end": end}

        # Поля старого UI, которых больше нет
        for obsolete in ("proteinTarget",):
            user.pop(obsolete, None)

    data["settings"] = settings
    return data


def ensure_logs(data: Document) -> Document:
    if not isinstance(data.get("logs"), dict):
        data["logs"] = {}
    return data


MIGRATIONS: List[Callable[[Document], Document]] = [
    add_default_categories,
    migrate_habit_fields,
    migrate_todos_to_tasks,
    migrate_user_settings,
    ensure_logs,
]


def migrate_document(data: Document) -> Document:
    """
    Применяет все миграции к копии документа.
    Исходный словарь не изменяется.
    """
    if not isinstance(data, dict):
        raise TypeError("Документ должен быть JSON-объектом")

    migrated = copy.deepcopy(data)
    for migration in MIGRATIONS:
        migrated = migration(migrated)
    logger.debug(f"🔧 Применено миграций: {len(MIGRATIONS)}")
    return migrated
