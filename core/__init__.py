#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lifestyle OS - Core Package
Модели, журнал выполнения, планировщик напоминаний, уровни и серии
"""

from .models import (
    AppState,
    Habit,
    HabitType,
    ItemKind,
    RemoteAction,
    RemoteActionType,
    Task,
    TriggerKind,
    UserProgress,
    UserSettings,
    ValidationError,
    is_item_complete,
)
from .completion_log import CompletionLog
from .quiet_window import QuietWindow, is_quiet_time
from .reminders import ReminderEvaluator, TickResult, Trigger

__all__ = [
    'AppState',
    'CompletionLog',
    'Habit',
    'HabitType',
    'ItemKind',
    'QuietWindow',
    'RemoteAction',
    'RemoteActionType',
    'ReminderEvaluator',
    'Task',
    'TickResult',
    'Trigger',
    'TriggerKind',
    'UserProgress',
    'UserSettings',
    'ValidationError',
    'is_item_complete',
    'is_quiet_time',
]
