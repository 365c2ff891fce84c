#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lifestyle OS - Reminder Evaluator
Планировщик напоминаний: будильники (фиксированное время) и повторы
(по интервалу)

Вызывается на каждый такт heartbeat, но работает не чаще раза в минуту.
Каждый элемент проверяется на полуинтервале (последняя_минута, текущая],
поэтому пропущенные минуты (фоновый режим, редкие такты) не теряются и
не воспроизводятся повторно: одна граница даёт не больше одного
срабатывания.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from core.completion_log import CompletionLog
from core.models import (
    Habit, ItemKind, Task, TrackableItem, TriggerKind, is_item_complete
)
from core.quiet_window import QuietWindow, is_quiet_time
from utils.datetime_utils import parse_time_str

logger = logging.getLogger(__name__)

# ===== РЕЗУЛЬТАТЫ =====

@dataclass
class Trigger:
    """Одно срабатывание напоминания"""
    kind: TriggerKind
    item_kind: ItemKind
    item_id: int
    item_name: str
    reminder_time: Optional[str] = None

    @property
    def is_alarm(self) -> bool:
        return self.kind == TriggerKind.ALARM


@dataclass
class TickResult:
    """Итог одного такта планировщика"""
    minute: int
    triggers: List[Trigger] = field(default_factory=list)
    silenced: bool = False
    evaluated: bool = True

    @property
    def alarms(self) -> List[Trigger]:
        return [t for t in self.triggers if t.kind == TriggerKind.ALARM]

    @property
    def chimes(self) -> List[Trigger]:
        return [t for t in self.triggers if t.kind == TriggerKind.CHIME]

    @property
    def sound(self) -> Optional[TriggerKind]:
        """Один звуковой сигнал на такт, будильник важнее повтора"""
        if self.alarms:
            return TriggerKind.ALARM
        if self.chimes:
            return TriggerKind.CHIME
        return None

    @property
    def last_alarm(self) -> Optional[Trigger]:
        alarms = self.alarms
        return alarms[-1] if alarms else None

    @property
    def last_chime(self) -> Optional[Trigger]:
        chimes = self.chimes
        return chimes[-1] if chimes else None

# ===== ПРОВЕРКИ ГРАНИЦ =====

def crossed_fixed_time(last_minute: int, now_minute: int, reminder_minute: int) -> bool:
    """Пересечена ли минута `reminder_minute` на (last, now]"""
    if last_minute < now_minute:
        return last_minute < reminder_minute <= now_minute
    # Переход через полночь: (last, 1439] и [0, now]
    return reminder_minute > last_minute or reminder_minute <= now_minute


def crossed_interval(last_minute: int, now_minute: int, interval: int) -> bool:
    """Пересечена ли граница шага `interval` на (last, now]"""
    if last_minute < now_minute:
        return now_minute // interval > last_minute // interval
    # После полуночи отсчёт шагов начинается заново, минута 0 - всегда граница
    return True

# ===== ПЛАНИРОВЩИК =====

class ReminderEvaluator:
    """
    Пошаговая машина состояний напоминаний.

    Единственное состояние - курсор последней обработанной минуты. Он
    задаётся при создании (текущая минута на старте процесса), чтобы
    прошлые напоминания не срабатывали задним числом, и меняется только
    в tick().
    """

    def __init__(self, initial_minute: int):
        self._last_minute = initial_minute

    def tick(self, now_minute: int, habits: Iterable[Habit], tasks: Iterable[Task],
             log: CompletionLog, today: str,
             quiet_window: Optional[QuietWindow] = None) -> TickResult:
        """Обработать текущую минуту и вернуть сработавшие напоминания"""
        if now_minute == self._last_minute:
            return TickResult(minute=now_minute, evaluated=False)

        last_minute = self._last_minute
        items: List[TrackableItem] = list(habits) + [t for t in tasks if not t.done]

        triggers = []
        for item in items:
            trigger = self._evaluate_item(item, last_minute, now_minute, log, today)
            if trigger is not None:
                triggers.append(trigger)

        silenced = bool(triggers) and is_quiet_time(quiet_window, now_minute)
        self._last_minute = now_minute

        if triggers:
            logger.debug(
                f"⏰ Минута {now_minute}: сработало {len(triggers)} напоминаний"
                f"{' (тихие часы)' if silenced else ''}"
            )
        return TickResult(minute=now_minute, triggers=triggers, silenced=silenced)

    def _evaluate_item(self, item: TrackableItem, last_minute: int, now_minute: int,
                       log: CompletionLog, today: str) -> Optional[Trigger]:
        if item.reminder_time is not None:
            reminder_minute = parse_time_str(item.reminder_time)
            if crossed_fixed_time(last_minute, now_minute, reminder_minute):
                return Trigger(
                    kind=TriggerKind.ALARM,
                    item_kind=item.kind,
                    item_id=item.id,
                    item_name=item.name,
                    reminder_time=item.reminder_time,
                )

        interval = item.reminder_interval
        if interval and interval > 0 and crossed_interval(last_minute, now_minute, interval):
            if not is_item_complete(item, log.get(today, item.id)):
                return Trigger(
                    kind=TriggerKind.CHIME,
                    item_kind=item.kind,
                    item_id=item.id,
                    item_name=item.name,
                )

        return None
