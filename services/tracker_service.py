# services/tracker_service.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from core.clock import Clock
from core.leveling import apply_delta, level_title, recalculate_progress
from core.models import (
    AppState, CategoryDef, Habit, HabitFrequency, HabitType, ItemKind, RemoteAction,
    RemoteActionType, Task, TriggerKind, UserSettings, ValidationError,
    is_item_complete
)
from core.quiet_window import QuietWindow
from core.reminders import ReminderEvaluator, TickResult, Trigger
from core.streaks import completion_rate, habit_streak, longest_streak
from services.data_service import DataService, ImportValidationError
from services.notifications import NotificationService
from ui.messages import completed_toast, permission_denied_message, trigger_message

logger = logging.getLogger(__name__)

# ===== СОСТОЯНИЕ ОПОВЕЩЕНИЙ =====

ALARM_VIBRATION = [500, 200, 500, 200, 1000]


class RemoteOutcome(Enum):
    """Результат действия из уведомления"""
    COMPLETED = "completed"
    ALREADY_DONE = "already_done"
    NOT_FOUND = "not_found"
    DISMISSED = "dismissed"


class ItemNotFoundError(Exception):
    """Элемент с таким id не найден"""
    pass


@dataclass
class ActiveAlarm:
    """Будильник, ожидающий ответа пользователя"""
    title: str
    body: str
    item_kind: ItemKind
    item_id: int


@dataclass
class Toast:
    """Короткое сообщение внутри приложения"""
    title: str
    message: str


@dataclass
class AudioCue:
    """Запрос на звук и вибрацию для клиента"""
    kind: TriggerKind
    duration: int  # секунды
    sound_type: str
    vibration: Optional[List[int]] = None


def vibration_pattern(kind: TriggerKind, duration: int) -> List[int]:
    if kind == TriggerKind.ALARM:
        return list(ALARM_VIBRATION)
    pulses = max(1, int(duration / 0.5))
    return [200, 300] * pulses

# ===== ОСНОВНОЙ СЕРВИС =====

class TrackerService:
    """
    Сервис привычек, задач, напоминаний и опыта

    Возможности:
    - Единственный владелец состояния (документ, журнал, прогресс)
    - Каждая операция - одно атомарное изменение и одна запись на диск
    - Такт планировщика и оповещения (будильник, тост, звук)
    - Общая операция выполнения для локальных и удалённых действий
    """

    def __init__(self, data_service: DataService, clock: Clock,
                 notifier: Optional[NotificationService] = None,
                 state: Optional[AppState] = None):
        self.data_service = data_service
        self.clock = clock
        self.notifier = notifier
        self.state = state if state is not None else data_service.load()

        # Курсор стартует с текущей минуты: без срабатываний задним числом
        self.evaluator = ReminderEvaluator(clock.sample())

        self.active_alarm: Optional[ActiveAlarm] = None
        self.toast: Optional[Toast] = None
        self.audio_cue: Optional[AudioCue] = None

        logger.info("✅ TrackerService инициализирован")

    # ===== ВНУТРЕННИЕ МЕТОДЫ =====

    def _commit(self, action: str):
        """Запись согласованного состояния после изменения"""
        self.data_service.save(self.state)
        logger.debug(f"📝 {action}")

    def _next_id(self) -> int:
        """id по времени создания в мс, уникальный среди всех элементов"""
        candidate = int(self.clock.now().timestamp() * 1000)
        existing = self.state.all_ids()
        if existing:
            candidate = max(candidate, max(existing) + 1)
        return candidate

    def _day(self, day: Optional[str]) -> str:
        return day or self.clock.today()

    def _require_habit(self, habit_id: int) -> Habit:
        habit = self.state.get_habit(habit_id)
        if habit is None:
            raise ItemNotFoundError(f"Привычка {habit_id} не найдена")
        return habit

    def _require_task(self, task_id: int) -> Task:
        task = self.state.get_task(task_id)
        if task is None:
            raise ItemNotFoundError(f"Задача {task_id} не найдена")
        return task

    def _apply_xp(self, xp_delta: int):
        """Одно изменение опыта через движок уровней"""
        if xp_delta == 0:
            return
        old_level = self.state.user.level
        self.state.user = apply_delta(self.state.user, xp_delta)

        if self.state.user.level > old_level:
            title = level_title(self.state.user.level)
            self.toast = Toast(f"Уровень {self.state.user.level}!", title)
            logger.info(f"🎉 Новый уровень: {self.state.user.level} ({title})")

    def _write_habit_value(self, habit: Habit, day: str, value: Union[bool, int]):
        """Записать значение и начислить XP по фактическому изменению"""
        old_value = self.state.log.get(day, habit.id)
        if old_value == value and type(old_value) is type(value):
            return

        if habit.is_numeric:
            old_units = self.state.log.get_count(day, habit.id)
            new_units = max(0, int(value))
            xp_delta = (new_units - old_units) * habit.xp_reward
            self.state.log.set(day, habit.id, new_units)
        else:
            old_done, new_done = bool(old_value), bool(value)
            xp_delta = 0
            if new_done != old_done:
                xp_delta = habit.xp_reward if new_done else -habit.xp_reward
            self.state.log.set(day, habit.id, new_done)

        self._apply_xp(xp_delta)

    # ===== ПРИВЫЧКИ =====

    def add_habit(self, name: str, category_id: Optional[str] = None,
                  type: str = HabitType.CHECKBOX.value, target: Optional[int] = None,
                  unit: Optional[str] = None, reminder_time: Optional[str] = None,
                  reminder_interval: Optional[int] = None,
                  xp_reward: Optional[int] = None,
                  frequency: str = HabitFrequency.DAILY.value, frequency_goal: int = 1) -> Habit:
        habit = Habit(
            id=self._next_id(),
            name=name,
            category_id=category_id,
            type=type,
            target=target,
            unit=unit,
            frequency=frequency,
            frequency_goal=frequency_goal,
            reminder_time=reminder_time,
            reminder_interval=reminder_interval,
            xp_reward=xp_reward,
        )
        self.state.habits.append(habit)
        self._commit(f"Добавлена привычка {habit.id}: {habit.name}")
        return habit

    def update_habit(self, habit_id: int, **updates: Any) -> Habit:
        habit = self._require_habit(habit_id)
        if "id" in updates and updates["id"] != habit_id:
            raise ValidationError("id привычки неизменяем")

        updated = Habit.from_dict({**habit.to_dict(), **updates})
        index = self.state.habits.index(habit)
        self.state.habits[index] = updated
        self._commit(f"Изменена привычка {habit_id}")
        return updated

    def delete_habit(self, habit_id: int) -> bool:
        """Удаляет привычку из списка; записи журнала сохраняются"""
        habit = self.state.get_habit(habit_id)
        if habit is None:
            return False
        self.state.habits.remove(habit)
        if self.active_alarm and self.active_alarm.item_kind == ItemKind.HABIT \
                and self.active_alarm.item_id == habit_id:
            self.dismiss_alarm()
        self._commit(f"Удалена привычка {habit_id}")
        return True

    def move_habit(self, habit_id: int, over_id: int) -> bool:
        """Переставить привычку на место другой"""
        ids = [h.id for h in self.state.habits]
        if habit_id not in ids or over_id not in ids or habit_id == over_id:
            return False
        habit = self.state.habits.pop(ids.index(habit_id))
        self.state.habits.insert(ids.index(over_id), habit)
        self._commit(f"Привычка {habit_id} перемещена")
        return True

    def toggle_habit(self, habit_id: int, day: Optional[str] = None) -> bool:
        """Переключить выполнение; возвращает новое состояние"""
        habit = self._require_habit(habit_id)
        day = self._day(day)
        done = is_item_complete(habit, self.state.log.get(day, habit_id))

        if habit.is_numeric:
            self._write_habit_value(habit, day, 0 if done else habit.target)
        else:
            self._write_habit_value(habit, day, not done)
        self._commit(f"Привычка {habit_id} {'снята' if done else 'отмечена'} за {day}")
        return not done

    def increment_habit(self, habit_id: int, amount: int, day: Optional[str] = None) -> int:
        """Добавить единицы к числовой привычке; XP начисляется одним вызовом"""
        habit = self._require_habit(habit_id)
        if not habit.is_numeric:
            raise ValidationError("Увеличивать можно только числовую привычку")

        day = self._day(day)
        old_value, new_value = self.state.log.increment(day, habit_id, amount)
        self._apply_xp((new_value - old_value) * habit.xp_reward)
        self._commit(f"Привычка {habit_id}: {old_value} -> {new_value} за {day}")
        return new_value

    def set_habit_value(self, habit_id: int, value: Union[bool, int], day: Optional[str] = None):
        habit = self._require_habit(habit_id)
        if not isinstance(value, bool) and value < 0:
            raise ValidationError("Значение не может быть отрицательным")

        day = self._day(day)
        self._write_habit_value(habit, day, value)
        self._commit(f"Привычка {habit_id} = {value} за {day}")

    # ===== ЗАДАЧИ =====

    def add_task(self, name: str, reminder_time: Optional[str] = None,
                 reminder_interval: Optional[int] = None, xp_reward: int = 10) -> Task:
        task = Task(
            id=self._next_id(),
            name=name,
            reminder_time=reminder_time,
            reminder_interval=reminder_interval,
            xp_reward=xp_reward,
        )
        # Новые задачи сверху
        self.state.tasks.insert(0, task)
        self._commit(f"Добавлена задача {task.id}: {task.name}")
        return task

    def update_task(self, task_id: int, **updates: Any) -> Task:
        task = self._require_task(task_id)
        if "id" in updates and updates["id"] != task_id:
            raise ValidationError("id задачи неизменяем")

        updated = Task.from_dict({**task.to_dict(), **updates})
        index = self.state.tasks.index(task)
        self.state.tasks[index] = updated
        self._commit(f"Изменена задача {task_id}")
        return updated

    def toggle_task(self, task_id: int) -> bool:
        task = self._require_task(task_id)
        task.done = not task.done
        self._apply_xp(task.xp_reward if task.done else -task.xp_reward)
        self._commit(f"Задача {task_id} {'выполнена' if task.done else 'открыта'}")
        return task.done

    def delete_task(self, task_id: int) -> bool:
        """Задача удаляется полностью"""
        task = self.state.get_task(task_id)
        if task is None:
            return False
        self.state.tasks.remove(task)
        if self.active_alarm and self.active_alarm.item_kind == ItemKind.TASK \
                and self.active_alarm.item_id == task_id:
            self.dismiss_alarm()
        self._commit(f"Удалена задача {task_id}")
        return True

    # ===== КАТЕГОРИИ И НАСТРОЙКИ =====

    def add_category(self, name: str, color: str = "gray") -> CategoryDef:
        existing = {c.id for c in self.state.categories}
        category_id = int(self.clock.now().timestamp() * 1000)
        while str(category_id) in existing:
            category_id += 1
        category = CategoryDef(id=str(category_id), name=name, color=color)
        self.state.categories.append(category)
        self._commit(f"Добавлена категория {category.name}")
        return category

    def update_category(self, category_id: str, name: str, color: str) -> bool:
        for index, category in enumerate(self.state.categories):
            if category.id == category_id:
                self.state.categories[index] = CategoryDef(id=category_id, name=name, color=color)
                self._commit(f"Изменена категория {category_id}")
                return True
        return False

    def delete_category(self, category_id: str) -> bool:
        categories = [c for c in self.state.categories if c.id != category_id]
        if len(categories) == len(self.state.categories):
            return False
        self.state.categories = categories
        self._commit(f"Удалена категория {category_id}")
        return True

    def update_settings(self, **updates: Any) -> UserSettings:
        current = self.state.settings.to_dict()
        current.update(updates)
        if isinstance(current.get("quiet_window"), QuietWindow):
            current["quiet_window"] = current["quiet_window"].to_dict()
        self.state.settings = UserSettings.from_dict(current)
        self._commit("Настройки обновлены")
        return self.state.settings

    def set_quiet_window(self, start: Optional[str], end: Optional[str]) -> Optional[QuietWindow]:
        """None в любом из аргументов выключает тихие часы"""
        if start and end:
            try:
                window = QuietWindow(start=start, end=end)
            except ValueError as e:
                raise ValidationError(str(e))
        else:
            window = None
        self.state.settings.quiet_window = window
        self._commit(f"Тихие часы: {window.start}-{window.end}" if window else "Тихие часы выключены")
        return window

    # ===== ВЫПОЛНЕНИЕ =====

    def apply_completion(self, item_kind: ItemKind, item_id: int, day: Optional[str] = None) -> bool:
        """
        Отметить элемент выполненным.

        Общий путь для локальной отметки из будильника и для действия из
        уведомления. Повторный вызов для уже выполненного элемента ничего
        не меняет. Возвращает True, если состояние изменилось.
        """
        day = self._day(day)

        if item_kind == ItemKind.HABIT:
            habit = self._require_habit(item_id)
            if is_item_complete(habit, self.state.log.get(day, item_id)):
                return False
            self._write_habit_value(habit, day, habit.target if habit.is_numeric else True)
        elif item_kind == ItemKind.TASK:
            task = self._require_task(item_id)
            if task.done:
                return False
            task.done = True
            self._apply_xp(task.xp_reward)
        else:
            raise TypeError(f"Неизвестный вид элемента: {item_kind}")

        self._commit(f"Выполнено: {item_kind.value} {item_id} за {day}")
        return True

    # ===== НАПОМИНАНИЯ =====

    def tick(self) -> TickResult:
        """Такт heartbeat: проверить напоминания и поднять оповещения"""
        result = self.evaluator.tick(
            self.clock.sample(),
            self.state.habits,
            self.state.tasks,
            self.state.log,
            self.clock.today(),
            self.state.settings.quiet_window,
        )
        if not result.triggers:
            return result

        if result.silenced:
            logger.info(f"🌙 Тихие часы: подавлено срабатываний - {len(result.triggers)}")
            return result

        for trigger in result.triggers:
            self._raise_trigger(trigger)
        self._request_sound(result.sound)
        return result

    def _raise_trigger(self, trigger: Trigger):
        title, body = trigger_message(trigger)
        if trigger.is_alarm:
            # Последний будильник вытесняет предыдущий
            self.active_alarm = ActiveAlarm(title, body, trigger.item_kind, trigger.item_id)
        else:
            self.toast = Toast(title, body)

        logger.info(f"⏰ {trigger.kind.value}: {trigger.item_kind.value} {trigger.item_id} ({trigger.item_name})")
        if self.notifier is not None:
            self.notifier.notify(title, body, trigger.is_alarm, trigger.item_id, trigger.item_kind)

    def _request_sound(self, kind: Optional[TriggerKind]):
        settings = self.state.settings
        if kind is None or not settings.sound_enabled:
            return

        duration = settings.alarm_duration if kind == TriggerKind.ALARM else settings.chime_duration
        self.audio_cue = AudioCue(
            kind=kind,
            duration=duration,
            sound_type=settings.sound_type,
            vibration=vibration_pattern(kind, duration) if settings.vibration_enabled else None,
        )

    def dismiss_alarm(self):
        """Выключить будильник и остановить звук, данные не меняются"""
        if self.active_alarm:
            logger.info(f"🔕 Будильник выключен: {self.active_alarm.title}")
        self.active_alarm = None
        self.audio_cue = None

    def complete_alarm(self) -> bool:
        """Кнопка "Выполнено" на активном будильнике"""
        alarm = self.active_alarm
        changed = False
        if alarm is not None:
            try:
                changed = self.apply_completion(alarm.item_kind, alarm.item_id)
            except ItemNotFoundError as e:
                logger.warning(f"⚠️ {e}")
            else:
                self.toast = Toast(*completed_toast())
        self.dismiss_alarm()
        return changed

    def handle_remote_action(self, action: RemoteAction) -> RemoteOutcome:
        """Действие из уведомления: выполнить или просто выключить"""
        logger.info(f"📥 Удалённое действие: {action.action.value} {action.item_kind.value} {action.item_id}")

        if action.action == RemoteActionType.DISMISS:
            self.dismiss_alarm()
            return RemoteOutcome.DISMISSED

        try:
            changed = self.apply_completion(action.item_kind, action.item_id)
        except ItemNotFoundError as e:
            logger.warning(f"⚠️ Удалённое выполнение пропущено: {e}")
            outcome = RemoteOutcome.NOT_FOUND
        else:
            self.toast = Toast(*completed_toast(remote=True))
            outcome = RemoteOutcome.COMPLETED if changed else RemoteOutcome.ALREADY_DONE
        self.dismiss_alarm()
        return outcome

    def on_notifications_denied(self):
        """Сообщить один раз, что системные уведомления недоступны"""
        self.toast = Toast(*permission_denied_message())

    # ===== СТАТИСТИКА =====

    def streak(self, habit_id: int) -> int:
        habit = self.state.get_habit(habit_id)
        if habit is None:
            return 0
        return habit_streak(habit, self.state.log, self.clock.today())

    def longest_streak(self, habit_id: int) -> int:
        return longest_streak(habit_id, self.state.log)

    def completion_rate(self, day: Optional[str] = None) -> int:
        return completion_rate(self.state.habits, self.state.log, self._day(day))

    def recalculate_progress(self):
        self.state.user = recalculate_progress(self.state.habits, self.state.tasks, self.state.log)
        self._commit("Прогресс пересчитан")
        return self.state.user

    # ===== ДАННЫЕ =====

    def reset_data(self):
        self.data_service.create_backup()
        self.state = AppState()
        self.dismiss_alarm()
        self._commit("Данные сброшены")
        logger.warning("🧹 Все данные сброшены")

    def export_data(self) -> str:
        return self.data_service.export_json(self.state)

    def import_data(self, raw: Union[str, bytes, Dict[str, Any]]) -> bool:
        """Заменить документ целиком; при ошибке состояние не меняется"""
        try:
            new_state = self.data_service.parse_document(raw)
        except ImportValidationError as e:
            logger.warning(f"⚠️ Импорт отклонён: {e}")
            self.toast = Toast("Импорт отклонён", str(e))
            return False

        self.data_service.create_backup()
        self.state = new_state
        self.dismiss_alarm()
        self._commit("Данные импортированы")
        logger.info(f"📥 Импортировано: {len(new_state.habits)} привычек, {len(new_state.tasks)} задач")
        return True

    def get_summary(self) -> Dict[str, Any]:
        today = self.clock.today()
        return {
            "level": self.state.user.level,
            "xp": self.state.user.xp,
            "completion_rate": self.completion_rate(today),
            "streaks": {h.id: self.streak(h.id) for h in self.state.habits},
            "active_alarm": self.active_alarm.title if self.active_alarm else None,
        }
