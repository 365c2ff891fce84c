import tempfile
import unittest
from datetime import datetime
from pathlib import Path

import pytz

from core.clock import Clock
from core.models import (
    HabitType, ItemKind, RemoteAction, RemoteActionType, TriggerKind, UserProgress,
    ValidationError
)
from services.data_service import DataService
from services.tracker_service import ItemNotFoundError, RemoteOutcome, TrackerService


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def notify(self, title, body, is_alarm, item_id=None, item_kind=None):
        self.sent.append((title, body, is_alarm, item_id, item_kind))


class TrackerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        root = Path(self.tmp.name)
        self.data_service = DataService(data_file=root / "state.json", backup_dir=root / "backups")
        self.now = pytz.UTC.localize(datetime(2024, 1, 10, 9, 58))
        self.clock = Clock(now_func=lambda: self.now)
        self.notifier = FakeNotifier()
        self.tracker = TrackerService(self.data_service, self.clock, notifier=self.notifier)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def set_time(self, hour: int, minute: int) -> None:
        self.now = self.now.replace(hour=hour, minute=minute)


class TestItems(TrackerTestCase):
    def test_add_habit_persists(self) -> None:
        habit = self.tracker.add_habit("Вода", category_id="vit", reminder_time="10:00")
        self.assertEqual(self.data_service.load().habits, [habit])
        self.assertEqual(habit.xp_reward, 10)

    def test_ids_are_unique(self) -> None:
        first = self.tracker.add_habit("А")
        second = self.tracker.add_habit("Б")
        task = self.tracker.add_task("В")
        self.assertEqual(len({first.id, second.id, task.id}), 3)

    def test_update_habit_validates(self) -> None:
        habit = self.tracker.add_habit("Вода")
        updated = self.tracker.update_habit(habit.id, name="Вода 2л", reminder_interval=90)
        self.assertEqual(updated.name, "Вода 2л")
        self.assertEqual(self.tracker.state.get_habit(habit.id).reminder_interval, 90)

        with self.assertRaises(ValidationError):
            self.tracker.update_habit(habit.id, reminder_time="99:00")
        with self.assertRaises(ItemNotFoundError):
            self.tracker.update_habit(12345, name="Нет")

    def test_delete_habit_keeps_log(self) -> None:
        habit = self.tracker.add_habit("Вода")
        self.tracker.toggle_habit(habit.id)
        self.assertTrue(self.tracker.delete_habit(habit.id))
        self.assertIsNone(self.tracker.state.get_habit(habit.id))
        self.assertEqual(self.tracker.state.log.get("2024-01-10", habit.id), True)
        self.assertFalse(self.tracker.delete_habit(habit.id))

    def test_delete_task_removes_it(self) -> None:
        task = self.tracker.add_task("Позвонить")
        self.assertTrue(self.tracker.delete_task(task.id))
        self.assertEqual(self.tracker.state.tasks, [])

    def test_move_habit(self) -> None:
        first = self.tracker.add_habit("А")
        second = self.tracker.add_habit("Б")
        third = self.tracker.add_habit("В")
        self.assertTrue(self.tracker.move_habit(third.id, first.id))
        self.assertEqual([h.id for h in self.tracker.state.habits], [third.id, first.id, second.id])
        self.assertFalse(self.tracker.move_habit(third.id, third.id))

    def test_tasks_newest_first_and_update(self) -> None:
        older = self.tracker.add_task("Старая")
        newer = self.tracker.add_task("Новая")
        self.assertEqual([t.id for t in self.tracker.state.tasks], [newer.id, older.id])

        updated = self.tracker.update_task(older.id, reminder_time="18:30")
        self.assertEqual(updated.reminder_time, "18:30")
        with self.assertRaises(ItemNotFoundError):
            self.tracker.toggle_task(999)

    def test_categories(self) -> None:
        category = self.tracker.add_category("Творчество", "purple")
        self.assertTrue(self.tracker.update_category(category.id, "Хобби", "pink"))
        self.assertEqual(self.tracker.state.categories[-1].name, "Хобби")
        self.assertTrue(self.tracker.delete_category(category.id))
        self.assertFalse(self.tracker.delete_category(category.id))

    def test_settings(self) -> None:
        settings = self.tracker.update_settings(sound_type="retro", alarm_duration=60)
        self.assertEqual(settings.sound_type, "retro")
        with self.assertRaises(ValidationError):
            self.tracker.update_settings(chime_duration=0)

        window = self.tracker.set_quiet_window("23:00", "07:00")
        self.assertEqual(self.data_service.load().settings.quiet_window, window)
        self.assertIsNone(self.tracker.set_quiet_window(None, None))


class TestExperience(TrackerTestCase):
    def test_toggle_checkbox_habit(self) -> None:
        habit = self.tracker.add_habit("Медитация")
        self.assertTrue(self.tracker.toggle_habit(habit.id))
        self.assertEqual(self.tracker.state.user, UserProgress(xp=10, level=1))
        self.assertFalse(self.tracker.toggle_habit(habit.id))
        self.assertEqual(self.tracker.state.user, UserProgress(xp=0, level=1))

    def test_numeric_increments(self) -> None:
        habit = self.tracker.add_habit("Отжимания", type=HabitType.NUMERIC.value,
                                       target=10, xp_reward=2)
        self.tracker.increment_habit(habit.id, 6)
        self.assertEqual(self.tracker.state.user.xp, 12)
        value = self.tracker.increment_habit(habit.id, 5)

        self.assertEqual(value, 11)
        self.assertEqual(self.tracker.state.user.xp, 22)
        self.assertEqual(self.tracker.streak(habit.id), 1)

    def test_decrement_below_zero(self) -> None:
        habit = self.tracker.add_habit("Шаги", type=HabitType.NUMERIC.value, target=5)
        self.tracker.increment_habit(habit.id, 2)
        self.assertEqual(self.tracker.increment_habit(habit.id, -5), 0)
        self.assertEqual(self.tracker.state.user.xp, 0)

    def test_increment_checkbox_rejected(self) -> None:
        habit = self.tracker.add_habit("Медитация")
        with self.assertRaises(ValidationError):
            self.tracker.increment_habit(habit.id, 1)

    def test_level_up_toast(self) -> None:
        task = self.tracker.add_task("Большое дело", xp_reward=120)
        self.tracker.toggle_task(task.id)
        self.assertEqual(self.tracker.state.user, UserProgress(xp=20, level=2))
        self.assertEqual(self.tracker.toast.title, "Уровень 2!")

        # Отмена не понижает уровень
        self.tracker.toggle_task(task.id)
        self.assertEqual(self.tracker.state.user, UserProgress(xp=0, level=2))

    def test_apply_completion_is_idempotent(self) -> None:
        habit = self.tracker.add_habit("Вода", type=HabitType.NUMERIC.value, target=8)
        self.tracker.increment_habit(habit.id, 3)

        self.assertTrue(self.tracker.apply_completion(ItemKind.HABIT, habit.id))
        self.assertEqual(self.tracker.state.log.get("2024-01-10", habit.id), 8)
        self.assertEqual(self.tracker.state.user.xp, 8)

        self.assertFalse(self.tracker.apply_completion(ItemKind.HABIT, habit.id))
        self.assertEqual(self.tracker.state.user.xp, 8)

    def test_weekly_habit_streak(self) -> None:
        habit = self.tracker.add_habit("Бассейн", frequency="weekly", frequency_goal=2)
        log = self.tracker.state.log
        log.set("2023-12-27", habit.id, True)
        log.set("2024-01-02", habit.id, True)
        log.set("2024-01-04", habit.id, True)
        log.set("2024-01-09", habit.id, True)

        # Неделя 25-31 декабря короче цели, серия считается с 1 января
        self.assertEqual(self.tracker.streak(habit.id), 3)
        self.assertEqual(self.tracker.state.get_habit(habit.id).frequency_goal, 2)

    def test_recalculate_progress(self) -> None:
        habit = self.tracker.add_habit("Медитация")
        self.tracker.toggle_habit(habit.id)
        self.tracker.state.user = UserProgress(xp=99, level=7)
        self.assertEqual(self.tracker.recalculate_progress(), UserProgress(xp=10, level=1))


class TestAlerts(TrackerTestCase):
    def test_alarm_then_remote_complete(self) -> None:
        habit = self.tracker.add_habit("Вода", reminder_time="10:00")
        self.set_time(10, 0)

        result = self.tracker.tick()
        self.assertEqual(len(result.alarms), 1)
        self.assertEqual(self.tracker.active_alarm.item_id, habit.id)
        self.assertEqual(self.tracker.audio_cue.kind, TriggerKind.ALARM)
        self.assertEqual(self.tracker.audio_cue.vibration, [500, 200, 500, 200, 1000])
        self.assertEqual(self.notifier.sent[0][:4], ("⏰ Время: Вода", "Сейчас 10:00. Давай сделаем это.", True, habit.id))

        action = RemoteAction(RemoteActionType.COMPLETE, ItemKind.HABIT, habit.id)
        self.assertEqual(self.tracker.handle_remote_action(action), RemoteOutcome.COMPLETED)
        self.assertIsNone(self.tracker.active_alarm)
        self.assertIsNone(self.tracker.audio_cue)
        self.assertTrue(self.tracker.state.log.get("2024-01-10", habit.id))
        self.assertEqual(self.tracker.state.user.xp, 10)

        # Повторное нажатие ничего не меняет
        self.assertEqual(self.tracker.handle_remote_action(action), RemoteOutcome.ALREADY_DONE)
        self.assertEqual(self.tracker.state.user.xp, 10)

    def test_remote_dismiss_keeps_data(self) -> None:
        task = self.tracker.add_task("Позвонить", reminder_time="10:00")
        self.set_time(10, 0)
        self.tracker.tick()

        outcome = self.tracker.handle_remote_action(RemoteAction(RemoteActionType.DISMISS, ItemKind.TASK, task.id))
        self.assertEqual(outcome, RemoteOutcome.DISMISSED)
        self.assertIsNone(self.tracker.active_alarm)
        self.assertFalse(self.tracker.state.get_task(task.id).done)
        self.assertEqual(self.tracker.state.user.xp, 0)

    def test_remote_complete_missing_item(self) -> None:
        habit = self.tracker.add_habit("Вода", reminder_time="10:00")
        self.set_time(10, 0)
        self.tracker.tick()
        self.tracker.delete_habit(habit.id)

        action = RemoteAction(RemoteActionType.COMPLETE, ItemKind.HABIT, habit.id)
        self.assertEqual(self.tracker.handle_remote_action(action), RemoteOutcome.NOT_FOUND)
        self.assertIsNone(self.tracker.active_alarm)
        self.assertIsNone(self.tracker.state.log.get("2024-01-10", habit.id))
        self.assertEqual(self.tracker.state.user.xp, 0)

        unknown = RemoteAction(RemoteActionType.COMPLETE, ItemKind.TASK, 42)
        self.assertEqual(self.tracker.handle_remote_action(unknown), RemoteOutcome.NOT_FOUND)

    def test_complete_alarm_locally(self) -> None:
        task = self.tracker.add_task("Позвонить", reminder_time="10:00")
        self.set_time(10, 0)
        self.tracker.tick()

        self.assertTrue(self.tracker.complete_alarm())
        self.assertTrue(self.tracker.state.get_task(task.id).done)
        self.assertIsNone(self.tracker.active_alarm)

    def test_last_alarm_wins(self) -> None:
        self.tracker.add_habit("Первая", reminder_time="10:00")
        second = self.tracker.add_habit("Вторая", reminder_time="10:00")
        self.set_time(10, 0)
        self.tracker.tick()
        self.assertEqual(self.tracker.active_alarm.item_id, second.id)
        self.assertEqual(len(self.notifier.sent), 2)

    def test_chime_sets_toast_only(self) -> None:
        self.tracker.add_habit("Размяться", reminder_interval=60)
        self.tracker.update_settings(vibration_enabled=False)
        self.set_time(10, 0)
        self.tracker.tick()

        self.assertIsNone(self.tracker.active_alarm)
        self.assertEqual(self.tracker.toast.title, "🔔 Напоминание: Размяться")
        self.assertEqual(self.tracker.audio_cue.kind, TriggerKind.CHIME)
        self.assertIsNone(self.tracker.audio_cue.vibration)

    def test_quiet_window_suppresses_everything(self) -> None:
        self.tracker.add_habit("Вода", reminder_time="10:00")
        self.tracker.set_quiet_window("09:00", "11:00")
        self.set_time(10, 0)

        result = self.tracker.tick()
        self.assertTrue(result.silenced)
        self.assertIsNone(self.tracker.active_alarm)
        self.assertIsNone(self.tracker.toast)
        self.assertIsNone(self.tracker.audio_cue)
        self.assertEqual(self.notifier.sent, [])

    def test_sound_disabled(self) -> None:
        self.tracker.add_habit("Вода", reminder_time="10:00")
        self.tracker.update_settings(sound_enabled=False)
        self.set_time(10, 0)
        self.tracker.tick()
        self.assertIsNotNone(self.tracker.active_alarm)
        self.assertIsNone(self.tracker.audio_cue)


class TestRemoteActionParsing(unittest.TestCase):
    def test_callback_data(self) -> None:
        action = RemoteAction.from_callback_data("rem:complete:task:1700000000000")
        self.assertEqual(action, RemoteAction(RemoteActionType.COMPLETE, ItemKind.TASK, 1700000000000))
        self.assertEqual(action.to_callback_data(), "rem:complete:task:1700000000000")

    def test_bad_callback_data(self) -> None:
        for data in ("", "rem:complete:habit", "rem:snooze:habit:1", "xyz:complete:habit:1",
                     "rem:complete:note:1", "rem:complete:habit:abc"):
            with self.subTest(data=data):
                with self.assertRaises(ValidationError):
                    RemoteAction.from_callback_data(data)


class TestDataOperations(TrackerTestCase):
    def test_export_import(self) -> None:
        habit = self.tracker.add_habit("Вода")
        self.tracker.toggle_habit(habit.id)
        exported = self.tracker.export_data()

        self.tracker.reset_data()
        self.assertEqual(self.tracker.state.habits, [])

        self.assertTrue(self.tracker.import_data(exported))
        self.assertEqual(self.tracker.state.habits[0].id, habit.id)
        self.assertEqual(self.tracker.state.user.xp, 10)

    def test_import_carries_excess_xp(self) -> None:
        self.assertTrue(self.tracker.import_data('{"user": {"xp": 500, "level": 1}, "habits": []}'))
        user = self.tracker.state.user
        self.assertEqual(user, UserProgress(xp=200, level=3))
        self.assertLess(user.xp, user.level * 100)

    def test_rejected_import_leaves_state(self) -> None:
        habit = self.tracker.add_habit("Вода")
        self.assertFalse(self.tracker.import_data('{"habits": "oops"}'))
        self.assertEqual(self.tracker.state.habits[0].id, habit.id)
        self.assertEqual(self.tracker.toast.title, "Импорт отклонён")


if __name__ == "__main__":
    unittest.main()
