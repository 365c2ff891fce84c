import unittest

from core.completion_log import CompletionLog
from core.models import Habit, HabitType, ItemKind, Task, TriggerKind
from core.quiet_window import QuietWindow, is_quiet_time
from core.reminders import ReminderEvaluator, crossed_fixed_time, crossed_interval
from utils.datetime_utils import parse_time_str

TODAY = "2024-01-10"


def minute(value: str) -> int:
    return parse_time_str(value)


class TestBoundaryChecks(unittest.TestCase):
    def test_fixed_time_half_open_window(self) -> None:
        self.assertTrue(crossed_fixed_time(599, 600, 600))
        self.assertFalse(crossed_fixed_time(600, 601, 600))
        self.assertTrue(crossed_fixed_time(500, 700, 600))

    def test_fixed_time_after_midnight(self) -> None:
        # 23:58 -> 00:02
        self.assertTrue(crossed_fixed_time(1438, 2, 1439))
        self.assertTrue(crossed_fixed_time(1438, 2, 0))
        self.assertTrue(crossed_fixed_time(1438, 2, 2))
        self.assertFalse(crossed_fixed_time(1438, 2, 1438))
        self.assertFalse(crossed_fixed_time(1438, 2, 3))

    def test_interval_boundary(self) -> None:
        self.assertTrue(crossed_interval(29, 30, 30))
        self.assertFalse(crossed_interval(30, 59, 30))
        self.assertTrue(crossed_interval(1439, 0, 30))


class TestReminderEvaluator(unittest.TestCase):
    def setUp(self) -> None:
        self.log = CompletionLog()
        self.water = Habit(id=1, name="Вода", reminder_time="10:00")

    def tick(self, evaluator, now, habits=(), tasks=(), quiet_window=None):
        return evaluator.tick(minute(now), list(habits), list(tasks), self.log, TODAY, quiet_window)

    def test_alarm_fires_once_when_coalesced(self) -> None:
        stepped = ReminderEvaluator(minute("09:55"))
        fired = 0
        for m in range(minute("09:56"), minute("10:06")):
            fired += len(stepped.tick(m, [self.water], [], self.log, TODAY).alarms)

        jumped = ReminderEvaluator(minute("09:55"))
        result = self.tick(jumped, "10:05", [self.water])

        self.assertEqual(fired, 1)
        self.assertEqual(len(result.alarms), 1)
        self.assertEqual(result.alarms[0].item_id, 1)

    def test_same_minute_is_evaluated_once(self) -> None:
        evaluator = ReminderEvaluator(minute("09:59"))
        first = self.tick(evaluator, "10:00", [self.water])
        second = self.tick(evaluator, "10:00", [self.water])

        self.assertEqual(len(first.triggers), 1)
        self.assertEqual(second.triggers, [])
        self.assertFalse(second.evaluated)

    def test_no_backfill_at_startup(self) -> None:
        evaluator = ReminderEvaluator(minute("10:30"))
        result = self.tick(evaluator, "10:31", [self.water])
        self.assertEqual(result.triggers, [])

    def test_interval_chime_until_complete(self) -> None:
        habit = Habit(id=2, name="Размяться", reminder_interval=30)
        evaluator = ReminderEvaluator(minute("10:29"))

        result = self.tick(evaluator, "10:30", [habit])
        self.assertEqual([t.kind for t in result.triggers], [TriggerKind.CHIME])

        self.log.set(TODAY, 2, True)
        result = self.tick(evaluator, "11:00", [habit])
        self.assertEqual(result.triggers, [])

    def test_numeric_partial_still_chimes(self) -> None:
        habit = Habit(id=3, name="Отжимания", type=HabitType.NUMERIC.value, target=10,
                      reminder_interval=60)
        self.log.set(TODAY, 3, 4)
        evaluator = ReminderEvaluator(minute("10:59"))
        self.assertEqual(len(self.tick(evaluator, "11:00", [habit]).chimes), 1)

        self.log.set(TODAY, 3, 10)
        self.assertEqual(self.tick(evaluator, "12:00", [habit]).chimes, [])

    def test_alarm_fires_even_if_complete(self) -> None:
        self.log.set(TODAY, 1, True)
        evaluator = ReminderEvaluator(minute("09:59"))
        self.assertEqual(len(self.tick(evaluator, "10:00", [self.water]).alarms), 1)

    def test_done_tasks_are_skipped(self) -> None:
        open_task = Task(id=10, name="Позвонить", reminder_time="12:00")
        done_task = Task(id=11, name="Отчёт", reminder_time="12:00", done=True)
        evaluator = ReminderEvaluator(minute("11:59"))

        result = self.tick(evaluator, "12:00", tasks=[open_task, done_task])
        self.assertEqual([t.item_id for t in result.triggers], [10])
        self.assertEqual(result.triggers[0].item_kind, ItemKind.TASK)

    def test_item_without_reminder_never_fires(self) -> None:
        habit = Habit(id=4, name="Читать")
        evaluator = ReminderEvaluator(minute("00:00"))
        self.assertEqual(self.tick(evaluator, "23:59", [habit]).triggers, [])

    def test_midnight_rollover(self) -> None:
        late = Habit(id=5, name="Сон", reminder_time="23:59")
        early = Habit(id=6, name="Подъём", reminder_time="00:01")
        chime = Habit(id=7, name="Вода", reminder_interval=45)
        evaluator = ReminderEvaluator(minute("23:58"))

        result = self.tick(evaluator, "00:02", [late, early, chime])
        self.assertEqual([t.item_id for t in result.alarms], [5, 6])
        self.assertEqual([t.item_id for t in result.chimes], [7])

    def test_alarm_wins_sound_and_last_alarm(self) -> None:
        first = Habit(id=8, name="Первый", reminder_time="08:00")
        second = Habit(id=9, name="Второй", reminder_time="08:00")
        chime = Habit(id=12, name="Повтор", reminder_interval=60)
        evaluator = ReminderEvaluator(minute("07:59"))

        result = self.tick(evaluator, "08:00", [first, second, chime])
        self.assertEqual(result.sound, TriggerKind.ALARM)
        self.assertEqual(result.last_alarm.item_id, 9)
        self.assertEqual(result.last_chime.item_id, 12)

    def test_quiet_window_silences_but_advances_cursor(self) -> None:
        window = QuietWindow(start="23:00", end="07:00")
        night = Habit(id=13, name="Ночь", reminder_time="23:30")
        evaluator = ReminderEvaluator(minute("23:29"))

        result = self.tick(evaluator, "23:30", [night], quiet_window=window)
        self.assertTrue(result.silenced)
        self.assertEqual(len(result.triggers), 1)

        # Курсор сдвинулся: после тихих часов событие не повторяется
        self.assertEqual(self.tick(evaluator, "23:31", [night], quiet_window=window).triggers, [])


class TestQuietWindow(unittest.TestCase):
    def test_wrapping_window(self) -> None:
        window = QuietWindow(start="23:00", end="07:00")
        self.assertTrue(is_quiet_time(window, minute("23:30")))
        self.assertTrue(is_quiet_time(window, minute("03:00")))
        self.assertFalse(is_quiet_time(window, minute("12:00")))
        self.assertFalse(is_quiet_time(window, minute("07:00")))

    def test_daytime_window(self) -> None:
        window = QuietWindow(start="13:00", end="14:00")
        self.assertTrue(is_quiet_time(window, minute("13:00")))
        self.assertFalse(is_quiet_time(window, minute("14:00")))

    def test_inactive_windows(self) -> None:
        self.assertFalse(is_quiet_time(None, minute("03:00")))
        self.assertFalse(is_quiet_time(QuietWindow(start="22:00", end="22:00"), minute("22:00")))

    def test_invalid_time_rejected(self) -> None:
        with self.assertRaises(ValueError):
            QuietWindow(start="25:00", end="07:00")


if __name__ == "__main__":
    unittest.main()
