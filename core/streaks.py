"""
Lifestyle OS - Streak Calculator
Серии выполнения привычек по журналу
"""

from datetime import date, timedelta
from typing import Iterable, Tuple

from core.completion_log import CompletionLog
from core.models import Habit, HabitFrequency, is_item_complete
from utils.datetime_utils import add_days, format_date, parse_date


def calculate_streak(item_id: int, log: CompletionLog, today: str) -> int:
    """
    Текущая серия: сегодня (если отмечено) плюс непрерывные дни до вчера.

    Незавершённое "сегодня" серию не обрывает - день ещё не закончился.
    Частичное выполнение числовой привычки считается активностью.
    """
    streak = 0
    if log.has_activity(today, item_id):
        streak += 1

    day = add_days(today, -1)
    while log.has_activity(day, item_id):
        streak += 1
        day = add_days(day, -1)

    return streak


MAX_PERIODS_BACK = 104


def period_bounds(day: date, frequency: str) -> Tuple[date, date]:
    """Неделя с понедельника по воскресенье или календарный месяц"""
    if frequency == HabitFrequency.WEEKLY.value:
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)
    if frequency == HabitFrequency.MONTHLY.value:
        start = day.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return start, next_month - timedelta(days=1)
    raise ValueError(f"Нет периода для частоты {frequency!r}")


def _active_days(item_id: int, log: CompletionLog, start: date, end: date) -> int:
    count = 0
    day = start
    while day <= end:
        if log.has_activity(format_date(day), item_id):
            count += 1
        day += timedelta(days=1)
    return count


def calculate_period_streak(item_id: int, log: CompletionLog, today: str,
                            frequency: str, goal: int) -> int:
    """
    Серия для недельной или месячной цели, в днях.

    Прошлые периоды входят в серию, пока в каждом не меньше `goal` активных
    дней. Текущий период засчитывается сразу, если цель в нём ещё
    достижима. Если уже нет, история обнуляется и возвращается только
    число дней текущего периода.
    """
    today_date = parse_date(today)
    start, end = period_bounds(today_date, frequency)

    done = _active_days(item_id, log, start, end)
    remaining = (end - today_date).days
    if not log.has_activity(today, item_id):
        remaining += 1
    if done + remaining < goal:
        return done

    streak = done
    for _ in range(MAX_PERIODS_BACK):
        start, end = period_bounds(start - timedelta(days=1), frequency)
        done = _active_days(item_id, log, start, end)
        if done < goal:
            break
        streak += done
    return streak


def habit_streak(habit: Habit, log: CompletionLog, today: str) -> int:
    """Серия с учётом частоты привычки"""
    if habit.is_daily:
        return calculate_streak(habit.id, log, today)
    return calculate_period_streak(habit.id, log, today, habit.frequency, habit.frequency_goal)


def longest_streak(item_id: int, log: CompletionLog) -> int:
    """Самая длинная серия выполнения за всю историю"""
    active_dates = sorted(
        parse_date(day) for day, _ in log.items()
        if log.has_activity(day, item_id)
    )
    if not active_dates:
        return 0

    max_streak = current = 1
    for previous, current_date in zip(active_dates, active_dates[1:]):
        if current_date == previous + timedelta(days=1):
            current += 1
            max_streak = max(max_streak, current)
        else:
            current = 1
    return max_streak


def completion_rate(habits: Iterable[Habit], log: CompletionLog, day: str) -> int:
    """Процент полностью выполненных за день привычек"""
    habits = list(habits)
    if not habits:
        return 0

    completed = sum(1 for h in habits if is_item_complete(h, log.get(day, h.id)))
    return round(completed / len(habits) * 100)
