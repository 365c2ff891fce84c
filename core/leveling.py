"""
Lifestyle OS - Leveling Engine
Начисление опыта и уровни

Порог уровня L равен L*100 XP. После любой операции выполняется
0 <= xp < level*100. При отмене выполнения опыт уменьшается, но уровень
никогда не понижается: так уровень не "мигает" при случайных отметках.
"""

import logging
from typing import Iterable

from core.completion_log import CompletionLog
from core.models import Habit, Task, UserProgress

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 100

LEVEL_TITLES = {
    1: "🌱 Новичок",
    2: "🌿 Начинающий",
    3: "🌳 Ученик",
    4: "⚡ Активист",
    5: "💪 Энтузиаст",
    6: "🎯 Целеустремленный",
    7: "🔥 Мотивированный",
    8: "⭐ Продвинутый",
    9: "💎 Эксперт",
    10: "🏆 Мастер",
    11: "👑 Гуру",
    12: "🌟 Легенда",
}


def xp_for_level(level: int) -> int:
    """XP, необходимый для перехода с уровня `level` на следующий"""
    return level * XP_PER_LEVEL


def apply_delta(progress: UserProgress, xp_delta: int) -> UserProgress:
    """Применить изменение опыта, вернуть новое состояние"""
    xp, level = progress.xp, progress.level

    if xp_delta >= 0:
        xp += xp_delta
        while xp >= xp_for_level(level):
            xp -= xp_for_level(level)
            level += 1
    else:
        xp = max(0, xp + xp_delta)

    return UserProgress(xp=xp, level=level)


def xp_to_next_level(progress: UserProgress) -> int:
    return xp_for_level(progress.level) - progress.xp


def level_progress(progress: UserProgress) -> float:
    """Процент заполнения текущего уровня"""
    return min(100.0, progress.xp / xp_for_level(progress.level) * 100)


def level_title(level: int) -> str:
    return LEVEL_TITLES.get(min(level, len(LEVEL_TITLES)), f"🌌 Уровень {level}")


def recalculate_progress(habits: Iterable[Habit], tasks: Iterable[Task],
                         log: CompletionLog) -> UserProgress:
    """
    Пересчитать прогресс с нуля по всему журналу.

    Используется для починки данных после ручной правки наград. Записи
    удалённых привычек пропускаются, выполненные задачи добавляют свою
    награду. Сумма применяется одним вызовом, порядок дней не важен.
    """
    habits_by_id = {h.id: h for h in habits}
    total_xp = 0

    for day, values in log.items():
        for item_id, value in values.items():
            habit = habits_by_id.get(item_id)
            if habit is None:
                continue
            if habit.is_numeric:
                if not isinstance(value, bool):
                    total_xp += max(0, value) * habit.xp_reward
            elif value:
                total_xp += habit.xp_reward

    total_xp += sum(t.xp_reward for t in tasks if t.done)

    progress = apply_delta(UserProgress(), total_xp)
    logger.info(f"🔄 Прогресс пересчитан: {total_xp} XP -> уровень {progress.level}, {progress.xp} XP")
    return progress
