# ui/progress.py

from core.leveling import level_progress, xp_for_level
from core.models import UserProgress

STREAK_BADGES = [
    (30, "🏆"),
    (7, "🔥"),
    (3, "✨"),
    (0, "🔹"),
]


def progress_bar(percent: int, length: int = 10) -> str:
    """Полоса из блоков: 🟩🟩⬜️... 40%"""
    percent = max(0, min(100, percent))
    filled = length * percent // 100
    return "🟩" * filled + "⬜️" * (length - filled) + f" {percent}%"


def xp_bar(progress: UserProgress) -> str:
    """Опыт внутри текущего уровня"""
    header = f"Опыт: {progress.xp}/{xp_for_level(progress.level)}"
    return header + "\n" + progress_bar(int(level_progress(progress)))


def daily_bar(completion_rate: int) -> str:
    return "Сегодня: " + progress_bar(completion_rate)


def streak_emoji(streak: int) -> str:
    return next(badge for threshold, badge in STREAK_BADGES if streak >= threshold)
