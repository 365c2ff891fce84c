from typing import List, Tuple

from core.reminders import Trigger
from core.models import UserProgress
from ui.progress import daily_bar, streak_emoji, xp_bar


def trigger_message(trigger: Trigger) -> Tuple[str, str]:
    """Заголовок и текст уведомления для срабатывания"""
    if trigger.is_alarm:
        return (
            f"⏰ Время: {trigger.item_name}",
            f"Сейчас {trigger.reminder_time}. Давай сделаем это.",
        )
    return (
        f"🔔 Напоминание: {trigger.item_name}",
        "Не прерывай серию!",
    )


def notification_text(title: str, body: str) -> str:
    return f"<b>{title}</b>\n{body}"


def completed_toast(remote: bool = False) -> Tuple[str, str]:
    if remote:
        return "Отлично!", "Отмечено прямо из уведомления."
    return "Отлично!", "Привычка выполнена. Так держать!"


def permission_denied_message() -> Tuple[str, str]:
    return (
        "Уведомления недоступны",
        "Бот не может писать в чат. Напоминания продолжат работать внутри приложения.",
    )


def level_up_message(level: int, title: str) -> str:
    return f"🎉 Новый уровень: <b>{level}</b> {title}"


def status_message(progress: UserProgress, title: str, completion: int,
                   habits: List[Tuple[str, int]]) -> str:
    lines = [
        f"⭐ <b>Уровень {progress.level}</b> {title}",
        xp_bar(progress),
        daily_bar(completion),
    ]
    if habits:
        lines.append("")
        lines.append("<b>Серии:</b>")
        for name, streak in habits:
            lines.append(f"{streak_emoji(streak)} {name}: {streak}")
    return "\n".join(lines)


def alarm_state_message(title: str, body: str) -> str:
    return f"🚨 <b>{title}</b>\n{body}"
