# handlers/callbacks/reminders.py

import logging

from telegram.ext import Application, CallbackQueryHandler, ContextTypes
from telegram import Update
from telegram.error import BadRequest

from core.leveling import level_title
from core.models import RemoteAction, ValidationError
from handlers.utils import get_services, is_owner_chat
from services.tracker_service import RemoteOutcome
from ui.messages import level_up_message

logger = logging.getLogger(__name__)

REMOTE_ANSWERS = {
    RemoteOutcome.COMPLETED: "✅ Отмечено!",
    RemoteOutcome.ALREADY_DONE: "Уже выполнено",
    RemoteOutcome.NOT_FOUND: "Элемент не найден",
    RemoteOutcome.DISMISSED: "🔕 Выключено",
}


async def reminder_action_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Кнопки "Выполнено" / "Выключить" под уведомлением"""
    query = update.callback_query
    services = get_services(context)
    if not is_owner_chat(update, services):
        await query.answer()
        return

    try:
        action = RemoteAction.from_callback_data(query.data)
    except ValidationError as e:
        logger.warning(f"⚠️ {e}")
        await query.answer("Неизвестное действие")
        return

    tracker = services.tracker_service
    old_level = tracker.state.user.level
    outcome = tracker.handle_remote_action(action)
    await query.answer(REMOTE_ANSWERS[outcome])

    # Убираем кнопки, чтобы не нажимать повторно
    try:
        await query.edit_message_reply_markup(reply_markup=None)
    except BadRequest as e:
        logger.debug(f"Клавиатура уже убрана: {e}")

    new_level = tracker.state.user.level
    if new_level > old_level:
        await query.message.reply_html(level_up_message(new_level, level_title(new_level)))


def register_reminder_callbacks(application: Application):
    application.add_handler(
        CallbackQueryHandler(reminder_action_callback, pattern=f"^{RemoteAction.CALLBACK_PREFIX}:")
    )
