# handlers/commands/basic.py

from telegram.ext import Application, CommandHandler, ContextTypes
from telegram import Update

from core.leveling import level_title
from handlers.utils import get_services, is_owner_chat
from ui.messages import alarm_state_message, status_message


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    services = get_services(context)
    if not is_owner_chat(update, services):
        return

    # Пользователь снова открыл чат - отправка снова разрешена
    services.notification_service.reset_permission()

    user = update.effective_user
    await update.message.reply_text(
        f"Привет, {user.first_name or 'друг'}! 👋\n"
        "Сюда будут приходить напоминания о привычках и задачах.\n"
        "Введи /help для списка команд."
    )

async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    help_text = (
        "🛠 <b>Доступные команды</b>:\n"
        "/start — включить уведомления\n"
        "/status — уровень, опыт и серии\n"
        "/stop — выключить текущий будильник\n"
        "/myid — узнать ID чата для OWNER_CHAT_ID\n"
        "/help — справка"
    )
    await update.message.reply_html(help_text)

async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(
        f"ID этого чата: <code>{update.effective_chat.id}</code>", parse_mode="HTML"
    )

async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    services = get_services(context)
    if not is_owner_chat(update, services):
        return

    tracker = services.tracker_service
    progress = tracker.state.user
    text = status_message(
        progress,
        title=level_title(progress.level),
        completion=tracker.completion_rate(),
        habits=[(h.name, tracker.streak(h.id)) for h in tracker.state.habits],
    )
    if tracker.active_alarm:
        alarm = tracker.active_alarm
        text += "\n\n" + alarm_state_message(alarm.title, alarm.body)
    await update.message.reply_html(text)

async def stop_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    services = get_services(context)
    if not is_owner_chat(update, services):
        return

    if services.tracker_service.active_alarm is None:
        await update.message.reply_text("Активных будильников нет.")
        return
    services.tracker_service.dismiss_alarm()
    await update.message.reply_text("🔕 Будильник выключен.")

def register_basic_handlers(application: Application):
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("myid", myid_command))
    application.add_handler(CommandHandler("status", status_command))
    application.add_handler(CommandHandler("stop", stop_command))
