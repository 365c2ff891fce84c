# handlers/router.py

from telegram.ext import Application

from handlers.commands.basic import register_basic_handlers
from handlers.callbacks.reminders import register_reminder_callbacks


def register_handlers(application: Application):
    """Подключает все обработчики в Application"""
    register_basic_handlers(application)
    register_reminder_callbacks(application)
