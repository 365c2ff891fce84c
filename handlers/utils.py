# ===== handlers/utils.py =====
from telegram import Update
from telegram.ext import ContextTypes
import logging

from services import ServiceManager

logger = logging.getLogger(__name__)


def get_services(context: ContextTypes.DEFAULT_TYPE) -> ServiceManager:
    """Менеджер сервисов, сохранённый в bot_data при сборке приложения"""
    return context.application.bot_data['services']


def is_owner_chat(update: Update, services: ServiceManager) -> bool:
    """Принимаем действия только из чата владельца (если он задан)"""
    owner_chat_id = services.config.telegram.owner_chat_id
    chat = update.effective_chat
    if owner_chat_id is None or (chat and chat.id == owner_chat_id):
        return True

    logger.warning(f"🚫 Действие из чужого чата {chat.id if chat else None} отклонено")
    return False
