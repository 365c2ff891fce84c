"""
Сервис уведомлений
"""

import asyncio
import logging
from typing import Callable, Optional, Set

from telegram.error import Forbidden

from core.models import ItemKind
from ui.keyboards import reminder_keyboard
from ui.messages import notification_text

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Доставка напоминаний в Telegram.

    Отправка не блокирует планировщик: сообщение ставится задачей в
    event loop, результат только логируется. Ошибки доставки не
    повторяются - следующее срабатывание будет новым событием.
    """

    def __init__(self, bot=None, chat_id: Optional[int] = None,
                 on_permission_denied: Optional[Callable[[], None]] = None):
        self.bot = bot
        self.chat_id = chat_id
        self.on_permission_denied = on_permission_denied
        self.permission_denied = False

        self._pending: Set[asyncio.Task] = set()
        self.sent_count = 0
        self.failed_count = 0

        if self.bot is None or self.chat_id is None:
            logger.warning("⚠️ Бот или чат не настроены - уведомления отключены")

    @property
    def available(self) -> bool:
        return self.bot is not None and self.chat_id is not None and not self.permission_denied

    def notify(self, title: str, body: str, is_alarm: bool,
               item_id: Optional[int] = None, item_kind: Optional[ItemKind] = None) -> None:
        """Запросить отправку уведомления (fire-and-forget)"""
        if not self.available:
            logger.debug(f"🔇 Уведомление пропущено (доставка недоступна): {title}")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"⚠️ Нет запущенного event loop, уведомление пропущено: {title}")
            return

        task = loop.create_task(self._deliver(title, body, is_alarm, item_id, item_kind))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, title: str, body: str, is_alarm: bool,
                       item_id: Optional[int], item_kind: Optional[ItemKind]):
        """Отправка сообщения с кнопками действий"""
        reply_markup = None
        if item_id is not None and item_kind is not None:
            reply_markup = reminder_keyboard(is_alarm, item_kind, item_id)

        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=notification_text(title, body),
                parse_mode='HTML',
                reply_markup=reply_markup,
            )
            self.sent_count += 1
            logger.info(f"📤 Отправлено {'будильник' if is_alarm else 'напоминание'}: {title}")

        except Forbidden as e:
            self.failed_count += 1
            self._handle_permission_denied(e)
        except Exception as e:
            self.failed_count += 1
            logger.error(f"❌ Ошибка отправки уведомления '{title}': {e}")

    def _handle_permission_denied(self, error: Exception):
        if self.permission_denied:
            return
        self.permission_denied = True
        logger.warning(f"🚫 Нет разрешения на отправку в чат {self.chat_id}: {error}")
        if self.on_permission_denied:
            self.on_permission_denied()

    def reset_permission(self):
        """Пользователь снова открыл чат с ботом"""
        if self.permission_denied:
            logger.info("🔔 Разрешение на уведомления восстановлено")
        self.permission_denied = False

    async def wait_pending(self):
        """Дождаться отправки поставленных уведомлений"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
