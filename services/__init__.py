# services/__init__.py

"""
Модуль сервисов Lifestyle OS

Хранилище, уведомления, heartbeat и основной сервис трекера.
"""

import logging
from typing import Optional

from config import AppConfig
from core.clock import Clock
from .data_service import DataService, ImportValidationError
from .heartbeat import HeartbeatDriver
from .notifications import NotificationService
from .tracker_service import TrackerService, ItemNotFoundError, RemoteOutcome

logger = logging.getLogger(__name__)

class ServiceManager:
    """
    Менеджер для управления всеми сервисами

    Обеспечивает:
    - Инициализацию сервисов в нужном порядке
    - Запуск heartbeat и периодических бэкапов
    - Корректное закрытие всех сервисов
    """

    BACKUP_JOB_ID = 'auto_backup'

    def __init__(self, config: AppConfig):
        self.config = config
        self.data_service: Optional[DataService] = None
        self.notification_service: Optional[NotificationService] = None
        self.tracker_service: Optional[TrackerService] = None
        self.heartbeat: Optional[HeartbeatDriver] = None
        self.initialized = False

    def initialize_services(self, bot=None, clock: Optional[Clock] = None) -> bool:
        """Инициализация всех сервисов; bot=None - режим без Telegram"""
        try:
            logger.info("🔧 Инициализация сервисов Lifestyle OS...")

            logger.info("📂 Инициализация DataService...")
            self.data_service = DataService(
                data_file=self.config.storage.path,
                backup_dir=self.config.storage.backup_dir,
                max_backups=self.config.storage.max_backups,
            )

            logger.info("📤 Инициализация NotificationService...")
            self.notification_service = NotificationService(
                bot=bot,
                chat_id=self.config.telegram.owner_chat_id,
                on_permission_denied=self._on_permission_denied,
            )

            logger.info("📝 Инициализация TrackerService...")
            self.tracker_service = TrackerService(
                self.data_service,
                clock or Clock(self.config.scheduler.timezone),
                notifier=self.notification_service,
            )

            self.heartbeat = HeartbeatDriver(
                self.tracker_service.tick,
                interval_seconds=self.config.scheduler.heartbeat_seconds,
            )

            self.initialized = True
            logger.info("✅ Все сервисы инициализированы успешно!")
            return True

        except Exception as e:
            logger.error(f"❌ Ошибка инициализации сервисов: {e}")
            self.close_services()
            return False

    def _on_permission_denied(self):
        if self.tracker_service:
            self.tracker_service.on_notifications_denied()

    async def _auto_backup(self):
        if self.data_service:
            self.data_service.create_backup()

    def start(self):
        """Запуск heartbeat (нужен работающий event loop)"""
        if not self.initialized:
            raise RuntimeError("Сервисы не инициализированы")

        self.heartbeat.start()
        if self.config.storage.auto_backup:
            self.heartbeat.add_interval_job(
                self._auto_backup,
                hours=self.config.storage.backup_interval_hours,
                job_id=self.BACKUP_JOB_ID,
            )
            logger.info(f"💾 Автобэкап каждые {self.config.storage.backup_interval_hours} ч")

    def health_check(self) -> dict:
        """Проверка состояния всех сервисов"""
        health = {
            "status": "healthy",
            "services": {}
        }

        if self.data_service:
            health["services"]["data_service"] = self.data_service.health_check()

        if self.notification_service:
            notifier = self.notification_service
            health["services"]["notifications"] = {
                "status": "ok" if notifier.available or notifier.bot is None else "warning",
                "sent": notifier.sent_count,
                "failed": notifier.failed_count,
            }

        if self.heartbeat:
            health["services"]["heartbeat"] = {
                "status": "ok" if self.heartbeat.running else "stopped",
                "beats": self.heartbeat.beats,
            }

        # Определяем общий статус
        service_statuses = [s.get("status", "unknown") for s in health["services"].values()]
        if "error" in service_statuses:
            health["status"] = "error"
        elif "warning" in service_statuses:
            health["status"] = "warning"

        return health

    def close_services(self):
        """Закрытие всех сервисов"""
        logger.info("🛑 Закрытие сервисов...")

        # Закрываем в обратном порядке инициализации
        if self.heartbeat:
            self.heartbeat.shutdown()
            self.heartbeat = None

        if self.tracker_service and self.data_service:
            self.data_service.save(self.tracker_service.state)

        self.tracker_service = None
        self.notification_service = None
        self.data_service = None
        self.initialized = False
        logger.info("✅ Все сервисы закрыты")


__all__ = [
    'DataService',
    'HeartbeatDriver',
    'ImportValidationError',
    'ItemNotFoundError',
    'NotificationService',
    'RemoteOutcome',
    'ServiceManager',
    'TrackerService',
]
