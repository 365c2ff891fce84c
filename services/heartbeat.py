# services/heartbeat.py

import logging
from typing import Any, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class HeartbeatDriver:
    """
    Периодический сигнал для планировщика напоминаний.

    Вызывает tick() не реже раза в минуту, частота сверху не ограничена:
    повторные вызовы в пределах минуты планировщик игнорирует сам.
    Задача - корутина, поэтому tick() выполняется в потоке event loop,
    как и обработчики Telegram.
    """

    JOB_ID = 'heartbeat'

    def __init__(self, tick: Callable[[], Any], interval_seconds: int = 1,
                 scheduler: Optional[AsyncIOScheduler] = None):
        if not 1 <= interval_seconds <= 60:
            raise ValueError("interval_seconds должен быть от 1 до 60")

        self._tick = tick
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or AsyncIOScheduler()
        self.beats = 0

    @property
    def running(self) -> bool:
        return self.scheduler.running

    async def _beat(self):
        self.beats += 1
        try:
            self._tick()
        except Exception as e:
            logger.error(f"❌ Ошибка такта планировщика: {e}", exc_info=True)

    def start(self):
        """Запуск (нужен работающий event loop)"""
        self.scheduler.add_job(
            self._beat,
            IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"💓 Heartbeat запущен (каждые {self.interval_seconds} с)")

    def add_interval_job(self, func: Callable[[], Any], hours: int, job_id: str):
        """Дополнительная периодическая задача на том же планировщике"""
        self.scheduler.add_job(func, 'interval', hours=hours, id=job_id, replace_existing=True)

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("💓 Heartbeat остановлен")
