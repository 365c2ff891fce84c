#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lifestyle OS - точка входа
Трекер привычек и задач с напоминаниями и уровнями

С BOT_TOKEN напоминания приходят в Telegram, без него приложение
работает в фоновом режиме: heartbeat, журнал и бэкапы.

Версия: 1.0.0
"""

import asyncio
import logging
import signal
import sys

from config import get_config
from services import ServiceManager
from utils.logger import setup_logging

logger = logging.getLogger(__name__)

# ===== РЕЖИМ БЕЗ TELEGRAM =====

async def run_headless(services: ServiceManager):
    """Heartbeat без бота: до SIGINT/SIGTERM"""
    if not services.initialize_services(bot=None):
        raise RuntimeError("Не удалось инициализировать сервисы")

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows
            pass

    services.start()
    logger.info("🖥️ Запуск без Telegram (BOT_TOKEN не задан)")
    try:
        await stop_event.wait()
        logger.info("📢 Получен сигнал, завершение работы...")
    finally:
        services.close_services()

# ===== ГЛАВНАЯ ФУНКЦИЯ =====

def main():
    """Главная функция запуска"""
    config = get_config()
    config.ensure_directories()
    setup_logging(config)

    logger.info(f"🚀 Lifestyle OS ({config.environment.value}): {config.to_dict()}")
    services = ServiceManager(config)

    if config.telegram.enabled:
        from bot.application import build_application

        application = build_application(config.telegram.bot_token, services)
        # run_polling сам управляет event loop и сигналами
        application.run_polling()
    else:
        asyncio.run(run_headless(services))

    logger.info("🛑 Lifestyle OS остановлен")

# ===== ТОЧКА ВХОДА =====

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("👋 Остановлено пользователем")
    except Exception as e:
        logger.error(f"💥 Фатальная ошибка: {e}")
        sys.exit(1)
