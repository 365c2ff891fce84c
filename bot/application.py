import logging

from telegram.ext import Application, ApplicationBuilder

from handlers.router import register_handlers
from services import ServiceManager

logger = logging.getLogger(__name__)


def build_application(token: str, services: ServiceManager) -> Application:
    """Создание Application; сервисы стартуют вместе с event loop бота"""

    async def post_init(application: Application):
        if not services.initialize_services(bot=application.bot):
            raise RuntimeError("Не удалось инициализировать сервисы")
        services.start()
        logger.info("🤖 Бот запущен, heartbeat работает")

    async def post_shutdown(application: Application):
        services.close_services()

    application = (
        ApplicationBuilder()
        .token(token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )
    # Обработчикам нужен доступ к сервисам
    application.bot_data['services'] = services

    register_handlers(application)
    return application
