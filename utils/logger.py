import logging
import logging.config

from config import AppConfig


def setup_logging(config: AppConfig) -> logging.Logger:
    """Настройка логирования по конфигурации (консоль + ротация файла)"""
    if config.log_to_file:
        config.log_dir.mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(config.get_logging_config())
    return logging.getLogger()
