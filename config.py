#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lifestyle OS - Configuration
Централизованная конфигурация с валидацией

Версия: 1.0.0
"""

import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from enum import Enum

import pytz


class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class StorageConfig:
    """Конфигурация хранилища"""
    path: Path
    backup_dir: Path
    backup_interval_hours: int = 6
    max_backups: int = 10
    auto_backup: bool = True

@dataclass
class TelegramConfig:
    """Конфигурация канала уведомлений"""
    bot_token: Optional[str]
    owner_chat_id: Optional[int]

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token)

@dataclass
class SchedulerConfig:
    """Конфигурация планировщика напоминаний"""
    timezone: str = "UTC"
    heartbeat_seconds: int = 1


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'


class AppConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self._errors = []
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""
        self.environment = self._parse(Environment, 'ENVIRONMENT', 'development')

        # Директории
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.backup_dir = Path(os.getenv('BACKUP_DIR', 'backups'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        self.storage = StorageConfig(
            path=self.data_dir / "lifestyle_os.json",
            backup_dir=self.backup_dir,
            backup_interval_hours=self._int('BACKUP_INTERVAL_HOURS', 6),
            max_backups=self._int('MAX_BACKUPS', 10),
            auto_backup=_env_bool('AUTO_BACKUP', 'true'),
        )

        # Без токена приложение работает без Telegram
        owner_chat_id = os.getenv('OWNER_CHAT_ID')
        self.telegram = TelegramConfig(
            bot_token=os.getenv('BOT_TOKEN') or None,
            owner_chat_id=self._int('OWNER_CHAT_ID', None) if owner_chat_id else None,
        )

        self.scheduler = SchedulerConfig(
            timezone=os.getenv('TIMEZONE', 'UTC'),
            heartbeat_seconds=self._int('HEARTBEAT_SECONDS', 1),
        )

        # Логирование
        self.log_level = self._parse(LogLevel, 'LOG_LEVEL', 'INFO')
        self.log_to_file = _env_bool('LOG_TO_FILE', 'true')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _parse(self, enum_class, key: str, default: str):
        raw = os.getenv(key, default)
        try:
            return enum_class(raw)
        except ValueError:
            self._errors.append(f"{key}={raw!r} не входит в {[e.value for e in enum_class]}")
            return enum_class(default)

    def _int(self, key: str, default: Optional[int]) -> Optional[int]:
        raw = os.getenv(key)
        if raw is None or raw == '':
            return default
        try:
            return int(raw)
        except ValueError:
            self._errors.append(f"{key} должен быть целым числом, получено {raw!r}")
            return default

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = self._errors

        if not 1 <= self.scheduler.heartbeat_seconds <= 60:
            errors.append(
                f"HEARTBEAT_SECONDS={self.scheduler.heartbeat_seconds} вне диапазона (1-60)"
            )

        if self.scheduler.timezone not in pytz.all_timezones_set:
            errors.append(f"Неизвестная таймзона TIMEZONE={self.scheduler.timezone!r}")

        if self.telegram.bot_token and ':' not in self.telegram.bot_token:
            errors.append("BOT_TOKEN имеет неверный формат")

        if self.storage.max_backups < 0:
            errors.append("MAX_BACKUPS не может быть отрицательным")

        if self.storage.backup_interval_hours <= 0:
            errors.append("BACKUP_INTERVAL_HOURS должен быть положительным числом")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Создание необходимых директорий"""
        for directory in (self.data_dir, self.backup_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                },
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'httpx': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'telegram': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'apscheduler': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"lifestyle_os_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return config

    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        token = self.telegram.bot_token
        return {
            'environment': self.environment.value,
            'telegram': {
                'bot_token': token[:10] + "..." if token else None,  # Скрываем токен
                'owner_chat_id': self.telegram.owner_chat_id,
            },
            'scheduler': {
                'timezone': self.scheduler.timezone,
                'heartbeat_seconds': self.scheduler.heartbeat_seconds,
            },
            'data_path': str(self.storage.path),
            'log_level': self.log_level.value
        }


# Глобальный экземпляр создаётся при первом обращении
_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = AppConfig()
    return _config

def reset_config():
    """Сбросить кэш конфигурации (для тестов)"""
    global _config
    _config = None


__all__ = [
    'AppConfig',
    'Environment',
    'LogLevel',
    'StorageConfig',
    'TelegramConfig',
    'SchedulerConfig',
    'get_config',
    'reset_config',
]
