# services/data_service.py

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from core.leveling import apply_delta, xp_for_level
from core.models import AppState, UserProgress, ValidationError
from database.migrations import migrate_document
from shared.models import AppDocument

logger = logging.getLogger(__name__)


class ImportValidationError(Exception):
    """Документ не прошёл проверку и не может быть применён"""
    pass


def normalize_progress(progress: UserProgress) -> UserProgress:
    """Лишний опыт из документа переносится в уровни: 0 <= xp < level*100"""
    if progress.xp < xp_for_level(progress.level):
        return progress
    normalized = apply_delta(UserProgress(xp=0, level=progress.level), progress.xp)
    logger.warning(
        f"⚠️ Прогресс нормализован: {progress.xp} XP на уровне {progress.level} -> "
        f"{normalized.xp} XP на уровне {normalized.level}"
    )
    return normalized


class DataServiceConfig:
    """Конфигурация для сервиса данных"""

    # Директории
    DATA_DIR = Path(os.getenv('DATA_DIR', 'data'))
    BACKUP_DIR = Path(os.getenv('BACKUP_DIR', 'backups'))

    # Настройки бэкапов
    MAX_BACKUPS_KEEP = int(os.getenv('MAX_BACKUPS_KEEP', 10))

    # Файлы данных
    STATE_FILE = 'lifestyle_os.json'


class DataService:
    """
    Хранилище документа приложения

    Возможности:
    - Загрузка документа один раз при старте (с миграциями)
    - Атомарное сохранение после каждого изменения
    - Бэкап повреждённого файла вместо падения
    - Экспорт и импорт с проверкой структуры
    """

    def __init__(self, data_file: Optional[Union[str, Path]] = None,
                 backup_dir: Optional[Union[str, Path]] = None,
                 max_backups: Optional[int] = None):
        self.config = DataServiceConfig()
        self.data_file = Path(data_file) if data_file else self.config.DATA_DIR / self.config.STATE_FILE
        self.backup_dir = Path(backup_dir) if backup_dir else self.config.BACKUP_DIR
        self.max_backups = max_backups if max_backups is not None else self.config.MAX_BACKUPS_KEEP

        # Метрики
        self.total_saves = 0
        self.failed_saves = 0
        self.last_save_time: Optional[datetime] = None

    # ===== ЗАГРУЗКА =====

    def load(self) -> AppState:
        """Загрузить документ; при отсутствии или повреждении - чистое состояние"""
        if not self.data_file.exists():
            logger.info("📂 Файл данных не найден, начинаем с пустого состояния")
            return AppState()

        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                raw = f.read()
            state = self.parse_document(raw)
            logger.info(
                f"📂 Загружено: {len(state.habits)} привычек, {len(state.tasks)} задач, "
                f"{len(state.log)} дней журнала"
            )
            return state
        except ImportValidationError as e:
            logger.error(f"❌ Файл данных повреждён: {e}")
            self._create_backup_and_reset()
            return AppState()
        except OSError as e:
            logger.error(f"❌ Ошибка чтения файла данных: {e}")
            return AppState()

    def _create_backup_and_reset(self):
        """Перемещение повреждённого файла в бэкапы"""
        try:
            if self.data_file.exists():
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                backup_name = f"corrupted_backup_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
                backup_path = self.backup_dir / backup_name
                self.data_file.replace(backup_path)
                logger.warning(f"🔄 Повреждённый файл перемещён в {backup_path}")
        except OSError as e:
            logger.error(f"❌ Ошибка создания бэкапа: {e}")

    # ===== СОХРАНЕНИЕ =====

    def save(self, state: AppState) -> bool:
        """Атомарное сохранение через временный файл"""
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.data_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(state.to_dict(), f, ensure_ascii=False, indent=2)
            temp_file.replace(self.data_file)

            self.total_saves += 1
            self.last_save_time = datetime.now()
            logger.debug(f"💾 Состояние сохранено в {self.data_file}")
            return True

        except (OSError, TypeError, ValueError) as e:
            self.failed_saves += 1
            logger.error(f"❌ Ошибка сохранения данных: {e}")
            return False

    def create_backup(self) -> Optional[Path]:
        """Копия текущего файла данных с очисткой старых копий"""
        if not self.data_file.exists():
            return None
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self.backup_dir / f"backup_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}.json"
            backup_path.write_bytes(self.data_file.read_bytes())
            self._cleanup_old_backups()
            logger.info(f"💾 Создан бэкап: {backup_path.name}")
            return backup_path
        except OSError as e:
            logger.error(f"❌ Ошибка создания бэкапа: {e}")
            return None

    def _cleanup_old_backups(self):
        if self.max_backups <= 0:
            return
        backups = sorted(self.backup_dir.glob("backup_*.json"))
        for old_backup in backups[:-self.max_backups]:
            old_backup.unlink()
            logger.debug(f"🗑️ Удалён старый бэкап: {old_backup.name}")

    # ===== ЭКСПОРТ / ИМПОРТ =====

    def export_json(self, state: AppState) -> str:
        return json.dumps(state.to_dict(), ensure_ascii=False, indent=2)

    def parse_document(self, raw: Union[str, bytes, Dict[str, Any]]) -> AppState:
        """
        Разобрать и проверить документ целиком.

        Ничего не меняет: либо возвращает новое состояние, либо бросает
        ImportValidationError.
        """
        if isinstance(raw, (str, bytes)):
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ImportValidationError(f"Не удалось разобрать JSON: {e}") from e
        else:
            data = raw

        try:
            migrated = migrate_document(data)
            document = AppDocument.model_validate(migrated)
            state = AppState.from_dict(document.model_dump(mode="json"))
        except TypeError as e:
            raise ImportValidationError(str(e)) from e
        except SchemaValidationError as e:
            raise ImportValidationError(f"Неверная структура документа: {e.error_count()} ошибок") from e
        except ValidationError as e:
            raise ImportValidationError(str(e)) from e

        state.user = normalize_progress(state.user)
        return state

    # ===== СЛУЖЕБНОЕ =====

    def health_check(self) -> Dict[str, Any]:
        status = "ok"
        if self.failed_saves:
            status = "warning" if self.failed_saves < self.total_saves else "error"
        return {
            "status": status,
            "data_file": str(self.data_file),
            "exists": self.data_file.exists(),
            "total_saves": self.total_saves,
            "failed_saves": self.failed_saves,
            "last_save": self.last_save_time.isoformat() if self.last_save_time else None,
        }
