import logging
from typing import Optional

from ...domain.errors import StorageError
from ...domain.stores import Storage
from ..config import StorageSettings, get_settings
from .memory import MemoryStorage
from .database import Database, SqliteStorage
from .spreadsheet import SpreadsheetStorage, Workbook

logger = logging.getLogger(__name__)


def create_storage(settings: Optional[StorageSettings] = None) -> Storage:
    """Build the storage backend named by settings (HUB_STORAGE)."""
    settings = settings or get_settings().storage

    if settings.backend == "memory":
        storage = MemoryStorage()
    elif settings.backend == "sqlite":
        storage = SqliteStorage(str(settings.db_path))
    elif settings.backend == "spreadsheet":
        storage = SpreadsheetStorage(str(settings.workbook_path))
    else:
        raise StorageError(f"Unknown storage backend: {settings.backend}")

    logger.info(f"Using {storage.name} storage")
    return storage


__all__ = [
    "Storage",
    "MemoryStorage",
    "Database",
    "SqliteStorage",
    "SpreadsheetStorage",
    "Workbook",
    "create_storage",
]
