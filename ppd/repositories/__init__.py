"""
Persistence adapters.

Services depend on the RecordStore contract (``base.py``) rather than on
a concrete backend. ``open_store`` picks the backend from Settings: the
JSON file store by default, the SQL store when STORAGE_BACKEND=sql.
"""
from __future__ import annotations

from ppd.core.config import Settings

from .base import RecordStore
from .defaults import default_records


def open_store(settings: Settings) -> RecordStore:
    def seed():
        return default_records(settings)

    if settings.storage_backend == "sql":
        from .sql_storage import SQLStorage

        return SQLStorage(settings.database_url, seed=seed, backup_dir=settings.backup_dir)
    from .json_storage import JsonStorage

    return JsonStorage(settings.data_file, seed=seed, backup_dir=settings.backup_dir)
