"""Administrator maintenance actions over the whole store."""
from __future__ import annotations

import logging
from pathlib import Path

from ppd.repositories.base import RecordStore
from ppd.services.member_service import require_admin

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def stats(self, admin_id: str) -> dict:
        require_admin(self.store, admin_id)
        return self.store.stats()

    def backup(self, admin_id: str, directory: Path | str | None = None) -> Path:
        admin = require_admin(self.store, admin_id)
        target = self.store.backup(directory)
        logger.info("[maintenance] backup %s solicitado por %s", target.name, admin["consumer_code"])
        return target

    def reset(self, admin_id: str) -> None:
        admin = require_admin(self.store, admin_id)
        self.store.reset()
        logger.warning("[maintenance] banco resetado por %s", admin["consumer_code"])

    def restore(self, admin_id: str, path: Path | str) -> None:
        admin = require_admin(self.store, admin_id)
        self.store.restore(path)
        logger.warning("[maintenance] banco restaurado de %s por %s", path, admin["consumer_code"])
