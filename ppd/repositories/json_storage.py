"""
JSON file record store.

The whole database is one JSON object kept in memory and rewritten in full
on every mutation: linear scans for lookups, no indexes, no transactions.
Writes go to a sibling temporary file moved into place with ``os.replace``
so an interrupted write keeps the previous snapshot.

A lock serialises mutations made through one instance. Two instances (or
two processes) opened on the same file do not see each other's changes;
whichever saves last overwrites the whole file.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Optional

from .base import (
    Record,
    RecordStore,
    SeedFactory,
    Snapshot,
    StorageCorruptedError,
    StorageError,
    next_updated_at,
    stamp,
)

logger = logging.getLogger(__name__)


class JsonStorage(RecordStore):
    def __init__(
        self,
        path: Path | str,
        *,
        seed: SeedFactory | None = None,
        backup_dir: Path | str | None = None,
        autoload: bool = True,
    ) -> None:
        self.path = Path(path)
        super().__init__(seed=seed, backup_dir=backup_dir if backup_dir is not None else self.path.parent)
        self._lock = threading.RLock()
        self._data: Snapshot = self.empty()
        if autoload:
            self.load()

    # -------------------------- file i/o --------------------------
    def load(self) -> None:
        with self._lock:
            if not self.path.exists():
                self._data = self.seed_data()
                self.save()
                logger.info("[store] banco criado em %s", self.path)
                return
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    raw = json.load(f)
            except (OSError, ValueError) as exc:
                logger.error("[store] falha ao ler %s: %s", self.path, exc)
                raise StorageCorruptedError(f"Nao foi possivel ler {self.path}: {exc}") from exc
            if not isinstance(raw, dict):
                raise StorageCorruptedError(f"Conteudo invalido em {self.path}: objeto JSON esperado")
            self._data = self.normalize(raw)
            logger.debug("[store] %s carregado (%d membros)", self.path, len(self._data["members"]))

    def save(self) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            try:
                with tmp.open("w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                os.replace(tmp, self.path)
            except OSError as exc:
                logger.error("[store] falha ao salvar %s: %s", self.path, exc)
                raise StorageError(f"Nao foi possivel salvar {self.path}: {exc}") from exc

    # -------------------------- records --------------------------
    def _rows(self, collection: str) -> list[Record]:
        self._check(collection)
        return self._data[collection]

    def create(self, collection: str, data: Record) -> Record:
        self._check_fields(collection, data)
        record = stamp(collection, data)
        with self._lock:
            rows = self._rows(collection)
            rows.append(record)
            try:
                self.save()
            except StorageError:
                rows.remove(record)
                raise
            return copy.deepcopy(record)

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        return self.find_by(collection, "id", record_id)

    def find_by(self, collection: str, field: str, value: Any, *, active_only: bool = False) -> Optional[Record]:
        self._check_fields(collection, (field,))
        with self._lock:
            for row in self._rows(collection):
                if row.get(field) != value:
                    continue
                if active_only and not row.get("is_active", True):
                    continue
                return copy.deepcopy(row)
        return None

    def filter(self, collection: str, **criteria: Any) -> list[Record]:
        self._check_fields(collection, criteria)
        with self._lock:
            return [
                copy.deepcopy(row)
                for row in self._rows(collection)
                if all(row.get(k) == v for k, v in criteria.items())
            ]

    def update(self, collection: str, record_id: str, fields: Record) -> Optional[Record]:
        self._check_fields(collection, fields)
        changes = {k: v for k, v in fields.items() if k not in ("id", "created_at", "updated_at")}
        with self._lock:
            rows = self._rows(collection)
            for idx, row in enumerate(rows):
                if row.get("id") != record_id:
                    continue
                merged = {**row, **copy.deepcopy(changes)}
                merged["updated_at"] = next_updated_at(row.get("updated_at"))
                rows[idx] = merged
                try:
                    self.save()
                except StorageError:
                    rows[idx] = row
                    raise
                return copy.deepcopy(merged)
        return None

    def all(self, collection: str) -> list[Record]:
        with self._lock:
            return copy.deepcopy(self._rows(collection))

    # -------------------------- whole store --------------------------
    def _swap(self, data: Snapshot) -> None:
        """Persist ``data`` as the whole store, keeping the old state if the write fails."""
        with self._lock:
            previous = self._data
            self._data = data
            try:
                self.save()
            except StorageError:
                self._data = previous
                raise

    def clear(self) -> None:
        self._swap(self.empty())
        logger.info("[store] banco limpo: %s", self.path)

    def reset(self) -> None:
        self._swap(self.seed_data())
        logger.info("[store] banco resetado: %s", self.path)

    def dump(self) -> Snapshot:
        with self._lock:
            return copy.deepcopy(self._data)

    def replace_all(self, data: dict) -> None:
        self._swap(self.normalize(data))
