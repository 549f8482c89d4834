"""
Record store contract shared by the JSON file store and the SQL store.

Records are plain dicts grouped in named collections. Every record carries
an ``id`` plus ``created_at``/``updated_at`` ISO-8601 UTC timestamps. The
store knows nothing about references between records; services check them.
Both backends accept only the fields listed in ``RECORD_FIELDS`` and raise
``ValueError`` for anything else.
"""

from __future__ import annotations

import copy
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

COLLECTIONS = ("members", "credits", "payments", "notifications", "settings")
ID_PREFIXES = {
    "members": "member",
    "credits": "credit",
    "payments": "payment",
    "notifications": "notification",
    "settings": "setting",
}

_META_FIELDS = ("id", "created_at", "updated_at")
RECORD_FIELDS = {
    "members": _META_FIELDS + (
        "consumer_code", "name", "email", "password_hash", "phone", "document", "address",
        "city", "state", "zip_code", "birth_date", "is_member", "is_admin", "is_active",
    ),
    "credits": _META_FIELDS + (
        "member_id", "amount", "interest_rate", "interest", "total", "status", "description",
        "requested_at", "approved_at", "decided_at", "paid_at", "due_date", "created_by",
    ),
    "payments": _META_FIELDS + (
        "member_id", "credit_id", "amount", "method", "status", "description", "paid_at", "confirmed_at",
    ),
    "notifications": _META_FIELDS + (
        "member_id", "kind", "description", "status", "response", "responded_at",
    ),
    "settings": _META_FIELDS + ("key", "value", "description"),
}

Record = dict[str, Any]
Snapshot = dict[str, list[Record]]
SeedFactory = Callable[[], Snapshot]


class StorageError(Exception):
    """Reading or writing the backing storage failed."""


class StorageCorruptedError(StorageError):
    """The backing file exists but cannot be read or parsed."""


class BackupNotFoundError(StorageError):
    pass


# -------------------------- ids and timestamps --------------------------
def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | None) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def new_id(collection: str) -> str:
    prefix = ID_PREFIXES.get(collection, "record")
    return f"{prefix}-{uuid.uuid4().hex}"


def stamp(collection: str, data: Record) -> Record:
    """Copy ``data`` and assign a fresh identifier and both timestamps."""
    now = isoformat(utcnow())
    record = copy.deepcopy(dict(data))
    record["id"] = new_id(collection)
    record["created_at"] = now
    record["updated_at"] = now
    return record


def next_updated_at(previous: str | None) -> str:
    """Current time, or one microsecond after ``previous`` when the clock has not moved."""
    now = utcnow()
    before = parse_timestamp(previous)
    if before is not None and now <= before:
        now = before + timedelta(microseconds=1)
    return isoformat(now)


# -------------------------- snapshots --------------------------
def read_snapshot(path: Path) -> dict:
    if not path.exists():
        raise BackupNotFoundError(f"Arquivo nao encontrado: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise StorageCorruptedError(f"Nao foi possivel ler {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StorageCorruptedError(f"Conteudo invalido em {path}: objeto JSON esperado")
    return data


class RecordStore(ABC):
    """Flat record collections with linear lookups and whole-store maintenance helpers."""

    collections = COLLECTIONS

    def __init__(self, *, seed: SeedFactory | None = None, backup_dir: Path | str | None = None) -> None:
        self._seed = seed
        self.backup_dir = Path(backup_dir) if backup_dir is not None else Path(".")

    # ---------------------- helpers ----------------------
    def _check(self, collection: str) -> None:
        if collection not in self.collections:
            raise ValueError(f"Colecao desconhecida: {collection}")

    def _check_fields(self, collection: str, fields) -> None:
        self._check(collection)
        unknown = sorted(set(fields) - set(RECORD_FIELDS[collection]))
        if unknown:
            raise ValueError(f"Campo desconhecido em {collection}: {', '.join(unknown)}")

    def empty(self) -> Snapshot:
        return {name: [] for name in self.collections}

    def seed_data(self) -> Snapshot:
        data = self.empty()
        if self._seed:
            for name, rows in self._seed().items():
                if name in data:
                    data[name] = [copy.deepcopy(r) for r in rows]
        return data

    def normalize(self, raw: dict) -> Snapshot:
        """Keep known collections, default missing ones to empty lists."""
        data = self.empty()
        for name in self.collections:
            rows = raw.get(name)
            if rows is None:
                continue
            if not isinstance(rows, list):
                raise StorageCorruptedError(f"Colecao '{name}' deveria ser uma lista")
            data[name] = [dict(r) for r in rows if isinstance(r, dict)]
        return data

    # ---------------------- contract ----------------------
    @abstractmethod
    def load(self) -> None:
        """Open the backing storage, seeding it when it does not exist yet."""

    @abstractmethod
    def save(self) -> None:
        """Persist pending in-memory state."""

    @abstractmethod
    def create(self, collection: str, data: Record) -> Record:
        pass

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Record]:
        pass

    @abstractmethod
    def find_by(self, collection: str, field: str, value: Any, *, active_only: bool = False) -> Optional[Record]:
        pass

    @abstractmethod
    def filter(self, collection: str, **criteria: Any) -> list[Record]:
        pass

    @abstractmethod
    def update(self, collection: str, record_id: str, fields: Record) -> Optional[Record]:
        pass

    @abstractmethod
    def all(self, collection: str) -> list[Record]:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Empty every collection without reseeding."""

    @abstractmethod
    def reset(self) -> None:
        """Drop everything and start again from the seed."""

    @abstractmethod
    def dump(self) -> Snapshot:
        pass

    @abstractmethod
    def replace_all(self, data: dict) -> None:
        pass

    # ---------------------- shared behaviour ----------------------
    def all_active(self, collection: str) -> list[Record]:
        return [r for r in self.all(collection) if r.get("is_active", True)]

    def stats(self) -> dict:
        data = self.dump()
        members = data["members"]
        active = [m for m in members if m.get("is_active", True)]
        credits = data["credits"]
        payments = data["payments"]
        result = {f"total_{name}": len(rows) for name, rows in data.items()}
        result.update(
            {
                "active_members": len(active),
                "members_with_membership": len([m for m in active if m.get("is_member")]),
                "admins": len([m for m in active if m.get("is_admin")]),
                "credits_by_status": _count_by(credits, "status"),
                "payments_by_status": _count_by(payments, "status"),
            }
        )
        return result

    def export_to(self, path: Path | str) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            target.write_text(json.dumps(self.dump(), ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Falha ao exportar para {target}: {exc}") from exc
        return target

    def import_from(self, path: Path | str) -> None:
        self.replace_all(read_snapshot(Path(path)))

    def backup(self, directory: Path | str | None = None) -> Path:
        folder = Path(directory) if directory is not None else self.backup_dir
        target = folder / f"backup_{int(time.time() * 1000)}.json"
        suffix = 1
        while target.exists():
            target = folder / f"backup_{int(time.time() * 1000)}_{suffix}.json"
            suffix += 1
        self.export_to(target)
        logger.info("[store] backup criado em %s", target)
        return target

    def restore(self, path: Path | str) -> None:
        self.import_from(path)
        logger.info("[store] dados restaurados de %s", path)


def _count_by(rows: list[Record], field: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for row in rows:
        key = str(row.get(field) or "")
        counts[key] = counts.get(key, 0) + 1
    return counts
