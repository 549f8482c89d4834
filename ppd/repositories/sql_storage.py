"""Record store backed by SQLAlchemy (one table per collection).

Same contract as the JSON store, but every create/update is its own
committed transaction, so writers only ever race on a single row.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ppd.db.models import MODELS
from ppd.db.session import Base, create_engine_for, session_factory

from .base import Record, RecordStore, SeedFactory, Snapshot, StorageError, next_updated_at, stamp

logger = logging.getLogger(__name__)


def _to_dict(entity) -> Record:
    return {c.name: getattr(entity, c.name) for c in entity.__table__.columns}


class SQLStorage(RecordStore):
    """CRUD helpers wrapping SQLAlchemy sessions."""

    def __init__(
        self,
        database_url: str,
        *,
        seed: SeedFactory | None = None,
        backup_dir: Path | str | None = None,
        autoload: bool = True,
    ) -> None:
        super().__init__(seed=seed, backup_dir=backup_dir)
        self.database_url = database_url
        self.engine = create_engine_for(database_url)
        self._sessions = session_factory(self.engine)
        if autoload:
            self.load()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session: Session = self._sessions()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("[store] erro SQL: %s", exc)
            raise StorageError(f"Erro no banco SQL: {exc}") from exc
        finally:
            session.close()

    def _model(self, collection: str):
        self._check(collection)
        return MODELS[collection]

    def _column(self, model, field: str):
        self._check_fields(model.__tablename__, (field,))
        return getattr(model, field)

    def _entity(self, model, record: Record):
        columns = model.__table__.columns
        return model(**{k: v for k, v in record.items() if k in columns})

    def _insert(self, session: Session, data: Snapshot) -> None:
        for name, rows in data.items():
            model = MODELS[name]
            for row in rows:
                session.add(self._entity(model, row))

    # -------------------------- lifecycle --------------------------
    def load(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Nao foi possivel preparar o banco SQL: {exc}") from exc
        with self._session() as session:
            has_members = session.execute(select(MODELS["members"].id).limit(1)).first() is not None
            has_settings = session.execute(select(MODELS["settings"].id).limit(1)).first() is not None
            if has_members or has_settings:
                return
            self._insert(session, self.seed_data())
            session.commit()
        logger.info("[store] banco SQL inicializado em %s", self.engine.url)

    def save(self) -> None:
        """Nothing to flush: every operation commits on its own."""

    def dispose(self) -> None:
        self.engine.dispose()

    # -------------------------- records --------------------------
    def create(self, collection: str, data: Record) -> Record:
        model = self._model(collection)
        self._check_fields(collection, data)
        entity = self._entity(model, stamp(collection, data))
        with self._session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return _to_dict(entity)

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        model = self._model(collection)
        with self._session() as session:
            entity = session.get(model, record_id)
            return _to_dict(entity) if entity else None

    def find_by(self, collection: str, field: str, value: Any, *, active_only: bool = False) -> Optional[Record]:
        model = self._model(collection)
        stmt = select(model).where(self._column(model, field) == value)
        if active_only and "is_active" in model.__table__.columns:
            stmt = stmt.where(model.is_active.is_(True))
        stmt = stmt.order_by(model.created_at, model.id).limit(1)
        with self._session() as session:
            entity = session.execute(stmt).scalars().first()
            return _to_dict(entity) if entity else None

    def filter(self, collection: str, **criteria: Any) -> list[Record]:
        model = self._model(collection)
        stmt = select(model)
        for field, value in criteria.items():
            stmt = stmt.where(self._column(model, field) == value)
        stmt = stmt.order_by(model.created_at, model.id)
        with self._session() as session:
            return [_to_dict(e) for e in session.execute(stmt).scalars().all()]

    def update(self, collection: str, record_id: str, fields: Record) -> Optional[Record]:
        model = self._model(collection)
        self._check_fields(collection, fields)
        with self._session() as session:
            entity = session.get(model, record_id)
            if not entity:
                return None
            for key, value in fields.items():
                if key in ("id", "created_at", "updated_at"):
                    continue
                setattr(entity, key, value)
            entity.updated_at = next_updated_at(entity.updated_at)
            session.commit()
            session.refresh(entity)
            return _to_dict(entity)

    def all(self, collection: str) -> list[Record]:
        return self.filter(collection)

    # -------------------------- whole store --------------------------
    def clear(self) -> None:
        with self._session() as session:
            for model in MODELS.values():
                session.execute(delete(model))
            session.commit()
        logger.info("[store] banco SQL limpo")

    def reset(self) -> None:
        with self._session() as session:
            for model in MODELS.values():
                session.execute(delete(model))
            self._insert(session, self.seed_data())
            session.commit()
        logger.info("[store] banco SQL resetado")

    def dump(self) -> Snapshot:
        return {name: self.all(name) for name in self.collections}

    def replace_all(self, data: dict) -> None:
        normalized = self.normalize(data)
        with self._session() as session:
            for model in MODELS.values():
                session.execute(delete(model))
            self._insert(session, normalized)
            session.commit()
