"""Utility script to create the SQL schema for the configured DATABASE_URL."""
from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ppd.core.config import get_settings

from .session import Base, create_engine_for
from . import models  # noqa: F401  # ensure models are imported for metadata


def create_all(url: str | None = None) -> None:
    engine = create_engine_for(url or get_settings().database_url)
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


if __name__ == "__main__":
    try:
        create_all()
        print("Database tables created successfully.")
    except (SQLAlchemyError, RuntimeError) as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
