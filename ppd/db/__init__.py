"""Database helpers (engine/session export) for the SQL record store."""

from .session import Base, create_engine_for, session_factory

__all__ = ["Base", "create_engine_for", "session_factory"]
