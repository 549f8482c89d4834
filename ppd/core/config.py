"""
Configuration helpers for the PPD+ backend.

Settings are read once from the environment (storage backend and paths,
default interest rates and credit limits, the seeded administrator) so
that stores, services and routers never fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    storage_backend: str
    data_file: Path
    database_url: str
    backup_dir: Path
    admin_consumer_code: str
    admin_email: str
    admin_password: str
    member_interest_rate: str
    non_member_interest_rate: str
    member_credit_limit: str
    non_member_credit_limit: str
    credit_term_days: int
    login_rate_limit: int
    login_rate_window_seconds: int
    cors_origins: tuple[str, ...]
    log_level: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _list(value: str | None) -> tuple[str, ...]:
        return tuple(item.strip() for item in (value or "").split(",") if item.strip())

    backend = (os.getenv("STORAGE_BACKEND") or "json").strip().lower()
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        storage_backend=backend if backend in {"json", "sql"} else "json",
        data_file=Path(os.getenv("DATA_FILE") or os.path.join("db", "db.json")),
        database_url=os.getenv("DATABASE_URL", ""),
        backup_dir=Path(os.getenv("BACKUP_DIR") or "."),
        admin_consumer_code=(os.getenv("ADMIN_CONSUMER_CODE") or "ADMIN001").upper(),
        admin_email=os.getenv("ADMIN_EMAIL", "admin@ppdplus.ao"),
        admin_password=os.getenv("ADMIN_PASSWORD", "admin123"),
        member_interest_rate=os.getenv("MEMBER_INTEREST_RATE", "0.15"),
        non_member_interest_rate=os.getenv("NON_MEMBER_INTEREST_RATE", "0.25"),
        member_credit_limit=os.getenv("MEMBER_CREDIT_LIMIT", "50000"),
        non_member_credit_limit=os.getenv("NON_MEMBER_CREDIT_LIMIT", "20000"),
        credit_term_days=_int(os.getenv("CREDIT_TERM_DAYS", "30"), 30),
        login_rate_limit=_int(os.getenv("LOGIN_RATE_LIMIT", "10"), 10),
        login_rate_window_seconds=_int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "300"), 300),
        cors_origins=_list(os.getenv("CORS_ORIGINS")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
