"""One-off migration script: JSON store (DATA_FILE) -> SQL store (DATABASE_URL)."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Garantir que o pacote ppd seja importavel quando rodado diretamente
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ppd.core.config import get_settings
from ppd.repositories.base import StorageError, read_snapshot
from ppd.repositories.sql_storage import SQLStorage


def migrate(data_file: Path, database_url: str) -> dict[str, int]:
    """Replace the SQL contents with the JSON snapshot; returns rows copied per collection."""
    snapshot = read_snapshot(data_file)
    store = SQLStorage(database_url, autoload=False)
    try:
        store.load()
        store.replace_all(snapshot)
        return {name: len(rows) for name, rows in store.dump().items()}
    finally:
        store.dispose()


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Migrar o banco JSON para SQL")
    ap.add_argument("--data-file", default=str(settings.data_file))
    ap.add_argument("--database-url", default=settings.database_url)
    args = ap.parse_args(argv)
    try:
        counts = migrate(Path(args.data_file), args.database_url)
    except (StorageError, RuntimeError) as exc:
        sys.stderr.write(f"Erro: {exc}\n")
        return 1
    for name, count in counts.items():
        print(f"  {name}: {count}")
    print("JSON data migrated to SQL successfully.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
