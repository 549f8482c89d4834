"""
Smoke tests for SQLStorage against a temporary SQLite database.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Garante que o pacote ppd seja importavel durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ppd.db.models import MODELS
from ppd.repositories.base import RECORD_FIELDS, parse_timestamp, stamp
from ppd.repositories.json_storage import JsonStorage
from ppd.repositories.sql_storage import SQLStorage


def _seed():
    return {
        "members": [
            stamp(
                "members",
                {
                    "consumer_code": "ADMIN001",
                    "name": "Administrador",
                    "password_hash": "argon2$x",
                    "is_member": True,
                    "is_admin": True,
                    "is_active": True,
                },
            )
        ],
        "settings": [stamp("settings", {"key": "member_interest_rate", "value": "0.15"})],
    }


@pytest.fixture()
def sql_store(tmp_path):
    """SQLite temporario; dispose no teardown para nao deixar o arquivo bloqueado no Windows."""
    store = SQLStorage(f"sqlite:///{tmp_path / 'test.db'}", seed=_seed, backup_dir=tmp_path)
    yield store
    store.dispose()


def _member(code: str, **extra) -> dict:
    data = {"consumer_code": code, "name": "Maria Souza", "password_hash": "argon2$y", "is_active": True}
    data.update(extra)
    return data


def test_seed_applied_once(sql_store, tmp_path):
    assert [m["consumer_code"] for m in sql_store.all("members")] == ["ADMIN001"]
    again = SQLStorage(f"sqlite:///{tmp_path / 'test.db'}", seed=_seed)
    try:
        assert len(again.all("members")) == 1
    finally:
        again.dispose()


def test_member_create_find_update(sql_store):
    created = sql_store.create("members", _member("PPD0A1B2C3D", email="maria@example.com"))
    assert created["id"].startswith("member-")
    assert created["is_member"] is False
    assert sql_store.find_by("members", "consumer_code", "PPD0A1B2C3D") == created

    updated = sql_store.update("members", created["id"], {"is_member": True})
    assert updated["is_member"] is True
    assert parse_timestamp(updated["updated_at"]) > parse_timestamp(created["updated_at"])
    assert sql_store.update("members", "member-missing", {"name": "x"}) is None


def test_credit_filter_and_active_lookup(sql_store):
    sql_store.create("members", _member("PPDFFFF0000", is_active=False))
    active = sql_store.create("members", _member("PPDFFFF0000"))
    assert sql_store.find_by("members", "consumer_code", "PPDFFFF0000", active_only=True)["id"] == active["id"]

    for status in ("requested", "approved", "approved"):
        sql_store.create(
            "credits",
            {"member_id": active["id"], "amount": 100.0, "interest_rate": 0.15, "interest": 15.0, "total": 115.0, "status": status},
        )
    assert len(sql_store.filter("credits", member_id=active["id"])) == 3
    assert len(sql_store.filter("credits", member_id=active["id"], status="approved")) == 2


def test_unknown_field_and_collection(sql_store):
    with pytest.raises(ValueError):
        sql_store.find_by("members", "nickname", "x")
    with pytest.raises(ValueError):
        sql_store.filter("members", nickname="x")
    with pytest.raises(ValueError):
        sql_store.all("cards")


def test_unknown_fields_rejected_like_json_store(sql_store, tmp_path):
    json_store = JsonStorage(tmp_path / "db.json", seed=_seed)
    for store in (sql_store, json_store):
        member = store.create("members", _member("PPD55554444"))
        with pytest.raises(ValueError):
            store.update("members", member["id"], {"nickname": "Mari"})
        with pytest.raises(ValueError):
            store.create("members", _member("PPD55553333", nickname="Mari"))
        assert "nickname" not in store.get("members", member["id"])


def test_tables_match_record_fields():
    for name, model in MODELS.items():
        assert set(model.__table__.columns.keys()) == set(RECORD_FIELDS[name])


def test_reset_and_stats(sql_store):
    sql_store.create("members", _member("PPD11112222", is_member=True))
    assert sql_store.stats()["members_with_membership"] == 2
    sql_store.reset()
    assert sql_store.stats()["total_members"] == 1


def test_json_snapshot_moves_into_sql(sql_store, tmp_path):
    json_store = JsonStorage(tmp_path / "db.json", seed=_seed)
    member = json_store.create("members", _member("PPD99998888"))
    json_store.create("payments", {"member_id": member["id"], "credit_id": None, "amount": 50.0, "status": "pending"})
    sql_store.import_from(json_store.export_to(tmp_path / "dump.json"))
    moved = sql_store.get("members", member["id"])
    assert moved is not None
    assert {k: moved[k] for k in member} == member
    assert len(sql_store.all("payments")) == 1
