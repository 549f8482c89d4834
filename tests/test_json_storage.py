"""
JsonStorage behaviour against temporary files.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Garante que o pacote ppd seja importavel durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ppd.repositories.base import BackupNotFoundError, StorageCorruptedError, StorageError, parse_timestamp
from ppd.repositories.json_storage import JsonStorage


def _seed():
    return {
        "members": [{"id": "member-admin", "consumer_code": "ADMIN001", "is_admin": True, "is_active": True}],
        "settings": [{"id": "setting-1", "key": "member_interest_rate", "value": "0.15"}],
    }


@pytest.fixture()
def store(tmp_path):
    return JsonStorage(tmp_path / "db" / "db.json", seed=_seed)


def test_missing_file_is_seeded_and_written(store):
    assert store.path.exists()
    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert set(on_disk) == {"members", "credits", "payments", "notifications", "settings"}
    assert on_disk["members"][0]["consumer_code"] == "ADMIN001"
    assert on_disk["credits"] == []


SAMPLES = {
    "members": {"consumer_code": "PPD0000BEEF", "name": "Joao Silva", "is_member": True, "is_active": True},
    "credits": {"member_id": "member-x", "amount": 1000.0, "interest": 150.0, "total": 1150.0, "status": "requested"},
    "payments": {"member_id": "member-x", "credit_id": "credit-x", "amount": 50.0, "status": "pending"},
    "notifications": {"member_id": "member-x", "kind": "credit_decision", "response": {"lines": [1, 2]}},
    "settings": {"key": "member_credit_limit", "value": "50000"},
}


def test_create_then_find_returns_equal_record_for_every_collection(store):
    for name in store.collections:
        created = store.create(name, SAMPLES[name])
        assert created["id"].startswith(name[:-1])
        assert created["created_at"] == created["updated_at"]
        assert store.find_by(name, "id", created["id"]) == created
        assert store.get(name, created["id"]) == created


def test_records_survive_reload(store):
    created = store.create("credits", {"member_id": "member-1", "amount": 1000.0})
    reopened = JsonStorage(store.path)
    assert reopened.get("credits", created["id"]) == created


def test_ids_unique_under_rapid_creation(store):
    ids = {store.create("payments", {"amount": 1.0})["id"] for _ in range(200)}
    assert len(ids) == 200


def test_create_ignores_caller_id_and_copies_input(store):
    data = {"id": "forced", "response": ["a"]}
    created = store.create("notifications", data)
    assert created["id"] != "forced"
    data["response"].append("b")
    assert store.get("notifications", created["id"])["response"] == ["a"]


def test_returned_records_are_copies(store):
    created = store.create("members", {"consumer_code": "PPD00000001", "is_active": True})
    fetched = store.get("members", created["id"])
    fetched["consumer_code"] = "CHANGED"
    assert store.get("members", created["id"])["consumer_code"] == "PPD00000001"


def test_update_bumps_updated_at_strictly(store):
    created = store.create("credits", {"status": "requested"})
    previous = created["updated_at"]
    for status in ("approved", "paid"):
        updated = store.update("credits", created["id"], {"status": status, "id": "hijack", "created_at": "x"})
        assert updated["status"] == status
        assert updated["id"] == created["id"]
        assert updated["created_at"] == created["created_at"]
        assert parse_timestamp(updated["updated_at"]) > parse_timestamp(previous)
        previous = updated["updated_at"]
    assert store.get("credits", created["id"])["status"] == "paid"


def test_update_missing_record_returns_none(store):
    assert store.update("credits", "credit-missing", {"status": "paid"}) is None


def test_find_by_active_only_skips_inactive(store):
    store.create("members", {"consumer_code": "PPDAAAA0000", "is_active": False})
    active = store.create("members", {"consumer_code": "PPDAAAA0000", "is_active": True})
    assert store.find_by("members", "consumer_code", "PPDAAAA0000", active_only=True)["id"] == active["id"]
    assert store.find_by("members", "consumer_code", "PPDAAAA0000")["id"] != active["id"]


def test_filter_and_all_active(store):
    store.create("credits", {"member_id": "m1", "status": "approved"})
    store.create("credits", {"member_id": "m1", "status": "requested"})
    store.create("credits", {"member_id": "m2", "status": "approved"})
    assert len(store.filter("credits", member_id="m1")) == 2
    assert len(store.filter("credits", member_id="m1", status="approved")) == 1
    store.create("members", {"consumer_code": "OLD", "is_active": False})
    assert all(m.get("is_active", True) for m in store.all_active("members"))


def test_unknown_collection_raises(store):
    with pytest.raises(ValueError):
        store.create("cards", {})


def test_unknown_fields_raise(store):
    credit = store.create("credits", {"member_id": "m1", "status": "requested"})
    with pytest.raises(ValueError):
        store.create("credits", {"member_id": "m1", "valor": 10})
    with pytest.raises(ValueError):
        store.update("credits", credit["id"], {"valor": 10})
    with pytest.raises(ValueError):
        store.filter("credits", valor=10)
    with pytest.raises(ValueError):
        store.find_by("credits", "valor", 10)
    assert store.get("credits", credit["id"]) == credit


def _failing_replace(*args, **kwargs):
    raise OSError("disco cheio")


@pytest.mark.parametrize("action", ["clear", "reset"])
def test_failed_clear_or_reset_keeps_previous_state(store, monkeypatch, action):
    created = store.create("credits", {"member_id": "m1", "status": "approved"})
    before = store.path.read_text(encoding="utf-8")
    monkeypatch.setattr("ppd.repositories.json_storage.os.replace", _failing_replace)
    with pytest.raises(StorageError):
        getattr(store, action)()
    assert store.path.read_text(encoding="utf-8") == before
    assert store.get("credits", created["id"]) == created


def test_corrupted_file_raises_instead_of_resetting(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageCorruptedError):
        JsonStorage(path, seed=_seed)
    assert path.read_text(encoding="utf-8") == "{not json"


def test_non_object_file_raises(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(StorageCorruptedError):
        JsonStorage(path)


def test_missing_collections_default_to_empty(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"members": []}), encoding="utf-8")
    store = JsonStorage(path)
    assert store.all("payments") == []


def test_no_temporary_file_left_behind(store):
    store.create("members", {"consumer_code": "PPD12345678"})
    assert not store.path.with_name(store.path.name + ".tmp").exists()


def test_two_instances_on_same_file_lose_an_update(tmp_path):
    path = tmp_path / "db.json"
    first = JsonStorage(path, seed=_seed)
    second = JsonStorage(path)
    a = first.create("credits", {"member_id": "m1"})
    b = second.create("credits", {"member_id": "m2"})
    reopened = JsonStorage(path)
    ids = {c["id"] for c in reopened.all("credits")}
    assert b["id"] in ids
    assert a["id"] not in ids


def test_stats_counts(store):
    store.create("credits", {"status": "approved"})
    store.create("credits", {"status": "requested"})
    store.create("payments", {"status": "pending"})
    stats = store.stats()
    assert stats["total_members"] == 1
    assert stats["admins"] == 1
    assert stats["total_credits"] == 2
    assert stats["credits_by_status"] == {"approved": 1, "requested": 1}
    assert stats["payments_by_status"] == {"pending": 1}


def test_backup_and_restore(store, tmp_path):
    created = store.create("credits", {"member_id": "m1"})
    backup = store.backup(tmp_path / "backups")
    assert backup.name.startswith("backup_")
    store.clear()
    assert store.all("members") == []
    store.restore(backup)
    assert store.get("credits", created["id"]) == created


def test_backups_in_same_millisecond_do_not_collide(store, tmp_path):
    paths = {store.backup(tmp_path) for _ in range(5)}
    assert len(paths) == 5


def test_restore_missing_backup(store, tmp_path):
    with pytest.raises(BackupNotFoundError):
        store.restore(tmp_path / "nope.json")


def test_reset_reseeds(store):
    store.create("members", {"consumer_code": "PPD0000AAAA"})
    store.reset()
    members = store.all("members")
    assert [m["consumer_code"] for m in members] == ["ADMIN001"]


def test_export_import_round_trip(store, tmp_path):
    store.create("payments", {"amount": 12.5})
    exported = store.export_to(tmp_path / "out" / "dump.json")
    other = JsonStorage(tmp_path / "other.json")
    other.import_from(exported)
    assert other.dump() == store.dump()
