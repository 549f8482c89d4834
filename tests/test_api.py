"""
End-to-end checks of the JSON API through FastAPI's TestClient.
"""
from __future__ import annotations

import dataclasses
import sys
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Garante que o pacote ppd seja importavel durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ppd.app import create_app
from ppd.core import config as core_config
from ppd.domain.codes import GENERATED_CODE_PATTERN
from ppd.repositories.base import parse_timestamp


@pytest.fixture()
def settings(tmp_path):
    core_config.get_settings.cache_clear()
    return dataclasses.replace(
        core_config.get_settings(),
        app_env="test",
        storage_backend="json",
        data_file=tmp_path / "db" / "db.json",
        backup_dir=tmp_path / "backups",
        admin_consumer_code="ADMIN001",
        admin_password="admin123",
        member_interest_rate="0.15",
        non_member_interest_rate="0.25",
        member_credit_limit="50000",
        non_member_credit_limit="20000",
        credit_term_days=30,
        login_rate_limit=3,
        login_rate_window_seconds=60,
    )


@pytest.fixture()
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture()
def admin_id(client):
    res = client.post("/api/auth/admin-login", json={"consumer_code": "ADMIN001", "password": "admin123"})
    assert res.status_code == 200
    return res.json()["member"]["id"]


def _register(client, **extra):
    body = {"name": "Joao Silva", "password": "segredo1"}
    body.update(extra)
    res = client.post("/api/auth/register", json=body)
    assert res.status_code == 201, res.text
    return res.json()["member"]


def test_healthz_and_security_headers(client):
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json()["ok"] is True
    assert res.headers["X-Content-Type-Options"] == "nosniff"


def test_full_credit_cycle(client, admin_id):
    member = _register(client, is_member=True)
    assert GENERATED_CODE_PATTERN.fullmatch(member["consumer_code"])

    login = client.post("/api/auth/login", json={"consumer_code": member["consumer_code"].lower(), "password": "segredo1"})
    assert login.status_code == 200
    member_id = login.json()["member"]["id"]

    res = client.post("/api/credits", json={"member_id": member_id, "amount": 1000})
    assert res.status_code == 201
    credit = res.json()["credit"]
    assert (credit["interest"], credit["total"], credit["status"]) == (150.0, 1150.0, "requested")

    res = client.post("/api/credits/approve", json={"admin_id": admin_id, "credit_id": credit["id"], "action": "approve"})
    assert res.status_code == 200
    approved = res.json()["credit"]
    assert approved["status"] == "approved"
    assert parse_timestamp(approved["due_date"]) == parse_timestamp(approved["approved_at"]) + timedelta(days=30)

    for amount in (1000, 150):
        res = client.post("/api/payments", json={"member_id": member_id, "credit_id": credit["id"], "amount": amount})
        assert res.status_code == 201
        payment_id = res.json()["payment"]["id"]
        res = client.post("/api/payments/confirm", json={"admin_id": admin_id, "payment_id": payment_id})
        assert res.status_code == 200
    assert res.json()["credit"]["status"] == "paid"

    res = client.get("/api/credits", params={"member_id": member_id})
    assert [c["status"] for c in res.json()["credits"]] == ["paid"]
    res = client.get("/api/notifications", params={"member_id": member_id})
    kinds = {n["kind"] for n in res.json()["notifications"]}
    assert {"credit_decision", "payment_confirmed"} <= kinds
    assert client.get("/api/notifications", params={"member_id": "member-missing"}).status_code == 404


def test_processed_credit_conflicts(client, admin_id):
    member = _register(client)
    credit = client.post("/api/credits", json={"member_id": member["id"], "amount": 100}).json()["credit"]
    res = client.post("/api/credits/approve", json={"admin_id": admin_id, "credit_id": credit["id"], "action": "reject"})
    assert res.json()["credit"]["status"] == "rejected"
    res = client.post("/api/credits/approve", json={"admin_id": admin_id, "credit_id": credit["id"], "action": "approve"})
    assert res.status_code == 400
    assert "error" in res.json()


def test_error_statuses(client, admin_id):
    member = _register(client, email="joao@example.com")
    res = client.post("/api/auth/register", json={"name": "Outro", "password": "segredo1", "email": "joao@example.com"})
    assert res.status_code == 409
    res = client.post("/api/auth/login", json={"consumer_code": member["consumer_code"], "password": "errada"})
    assert res.status_code == 401
    res = client.get("/api/members", params={"admin_id": member["id"]})
    assert res.status_code == 403
    res = client.get("/api/members/NOPE0000")
    assert res.status_code == 404
    res = client.post("/api/credits", json={"member_id": member["id"], "amount": "muito"})
    assert res.status_code == 400
    assert res.json()["error"] == "Dados invalidos"
    res = client.post("/api/credits", json={"member_id": member["id"], "amount": 0})
    assert res.status_code == 400
    res = client.post("/api/credits", json={"member_id": member["id"], "amount": 20001})
    assert res.status_code == 400


def test_members_admin_endpoints(client, admin_id):
    member = _register(client, consumer_code="ana001")
    assert member["consumer_code"] == "ANA001"
    res = client.get("/api/members/ana001")
    assert res.status_code == 200
    assert "password_hash" not in res.json()["member"]

    res = client.put(f"/api/members/{member['id']}", json={"admin_id": admin_id, "is_member": True})
    assert res.status_code == 200
    assert res.json()["member"]["is_member"] is True

    res = client.put(f"/api/members/{member['id']}", json={"admin_id": admin_id, "is_member": None, "city": "Luanda"})
    assert res.status_code == 200
    assert res.json()["member"]["is_member"] is True

    res = client.put(f"/api/members/{member['id']}", json={"admin_id": admin_id, "password_hash": "x"})
    assert res.status_code == 400

    res = client.get("/api/members", params={"admin_id": admin_id})
    assert {m["consumer_code"] for m in res.json()["members"]} == {"ADMIN001", "ANA001"}


def test_admin_credit_and_monthly_payment(client, admin_id):
    member = _register(client, is_member=True)
    res = client.post("/api/admin/credits", json={"admin_id": admin_id, "member_id": member["id"], "amount": 1000})
    assert res.status_code == 201
    assert res.json()["credit"]["status"] == "approved"

    res = client.post("/api/payments/monthly", json={"member_id": member["id"], "amount": 150, "admin_id": admin_id})
    assert res.status_code == 201
    body = res.json()
    assert (body["previous_debt"], body["new_balance"]) == (1150.0, 1000.0)

    res = client.get("/api/payments/monthly", params={"member_id": member["id"]})
    assert res.json()["total_debt"] == 1000.0
    res = client.get("/api/payments/monthly", params={"admin_id": admin_id})
    assert res.json()["totals"]["total_debt"] == 1000.0
    assert client.get("/api/payments/monthly").status_code == 400

    res = client.get("/api/admin/credits", params={"admin_id": admin_id})
    assert res.json()["credits"][0]["balance"] == 1000.0


def test_monthly_payment_forbidden_for_non_members(client, admin_id):
    member = _register(client)
    client.post("/api/admin/credits", json={"admin_id": admin_id, "member_id": member["id"], "amount": 100})
    res = client.post("/api/payments/monthly", json={"member_id": member["id"], "amount": 50})
    assert res.status_code == 403


def test_settings_endpoints(client, admin_id):
    res = client.get("/api/admin/settings", params={"admin_id": admin_id})
    assert len(res.json()["settings"]) == 4
    res = client.put("/api/admin/settings/member_interest_rate", json={"admin_id": admin_id, "value": 0.1})
    assert res.status_code == 200
    member = _register(client, is_member=True)
    credit = client.post("/api/credits", json={"member_id": member["id"], "amount": 1000}).json()["credit"]
    assert credit["interest"] == 100.0
    res = client.put("/api/admin/settings/nope", json={"admin_id": admin_id, "value": "1"})
    assert res.status_code == 404


def test_debug_actions(client, admin_id, settings):
    res = client.post("/api/debug", json={"admin_id": admin_id, "action": "stats"})
    assert res.json()["stats"]["total_members"] == 1
    res = client.post("/api/debug", json={"admin_id": admin_id, "action": "backup"})
    assert Path(res.json()["backup_path"]).parent == settings.backup_dir
    res = client.post("/api/debug", json={"admin_id": admin_id, "action": "reset"})
    assert res.status_code == 200
    res = client.post("/api/debug", json={"admin_id": admin_id, "action": "explode"})
    assert res.status_code == 400


def test_login_rate_limit(client):
    for _ in range(3):
        assert client.post("/api/auth/login", json={"consumer_code": "X01", "password": "nope"}).status_code == 401
    res = client.post("/api/auth/login", json={"consumer_code": "X01", "password": "nope"})
    assert res.status_code == 429
    assert "error" in res.json()


def test_monthly_payment_covers_credits_oldest_first(client, admin_id):
    member = _register(client, is_member=True)
    for amount in (1000, 2000):
        client.post("/api/admin/credits", json={"admin_id": admin_id, "member_id": member["id"], "amount": amount})

    res = client.post("/api/payments/monthly", json={"member_id": member["id"], "amount": 2000})
    assert res.status_code == 201
    body = res.json()
    assert [p["amount"] for p in body["payments"]] == [1150.0, 850.0]
    assert [c["status"] for c in body["credits"]] == ["paid", "approved"]
    assert (body["previous_debt"], body["new_balance"]) == (3450.0, 1450.0)
    res = client.get("/api/payments/monthly", params={"member_id": member["id"]})
    assert res.json()["total_debt"] == 1450.0

    res = client.post("/api/payments/monthly", json={"member_id": member["id"], "amount": 1500})
    assert res.status_code == 400
    res = client.post("/api/payments/monthly", json={"member_id": member["id"], "amount": "0.004"})
    assert res.status_code == 400
