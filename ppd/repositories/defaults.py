"""Seed content for a brand-new store: the administrator and default settings."""
from __future__ import annotations

from ppd.core.config import Settings
from ppd.core.security import hash_password

from .base import Snapshot, stamp

SETTING_MEMBER_RATE = "member_interest_rate"
SETTING_NON_MEMBER_RATE = "non_member_interest_rate"
SETTING_MEMBER_LIMIT = "member_credit_limit"
SETTING_NON_MEMBER_LIMIT = "non_member_credit_limit"


def default_settings(settings: Settings) -> list[dict]:
    rows = [
        (SETTING_MEMBER_RATE, settings.member_interest_rate, "Taxa de juros para membros"),
        (SETTING_NON_MEMBER_RATE, settings.non_member_interest_rate, "Taxa de juros para nao-membros"),
        (SETTING_MEMBER_LIMIT, settings.member_credit_limit, "Limite maximo de credito para membros"),
        (SETTING_NON_MEMBER_LIMIT, settings.non_member_credit_limit, "Limite maximo de credito para nao-membros"),
    ]
    return [stamp("settings", {"key": k, "value": str(v), "description": d}) for k, v, d in rows]


def default_admin(settings: Settings) -> dict:
    return stamp(
        "members",
        {
            "consumer_code": settings.admin_consumer_code,
            "name": "Administrador PPD+",
            "email": settings.admin_email,
            "password_hash": hash_password(settings.admin_password),
            "phone": None,
            "document": None,
            "address": None,
            "city": None,
            "state": None,
            "zip_code": None,
            "birth_date": None,
            "is_member": True,
            "is_admin": True,
            "is_active": True,
        },
    )


def default_records(settings: Settings) -> Snapshot:
    return {
        "members": [default_admin(settings)],
        "credits": [],
        "payments": [],
        "notifications": [],
        "settings": default_settings(settings),
    }
