"""Administrative settings (interest rates, credit limits)."""
from __future__ import annotations

import logging
from decimal import Decimal

from ppd.core.config import Settings, get_settings
from ppd.domain.credit import to_decimal
from ppd.domain.errors import NotFoundError, ValidationError
from ppd.repositories.base import RecordStore
from ppd.repositories.defaults import (
    SETTING_MEMBER_LIMIT,
    SETTING_MEMBER_RATE,
    SETTING_NON_MEMBER_LIMIT,
    SETTING_NON_MEMBER_RATE,
)
from ppd.services.member_service import require_admin

logger = logging.getLogger(__name__)

RATE_KEYS = {SETTING_MEMBER_RATE, SETTING_NON_MEMBER_RATE}
LIMIT_KEYS = {SETTING_MEMBER_LIMIT, SETTING_NON_MEMBER_LIMIT}


class SettingsService:
    def __init__(self, store: RecordStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    def _fallback(self, key: str) -> str | None:
        return {
            SETTING_MEMBER_RATE: self.settings.member_interest_rate,
            SETTING_NON_MEMBER_RATE: self.settings.non_member_interest_rate,
            SETTING_MEMBER_LIMIT: self.settings.member_credit_limit,
            SETTING_NON_MEMBER_LIMIT: self.settings.non_member_credit_limit,
        }.get(key)

    def get_value(self, key: str) -> str | None:
        row = self.store.find_by("settings", "key", key)
        if row:
            return row.get("value")
        return self._fallback(key)

    def decimal_value(self, key: str) -> Decimal:
        value = self.get_value(key)
        try:
            return to_decimal(value)
        except ValueError:
            # A hand-edited row that no longer parses falls back to the configured default.
            logger.warning("[settings] valor invalido para %s: %r", key, value)
            return to_decimal(self._fallback(key))

    def interest_rate(self, is_member: bool) -> Decimal:
        return self.decimal_value(SETTING_MEMBER_RATE if is_member else SETTING_NON_MEMBER_RATE)

    def credit_limit(self, is_member: bool) -> Decimal:
        return self.decimal_value(SETTING_MEMBER_LIMIT if is_member else SETTING_NON_MEMBER_LIMIT)

    def list_settings(self, admin_id: str) -> list[dict]:
        require_admin(self.store, admin_id)
        return sorted(self.store.all("settings"), key=lambda r: r.get("key") or "")

    def update_setting(self, admin_id: str, key: str, value, description: str | None = None) -> dict:
        require_admin(self.store, admin_id)
        row = self.store.find_by("settings", "key", key)
        if not row:
            raise NotFoundError("Configuracao nao encontrada")
        text = str(value).strip() if value is not None else ""
        if key in RATE_KEYS or key in LIMIT_KEYS:
            try:
                number = to_decimal(text)
            except ValueError as exc:
                raise ValidationError("Valor numerico invalido") from exc
            if number < 0:
                raise ValidationError("Valor nao pode ser negativo")
            if key in RATE_KEYS and number > 1:
                raise ValidationError("Taxa deve estar entre 0 e 1")
        elif not text:
            raise ValidationError("Valor obrigatorio")
        changes = {"value": text}
        if description:
            changes["description"] = description
        updated = self.store.update("settings", row["id"], changes)
        logger.info("[settings] %s alterado para %s", key, text)
        return updated or row
