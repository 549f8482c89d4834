"""
Member registration, authentication and administration use cases.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ppd.core.config import Settings, get_settings
from ppd.core.security import hash_password, needs_rehash, verify_password
from ppd.domain.codes import generate_unique_code, is_valid_code, normalize_code
from ppd.domain.errors import (
    AuthorizationError,
    DuplicateError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from ppd.repositories.base import RecordStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
MIN_NAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
CONTACT_FIELDS = ("email", "phone", "document", "address", "city", "state", "zip_code", "birth_date")
FLAG_FIELDS = ("is_member", "is_admin", "is_active")
UPDATABLE_FIELDS = ("name",) + CONTACT_FIELDS + FLAG_FIELDS


def public_member(record: dict) -> dict:
    """Member record without the password hash."""
    return {k: v for k, v in record.items() if k != "password_hash"}


def require_admin(store: RecordStore, admin_id: str | None) -> dict:
    """Return the active administrator ``admin_id`` or raise AuthorizationError."""
    admin = store.get("members", admin_id) if admin_id else None
    if not admin or not admin.get("is_active", True) or not admin.get("is_admin"):
        raise AuthorizationError("Administrador nao encontrado ou sem permissao")
    return admin


def _clean(value) -> Optional[str]:
    text = (value or "").strip() if isinstance(value, str) else value
    return text or None


class MemberService:
    """Handles registration, login and administrative member changes."""

    def __init__(self, store: RecordStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    # -------------------------------------- helpers --------------------------------------
    def _code_taken(self, code: str) -> bool:
        return self.store.find_by("members", "consumer_code", code, active_only=True) is not None

    def _check_email(self, email: Optional[str], *, exclude_id: str | None = None) -> None:
        if not email:
            return
        if not EMAIL_PATTERN.fullmatch(email):
            raise ValidationError("Email invalido")
        existing = self.store.find_by("members", "email", email, active_only=True)
        if existing and existing["id"] != exclude_id:
            raise DuplicateError("Email ja esta em uso")

    def _check_document(self, document: Optional[str], *, exclude_id: str | None = None) -> None:
        if not document:
            return
        existing = self.store.find_by("members", "document", document, active_only=True)
        if existing and existing["id"] != exclude_id:
            raise DuplicateError("Documento ja cadastrado")

    def _check_name(self, name: Optional[str]) -> str:
        value = (name or "").strip()
        if len(value) < MIN_NAME_LENGTH:
            raise ValidationError(f"Nome deve ter pelo menos {MIN_NAME_LENGTH} caracteres")
        return value

    def _check_password(self, password: Optional[str]) -> str:
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")
        return password or ""

    # -------------------------------------- registro --------------------------------------
    def register(
        self,
        *,
        name: str,
        password: str,
        email: str | None = None,
        phone: str | None = None,
        document: str | None = None,
        address: str | None = None,
        city: str | None = None,
        state: str | None = None,
        zip_code: str | None = None,
        birth_date: str | None = None,
        consumer_code: str | None = None,
        is_member: bool = False,
    ) -> dict:
        clean_name = self._check_name(name)
        self._check_password(password)
        email_value = _clean(email)
        document_value = _clean(document)
        self._check_email(email_value)
        self._check_document(document_value)

        if consumer_code:
            code = normalize_code(consumer_code)
            if not is_valid_code(code):
                raise ValidationError("Codigo de consumidor invalido. Use 3-32 caracteres [A-Z0-9]")
            if self._code_taken(code):
                raise DuplicateError("Codigo de consumidor ja esta em uso")
        else:
            code = generate_unique_code(self._code_taken)

        record = self.store.create(
            "members",
            {
                "consumer_code": code,
                "name": clean_name,
                "email": email_value,
                "password_hash": hash_password(password),
                "phone": _clean(phone),
                "document": document_value,
                "address": _clean(address),
                "city": _clean(city),
                "state": _clean(state),
                "zip_code": _clean(zip_code),
                "birth_date": _clean(birth_date),
                "is_member": bool(is_member),
                "is_admin": False,
                "is_active": True,
            },
        )
        logger.info("[member] cadastrado %s (membro=%s)", code, record["is_member"])
        return public_member(record)

    # -------------------------------------- login --------------------------------------
    def authenticate(self, consumer_code: str, password: str) -> dict:
        code = normalize_code(consumer_code)
        if not code or not password:
            raise ValidationError("Codigo de consumidor e senha sao obrigatorios")
        member = self.store.find_by("members", "consumer_code", code, active_only=True)
        if not member or not verify_password(password, member.get("password_hash")):
            logger.warning("[member] falha de login para %s", code)
            raise InvalidCredentialsError("Codigo de consumidor ou senha invalidos")
        if needs_rehash(member.get("password_hash")):
            member = self.store.update("members", member["id"], {"password_hash": hash_password(password)}) or member
        return public_member(member)

    def authenticate_admin(self, consumer_code: str, password: str) -> dict:
        member = self.authenticate(consumer_code, password)
        if not member.get("is_admin"):
            raise AuthorizationError("Acesso negado. Voce nao tem permissao de administrador")
        return member

    def change_password(self, member_id: str, current_password: str, new_password: str) -> None:
        member = self.get(member_id)
        if not verify_password(current_password, member.get("password_hash")):
            raise InvalidCredentialsError("Senha atual incorreta")
        self._check_password(new_password)
        self.store.update("members", member_id, {"password_hash": hash_password(new_password)})

    # -------------------------------------- consultas --------------------------------------
    def get(self, member_id: str) -> dict:
        member = self.store.get("members", member_id) if member_id else None
        if not member:
            raise NotFoundError("Membro nao encontrado")
        return member

    def get_active(self, member_id: str) -> dict:
        member = self.get(member_id)
        if not member.get("is_active", True):
            raise NotFoundError("Membro nao encontrado")
        return member

    def get_by_consumer_code(self, consumer_code: str) -> dict:
        code = normalize_code(consumer_code)
        member = self.store.find_by("members", "consumer_code", code, active_only=True) if code else None
        if not member:
            raise NotFoundError("Membro nao encontrado")
        return public_member(member)

    def list_members(self, admin_id: str, *, include_inactive: bool = False) -> list[dict]:
        require_admin(self.store, admin_id)
        rows = self.store.all("members") if include_inactive else self.store.all_active("members")
        return [public_member(r) for r in rows]

    # -------------------------------------- administracao --------------------------------------
    def update_member(self, admin_id: str, member_id: str, fields: dict) -> dict:
        require_admin(self.store, admin_id)
        member = self.get(member_id)
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Campos nao permitidos: {', '.join(sorted(unknown))}")
        changes: dict = {}
        for key, value in fields.items():
            if key in FLAG_FIELDS:
                if value is None:
                    continue
                changes[key] = bool(value)
            elif key == "name":
                changes[key] = self._check_name(value)
            else:
                changes[key] = _clean(value)
        if "email" in changes:
            self._check_email(changes["email"], exclude_id=member_id)
        if "document" in changes:
            self._check_document(changes["document"], exclude_id=member_id)
        if changes.get("is_active") and not member.get("is_active", True):
            if self._code_taken(member["consumer_code"]):
                raise DuplicateError("Codigo de consumidor ja esta em uso por outro membro ativo")
        if not changes:
            return public_member(member)
        updated = self.store.update("members", member_id, changes)
        logger.info("[member] %s atualizado: %s", member["consumer_code"], ", ".join(sorted(changes)))
        return public_member(updated or member)

    def deactivate(self, admin_id: str, member_id: str) -> dict:
        return self.update_member(admin_id, member_id, {"is_active": False})
