"""
Credit request, approval and settlement use cases.

Lifecycle: requested -> approved | rejected, approved -> paid. Interest and
total are fixed when the credit is created; later steps never recompute
them. Every state change and the notification that reports it are two
separate writes.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from ppd.core.config import Settings, get_settings
from ppd.domain.credit import (
    STATUS_APPROVED,
    STATUS_PAID,
    STATUS_REJECTED,
    STATUS_REQUESTED,
    can_transition,
    compute_interest,
    confirmed_total,
    due_date,
    money,
    outstanding,
    quantize,
    to_decimal,
)
from ppd.domain.errors import ConflictError, NotFoundError, ValidationError
from ppd.repositories.base import RecordStore, isoformat, utcnow
from ppd.services.member_service import require_admin
from ppd.services.notification_service import (
    KIND_CREDIT_CREATED,
    KIND_CREDIT_DECISION,
    NotificationService,
    format_amount,
)
from ppd.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


def parse_amount(value) -> Decimal:
    """Positive amount from user input, rounded to cents, or ValidationError."""
    try:
        amount = quantize(to_decimal(value))
    except (ValueError, InvalidOperation) as exc:
        raise ValidationError("Valor invalido") from exc
    if amount <= 0:
        raise ValidationError("Valor deve ser maior que zero")
    return amount


class CreditService:
    def __init__(self, store: RecordStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.rates = SettingsService(store, self.settings)
        self.notifications = NotificationService(store)

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return utcnow()

    def _member(self, member_id: str) -> dict:
        member = self.store.get("members", member_id) if member_id else None
        if not member or not member.get("is_active", True):
            raise NotFoundError("Membro nao encontrado")
        return member

    def get(self, credit_id: str) -> dict:
        credit = self.store.get("credits", credit_id) if credit_id else None
        if not credit:
            raise NotFoundError("Credito nao encontrado")
        return credit

    def _new_credit(self, member: dict, amount: Decimal, description: str | None, *, approved_by: str | None = None) -> dict:
        limit = self.rates.credit_limit(bool(member.get("is_member")))
        if amount > limit:
            raise ValidationError(f"Valor acima do limite de credito ({format_amount(limit)})")
        rate = self.rates.interest_rate(bool(member.get("is_member")))
        interest, total = compute_interest(amount, rate)
        now = self._now()
        stamp_now = isoformat(now)
        return self.store.create(
            "credits",
            {
                "member_id": member["id"],
                "amount": money(amount),
                "interest_rate": float(rate),
                "interest": float(interest),
                "total": float(total),
                "status": STATUS_APPROVED if approved_by else STATUS_REQUESTED,
                "description": description,
                "requested_at": stamp_now,
                "approved_at": stamp_now if approved_by else None,
                "decided_at": stamp_now if approved_by else None,
                "paid_at": None,
                "due_date": isoformat(due_date(now, self.settings.credit_term_days)),
                "created_by": approved_by or member["id"],
            },
        )

    # -------------------------------------- solicitacao --------------------------------------
    def request_credit(self, member_id: str, amount, description: str | None = None) -> dict:
        value = parse_amount(amount)
        member = self._member(member_id)
        credit = self._new_credit(member, value, (description or "").strip() or "Solicitacao de credito")
        logger.info(
            "[credit] %s solicitou %s (juros %s, total %s)",
            member["consumer_code"], credit["amount"], credit["interest"], credit["total"],
        )
        return credit

    def create_approved_credit(self, admin_id: str, member_id: str, amount, description: str | None = None) -> dict:
        admin = require_admin(self.store, admin_id)
        value = parse_amount(amount)
        member = self._member(member_id)
        credit = self._new_credit(
            member,
            value,
            (description or "").strip() or "Credito criado por administrador",
            approved_by=admin["id"],
        )
        self.notifications.notify(
            member["id"],
            KIND_CREDIT_CREATED,
            f"Credito de {format_amount(credit['amount'])} criado por administrador",
            response=f"Um credito de {format_amount(credit['amount'])} foi criado e aprovado para voce",
        )
        logger.info("[credit] %s criou credito aprovado %s para %s", admin["consumer_code"], credit["id"], member["consumer_code"])
        return credit

    # -------------------------------------- decisao --------------------------------------
    def decide(self, admin_id: str, credit_id: str, approved: bool) -> dict:
        admin = require_admin(self.store, admin_id)
        credit = self.get(credit_id)
        target = STATUS_APPROVED if approved else STATUS_REJECTED
        if credit.get("status") != STATUS_REQUESTED or not can_transition(credit["status"], target):
            raise ConflictError("Este credito ja foi processado")
        now = self._now()
        changes = {"status": target, "decided_at": isoformat(now)}
        if approved:
            changes["approved_at"] = isoformat(now)
            changes["due_date"] = isoformat(due_date(now, self.settings.credit_term_days))
        updated = self.store.update("credits", credit_id, changes)
        verb = "aprovado" if approved else "rejeitado"
        self.notifications.notify(
            credit["member_id"],
            KIND_CREDIT_DECISION,
            f"Solicitacao de credito {'aprovada' if approved else 'rejeitada'} pelo administrador",
            status="approved" if approved else "rejected",
            response=f"Seu credito de {format_amount(credit['amount'])} foi {verb}",
        )
        logger.info("[credit] %s %s por %s", credit_id, verb, admin["consumer_code"])
        return updated or credit

    def approve(self, admin_id: str, credit_id: str) -> dict:
        return self.decide(admin_id, credit_id, True)

    def reject(self, admin_id: str, credit_id: str) -> dict:
        return self.decide(admin_id, credit_id, False)

    def settle(self, credit_id: str) -> dict:
        """Mark an approved credit as paid once confirmed payments cover its total."""
        credit = self.get(credit_id)
        if credit.get("status") != STATUS_APPROVED:
            return credit
        paid = confirmed_total(self.store.filter("payments", credit_id=credit_id))
        if paid < to_decimal(credit.get("total") or 0):
            return credit
        updated = self.store.update("credits", credit_id, {"status": STATUS_PAID, "paid_at": isoformat(self._now())})
        logger.info("[credit] %s quitado (pago %s)", credit_id, paid)
        return updated or credit

    # -------------------------------------- consultas --------------------------------------
    def balance(self, credit: dict) -> Decimal:
        if credit.get("status") == STATUS_PAID:
            return Decimal("0")
        return outstanding(credit, self.store.filter("payments", credit_id=credit["id"]))

    def list_for_member(self, member_id: str) -> list[dict]:
        self._member(member_id)
        rows = self.store.filter("credits", member_id=member_id)
        return sorted(rows, key=lambda r: r.get("requested_at") or "")

    def list_all(self, admin_id: str) -> list[dict]:
        require_admin(self.store, admin_id)
        members = {m["id"]: m for m in self.store.all("members")}
        result = []
        for credit in self.store.all("credits"):
            member = members.get(credit.get("member_id"))
            item = dict(credit)
            item["member"] = (
                {
                    "name": member.get("name"),
                    "consumer_code": member.get("consumer_code"),
                    "is_member": bool(member.get("is_member")),
                }
                if member
                else None
            )
            item["balance"] = float(self.balance(credit))
            result.append(item)
        return result
