"""
Payment registration and confirmation.

A credit turns ``paid`` only through confirmed payments; pending and failed
payments never count towards its total.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ppd.core.config import Settings, get_settings
from ppd.domain.credit import (
    PAYMENT_CONFIRMED,
    PAYMENT_FAILED,
    PAYMENT_PENDING,
    STATUS_APPROVED,
    STATUS_PAID,
    confirmed_total,
    money,
    outstanding,
    sum_amounts,
    to_decimal,
)
from ppd.domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ppd.repositories.base import RecordStore, isoformat, utcnow
from ppd.services.credit_service import CreditService, parse_amount
from ppd.services.member_service import require_admin
from ppd.services.notification_service import (
    KIND_MONTHLY_PAYMENT,
    KIND_PAYMENT_CONFIRMED,
    KIND_PAYMENT_FAILED,
    KIND_PAYMENT_REGISTERED,
    NotificationService,
    format_amount,
)

logger = logging.getLogger(__name__)

METHOD_TRANSFER = "transfer"
METHOD_MONTHLY = "monthly"


@dataclass
class PaymentConfirmation:
    payment: dict
    credit: Optional[dict]


@dataclass
class MonthlyPaymentResult:
    """One confirmed payment per credit touched, oldest credit first."""

    payments: list[dict]
    credits: list[dict]
    previous_debt: Decimal
    new_balance: Decimal

    @property
    def payment(self) -> dict:
        return self.payments[0]

    @property
    def credit(self) -> dict:
        return self.credits[0]


class PaymentService:
    def __init__(self, store: RecordStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.credits = CreditService(store, self.settings)
        self.notifications = NotificationService(store)

    def get(self, payment_id: str) -> dict:
        payment = self.store.get("payments", payment_id) if payment_id else None
        if not payment:
            raise NotFoundError("Pagamento nao encontrado")
        return payment

    def _member(self, member_id: str) -> dict:
        member = self.store.get("members", member_id) if member_id else None
        if not member or not member.get("is_active", True):
            raise NotFoundError("Membro nao encontrado")
        return member

    def _require_membership(self, member_id: str) -> dict:
        member = self._member(member_id)
        if not member.get("is_member"):
            raise AuthorizationError("Apenas membros podem efetuar pagamentos mensais")
        return member

    # -------------------------------------- registro --------------------------------------
    def register_payment(
        self,
        member_id: str,
        credit_id: str,
        amount,
        method: str | None = None,
        description: str | None = None,
    ) -> dict:
        value = parse_amount(amount)
        member = self._member(member_id)
        credit = self.store.get("credits", credit_id) if credit_id else None
        if not credit or credit.get("member_id") != member["id"]:
            raise NotFoundError("Credito nao encontrado")
        if credit.get("status") != STATUS_APPROVED:
            raise ConflictError("Pagamentos so podem ser registrados para creditos aprovados")
        payment = self.store.create(
            "payments",
            {
                "member_id": member["id"],
                "credit_id": credit["id"],
                "amount": money(value),
                "method": (method or "").strip() or METHOD_TRANSFER,
                "status": PAYMENT_PENDING,
                "description": (description or "").strip() or "Pagamento de credito",
                "paid_at": isoformat(utcnow()),
                "confirmed_at": None,
            },
        )
        self.notifications.notify(
            member["id"],
            KIND_PAYMENT_REGISTERED,
            f"Pagamento de {format_amount(payment['amount'])} aguardando confirmacao",
            status=PAYMENT_PENDING,
        )
        logger.info("[payment] %s registrou %s para %s", member["consumer_code"], payment["amount"], credit["id"])
        return payment

    def _pending(self, payment_id: str) -> dict:
        payment = self.get(payment_id)
        if payment.get("status") != PAYMENT_PENDING:
            raise ConflictError("Este pagamento ja foi processado")
        return payment

    def confirm_payment(self, admin_id: str, payment_id: str) -> PaymentConfirmation:
        admin = require_admin(self.store, admin_id)
        payment = self._pending(payment_id)
        payment = self.store.update(
            "payments",
            payment_id,
            {"status": PAYMENT_CONFIRMED, "confirmed_at": isoformat(utcnow())},
        ) or payment
        credit = self.credits.settle(payment["credit_id"]) if payment.get("credit_id") else None
        self.notifications.notify(
            payment["member_id"],
            KIND_PAYMENT_CONFIRMED,
            f"Pagamento de {format_amount(payment['amount'])} confirmado",
            response="Credito quitado" if credit and credit.get("status") == STATUS_PAID else None,
        )
        logger.info("[payment] %s confirmado por %s", payment_id, admin["consumer_code"])
        return PaymentConfirmation(payment=payment, credit=credit)

    def fail_payment(self, admin_id: str, payment_id: str) -> dict:
        admin = require_admin(self.store, admin_id)
        self._pending(payment_id)
        payment = self.store.update("payments", payment_id, {"status": PAYMENT_FAILED})
        self.notifications.notify(
            payment["member_id"],
            KIND_PAYMENT_FAILED,
            f"Pagamento de {format_amount(payment['amount'])} nao foi confirmado",
            status="rejected",
        )
        logger.info("[payment] %s marcado como falho por %s", payment_id, admin["consumer_code"])
        return payment

    # -------------------------------------- mensal --------------------------------------
    def _open_credits(self, member_id: str) -> list[tuple[dict, Decimal]]:
        """Approved credits with outstanding balance, oldest approval first."""
        rows = []
        for credit in self.store.filter("credits", member_id=member_id, status=STATUS_APPROVED):
            balance = outstanding(credit, self.store.filter("payments", credit_id=credit["id"]))
            if balance > 0:
                rows.append((credit, balance))
        rows.sort(key=lambda item: item[0].get("approved_at") or item[0].get("created_at") or "")
        return rows

    def register_monthly_payment(
        self,
        member_id: str,
        amount,
        description: str | None = None,
        *,
        admin_id: str | None = None,
    ) -> MonthlyPaymentResult:
        admin = require_admin(self.store, admin_id) if admin_id else None
        value = parse_amount(amount)
        member = self._require_membership(member_id)
        open_credits = self._open_credits(member["id"])
        if not open_credits:
            raise ConflictError("Nenhum credito aprovado com saldo em aberto")
        previous_debt = sum((balance for _, balance in open_credits), Decimal("0"))
        if value > previous_debt:
            raise ValidationError(f"Valor acima do saldo devedor ({format_amount(previous_debt)})")

        now = isoformat(utcnow())
        payments: list[dict] = []
        settled: list[dict] = []
        remaining = value
        for credit, balance in open_credits:
            if remaining <= 0:
                break
            share = min(remaining, balance)
            payments.append(
                self.store.create(
                    "payments",
                    {
                        "member_id": member["id"],
                        "credit_id": credit["id"],
                        "amount": money(share),
                        "method": METHOD_MONTHLY,
                        "status": PAYMENT_CONFIRMED,
                        "description": (description or "").strip() or "Pagamento mensal",
                        "paid_at": now,
                        "confirmed_at": now,
                    },
                )
            )
            settled.append(self.credits.settle(credit["id"]))
            remaining -= share

        new_balance = sum((balance for _, balance in self._open_credits(member["id"])), Decimal("0"))
        self.notifications.notify(
            member["id"],
            KIND_MONTHLY_PAYMENT,
            f"Pagamento mensal de {format_amount(value)} registrado",
            response=f"Saldo devedor atual: {format_amount(new_balance)}",
        )
        if admin:
            self.notifications.notify(
                admin["id"],
                KIND_MONTHLY_PAYMENT,
                f"Pagamento mensal de {format_amount(value)} registrado para {member['consumer_code']}",
            )
        logger.info(
            "[payment] mensal %s de %s em %d credito(s) (divida %s -> %s)",
            value, member["consumer_code"], len(payments), previous_debt, new_balance,
        )
        return MonthlyPaymentResult(
            payments=payments,
            credits=settled,
            previous_debt=previous_debt,
            new_balance=new_balance,
        )

    def member_summary(self, member_id: str) -> dict:
        member = self._require_membership(member_id)
        credits = self.store.filter("credits", member_id=member["id"])
        payments = self.store.filter("payments", member_id=member["id"])
        details = []
        debt = Decimal("0")
        next_due: str | None = None
        for credit in sorted(credits, key=lambda r: r.get("requested_at") or ""):
            own = [p for p in payments if p.get("credit_id") == credit["id"]]
            balance = Decimal("0")
            if credit.get("status") == STATUS_APPROVED:
                balance = outstanding(credit, own)
                debt += balance
                due = credit.get("due_date")
                if balance > 0 and due and (next_due is None or due < next_due):
                    next_due = due
            details.append(
                {
                    "id": credit["id"],
                    "amount": credit.get("amount"),
                    "total": credit.get("total"),
                    "status": credit.get("status"),
                    "due_date": credit.get("due_date"),
                    "paid": float(confirmed_total(own)),
                    "balance": float(balance),
                }
            )
        confirmed = [p for p in payments if p.get("status") == PAYMENT_CONFIRMED]
        return {
            "member_id": member["id"],
            "consumer_code": member["consumer_code"],
            "total_debt": float(debt),
            "total_paid": float(sum_amounts(confirmed)),
            "pending_payments": len([p for p in payments if p.get("status") == PAYMENT_PENDING]),
            "next_due_date": next_due,
            "credits": details,
        }

    def members_overview(self, admin_id: str) -> dict:
        """Summary of every active member plus overall debt and paid totals."""
        require_admin(self.store, admin_id)
        summaries = [
            self.member_summary(m["id"])
            for m in self.store.all_active("members")
            if m.get("is_member")
        ]
        return {
            "members": summaries,
            "totals": {
                "members": len(summaries),
                "members_with_debt": len([s for s in summaries if s["total_debt"] > 0]),
                "total_debt": money(sum(to_decimal(s["total_debt"]) for s in summaries)),
                "total_paid": money(sum(to_decimal(s["total_paid"]) for s in summaries)),
            },
        }

    # -------------------------------------- consultas --------------------------------------
    def list_for_member(self, member_id: str) -> list[dict]:
        self._member(member_id)
        rows = self.store.filter("payments", member_id=member_id)
        return sorted(rows, key=lambda r: r.get("paid_at") or "", reverse=True)

    def list_for_credit(self, credit_id: str) -> list[dict]:
        self.credits.get(credit_id)
        return self.store.filter("payments", credit_id=credit_id)
