"""Credit lifecycle and money arithmetic.

Amounts are handled as ``Decimal`` quantized to cents and stored as JSON
numbers; ``to_decimal`` goes through ``str`` so a stored float such as
``1150.0`` comes back as exactly ``Decimal("1150.0")``.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

CENTS = Decimal("0.01")

STATUS_REQUESTED = "requested"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_PAID = "paid"
CREDIT_STATUSES = (STATUS_REQUESTED, STATUS_APPROVED, STATUS_REJECTED, STATUS_PAID)

PAYMENT_PENDING = "pending"
PAYMENT_CONFIRMED = "confirmed"
PAYMENT_FAILED = "failed"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_CONFIRMED, PAYMENT_FAILED)

_TRANSITIONS = {
    STATUS_REQUESTED: {STATUS_APPROVED, STATUS_REJECTED},
    STATUS_APPROVED: {STATUS_PAID},
    STATUS_REJECTED: set(),
    STATUS_PAID: set(),
}


def to_decimal(value) -> Decimal:
    """Convert user or stored input to Decimal; raises ValueError when not numeric."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValueError(f"valor invalido: {value!r}")
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"valor invalido: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"valor invalido: {value!r}")
    return result


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def money(value) -> float:
    """Persistable form of an amount (JSON number, cent precision)."""
    return float(quantize(to_decimal(value)))


def compute_interest(amount, rate) -> tuple[Decimal, Decimal]:
    """Return ``(interest, total)`` with ``total == amount + interest`` at cent precision."""
    principal = quantize(to_decimal(amount))
    interest = quantize(principal * to_decimal(rate))
    return interest, principal + interest


def due_date(start: datetime, term_days: int) -> datetime:
    return start + timedelta(days=term_days)


def can_transition(current: str, target: str) -> bool:
    return target in _TRANSITIONS.get(current, set())


def sum_amounts(records: Iterable[dict]) -> Decimal:
    total = Decimal("0")
    for record in records:
        total += to_decimal(record.get("amount") or 0)
    return total


def confirmed_total(payments: Iterable[dict]) -> Decimal:
    return sum_amounts(p for p in payments if p.get("status") == PAYMENT_CONFIRMED)


def outstanding(credit: dict, payments: Iterable[dict]) -> Decimal:
    """Total payable minus confirmed payments for ``credit`` (never below zero)."""
    balance = to_decimal(credit.get("total") or 0) - confirmed_total(payments)
    return balance if balance > 0 else Decimal("0")
