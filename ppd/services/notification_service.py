"""Member-facing notifications written after credit and payment events."""
from __future__ import annotations

from ppd.repositories.base import RecordStore, isoformat, utcnow

KIND_CREDIT_DECISION = "credit_decision"
KIND_CREDIT_CREATED = "credit_created"
KIND_PAYMENT_CONFIRMED = "payment_confirmed"
KIND_PAYMENT_FAILED = "payment_failed"
KIND_MONTHLY_PAYMENT = "monthly_payment"
KIND_PAYMENT_REGISTERED = "payment_registered"


def format_amount(value) -> str:
    return f"AOA {float(value):,.2f}"


class NotificationService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def notify(self, member_id: str, kind: str, description: str, *, status: str = "approved", response: str | None = None) -> dict:
        return self.store.create(
            "notifications",
            {
                "member_id": member_id,
                "kind": kind,
                "description": description,
                "status": status,
                "response": response,
                "responded_at": isoformat(utcnow()),
            },
        )

    def list_for_member(self, member_id: str) -> list[dict]:
        rows = self.store.filter("notifications", member_id=member_id)
        return sorted(rows, key=lambda r: r.get("created_at") or "", reverse=True)
