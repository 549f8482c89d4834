"""Request bodies accepted by the JSON API.

Only shape and types are checked here; business rules (lengths, limits,
uniqueness) stay in the services so the CLI gets the same answers.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegisterRequest(BaseModel):
    name: str
    password: str
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    birth_date: Optional[str] = None
    consumer_code: Optional[str] = None
    is_member: bool = False


class LoginRequest(BaseModel):
    consumer_code: str = ""
    password: str = ""


class MemberUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    admin_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    birth_date: Optional[str] = None
    is_member: Optional[bool] = None
    is_admin: Optional[bool] = None
    is_active: Optional[bool] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"admin_id"})


class CreditRequest(BaseModel):
    member_id: str
    amount: Decimal
    description: Optional[str] = None


class CreditDecision(BaseModel):
    admin_id: str
    credit_id: str
    action: Literal["approve", "reject"]

    @field_validator("action", mode="before")
    @classmethod
    def lower_action(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class AdminCreditCreate(BaseModel):
    admin_id: str
    member_id: str
    amount: Decimal
    description: Optional[str] = None


class PaymentCreate(BaseModel):
    member_id: str
    credit_id: str
    amount: Decimal
    method: Optional[str] = None
    description: Optional[str] = None


class PaymentAction(BaseModel):
    admin_id: str
    payment_id: str


class MonthlyPaymentCreate(BaseModel):
    member_id: str
    amount: Decimal
    description: Optional[str] = None
    admin_id: Optional[str] = None


class SettingUpdate(BaseModel):
    admin_id: str
    value: str = Field(..., max_length=255)
    description: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def stringify(cls, v):
        return str(v) if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool) else v


class DebugAction(BaseModel):
    admin_id: str
    action: Literal["stats", "backup", "reset"]
