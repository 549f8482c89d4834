"""SQLAlchemy tables mirroring the JSON store collections.

Column names equal the record keys so rows convert to the same dicts the
JSON store returns. Timestamps stay ISO-8601 strings for that reason, and
references between tables are plain columns (no foreign keys).
"""
from __future__ import annotations

from sqlalchemy import Boolean, Column, Float, String, Text

from .session import Base

_TS = 40


class Member(Base):
    __tablename__ = "members"

    id = Column(String(64), primary_key=True)
    consumer_code = Column(String(32), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True, nullable=True)
    password_hash = Column(Text, nullable=False)
    phone = Column(String(64), nullable=True)
    document = Column(String(64), index=True, nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    zip_code = Column(String(32), nullable=True)
    birth_date = Column(String(32), nullable=True)
    is_member = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(String(_TS), nullable=False)
    updated_at = Column(String(_TS), nullable=False)


class Credit(Base):
    __tablename__ = "credits"

    id = Column(String(64), primary_key=True)
    member_id = Column(String(64), index=True, nullable=False)
    amount = Column(Float, nullable=False)
    interest_rate = Column(Float, nullable=False)
    interest = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(String(16), default="requested", nullable=False)
    description = Column(Text, nullable=True)
    requested_at = Column(String(_TS), nullable=True)
    approved_at = Column(String(_TS), nullable=True)
    decided_at = Column(String(_TS), nullable=True)
    paid_at = Column(String(_TS), nullable=True)
    due_date = Column(String(_TS), nullable=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(String(_TS), nullable=False)
    updated_at = Column(String(_TS), nullable=False)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(64), primary_key=True)
    member_id = Column(String(64), index=True, nullable=False)
    credit_id = Column(String(64), index=True, nullable=True)
    amount = Column(Float, nullable=False)
    method = Column(String(32), nullable=True)
    status = Column(String(16), default="pending", nullable=False)
    description = Column(Text, nullable=True)
    paid_at = Column(String(_TS), nullable=True)
    confirmed_at = Column(String(_TS), nullable=True)
    created_at = Column(String(_TS), nullable=False)
    updated_at = Column(String(_TS), nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(64), primary_key=True)
    member_id = Column(String(64), index=True, nullable=False)
    kind = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=True)
    response = Column(Text, nullable=True)
    responded_at = Column(String(_TS), nullable=True)
    created_at = Column(String(_TS), nullable=False)
    updated_at = Column(String(_TS), nullable=False)


class Setting(Base):
    __tablename__ = "settings"

    id = Column(String(64), primary_key=True)
    key = Column(String(64), unique=True, nullable=False)
    value = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(String(_TS), nullable=False)
    updated_at = Column(String(_TS), nullable=False)


MODELS = {
    "members": Member,
    "credits": Credit,
    "payments": Payment,
    "notifications": Notification,
    "settings": Setting,
}
