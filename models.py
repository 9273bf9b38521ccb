# models.py
# Role: SQLAlchemy ORM models for the finance dashboard domain.
#       Transactions are the normalized ledger produced by the CSV import pipeline;
#       the remaining tables hold statements, team/payroll data, rules and categories.

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Transaction(Base):
    """
    ORM model representing a single normalized transaction.

    Rows are created only by the import pipeline (batch insert). After creation
    only `category` is ever updated. `amount` is always in the reporting
    currency (USD); `original_amount` / `original_currency` are filled only
    when the statement was in another currency.
    """

    __tablename__ = "transactions"

    # Opaque id generated at import time
    id = Column(String(36), primary_key=True, default=_new_id)

    # Economic date of the transaction (not the import date)
    date = Column(Date, nullable=False, index=True)

    # Cleaned, human-readable label
    description = Column(String(100), nullable=False)

    # Raw description / bank reference, kept for audit and rule matching
    reference = Column(Text, nullable=True)

    # Provider name detected from the CSV header ("Relay", "Revolut", "Mercury", "Imported")
    bank = Column(String, nullable=False, index=True)

    # Original currency code of the statement row
    account = Column(String, nullable=True)

    # "income" | "expense" | "internal"
    type = Column(String(16), nullable=False, index=True)

    category = Column(String, nullable=False, default="Other")

    # Signed amount in reporting currency
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    original_amount = Column(Float, nullable=True)
    original_currency = Column(String(8), nullable=True)

    # "Mon YYYY" label assigned at import time
    period = Column(String(16), nullable=True, index=True)

    # Extended, dialect-specific fields (display only)
    payee = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    transaction_type = Column(String, nullable=True)
    status = Column(String, nullable=True)
    balance = Column(Float, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
            "reference": self.reference,
            "bank": self.bank,
            "account": self.account,
            "type": self.type,
            "category": self.category,
            "amount": self.amount,
            "currency": self.currency,
            "original_amount": self.original_amount,
            "original_currency": self.original_currency,
            "period": self.period,
            "payee": self.payee,
            "account_number": self.account_number,
            "transaction_type": self.transaction_type,
            "status": self.status,
            "balance": self.balance,
        }


class Statement(Base):
    """One confirmed upload (one or more CSV files for a period)."""

    __tablename__ = "statements"

    id = Column(String(36), primary_key=True, default=_new_id)
    filename = Column(String, nullable=False)
    bank = Column(String, nullable=False)
    period = Column(String(16), nullable=True, index=True)
    transactions_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "bank": self.bank,
            "period": self.period,
            "transactions_count": self.transactions_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    base_salary = Column(Float, nullable=False, default=0.0)

    # External account number used to recognize outgoing payroll transfers
    beneficiary_account = Column(String, nullable=True)

    compensation = relationship(
        "Compensation",
        back_populates="member",
        cascade="all, delete-orphan",
    )

    def compensation_map(self) -> dict:
        return {
            c.period: {"variable": c.variable_amount, "note": c.note or ""}
            for c in self.compensation
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "base_salary": self.base_salary,
            "beneficiary_account": self.beneficiary_account,
            "compensation": self.compensation_map(),
        }


class Compensation(Base):
    """Variable pay for one member in one period ("Mon YYYY")."""

    __tablename__ = "compensation"
    __table_args__ = (UniqueConstraint("member_id", "period"),)

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(String(36), ForeignKey("team_members.id"), nullable=False)
    period = Column(String(16), nullable=False)
    variable_amount = Column(Float, nullable=False, default=0.0)
    note = Column(Text, nullable=True)

    member = relationship("TeamMember", back_populates="compensation")


class CategorizationRule(Base):
    """
    User-defined keyword rule.

    `keyword` is stored lower-cased and trimmed. Higher `priority` is evaluated
    first; new rules get the next priority, so the latest rule wins.
    """

    __tablename__ = "categorization_rules"

    id = Column(String(36), primary_key=True, default=_new_id)
    keyword = Column(String, nullable=False)
    category = Column(String, nullable=False)

    # "contains" | "starts_with" | "exact"
    match_type = Column(String(16), nullable=False, default="contains")

    priority = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "keyword": self.keyword,
            "category": self.category,
            "match_type": self.match_type,
            "priority": self.priority,
        }


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, unique=True)
    color = Column(String, nullable=False, default="zinc")

    # Built-in categories are hidden instead of deleted
    is_default = Column(Boolean, nullable=False, default=False)
    hidden = Column(Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "is_default": self.is_default,
        }
