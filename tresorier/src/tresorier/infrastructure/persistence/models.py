"""
SQLAlchemy models for Tresorier persistence.

Money columns hold signed integer paise.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tresorier.domain.value_objects import utc_now


class Base(DeclarativeBase):
    """Base class for all models."""


class WalletAccountModel(Base):
    """Per-account lock row. Ledger writers lock it FOR UPDATE."""

    __tablename__ = "wallet_accounts"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)


class LedgerEntryModel(Base):
    """Ledger entry database model (append-only)."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_entries_account_created", "account_id", "created_at"),
        Index("ix_ledger_entries_account_status", "account_id", "status"),
        Index(
            "ix_ledger_entries_pending_withdrawals",
            "created_at",
            postgresql_where=text("kind = 'withdrawal' AND status = 'pending'"),
            sqlite_where=text("kind = 'withdrawal' AND status = 'pending'"),
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    account_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    amount_minor: Mapped[int] = mapped_column(BigInteger, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    sub_ledger: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    related_booking_id: Mapped[str | None] = mapped_column(String(100))
    reference: Mapped[str | None] = mapped_column(String(120), unique=True)
    bank_account_id: Mapped[UUID | None] = mapped_column(Uuid, index=True)
    entry_metadata: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)


class BankAccountModel(Base):
    """Bank account database model."""

    __tablename__ = "bank_accounts"
    __table_args__ = (
        Index(
            "uq_bank_accounts_one_primary",
            "owner_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary"),
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    owner_id: Mapped[UUID] = mapped_column(Uuid, index=True, nullable=False)
    bank_name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_holder_name: Mapped[str] = mapped_column(String(150), nullable=False)
    account_number: Mapped[str] = mapped_column(String(18), nullable=False)
    ifsc_code: Mapped[str] = mapped_column(String(11), nullable=False)
    account_type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    verification_method: Mapped[str] = mapped_column(
        String(20), default="none", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime)


class VerificationAttemptModel(Base):
    """Live verification attempt (one per bank account)."""

    __tablename__ = "verification_attempts"

    bank_account_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bank_accounts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    code_hash: Mapped[str | None] = mapped_column(String(128))
    expected_amount_minor: Mapped[int | None] = mapped_column(BigInteger)
    reference_id: Mapped[str | None] = mapped_column(String(120))
    destination_hint: Mapped[str | None] = mapped_column(String(120))
    amount_entered_at: Mapped[datetime | None] = mapped_column(DateTime)
    attempts_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)
