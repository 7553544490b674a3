"""Create wallet, ledger and bank account schema

Revision ID: 3b9e2c71a4d0
Revises:
Create Date: 2026-10-12 11:04:32.418905+00:00

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b9e2c71a4d0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema with constraints and indexes."""

    # =================================================================
    # TABLE: wallet_accounts
    # =================================================================
    op.create_table(
        "wallet_accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    # =================================================================
    # TABLE: ledger_entries
    # =================================================================
    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("amount_minor", sa.BigInteger(), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("sub_ledger", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("related_booking_id", sa.String(length=100), nullable=True),
        sa.Column("reference", sa.String(length=120), nullable=True),
        sa.Column("bank_account_id", sa.Uuid(), nullable=True),
        sa.Column("entry_metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reference"),
        sa.CheckConstraint("amount_minor <> 0", name="ledger_amount_not_zero"),
        sa.CheckConstraint(
            "kind IN ('deposit', 'payment', 'refund', 'withdrawal')",
            name="valid_entry_kind",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name="valid_entry_status",
        ),
        sa.CheckConstraint(
            "sub_ledger IN ('wallet', 'earnings')",
            name="valid_sub_ledger",
        ),
        # Credits positive, debits negative
        sa.CheckConstraint(
            "(kind IN ('deposit', 'refund') AND amount_minor > 0) "
            "OR (kind IN ('payment', 'withdrawal') AND amount_minor < 0)",
            name="amount_sign_matches_kind",
        ),
        sa.CheckConstraint(
            "kind <> 'withdrawal' OR bank_account_id IS NOT NULL",
            name="withdrawal_has_bank_account",
        ),
    )
    op.create_index(
        "ix_ledger_entries_account_created",
        "ledger_entries",
        ["account_id", "created_at"],
        unique=False,
    )
    op.create_index(
        "ix_ledger_entries_account_status",
        "ledger_entries",
        ["account_id", "status"],
        unique=False,
    )
    op.create_index(
        op.f("ix_ledger_entries_bank_account_id"),
        "ledger_entries",
        ["bank_account_id"],
        unique=False,
    )
    # Operator queue
    op.create_index(
        "ix_ledger_entries_pending_withdrawals",
        "ledger_entries",
        ["created_at"],
        unique=False,
        postgresql_where=sa.text("kind = 'withdrawal' AND status = 'pending'"),
    )

    # =================================================================
    # TABLE: bank_accounts
    # =================================================================
    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("bank_name", sa.String(length=100), nullable=False),
        sa.Column("account_holder_name", sa.String(length=150), nullable=False),
        sa.Column("account_number", sa.String(length=18), nullable=False),
        sa.Column("ifsc_code", sa.String(length=11), nullable=False),
        sa.Column("account_type", sa.String(length=20), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("verification_method", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "account_type IN ('savings', 'current', 'salary')",
            name="valid_account_type",
        ),
        sa.CheckConstraint(
            "verification_method IN "
            "('sms', 'email', 'bank_api', 'micro_deposit', 'none')",
            name="valid_verification_method",
        ),
        sa.CheckConstraint(
            "is_verified = (verification_method <> 'none')",
            name="verified_has_method",
        ),
    )
    op.create_index(
        op.f("ix_bank_accounts_owner_id"),
        "bank_accounts",
        ["owner_id"],
        unique=False,
    )
    # One primary account per owner
    op.create_index(
        "uq_bank_accounts_one_primary",
        "bank_accounts",
        ["owner_id"],
        unique=True,
        postgresql_where=sa.text("is_primary"),
    )

    # =================================================================
    # TABLE: verification_attempts
    # =================================================================
    op.create_table(
        "verification_attempts",
        sa.Column("bank_account_id", sa.Uuid(), nullable=False),
        sa.Column("method", sa.String(length=20), nullable=False),
        sa.Column("code_hash", sa.String(length=128), nullable=True),
        sa.Column("expected_amount_minor", sa.BigInteger(), nullable=True),
        sa.Column("reference_id", sa.String(length=120), nullable=True),
        sa.Column("destination_hint", sa.String(length=120), nullable=True),
        sa.Column("amount_entered_at", sa.DateTime(), nullable=True),
        sa.Column("attempts_remaining", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["bank_account_id"], ["bank_accounts.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("bank_account_id"),
        sa.CheckConstraint(
            "attempts_remaining >= 0", name="attempts_not_negative"
        ),
        sa.CheckConstraint(
            "method IN ('sms', 'email', 'micro_deposit')",
            name="valid_attempt_method",
        ),
    )
    op.create_index(
        op.f("ix_verification_attempts_expires_at"),
        "verification_attempts",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    """
    Drop the wallet schema.

    WARNING: This permanently deletes the ledger.
    """
    op.drop_index(
        op.f("ix_verification_attempts_expires_at"),
        table_name="verification_attempts",
    )
    op.drop_table("verification_attempts")

    op.drop_index("uq_bank_accounts_one_primary", table_name="bank_accounts")
    op.drop_index(op.f("ix_bank_accounts_owner_id"), table_name="bank_accounts")
    op.drop_table("bank_accounts")

    op.drop_index(
        "ix_ledger_entries_pending_withdrawals", table_name="ledger_entries"
    )
    op.drop_index(
        op.f("ix_ledger_entries_bank_account_id"), table_name="ledger_entries"
    )
    op.drop_index("ix_ledger_entries_account_status", table_name="ledger_entries")
    op.drop_index("ix_ledger_entries_account_created", table_name="ledger_entries")
    op.drop_table("ledger_entries")

    op.drop_table("wallet_accounts")
