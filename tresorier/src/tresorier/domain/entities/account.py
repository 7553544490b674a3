"""
Account identity - the authenticated caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from tresorier.domain.entities.ledger_entry import SubLedger


class AccountRole(str, Enum):
    """Marketplace roles."""

    CUSTOMER = "customer"
    DESIGNER = "designer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Account:
    """
    Authenticated account as supplied by the auth provider.

    Business rules:
    - Identity comes from the bearer token, never from request bodies
    - Designers withdraw from earnings, everyone else from the wallet
    - Phone and email are OTP destinations from the identity claims
    """

    id: UUID
    role: AccountRole = AccountRole.CUSTOMER
    phone: Optional[str] = None
    email: Optional[str] = None

    @property
    def withdrawal_source(self) -> SubLedger:
        """Sub-ledger that funds this account's withdrawals."""
        if self.role == AccountRole.DESIGNER:
            return SubLedger.EARNINGS
        return SubLedger.WALLET

    @property
    def is_admin(self) -> bool:
        """True for back-office operators."""
        return self.role == AccountRole.ADMIN
