"""
BalanceSnapshot - derived balances of one account at one instant.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from tresorier.domain.entities.ledger_entry import SubLedger
from tresorier.domain.value_objects import CURRENCY


@dataclass(frozen=True)
class BalanceSnapshot:
    """
    Balances computed from completed entries plus pending holds.

    pending_* values are zero or negative (outstanding debits).
    """

    account_id: UUID
    wallet_balance: Decimal
    available_earnings: Decimal
    pending_wallet_debits: Decimal = Decimal("0.00")
    pending_earnings_debits: Decimal = Decimal("0.00")
    currency: str = CURRENCY

    def withdrawable(self, source: SubLedger) -> Decimal:
        """Base balance of the source minus funds reserved by pending debits."""
        if source == SubLedger.EARNINGS:
            return self.available_earnings + self.pending_earnings_debits
        # Wallet balance spans both sub-ledgers, so every hold applies
        return self.wallet_balance + self.total_pending_debits

    @property
    def total_pending_debits(self) -> Decimal:
        """All outstanding debits."""
        return self.pending_wallet_debits + self.pending_earnings_debits

    def to_dict(self) -> dict:
        """Convert to JSON-friendly dict."""
        return {
            "account_id": str(self.account_id),
            "wallet_balance": str(self.wallet_balance),
            "available_earnings": str(self.available_earnings),
            "pending_wallet_debits": str(self.pending_wallet_debits),
            "pending_earnings_debits": str(self.pending_earnings_debits),
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BalanceSnapshot":
        """Rebuild from to_dict() output."""
        return cls(
            account_id=UUID(data["account_id"]),
            wallet_balance=Decimal(data["wallet_balance"]),
            available_earnings=Decimal(data["available_earnings"]),
            pending_wallet_debits=Decimal(data["pending_wallet_debits"]),
            pending_earnings_debits=Decimal(data["pending_earnings_debits"]),
            currency=data.get("currency", CURRENCY),
        )
