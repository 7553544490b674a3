"""
Get Balances use case.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from tresorier.domain.entities.account import Account
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.value_objects import CURRENCY


@dataclass
class BalancesResult:
    """
    Balances shown on the wallet screen.

    Attributes:
        wallet_balance: Completed entries only
        available_earnings: Completed earnings credits minus earnings
            withdrawals
        withdrawable_balance: Source balance minus pending holds
        pending_withdrawals: Funds reserved by pending withdrawals (positive)
        currency: ISO currency code
    """

    wallet_balance: Decimal
    available_earnings: Decimal
    withdrawable_balance: Decimal
    pending_withdrawals: Decimal
    currency: str = CURRENCY


class GetBalances:
    """Read-through balance query for the caller's account."""

    def __init__(
        self,
        ledger_repository: ILedgerRepository,
        balance_cache: Optional[IBalanceCache] = None,
    ):
        self.balance_calculator = BalanceCalculator(ledger_repository, balance_cache)

    async def execute(self, account: Account) -> BalancesResult:
        snapshot = await self.balance_calculator.get_snapshot(account.id)

        return BalancesResult(
            wallet_balance=snapshot.wallet_balance,
            available_earnings=snapshot.available_earnings,
            withdrawable_balance=snapshot.withdrawable(account.withdrawal_source),
            pending_withdrawals=abs(snapshot.total_pending_debits),
            currency=snapshot.currency,
        )
