"""
Balance Calculator - derives balances from the ledger.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import SubLedger
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.domain.services.i_balance_cache import IBalanceCache


class BalanceCalculator:
    """
    Derive wallet balance and available earnings for an account.

    Business rules:
    - Only COMPLETED entries count towards balances
    - Wallet balance = completed deposits + refunds - payments - withdrawals
    - Available earnings = completed session-completion credits minus
      completed withdrawals drawn from earnings
    - Withdrawable balance additionally subtracts pending debits, so funds
      are reserved the moment a withdrawal is requested

    Reads go through the optional cache. Locked paths (withdrawals,
    settlements) call with use_cache=False so the check runs against the
    store inside the current transaction.
    """

    def __init__(
        self,
        ledger_repository: ILedgerRepository,
        cache: Optional[IBalanceCache] = None,
    ):
        """
        Initialize calculator.

        Args:
            ledger_repository: Ledger store bound to the current transaction
            cache: Optional read-through balance cache
        """
        self.ledger_repository = ledger_repository
        self.cache = cache

    async def get_wallet_balance(self, account_id: UUID) -> Decimal:
        """Sum of completed signed entries."""
        return await self.ledger_repository.sum_completed(account_id)

    async def get_available_earnings(self, account_id: UUID) -> Decimal:
        """Completed earnings credits minus completed earnings withdrawals."""
        return await self.ledger_repository.sum_completed(
            account_id, sub_ledger=SubLedger.EARNINGS
        )

    async def get_snapshot(
        self, account_id: UUID, use_cache: bool = True
    ) -> BalanceSnapshot:
        """
        Compute all balances of an account.

        Args:
            account_id: Account to compute
            use_cache: Serve from and populate the cache

        Returns:
            BalanceSnapshot
        """
        if use_cache and self.cache is not None:
            cached = await self.cache.get(account_id)
            if cached is not None:
                return cached

        snapshot = BalanceSnapshot(
            account_id=account_id,
            wallet_balance=await self.get_wallet_balance(account_id),
            available_earnings=await self.get_available_earnings(account_id),
            pending_wallet_debits=await self.ledger_repository.sum_pending_debits(
                account_id, sub_ledger=SubLedger.WALLET
            ),
            pending_earnings_debits=await self.ledger_repository.sum_pending_debits(
                account_id, sub_ledger=SubLedger.EARNINGS
            ),
        )

        if use_cache and self.cache is not None:
            await self.cache.set(account_id, snapshot)

        return snapshot

    async def get_withdrawable_balance(
        self, account: Account, use_cache: bool = False
    ) -> Decimal:
        """Funds the account may withdraw right now."""
        snapshot = await self.get_snapshot(account.id, use_cache=use_cache)
        return snapshot.withdrawable(account.withdrawal_source)

    async def invalidate(self, *account_ids: UUID) -> None:
        """Drop cached balances after a committed mutation."""
        if self.cache is None:
            return
        for account_id in account_ids:
            await self.cache.invalidate(account_id)
