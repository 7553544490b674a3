"""
Unit tests for BalanceCalculator.

Tests that only completed entries count, that pending debits reserve
funds, and that the cache is served and invalidated.

Usage:
    python -m pytest tresorier/tests/unit/domain/test_balance_calculator.py
"""

from decimal import Decimal
from uuid import uuid4

from tests.base import TresorierTest
from tests.helpers.fakes import InMemoryLedgerRepository, InMemoryStore
from tresorier.domain.entities.account import Account, AccountRole
from tresorier.domain.entities.ledger_entry import (
    EARNINGS_TYPE_KEY,
    SESSION_COMPLETION,
    SOURCE_KEY,
    EntryKind,
    EntryStatus,
    LedgerEntry,
)
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.infrastructure.cache.memory_balance_cache import MemoryBalanceCache


class TestBalanceCalculator(TresorierTest):
    """Unit tests for balance derivation."""

    component_name = "tresorier"
    test_category = "unit"

    def setup_test(self):
        self.repository = InMemoryLedgerRepository(InMemoryStore())
        self.account_id = uuid4()

    # ================================================================
    # Helper Methods
    # ================================================================

    async def _append(self, amount: str, kind: EntryKind, **kwargs) -> LedgerEntry:
        if kind == EntryKind.WITHDRAWAL:
            kwargs.setdefault("bank_account_id", uuid4())
        return await self.repository.append(
            LedgerEntry(
                account_id=self.account_id,
                amount=Decimal(amount),
                kind=kind,
                **kwargs,
            )
        )

    # ================================================================
    # Test Methods
    # ================================================================

    async def test_empty_account(self):
        """Test an account without entries has zero balances."""
        self.reporter.info("Testing empty account", context="Test")

        snapshot = await BalanceCalculator(self.repository).get_snapshot(
            self.account_id
        )

        assert snapshot.wallet_balance == Decimal("0.00")
        assert snapshot.available_earnings == Decimal("0.00")
        assert snapshot.total_pending_debits == Decimal("0.00")

    async def test_only_completed_entries_count(self):
        """Test pending and failed entries leave the wallet balance alone."""
        await self._append("500", EntryKind.DEPOSIT)
        await self._append("50", EntryKind.REFUND)
        await self._append("-100", EntryKind.PAYMENT, status=EntryStatus.COMPLETED)
        await self._append("-200", EntryKind.WITHDRAWAL)
        await self._append("-75", EntryKind.WITHDRAWAL, status=EntryStatus.FAILED)

        calculator = BalanceCalculator(self.repository)

        assert await calculator.get_wallet_balance(self.account_id) == Decimal(
            "450.00"
        )

    async def test_pending_withdrawal_reserves_funds(self):
        """Test withdrawable balance subtracts pending debits."""
        await self._append("450", EntryKind.DEPOSIT)
        await self._append("-200", EntryKind.WITHDRAWAL)

        customer = Account(id=self.account_id)
        calculator = BalanceCalculator(self.repository)

        withdrawable = await calculator.get_withdrawable_balance(customer)
        snapshot = await calculator.get_snapshot(self.account_id)

        assert withdrawable == Decimal("250.00")
        assert snapshot.wallet_balance == Decimal("450.00")
        assert snapshot.pending_wallet_debits == Decimal("-200.00")

    async def test_designer_withdraws_from_earnings(self):
        """Test designers can only withdraw session earnings."""
        await self._append("1000", EntryKind.DEPOSIT)
        await self._append(
            "300",
            EntryKind.DEPOSIT,
            metadata={EARNINGS_TYPE_KEY: SESSION_COMPLETION},
        )
        await self._append(
            "-100",
            EntryKind.WITHDRAWAL,
            status=EntryStatus.COMPLETED,
            metadata={SOURCE_KEY: "earnings"},
        )
        await self._append(
            "-50", EntryKind.WITHDRAWAL, metadata={SOURCE_KEY: "earnings"}
        )

        designer = Account(id=self.account_id, role=AccountRole.DESIGNER)
        calculator = BalanceCalculator(self.repository)
        snapshot = await calculator.get_snapshot(self.account_id)

        assert snapshot.available_earnings == Decimal("200.00")
        assert snapshot.wallet_balance == Decimal("1200.00")
        assert await calculator.get_withdrawable_balance(designer) == Decimal(
            "150.00"
        )

    async def test_cache_served_until_invalidated(self):
        """Test cached snapshot is returned until invalidate."""
        cache = MemoryBalanceCache(ttl_seconds=60)
        calculator = BalanceCalculator(self.repository, cache)

        await self._append("100", EntryKind.DEPOSIT)
        first = await calculator.get_snapshot(self.account_id)

        await self._append("50", EntryKind.DEPOSIT)
        cached = await calculator.get_snapshot(self.account_id)
        fresh = await calculator.get_snapshot(self.account_id, use_cache=False)

        assert first.wallet_balance == Decimal("100.00")
        assert cached.wallet_balance == Decimal("100.00")
        assert fresh.wallet_balance == Decimal("150.00")

        await calculator.invalidate(self.account_id)
        assert (await calculator.get_snapshot(self.account_id)).wallet_balance == (
            Decimal("150.00")
        )

    def test_snapshot_round_trip(self):
        """Test cache serialization keeps every field."""
        snapshot = BalanceSnapshot(
            account_id=self.account_id,
            wallet_balance=Decimal("10.50"),
            available_earnings=Decimal("3.00"),
            pending_wallet_debits=Decimal("-1.00"),
        )

        assert BalanceSnapshot.from_dict(snapshot.to_dict()) == snapshot


if __name__ == "__main__":
    TestBalanceCalculator.run_as_main()
