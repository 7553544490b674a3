"""
Integration tests for wallet use cases over the SQLAlchemy unit of work.

Each test runs use cases sequentially on one session, the way a single
request would.

Usage:
    python -m pytest tresorier/tests/integration/database/test_wallet_flows.py
"""

from decimal import Decimal

import pytest

from tests.base import TresorierTest
from tests.helpers.fakes import FakePayoutGateway, make_account, make_bank_account
from tresorier.application.use_cases import (
    GetBalances,
    RecordDeposit,
    RequestWithdrawal,
)
from tresorier.domain.entities.ledger_entry import EntryStatus
from tresorier.domain.exceptions import GatewayDeclinedError, InsufficientBalanceError
from tresorier.domain.services.i_payout_gateway import PayoutStatus
from tresorier.infrastructure.concurrency.keyed_lock_manager import KeyedLockManager
from tresorier.infrastructure.event_bus.logging_event_publisher import (
    LoggingEventPublisher,
)
from tresorier.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork


class TestWalletFlows(TresorierTest):
    """Deposit and withdrawal flows against SQLite."""

    component_name = "tresorier"
    test_category = "integration"

    def setup_test(self):
        self.locks = KeyedLockManager()
        self.events = LoggingEventPublisher()
        self.account = make_account()

    # ================================================================
    # Helper Methods
    # ================================================================

    async def _fund(self, uow, amount: str, reference: str):
        return await RecordDeposit(uow, self.locks, self.events).execute(
            self.account.id, amount, reference
        )

    async def _verified_bank_account(self, uow):
        bank_account = make_bank_account(self.account.id, verified=True)
        bank_account.is_primary = True
        await uow.bank_accounts.create(bank_account)
        await uow.commit()
        return bank_account

    def _withdraw(self, uow, gateway):
        return RequestWithdrawal(uow, self.locks, gateway, self.events)

    # ================================================================
    # Test Methods
    # ================================================================

    async def test_deposit_is_idempotent(self, db_session):
        """Test a replayed gateway reference returns the original entry."""
        self.reporter.info("Testing deposit replay on SQL", context="Test")

        uow = SqlAlchemyUnitOfWork(db_session)

        first = await self._fund(uow, "250.00", "pay_sql_1")
        again = await self._fund(uow, "250.00", "pay_sql_1")
        balances = await GetBalances(uow.ledger).execute(self.account)

        assert not first.duplicate
        assert again.duplicate
        assert again.entry.id == first.entry.id
        assert balances.wallet_balance == Decimal("250.00")

    async def test_withdrawal_completes(self, db_session):
        """Test a processed payout leaves a completed debit."""
        uow = SqlAlchemyUnitOfWork(db_session)
        gateway = FakePayoutGateway()
        await self._fund(uow, "1000.00", "pay_sql_2")
        bank_account = await self._verified_bank_account(uow)

        result = await self._withdraw(uow, gateway).execute(
            self.account, "400.00", bank_account.id, idempotency_key="w-1"
        )
        replay = await self._withdraw(uow, gateway).execute(
            self.account, "400.00", bank_account.id, idempotency_key="w-1"
        )
        balances = await GetBalances(uow.ledger).execute(self.account)

        assert result.entry.status == EntryStatus.COMPLETED
        assert result.entry.metadata["payout_id"] == "pout_test_0001"
        assert replay.replayed
        assert replay.entry.id == result.entry.id
        assert len(gateway.requests) == 1
        assert balances.wallet_balance == Decimal("600.00")
        assert balances.pending_withdrawals == Decimal("0.00")

    async def test_processing_payout_reserves_funds(self, db_session):
        """Test an accepted payout keeps the amount out of reach."""
        uow = SqlAlchemyUnitOfWork(db_session)
        gateway = FakePayoutGateway(status=PayoutStatus.PROCESSING)
        await self._fund(uow, "300.00", "pay_sql_3")
        bank_account = await self._verified_bank_account(uow)

        await self._withdraw(uow, gateway).execute(
            self.account, "200.00", bank_account.id
        )

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await self._withdraw(uow, gateway).execute(
                self.account, "200.00", bank_account.id
            )

        assert exc_info.value.available == Decimal("100.00")
        assert await uow.ledger.has_pending_withdrawal(bank_account.id)

    async def test_declined_payout_releases_funds(self, db_session):
        """Test a decline fails the reservation and restores the balance."""
        uow = SqlAlchemyUnitOfWork(db_session)
        gateway = FakePayoutGateway(error=GatewayDeclinedError("Invalid IFSC", 400))
        await self._fund(uow, "500.00", "pay_sql_4")
        bank_account = await self._verified_bank_account(uow)

        with pytest.raises(GatewayDeclinedError):
            await self._withdraw(uow, gateway).execute(
                self.account, "500.00", bank_account.id
            )

        balances = await GetBalances(uow.ledger).execute(self.account)
        history = await uow.ledger.list_by_account(self.account.id)

        assert balances.withdrawable_balance == Decimal("500.00")
        assert history[0].status == EntryStatus.FAILED
        assert history[0].metadata["failure_reason"] == "Invalid IFSC"


if __name__ == "__main__":
    TestWalletFlows.run_as_main()
