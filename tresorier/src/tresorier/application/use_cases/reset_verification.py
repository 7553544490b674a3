"""
Reset Verification use case.
"""

from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import ILockManager, bank_account_key
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class ResetVerification:
    """Discard any live attempt so a stale code or amount can never succeed."""

    def __init__(self, uow: IUnitOfWork, locks: ILockManager):
        self.uow = uow
        self.locks = locks

    async def execute(self, owner_id: UUID, bank_account_id: UUID) -> bool:
        """
        Execute reset.

        Returns:
            True if an attempt was discarded

        Raises:
            BankAccountNotFoundError: Missing or not owned
        """
        async with self.locks.hold(bank_account_key(bank_account_id)):
            await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id, for_update=True
            )
            removed = await self.uow.verifications.delete(bank_account_id)
            await self.uow.commit()

        if removed:
            logger.info(
                "Verification reset", extra={"bank_account_id": str(bank_account_id)}
            )
        return removed
