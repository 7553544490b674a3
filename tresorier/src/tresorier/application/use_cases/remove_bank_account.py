"""
Remove Bank Account use case.
"""

from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.domain.exceptions import ConflictError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import (
    ILockManager,
    account_key,
    bank_account_key,
)
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class RemoveBankAccount:
    """
    Delete a bank account.

    Business rules:
    - Refused while a withdrawal to the account is pending
    - If the removed account was primary, the newest remaining account
      is promoted
    """

    def __init__(self, uow: IUnitOfWork, locks: ILockManager):
        self.uow = uow
        self.locks = locks

    async def execute(self, owner_id: UUID, bank_account_id: UUID) -> None:
        """
        Execute remove.

        Raises:
            BankAccountNotFoundError: If missing or not owned
            ConflictError: If a pending withdrawal references the account
        """
        async with self.locks.hold_many(
            [account_key(owner_id), bank_account_key(bank_account_id)]
        ):
            # 1. Ownership
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id, for_update=True
            )

            # 2. Pending withdrawal guard
            if await self.uow.ledger.has_pending_withdrawal(bank_account_id):
                raise ConflictError(
                    "Bank account has a pending withdrawal and cannot be removed"
                )

            # 3. Delete attempt and account
            await self.uow.verifications.delete(bank_account_id)
            await self.uow.bank_accounts.delete(bank_account_id)

            # 4. Promote a successor
            if bank_account.is_primary:
                remaining = await self.uow.bank_accounts.list_by_owner(owner_id)
                if remaining:
                    await self.uow.bank_accounts.set_primary(owner_id, remaining[0].id)

            await self.uow.commit()

        logger.info(
            "Bank account removed",
            extra={"owner_id": str(owner_id), "bank_account_id": str(bank_account_id)},
        )
