"""
Set Primary Bank Account use case.
"""

from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.domain.entities.bank_account import BankAccount
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import ILockManager, account_key


class SetPrimaryBankAccount:
    """
    Make one account the owner's default withdrawal destination.

    The clear and the set run in one transaction, so no reader ever sees
    zero or two primaries.
    """

    def __init__(self, uow: IUnitOfWork, locks: ILockManager):
        self.uow = uow
        self.locks = locks

    async def execute(self, owner_id: UUID, bank_account_id: UUID) -> BankAccount:
        """
        Execute set primary.

        Raises:
            BankAccountNotFoundError: If missing or not owned
        """
        async with self.locks.hold(account_key(owner_id)):
            await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id
            )
            await self.uow.bank_accounts.set_primary(owner_id, bank_account_id)
            await self.uow.commit()

            return await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id
            )
