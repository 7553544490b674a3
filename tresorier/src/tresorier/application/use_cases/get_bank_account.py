"""
Get / List Bank Accounts use cases.
"""

from typing import List
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.domain.entities.bank_account import BankAccount
from tresorier.domain.repositories.i_bank_account_repository import (
    IBankAccountRepository,
)


class GetBankAccount:
    """Fetch one of the caller's bank accounts."""

    def __init__(self, bank_account_repository: IBankAccountRepository):
        self.bank_account_repository = bank_account_repository

    async def execute(self, owner_id: UUID, bank_account_id: UUID) -> BankAccount:
        return await load_owned_bank_account(
            self.bank_account_repository, owner_id, bank_account_id
        )


class ListBankAccounts:
    """Caller's bank accounts, primary first then newest first."""

    def __init__(self, bank_account_repository: IBankAccountRepository):
        self.bank_account_repository = bank_account_repository

    async def execute(self, owner_id: UUID) -> List[BankAccount]:
        return await self.bank_account_repository.list_by_owner(owner_id)
