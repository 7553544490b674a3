"""
Ownership checks shared by bank account use cases.
"""

from uuid import UUID

from tresorier.domain.entities.bank_account import BankAccount
from tresorier.domain.exceptions import BankAccountNotFoundError
from tresorier.domain.repositories.i_bank_account_repository import (
    IBankAccountRepository,
)


async def load_owned_bank_account(
    repository: IBankAccountRepository,
    owner_id: UUID,
    bank_account_id: UUID,
    for_update: bool = False,
) -> BankAccount:
    """
    Fetch a bank account that belongs to owner_id.

    Someone else's account is reported exactly like a missing one.

    Raises:
        BankAccountNotFoundError: Missing or not owned
    """
    bank_account = await repository.get_by_id(bank_account_id, for_update=for_update)
    if bank_account is None or bank_account.owner_id != owner_id:
        raise BankAccountNotFoundError(str(bank_account_id))
    return bank_account
