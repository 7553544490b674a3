"""
Update Bank Account use case.
"""

from typing import Optional
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.domain.entities.bank_account import AccountType, BankAccount
from tresorier.domain.exceptions import ConflictError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import (
    ILockManager,
    account_key,
    bank_account_key,
)
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class UpdateBankAccount:
    """
    Edit bank account details.

    Business rules:
    - Changing account number or IFSC drops verification and discards any
      live verification attempt
    - Routing cannot change while a withdrawal to the account is pending
    - Runs under the owner lock so a withdrawal cannot reserve against
      the old routing while it changes
    """

    def __init__(self, uow: IUnitOfWork, locks: ILockManager):
        self.uow = uow
        self.locks = locks

    async def execute(
        self,
        owner_id: UUID,
        bank_account_id: UUID,
        bank_name: Optional[str] = None,
        account_holder_name: Optional[str] = None,
        account_number: Optional[str] = None,
        ifsc_code: Optional[str] = None,
        account_type: Optional[AccountType | str] = None,
    ) -> BankAccount:
        """
        Execute update.

        Raises:
            BankAccountNotFoundError: If missing or not owned
            ValidationError: If a new value is malformed
            ConflictError: If routing changes under a pending withdrawal
        """
        async with self.locks.hold_many(
            [account_key(owner_id), bank_account_key(bank_account_id)]
        ):
            # 1. Load with row lock
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id, for_update=True
            )

            # 2. Apply edits (entity validates and resets verification)
            routing_changed = bank_account.update_details(
                bank_name=bank_name,
                account_holder_name=account_holder_name,
                account_number=account_number,
                ifsc_code=ifsc_code,
                account_type=AccountType(account_type) if account_type else None,
            )

            if routing_changed:
                if await self.uow.ledger.has_pending_withdrawal(bank_account_id):
                    raise ConflictError(
                        "Bank account has a pending withdrawal; "
                        "routing details cannot change"
                    )
                # 3. Stale codes and amounts must not verify the new details
                await self.uow.verifications.delete(bank_account_id)

            # 4. Persist
            updated = await self.uow.bank_accounts.update(bank_account)
            await self.uow.commit()

        if routing_changed:
            logger.info(
                "Bank account routing changed, verification reset",
                extra={"bank_account_id": str(bank_account_id)},
            )
        return updated
