"""
Add Bank Account use case.
"""

from uuid import UUID

from tresorier.domain.entities.bank_account import AccountType, BankAccount
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import ILockManager, account_key
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class AddBankAccount:
    """
    Register a withdrawal destination.

    Business rules:
    - New accounts are unverified
    - The owner's first account becomes primary automatically
    """

    def __init__(self, uow: IUnitOfWork, locks: ILockManager):
        """
        Initialize use case with dependencies.

        Args:
            uow: Unit of work for the request
            locks: Lock manager (serializes primary assignment per owner)
        """
        self.uow = uow
        self.locks = locks

    async def execute(
        self,
        owner_id: UUID,
        bank_name: str,
        account_holder_name: str,
        account_number: str,
        ifsc_code: str,
        account_type: AccountType | str = AccountType.SAVINGS,
    ) -> BankAccount:
        """
        Execute add.

        Returns:
            Created BankAccount

        Raises:
            ValidationError: If any field is malformed
        """
        # 1. Validate through the entity
        bank_account = BankAccount(
            owner_id=owner_id,
            bank_name=bank_name,
            account_holder_name=account_holder_name,
            account_number=account_number,
            ifsc_code=ifsc_code,
            account_type=account_type,
        )

        async with self.locks.hold(account_key(owner_id)):
            # 2. First account is primary
            existing = await self.uow.bank_accounts.count_by_owner(owner_id)
            bank_account.is_primary = existing == 0

            # 3. Persist
            created = await self.uow.bank_accounts.create(bank_account)
            await self.uow.commit()

        logger.info(
            "Bank account added",
            extra={
                "owner_id": str(owner_id),
                "bank_account_id": str(created.id),
                "last4": created.last4,
                "is_primary": created.is_primary,
            },
        )
        return created
