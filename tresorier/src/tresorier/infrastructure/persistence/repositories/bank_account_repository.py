"""
BankAccount repository implementation using SQLAlchemy.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tresorier.domain.entities.bank_account import (
    AccountType,
    BankAccount,
    VerificationMethod,
)
from tresorier.domain.exceptions import BankAccountNotFoundError
from tresorier.domain.repositories.i_bank_account_repository import (
    IBankAccountRepository,
)
from tresorier.domain.value_objects import utc_now
from tresorier.infrastructure.persistence.models import BankAccountModel


class BankAccountRepository(IBankAccountRepository):
    """
    SQLAlchemy implementation of bank account repository.

    The one-primary-per-owner rule is backed by a partial unique index.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create(self, bank_account: BankAccount) -> BankAccount:
        """Insert a new bank account."""
        model = BankAccountModel(
            id=bank_account.id,
            owner_id=bank_account.owner_id,
            bank_name=bank_account.bank_name,
            account_holder_name=bank_account.account_holder_name,
            account_number=bank_account.account_number,
            ifsc_code=bank_account.ifsc_code,
            account_type=bank_account.account_type.value,
            is_verified=bank_account.is_verified,
            is_primary=bank_account.is_primary,
            verification_method=bank_account.verification_method.value,
            created_at=bank_account.created_at,
            updated_at=bank_account.updated_at,
            verified_at=bank_account.verified_at,
        )

        self.session.add(model)
        await self.session.flush()

        return self._to_entity(model)

    async def get_by_id(
        self, bank_account_id: UUID, for_update: bool = False
    ) -> Optional[BankAccount]:
        """Retrieve bank account by ID."""
        stmt = select(BankAccountModel).where(BankAccountModel.id == bank_account_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def list_by_owner(self, owner_id: UUID) -> List[BankAccount]:
        """List owner's accounts, primary first then newest first."""
        stmt = (
            select(BankAccountModel)
            .where(BankAccountModel.owner_id == owner_id)
            .order_by(
                BankAccountModel.is_primary.desc(),
                BankAccountModel.created_at.desc(),
            )
        )
        result = await self.session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def count_by_owner(self, owner_id: UUID) -> int:
        """Count owner's accounts."""
        stmt = select(func.count(BankAccountModel.id)).where(
            BankAccountModel.owner_id == owner_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def update(self, bank_account: BankAccount) -> BankAccount:
        """
        Update mutable fields (primary flag is managed by set_primary).

        Raises:
            BankAccountNotFoundError: If account not found
        """
        stmt = select(BankAccountModel).where(BankAccountModel.id == bank_account.id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise BankAccountNotFoundError(str(bank_account.id))

        model.bank_name = bank_account.bank_name
        model.account_holder_name = bank_account.account_holder_name
        model.account_number = bank_account.account_number
        model.ifsc_code = bank_account.ifsc_code
        model.account_type = bank_account.account_type.value
        model.is_verified = bank_account.is_verified
        model.verification_method = bank_account.verification_method.value
        model.verified_at = bank_account.verified_at
        model.updated_at = bank_account.updated_at or utc_now()

        await self.session.flush()

        return self._to_entity(model)

    async def delete(self, bank_account_id: UUID) -> bool:
        """Delete bank account."""
        stmt = delete(BankAccountModel).where(BankAccountModel.id == bank_account_id)
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def set_primary(self, owner_id: UUID, bank_account_id: UUID) -> None:
        """Clear then set primary inside the caller's transaction."""
        now = utc_now()
        await self.session.execute(
            update(BankAccountModel)
            .where(
                BankAccountModel.owner_id == owner_id,
                BankAccountModel.is_primary.is_(True),
                BankAccountModel.id != bank_account_id,
            )
            .values(is_primary=False, updated_at=now)
        )
        result = await self.session.execute(
            update(BankAccountModel)
            .where(
                BankAccountModel.owner_id == owner_id,
                BankAccountModel.id == bank_account_id,
            )
            .values(is_primary=True, updated_at=now)
        )
        if result.rowcount == 0:
            raise BankAccountNotFoundError(str(bank_account_id))

    def _to_entity(self, model: BankAccountModel) -> BankAccount:
        """Convert database model to domain entity."""
        return BankAccount(
            id=model.id,
            owner_id=model.owner_id,
            bank_name=model.bank_name,
            account_holder_name=model.account_holder_name,
            account_number=model.account_number,
            ifsc_code=model.ifsc_code,
            account_type=AccountType(model.account_type),
            is_verified=model.is_verified,
            is_primary=model.is_primary,
            verification_method=VerificationMethod(model.verification_method),
            created_at=model.created_at,
            updated_at=model.updated_at,
            verified_at=model.verified_at,
        )
