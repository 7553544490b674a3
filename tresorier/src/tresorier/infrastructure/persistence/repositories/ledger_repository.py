"""
Ledger repository implementation using SQLAlchemy.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tresorier.domain.entities.ledger_entry import (
    EntryKind,
    EntryStatus,
    LedgerEntry,
    SubLedger,
)
from tresorier.domain.exceptions import (
    DuplicateReferenceError,
    LedgerEntryNotFoundError,
)
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.value_objects import from_minor
from tresorier.infrastructure.persistence.models import (
    LedgerEntryModel,
    WalletAccountModel,
)


class LedgerRepository(ILedgerRepository):
    """
    SQLAlchemy implementation of the ledger store.

    Balance sums are single aggregate queries, so a reader never sees half
    of a multi-entry write from another transaction.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert entry; duplicate reference raises DuplicateReferenceError."""
        model = LedgerEntryModel(
            id=entry.id,
            account_id=entry.account_id,
            amount_minor=entry.amount_minor,
            kind=entry.kind.value,
            status=entry.status.value,
            sub_ledger=entry.sub_ledger.value,
            description=entry.description,
            related_booking_id=entry.related_booking_id,
            reference=entry.reference,
            bank_account_id=entry.bank_account_id,
            entry_metadata=dict(entry.metadata),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if entry.reference is not None:
                raise DuplicateReferenceError(entry.reference) from e
            raise

        return self._to_entity(model)

    async def get_by_id(self, entry_id: UUID) -> Optional[LedgerEntry]:
        """Retrieve entry by ID."""
        stmt = select(LedgerEntryModel).where(LedgerEntryModel.id == entry_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def get_by_reference(self, reference: str) -> Optional[LedgerEntry]:
        """Retrieve entry by gateway reference."""
        stmt = select(LedgerEntryModel).where(LedgerEntryModel.reference == reference)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        return self._to_entity(model) if model else None

    async def transition(
        self,
        entry_id: UUID,
        new_status: EntryStatus,
        metadata: Optional[Dict[str, Any]] = None,
        reference: Optional[str] = None,
    ) -> LedgerEntry:
        """Move a pending entry to a terminal status under a row lock."""
        stmt = (
            select(LedgerEntryModel)
            .where(LedgerEntryModel.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise LedgerEntryNotFoundError(str(entry_id))

        entry = self._to_entity(model)
        entry.transition(new_status, metadata)

        model.status = entry.status.value
        model.entry_metadata = dict(entry.metadata)
        model.updated_at = entry.updated_at
        if reference and not model.reference:
            model.reference = reference

        await self.session.flush()

        return self._to_entity(model)

    async def annotate(self, entry_id: UUID, metadata: Dict[str, Any]) -> LedgerEntry:
        """Merge metadata into a pending entry under a row lock."""
        stmt = (
            select(LedgerEntryModel)
            .where(LedgerEntryModel.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = (await self.session.execute(stmt)).scalar_one_or_none()
        if not model:
            raise LedgerEntryNotFoundError(str(entry_id))

        entry = self._to_entity(model)
        entry.annotate(metadata)

        model.entry_metadata = dict(entry.metadata)
        model.updated_at = entry.updated_at
        await self.session.flush()

        return self._to_entity(model)

    async def list_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> List[LedgerEntry]:
        """List entries newest first."""
        stmt = self._filtered(select(LedgerEntryModel), account_id, kind, status)
        stmt = (
            stmt.order_by(
                LedgerEntryModel.created_at.desc(), LedgerEntryModel.id.desc()
            )
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def count_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
    ) -> int:
        """Count matching entries."""
        stmt = self._filtered(
            select(func.count(LedgerEntryModel.id)), account_id, kind, status
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def sum_completed(
        self,
        account_id: UUID,
        sub_ledger: Optional[SubLedger] = None,
    ) -> Decimal:
        """Sum completed signed amounts."""
        stmt = select(func.coalesce(func.sum(LedgerEntryModel.amount_minor), 0)).where(
            LedgerEntryModel.account_id == account_id,
            LedgerEntryModel.status == EntryStatus.COMPLETED.value,
        )
        if sub_ledger is not None:
            stmt = stmt.where(LedgerEntryModel.sub_ledger == sub_ledger.value)

        result = await self.session.execute(stmt)
        return from_minor(int(result.scalar_one()))

    async def sum_pending_debits(
        self,
        account_id: UUID,
        sub_ledger: Optional[SubLedger] = None,
    ) -> Decimal:
        """Sum pending negative amounts."""
        stmt = select(func.coalesce(func.sum(LedgerEntryModel.amount_minor), 0)).where(
            LedgerEntryModel.account_id == account_id,
            LedgerEntryModel.status == EntryStatus.PENDING.value,
            LedgerEntryModel.amount_minor < 0,
        )
        if sub_ledger is not None:
            stmt = stmt.where(LedgerEntryModel.sub_ledger == sub_ledger.value)

        result = await self.session.execute(stmt)
        return from_minor(int(result.scalar_one()))

    async def has_pending_withdrawal(self, bank_account_id: UUID) -> bool:
        """Check for a pending withdrawal targeting the bank account."""
        stmt = (
            select(LedgerEntryModel.id)
            .where(
                LedgerEntryModel.bank_account_id == bank_account_id,
                LedgerEntryModel.kind == EntryKind.WITHDRAWAL.value,
                LedgerEntryModel.status == EntryStatus.PENDING.value,
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_pending_withdrawals(
        self, offset: int = 0, limit: int = 50
    ) -> List[LedgerEntry]:
        """Operator queue, oldest first."""
        stmt = (
            select(LedgerEntryModel)
            .where(
                LedgerEntryModel.kind == EntryKind.WITHDRAWAL.value,
                LedgerEntryModel.status == EntryStatus.PENDING.value,
            )
            .order_by(LedgerEntryModel.created_at.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def count_pending_withdrawals(self) -> int:
        """Count pending withdrawals across accounts."""
        stmt = select(func.count(LedgerEntryModel.id)).where(
            LedgerEntryModel.kind == EntryKind.WITHDRAWAL.value,
            LedgerEntryModel.status == EntryStatus.PENDING.value,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def lock_account(self, account_id: UUID) -> None:
        """Upsert the account lock row, then SELECT ... FOR UPDATE it."""
        dialect = self.session.bind.dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        await self.session.execute(
            insert(WalletAccountModel)
            .values(id=account_id)
            .on_conflict_do_nothing(index_elements=["id"])
        )

        stmt = (
            select(WalletAccountModel.id)
            .where(WalletAccountModel.id == account_id)
            .with_for_update()
        )
        await self.session.execute(stmt)

    @staticmethod
    def _filtered(stmt, account_id, kind, status):
        """Apply the common account/kind/status filters."""
        stmt = stmt.where(LedgerEntryModel.account_id == account_id)
        if kind is not None:
            stmt = stmt.where(LedgerEntryModel.kind == EntryKind(kind).value)
        if status is not None:
            stmt = stmt.where(LedgerEntryModel.status == EntryStatus(status).value)
        return stmt

    def _to_entity(self, model: LedgerEntryModel) -> LedgerEntry:
        """Convert database model to domain entity."""
        return LedgerEntry(
            id=model.id,
            account_id=model.account_id,
            amount=from_minor(model.amount_minor),
            kind=EntryKind(model.kind),
            status=EntryStatus(model.status),
            description=model.description or "",
            related_booking_id=model.related_booking_id,
            reference=model.reference,
            bank_account_id=model.bank_account_id,
            metadata=dict(model.entry_metadata or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
