"""
VerificationAttempt repository implementation using SQLAlchemy.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tresorier.domain.entities.bank_account import VerificationMethod
from tresorier.domain.entities.verification_attempt import VerificationAttempt
from tresorier.domain.repositories.i_verification_attempt_repository import (
    IVerificationAttemptRepository,
)
from tresorier.infrastructure.persistence.models import VerificationAttemptModel


class VerificationAttemptRepository(IVerificationAttemptRepository):
    """SQLAlchemy implementation keyed by bank account ID."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get(self, bank_account_id: UUID) -> Optional[VerificationAttempt]:
        """Retrieve the attempt for a bank account."""
        model = await self._get_model(bank_account_id)
        return self._to_entity(model) if model else None

    async def save(self, attempt: VerificationAttempt) -> VerificationAttempt:
        """Insert or replace the attempt."""
        model = await self._get_model(attempt.bank_account_id)

        if model is None:
            model = VerificationAttemptModel(bank_account_id=attempt.bank_account_id)
            self.session.add(model)

        model.method = attempt.method.value
        model.code_hash = attempt.code_hash
        model.expected_amount_minor = attempt.expected_amount_minor
        model.reference_id = attempt.reference_id
        model.destination_hint = attempt.destination_hint
        model.amount_entered_at = attempt.amount_entered_at
        model.attempts_remaining = attempt.attempts_remaining
        model.expires_at = attempt.expires_at
        model.created_at = attempt.created_at

        await self.session.flush()

        return self._to_entity(model)

    async def delete(self, bank_account_id: UUID) -> bool:
        """Delete the attempt for a bank account."""
        stmt = delete(VerificationAttemptModel).where(
            VerificationAttemptModel.bank_account_id == bank_account_id
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def delete_expired(self, now: datetime) -> int:
        """Delete attempts whose window has closed."""
        stmt = delete(VerificationAttemptModel).where(
            VerificationAttemptModel.expires_at <= now
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def _get_model(
        self, bank_account_id: UUID
    ) -> Optional[VerificationAttemptModel]:
        stmt = select(VerificationAttemptModel).where(
            VerificationAttemptModel.bank_account_id == bank_account_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: VerificationAttemptModel) -> VerificationAttempt:
        """Convert database model to domain entity."""
        return VerificationAttempt(
            bank_account_id=model.bank_account_id,
            method=VerificationMethod(model.method),
            expires_at=model.expires_at,
            attempts_remaining=model.attempts_remaining,
            code_hash=model.code_hash,
            expected_amount_minor=model.expected_amount_minor,
            reference_id=model.reference_id,
            destination_hint=model.destination_hint,
            amount_entered_at=model.amount_entered_at,
            created_at=model.created_at,
        )
