"""
Verification attempt repository interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from tresorier.domain.entities.verification_attempt import VerificationAttempt


class IVerificationAttemptRepository(ABC):
    """Interface for live verification attempt storage (one per account)."""

    @abstractmethod
    async def get(self, bank_account_id: UUID) -> Optional[VerificationAttempt]:
        """
        Get the attempt for a bank account.

        Returns:
            VerificationAttempt if one exists (live or stale), None otherwise
        """

    @abstractmethod
    async def save(self, attempt: VerificationAttempt) -> VerificationAttempt:
        """Insert or replace the attempt for its bank account."""

    @abstractmethod
    async def delete(self, bank_account_id: UUID) -> bool:
        """
        Delete the attempt for a bank account.

        Returns:
            True if an attempt was deleted
        """

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """
        Delete all attempts whose window closed before now.

        Returns:
            Number of attempts removed
        """
