"""
Bank account repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from tresorier.domain.entities.bank_account import BankAccount


class IBankAccountRepository(ABC):
    """Interface for bank account persistence operations."""

    @abstractmethod
    async def create(self, bank_account: BankAccount) -> BankAccount:
        """
        Create new bank account.

        Args:
            bank_account: BankAccount entity to create

        Returns:
            Created bank account
        """

    @abstractmethod
    async def get_by_id(
        self, bank_account_id: UUID, for_update: bool = False
    ) -> Optional[BankAccount]:
        """
        Get bank account by ID.

        Args:
            bank_account_id: Bank account unique identifier
            for_update: Lock the row for the current transaction

        Returns:
            BankAccount if found, None otherwise
        """

    @abstractmethod
    async def list_by_owner(self, owner_id: UUID) -> List[BankAccount]:
        """
        List owner's bank accounts, primary first then newest first.

        Args:
            owner_id: Owning account

        Returns:
            Ordered list of bank accounts
        """

    @abstractmethod
    async def count_by_owner(self, owner_id: UUID) -> int:
        """Count owner's bank accounts."""

    @abstractmethod
    async def update(self, bank_account: BankAccount) -> BankAccount:
        """
        Update existing bank account.

        Raises:
            BankAccountNotFoundError: If account does not exist
        """

    @abstractmethod
    async def delete(self, bank_account_id: UUID) -> bool:
        """
        Delete bank account by ID.

        Returns:
            True if deleted, False if not found
        """

    @abstractmethod
    async def set_primary(self, owner_id: UUID, bank_account_id: UUID) -> None:
        """
        Make one account primary and every other owner account non-primary.

        Must be a single atomic update so no reader sees zero or two
        primaries.
        """
