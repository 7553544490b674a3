"""
Ledger repository interface.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import UUID

from tresorier.domain.entities.ledger_entry import (
    EntryKind,
    EntryStatus,
    LedgerEntry,
    SubLedger,
)


class ILedgerRepository(ABC):
    """
    Interface for the append-only ledger store.

    Entries are never deleted. A pending entry may gain metadata or move
    to a terminal status; settled entries are immutable.
    """

    @abstractmethod
    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Persist a new entry.

        Args:
            entry: Validated LedgerEntry

        Returns:
            Stored entry

        Raises:
            DuplicateReferenceError: If entry.reference already exists
        """

    @abstractmethod
    async def get_by_id(self, entry_id: UUID) -> Optional[LedgerEntry]:
        """
        Get entry by ID.

        Args:
            entry_id: Entry unique identifier

        Returns:
            LedgerEntry if found, None otherwise
        """

    @abstractmethod
    async def get_by_reference(self, reference: str) -> Optional[LedgerEntry]:
        """
        Get entry by gateway reference.

        Args:
            reference: Gateway payment or payout reference

        Returns:
            LedgerEntry if found, None otherwise
        """

    @abstractmethod
    async def transition(
        self,
        entry_id: UUID,
        new_status: EntryStatus,
        metadata: Optional[Dict[str, Any]] = None,
        reference: Optional[str] = None,
    ) -> LedgerEntry:
        """
        Move a pending entry to COMPLETED or FAILED.

        Args:
            entry_id: Entry unique identifier
            new_status: Target status
            metadata: Keys merged into entry metadata
            reference: Gateway reference to record (if not yet set)

        Returns:
            Updated entry

        Raises:
            LedgerEntryNotFoundError: If entry does not exist
            InvalidStateTransitionError: If entry is not PENDING
        """

    @abstractmethod
    async def annotate(self, entry_id: UUID, metadata: Dict[str, Any]) -> LedgerEntry:
        """
        Record metadata on a pending entry, leaving its status alone.

        Args:
            entry_id: Entry unique identifier
            metadata: Keys merged into entry metadata

        Returns:
            Updated entry

        Raises:
            LedgerEntryNotFoundError: If entry does not exist
            InvalidStateTransitionError: If entry is not PENDING
        """

    @abstractmethod
    async def list_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> List[LedgerEntry]:
        """
        List entries newest first.

        Args:
            account_id: Owning account
            kind: Optional kind filter
            status: Optional status filter
            offset: Rows to skip
            limit: Max rows to return

        Returns:
            Page of entries
        """

    @abstractmethod
    async def count_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
    ) -> int:
        """Count entries matching the same filters as list_by_account."""

    @abstractmethod
    async def sum_completed(
        self,
        account_id: UUID,
        sub_ledger: Optional[SubLedger] = None,
    ) -> Decimal:
        """
        Sum signed amounts of completed entries.

        Args:
            account_id: Owning account
            sub_ledger: Restrict to one sub-ledger (None = all)

        Returns:
            Signed total (Decimal, 2 places)
        """

    @abstractmethod
    async def sum_pending_debits(
        self,
        account_id: UUID,
        sub_ledger: Optional[SubLedger] = None,
    ) -> Decimal:
        """
        Sum signed amounts of pending payments and withdrawals.

        Returns:
            Zero or a negative total
        """

    @abstractmethod
    async def has_pending_withdrawal(self, bank_account_id: UUID) -> bool:
        """Check if a pending withdrawal targets the bank account."""

    @abstractmethod
    async def list_pending_withdrawals(
        self, offset: int = 0, limit: int = 50
    ) -> List[LedgerEntry]:
        """List pending withdrawals across accounts, oldest first."""

    @abstractmethod
    async def count_pending_withdrawals(self) -> int:
        """Count pending withdrawals across accounts."""

    @abstractmethod
    async def lock_account(self, account_id: UUID) -> None:
        """
        Take the per-account write lock for the current transaction.

        Creates the account lock row on first use.
        """

    async def iter_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
        page_size: int = 100,
    ) -> AsyncIterator[LedgerEntry]:
        """
        Iterate over all matching entries newest first, one page at a time.

        Each call starts from the beginning, so the iteration is
        restartable.
        """
        offset = 0
        while True:
            page = await self.list_by_account(
                account_id, kind=kind, status=status, offset=offset, limit=page_size
            )
            for entry in page:
                yield entry
            if len(page) < page_size:
                return
            offset += page_size
