"""
List Transactions use case.
"""

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus, LedgerEntry
from tresorier.domain.exceptions import ValidationError
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository

MAX_PAGE_SIZE = 100


@dataclass
class TransactionPage:
    """One page of ledger history."""

    items: List[LedgerEntry]
    total: int
    offset: int
    limit: int


class ListTransactions:
    """Paginated ledger history, newest first."""

    def __init__(self, ledger_repository: ILedgerRepository):
        self.ledger_repository = ledger_repository

    async def execute(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> TransactionPage:
        """
        Fetch one page.

        Raises:
            ValidationError: If offset is negative or limit out of range
        """
        if offset < 0:
            raise ValidationError("offset", "Offset cannot be negative")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError("limit", f"Limit must be 1..{MAX_PAGE_SIZE}")

        items = await self.ledger_repository.list_by_account(
            account_id, kind=kind, status=status, offset=offset, limit=limit
        )
        total = await self.ledger_repository.count_by_account(
            account_id, kind=kind, status=status
        )

        return TransactionPage(items=items, total=total, offset=offset, limit=limit)
