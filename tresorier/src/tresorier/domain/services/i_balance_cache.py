"""
Balance cache interface.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from tresorier.domain.services.balance_snapshot import BalanceSnapshot


class IBalanceCache(ABC):
    """
    Read-through cache of derived balances.

    Writers invalidate after every committed mutation; readers refetch on
    miss.
    """

    @abstractmethod
    async def get(self, account_id: UUID) -> Optional[BalanceSnapshot]:
        """Cached snapshot or None on miss."""

    @abstractmethod
    async def set(self, account_id: UUID, snapshot: BalanceSnapshot) -> None:
        """Store a snapshot."""

    @abstractmethod
    async def invalidate(self, account_id: UUID) -> None:
        """Drop the cached snapshot."""
