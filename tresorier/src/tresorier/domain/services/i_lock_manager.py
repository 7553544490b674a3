"""
Lock manager interface for per-key serialization.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Iterable
from uuid import UUID


def account_key(account_id: UUID) -> str:
    """Lock key for balance-affecting writes of one account."""
    return f"account:{account_id}"


def bank_account_key(bank_account_id: UUID) -> str:
    """Lock key for verification state of one bank account."""
    return f"bank_account:{bank_account_id}"


class ILockManager(ABC):
    """Serializes work per key; different keys run in parallel."""

    @abstractmethod
    def hold(self, key: str) -> AsyncContextManager[None]:
        """Async context manager holding the lock for key."""

    @abstractmethod
    def hold_many(self, keys: Iterable[str]) -> AsyncContextManager[None]:
        """Hold several locks, acquired in sorted order to avoid deadlock."""
