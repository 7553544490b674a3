"""
In-process keyed lock manager.

Serializes balance-affecting writes per account and verification steps
per bank account. Single-process only; across processes the database
row lock taken by ILedgerRepository.lock_account is what holds.
"""

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Dict, Iterable

from tresorier.domain.services.i_lock_manager import ILockManager


class _Entry:
    __slots__ = ("lock", "refs")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.refs = 0


class KeyedLockManager(ILockManager):
    """
    asyncio.Lock per key, reference counted so idle keys are dropped.

    Example:
        async with locks.hold(account_key(account_id)):
            ...
    """

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = _Entry()
            self._entries[key] = entry
        entry.refs += 1

        try:
            async with entry.lock:
                yield
        finally:
            entry.refs -= 1
            if entry.refs == 0:
                self._entries.pop(key, None)

    @asynccontextmanager
    async def hold_many(self, keys: Iterable[str]) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self.hold(key))
            yield

    def active_keys(self) -> int:
        """Number of keys currently held or awaited."""
        return len(self._entries)
