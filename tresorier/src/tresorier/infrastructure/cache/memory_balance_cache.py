"""In-process balance cache."""

import asyncio
from typing import Optional
from uuid import UUID

from cachetools import TTLCache

from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.infrastructure.monitoring import metrics


class MemoryBalanceCache(IBalanceCache):
    """TTL + LRU cache of balance snapshots for single-process deployments."""

    def __init__(self, maxsize: int = 10000, ttl_seconds: int = 30):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._lock = asyncio.Lock()

    async def get(self, account_id: UUID) -> Optional[BalanceSnapshot]:
        async with self._lock:
            snapshot = self._cache.get(account_id)

        if snapshot is None:
            metrics.cache_misses_total.labels(cache_type="memory").inc()
        else:
            metrics.cache_hits_total.labels(cache_type="memory").inc()
        return snapshot

    async def set(self, account_id: UUID, snapshot: BalanceSnapshot) -> None:
        async with self._lock:
            self._cache[account_id] = snapshot

    async def invalidate(self, account_id: UUID) -> None:
        async with self._lock:
            self._cache.pop(account_id, None)
