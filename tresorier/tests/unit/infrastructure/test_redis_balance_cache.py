"""
Unit tests for RedisBalanceCache and ExpirySweeper.

Redis is mocked; the cache must degrade to misses when Redis fails.

Usage:
    python -m pytest tresorier/tests/unit/infrastructure/test_redis_balance_cache.py
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import redis.asyncio as aioredis

from tests.base import TresorierTest
from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.infrastructure.cache.redis_balance_cache import RedisBalanceCache
from tresorier.infrastructure.scheduling.expiry_sweeper import ExpirySweeper


class TestRedisBalanceCache(TresorierTest):
    """Unit tests for RedisBalanceCache."""

    component_name = "tresorier"
    test_category = "unit"

    # ================================================================
    # Helper Methods
    # ================================================================

    def _create_cache(self) -> RedisBalanceCache:
        cache = RedisBalanceCache(ttl_seconds=45)
        cache._client = AsyncMock()
        return cache

    def _snapshot(self, account_id) -> BalanceSnapshot:
        return BalanceSnapshot(
            account_id=account_id,
            wallet_balance=Decimal("120.50"),
            available_earnings=Decimal("0.00"),
            pending_wallet_debits=Decimal("-20.00"),
        )

    # ================================================================
    # Test Methods
    # ================================================================

    async def test_get_returns_cached_snapshot(self):
        """Test a stored snapshot is decoded."""
        self.reporter.info("Testing cache hit", context="Test")

        cache = self._create_cache()
        account_id = uuid4()
        cache._client.get.return_value = json.dumps(
            self._snapshot(account_id).to_dict()
        )

        snapshot = await cache.get(account_id)

        assert snapshot == self._snapshot(account_id)
        cache._client.get.assert_awaited_once_with(f"tresorier:balance:{account_id}")

    async def test_get_miss(self):
        """Test a missing key is a miss."""
        cache = self._create_cache()
        cache._client.get.return_value = None

        assert await cache.get(uuid4()) is None

    async def test_set_uses_ttl(self):
        """Test snapshots are written with the configured TTL."""
        cache = self._create_cache()
        account_id = uuid4()

        await cache.set(account_id, self._snapshot(account_id))

        key, ttl, raw = cache._client.setex.await_args.args
        assert key == f"tresorier:balance:{account_id}"
        assert ttl == 45
        assert json.loads(raw)["wallet_balance"] == "120.50"

    async def test_redis_errors_degrade_to_miss(self):
        """Test Redis failures never break balance reads or writes."""
        cache = self._create_cache()
        cache._client.get.side_effect = aioredis.ConnectionError("down")
        cache._client.setex.side_effect = aioredis.ConnectionError("down")
        cache._client.delete.side_effect = aioredis.ConnectionError("down")
        account_id = uuid4()

        assert await cache.get(account_id) is None
        await cache.set(account_id, self._snapshot(account_id))
        await cache.invalidate(account_id)

    async def test_ping(self):
        """Test ping reports reachability."""
        cache = self._create_cache()
        assert await cache.ping()

        cache._client.ping.side_effect = aioredis.ConnectionError("down")
        assert not await cache.ping()


class TestExpirySweeper(TresorierTest):
    """Unit tests for ExpirySweeper."""

    component_name = "tresorier"
    test_category = "unit"

    async def test_run_once_returns_removed(self):
        """Test a sweep reports how many attempts it removed."""
        job = AsyncMock(return_value=3)
        sweeper = ExpirySweeper(job, interval_seconds=60)

        assert await sweeper.run_once() == 3
        job.assert_awaited_once()

    async def test_start_and_stop(self):
        """Test the loop can be started and cancelled."""
        sweeper = ExpirySweeper(AsyncMock(return_value=0), interval_seconds=60)

        sweeper.start()
        assert sweeper.running

        await sweeper.stop()
        assert not sweeper.running


if __name__ == "__main__":
    TestRedisBalanceCache.run_as_main()
