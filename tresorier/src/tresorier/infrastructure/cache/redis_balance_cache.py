"""Redis-backed balance cache."""

import json
from typing import Optional
from uuid import UUID

import redis.asyncio as aioredis

from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.infrastructure.monitoring import metrics
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class RedisBalanceCache(IBalanceCache):
    """
    Balance snapshots in Redis, shared across processes.

    A Redis outage degrades to cache misses; balances are always
    recomputable from the ledger.
    """

    KEY_PREFIX = "tresorier:balance"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        ttl_seconds: int = 30,
    ):
        """
        Initialize Redis client configuration.

        Args:
            host: Redis server host
            port: Redis server port
            db: Redis database number (0-15)
            password: Redis password (None if no auth)
            ttl_seconds: Snapshot lifetime
        """
        self.host = host
        self.port = port
        self.db = db
        self.password = password if password else None
        self.ttl_seconds = ttl_seconds
        self._client: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis server."""
        if self._client is not None:
            return

        self._client = aioredis.from_url(
            f"redis://{self.host}:{self.port}/{self.db}",
            password=self.password,
            encoding="utf-8",
            decode_responses=True,
        )

    async def disconnect(self) -> None:
        """Close connection to Redis server."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get(self, account_id: UUID) -> Optional[BalanceSnapshot]:
        if self._client is None:
            await self.connect()

        try:
            raw = await self._client.get(self._key(account_id))
        except aioredis.RedisError as e:
            logger.warning(f"Balance cache read failed: {e}")
            return None

        if raw is None:
            metrics.cache_misses_total.labels(cache_type="redis").inc()
            return None

        metrics.cache_hits_total.labels(cache_type="redis").inc()
        return BalanceSnapshot.from_dict(json.loads(raw))

    async def set(self, account_id: UUID, snapshot: BalanceSnapshot) -> None:
        if self._client is None:
            await self.connect()

        try:
            await self._client.setex(
                self._key(account_id),
                self.ttl_seconds,
                json.dumps(snapshot.to_dict()),
            )
        except aioredis.RedisError as e:
            logger.warning(f"Balance cache write failed: {e}")

    async def invalidate(self, account_id: UUID) -> None:
        if self._client is None:
            await self.connect()

        try:
            await self._client.delete(self._key(account_id))
        except aioredis.RedisError as e:
            # Stale entry expires within ttl_seconds
            logger.error(f"Balance cache invalidation failed: {e}")

    async def ping(self) -> bool:
        """
        Check if Redis server is reachable.

        Returns:
            True if server responds
        """
        if self._client is None:
            await self.connect()

        try:
            await self._client.ping()
            return True
        except aioredis.RedisError:
            return False

    def _key(self, account_id: UUID) -> str:
        return f"{self.KEY_PREFIX}:{account_id}"
