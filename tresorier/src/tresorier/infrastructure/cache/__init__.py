"""
Balance caches.
"""

from tresorier.infrastructure.cache.memory_balance_cache import MemoryBalanceCache
from tresorier.infrastructure.cache.redis_balance_cache import RedisBalanceCache

__all__ = ["MemoryBalanceCache", "RedisBalanceCache"]
