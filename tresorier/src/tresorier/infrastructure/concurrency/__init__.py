"""
Concurrency primitives.
"""

from tresorier.infrastructure.concurrency.keyed_lock_manager import (
    KeyedLockManager,
)

__all__ = ["KeyedLockManager"]
