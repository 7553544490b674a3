"""
Timestamp helpers.

All persisted timestamps are naive UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
