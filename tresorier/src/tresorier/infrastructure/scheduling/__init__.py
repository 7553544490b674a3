"""
Background jobs.
"""

from tresorier.infrastructure.scheduling.expiry_sweeper import ExpirySweeper

__all__ = ["ExpirySweeper"]
