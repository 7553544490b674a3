"""
API middleware for Tresorier.
"""

from tresorier.presentation.api.middleware.error_handler import (
    tresorier_exception_handler,
    unhandled_exception_handler,
)

__all__ = ["tresorier_exception_handler", "unhandled_exception_handler"]
