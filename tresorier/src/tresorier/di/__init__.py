"""
Dependency injection for Tresorier.
"""

from tresorier.di.container import (
    DIContainer,
    get_container,
    initialize_container,
    set_container,
    shutdown_container,
)

__all__ = [
    "DIContainer",
    "get_container",
    "initialize_container",
    "set_container",
    "shutdown_container",
]
