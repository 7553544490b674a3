"""API routes."""
from tresorier.presentation.api.routes import (
    admin,
    bank_accounts,
    internal,
    verification,
    wallet,
    webhooks,
    withdrawals,
)

__all__ = [
    "admin",
    "bank_accounts",
    "internal",
    "verification",
    "wallet",
    "webhooks",
    "withdrawals",
]
