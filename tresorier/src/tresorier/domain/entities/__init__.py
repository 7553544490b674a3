"""
Domain entities.
"""

from tresorier.domain.entities.account import Account, AccountRole
from tresorier.domain.entities.bank_account import (
    AccountType,
    BankAccount,
    VerificationMethod,
)
from tresorier.domain.entities.ledger_entry import (
    EARNINGS_TYPE_KEY,
    SESSION_COMPLETION,
    SOURCE_KEY,
    EntryKind,
    EntryStatus,
    LedgerEntry,
    SubLedger,
)
from tresorier.domain.entities.verification_attempt import (
    OTP_METHODS,
    AttemptStage,
    VerificationAttempt,
)

__all__ = [
    "Account",
    "AccountRole",
    "AccountType",
    "BankAccount",
    "VerificationMethod",
    "EARNINGS_TYPE_KEY",
    "SESSION_COMPLETION",
    "SOURCE_KEY",
    "EntryKind",
    "EntryStatus",
    "LedgerEntry",
    "SubLedger",
    "OTP_METHODS",
    "AttemptStage",
    "VerificationAttempt",
]
