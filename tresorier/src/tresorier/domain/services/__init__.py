"""
Domain services.
"""

from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_bank_verification_service import (
    BankLookupResult,
    IBankVerificationService,
)
from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.domain.services.i_lock_manager import (
    ILockManager,
    account_key,
    bank_account_key,
)
from tresorier.domain.services.i_otp_dispatcher import IOtpDispatcher
from tresorier.domain.services.i_payment_order_gateway import (
    IPaymentOrderGateway,
    PaymentOrder,
)
from tresorier.domain.services.i_payout_gateway import (
    IPayoutGateway,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
)

__all__ = [
    "BalanceCalculator",
    "BalanceSnapshot",
    "IBalanceCache",
    "BankLookupResult",
    "IBankVerificationService",
    "IEventPublisher",
    "ILockManager",
    "account_key",
    "bank_account_key",
    "IOtpDispatcher",
    "IPaymentOrderGateway",
    "PaymentOrder",
    "IPayoutGateway",
    "PayoutRequest",
    "PayoutResult",
    "PayoutStatus",
]
