"""
Outbound gateway adapters.
"""

from tresorier.infrastructure.gateways.bank_verification_service import (
    HttpBankVerificationService,
    OfflineBankVerificationService,
)
from tresorier.infrastructure.gateways.razorpay_order_gateway import (
    RazorpayOrderGateway,
)
from tresorier.infrastructure.gateways.razorpay_payout_gateway import (
    RazorpayPayoutGateway,
    map_payout_status,
)
from tresorier.infrastructure.gateways.simulated_order_gateway import (
    SimulatedOrderGateway,
)
from tresorier.infrastructure.gateways.simulated_payout_gateway import (
    SimulatedPayoutGateway,
)
from tresorier.infrastructure.gateways.webhook_signature import (
    compute_signature,
    verify_signature,
)

__all__ = [
    "HttpBankVerificationService",
    "OfflineBankVerificationService",
    "RazorpayOrderGateway",
    "RazorpayPayoutGateway",
    "SimulatedOrderGateway",
    "SimulatedPayoutGateway",
    "compute_signature",
    "map_payout_status",
    "verify_signature",
]
