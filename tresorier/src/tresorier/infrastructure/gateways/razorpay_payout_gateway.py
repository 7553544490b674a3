"""
Razorpay payout gateway client.

HTTP client for RazorpayX payouts (contact -> fund account -> payout).
Production-hardened with Circuit Breaker and Metrics. Money-moving calls
are never retried here; the idempotency key travels with every payout so
a caller may retry safely after a timeout.
"""

from typing import Dict, Optional, Tuple

from tresorier.domain.services.i_payout_gateway import (
    IPayoutGateway,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
)
from tresorier.infrastructure.gateways.razorpay_client import (
    DEFAULT_BASE_URL,
    RazorpayClient,
)
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.resilience import CircuitBreakerConfig

logger = get_logger(__name__)

GATEWAY_NAME = "razorpay"

FAILED_STATUSES = {"failed", "rejected", "reversed", "cancelled"}


def map_payout_status(status: Optional[str]) -> PayoutStatus:
    """Collapse Razorpay payout states into processed/processing/failed."""
    if status == "processed":
        return PayoutStatus.PROCESSED
    if status in FAILED_STATUSES:
        return PayoutStatus.FAILED
    return PayoutStatus.PROCESSING


class RazorpayPayoutGateway(RazorpayClient, IPayoutGateway):
    """
    RazorpayX payout client.

    A 2xx payout is parsed and its status mapped through
    map_payout_status; failures follow RazorpayClient's error mapping.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        account_number: str,
        base_url: str = DEFAULT_BASE_URL,
        total_timeout: float = 30.0,
        connect_timeout: float = 10.0,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
    ):
        """
        Initialize Razorpay client.

        Args:
            key_id: API key id (basic auth user)
            key_secret: API key secret (basic auth password)
            account_number: RazorpayX business account the payouts debit
            base_url: API base URL
            total_timeout: Per-request timeout (default: 30s)
            connect_timeout: Connection timeout (default: 10s)
            circuit_breaker_config: Optional Circuit Breaker config
        """
        super().__init__(
            key_id,
            key_secret,
            GATEWAY_NAME,
            base_url=base_url,
            total_timeout=total_timeout,
            connect_timeout=connect_timeout,
            circuit_breaker_config=circuit_breaker_config,
        )
        self.account_number = account_number
        self._fund_accounts: Dict[Tuple[str, str], str] = {}

    async def transfer(self, request: PayoutRequest) -> PayoutResult:
        """
        Create a payout to the request's bank account.

        Raises:
            GatewayDeclinedError: Razorpay rejected the request (4xx)
            GatewayTimeoutError: No answer within the timeout
            GatewayError: Server/network error or circuit open
        """
        fund_account_id = await self._ensure_fund_account(request)

        payload = {
            "account_number": self.account_number,
            "fund_account_id": fund_account_id,
            "amount": request.amount_minor,
            "currency": "INR",
            "mode": "IMPS",
            "purpose": request.purpose,
            "queue_if_low_balance": True,
            "reference_id": request.idempotency_key[:40],
            "narration": request.narration[:30],
            "notes": {k: str(v) for k, v in request.notes.items()},
        }
        data = await self._post(
            "/payouts",
            payload,
            operation="payout",
            headers={"X-Payout-Idempotency": request.idempotency_key},
        )

        status = map_payout_status(data.get("status"))
        failure_reason = None
        if status == PayoutStatus.FAILED:
            status_details = data.get("status_details") or {}
            failure_reason = status_details.get("description") or data.get(
                "failure_reason", "payout_failed"
            )

        logger.info(
            "Payout created",
            extra={
                "payout_id": data.get("id"),
                "payout_status": data.get("status"),
                "amount_minor": request.amount_minor,
            },
        )

        return PayoutResult(
            reference_id=data["id"],
            status=status,
            failure_reason=failure_reason,
            raw=data,
        )

    async def _ensure_fund_account(self, request: PayoutRequest) -> str:
        """Create (or reuse) contact and fund account for the destination."""
        cache_key = (request.account_number, request.ifsc_code)
        cached = self._fund_accounts.get(cache_key)
        if cached:
            return cached

        contact = await self._post(
            "/contacts",
            {
                "name": request.account_holder_name,
                "type": "customer",
                "reference_id": request.idempotency_key[:40],
            },
            operation="contact",
        )
        fund_account = await self._post(
            "/fund_accounts",
            {
                "contact_id": contact["id"],
                "account_type": "bank_account",
                "bank_account": {
                    "name": request.account_holder_name,
                    "ifsc": request.ifsc_code,
                    "account_number": request.account_number,
                },
            },
            operation="fund_account",
        )

        self._fund_accounts[cache_key] = fund_account["id"]
        return fund_account["id"]

