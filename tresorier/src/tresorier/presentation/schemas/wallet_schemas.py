"""
API schemas for wallet operations.

Request and response models for balances, history and internal ledger
intake. Amounts are decimal strings with two places.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tresorier.application.use_cases.create_recharge_order import RechargeOrder
from tresorier.application.use_cases.get_balances import BalancesResult
from tresorier.application.use_cases.list_transactions import TransactionPage
from tresorier.domain.entities.ledger_entry import LedgerEntry

# ================================================================
# Request Schemas
# ================================================================


class DepositRequest(BaseModel):
    """Trusted deposit intake (server-to-server)."""

    account_id: UUID = Field(..., description="Account to credit")
    amount: Decimal = Field(..., description="Amount in rupees", examples=["500.00"])
    gateway_reference: str = Field(
        ...,
        description="Payment id from the gateway",
        min_length=1,
        max_length=128,
    )
    description: str = Field(default="Wallet recharge", max_length=255)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SessionSettlementRequest(BaseModel):
    """Charge a customer and credit the designer for a finished session."""

    session_id: str = Field(..., min_length=1, max_length=64)
    customer_id: UUID
    designer_id: UUID
    amount: Decimal = Field(..., description="Session price", examples=["1200.00"])


class RefundRequest(BaseModel):
    """Refund a booking back into a wallet."""

    account_id: UUID
    amount: Decimal
    reference: str = Field(..., min_length=1, max_length=128)
    booking_id: Optional[str] = Field(default=None, max_length=64)
    description: str = Field(default="Booking refund", max_length=255)


class RechargeOrderRequest(BaseModel):
    """Start a wallet recharge."""

    amount: Decimal = Field(..., description="Amount in rupees", examples=["500.00"])
    currency: str = Field(default="INR", min_length=3, max_length=3)


class CheckoutVerificationRequest(BaseModel):
    """Checkout response handed back by the client."""

    razorpay_order_id: str = Field(..., min_length=1, max_length=64)
    razorpay_payment_id: str = Field(..., min_length=1, max_length=64)
    razorpay_signature: str = Field(..., min_length=1, max_length=128)


# ================================================================
# Response Schemas
# ================================================================


class BalanceResponse(BaseModel):
    """Balances shown on the wallet screen."""

    wallet_balance: str = Field(..., examples=["1500.00"])
    available_earnings: str = Field(..., examples=["0.00"])
    withdrawable_balance: str = Field(..., examples=["1400.00"])
    pending_withdrawals: str = Field(..., examples=["100.00"])
    currency: str = Field(default="INR")

    @classmethod
    def from_result(cls, result: BalancesResult) -> "BalanceResponse":
        return cls(
            wallet_balance=str(result.wallet_balance),
            available_earnings=str(result.available_earnings),
            withdrawable_balance=str(result.withdrawable_balance),
            pending_withdrawals=str(result.pending_withdrawals),
            currency=result.currency,
        )


class TransactionResponse(BaseModel):
    """One ledger entry."""

    id: UUID
    amount: str = Field(..., description="Signed amount", examples=["-100.00"])
    kind: str
    status: str
    description: str
    related_booking_id: Optional[str] = None
    reference: Optional[str] = None
    bank_account_id: Optional[UUID] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, entry: LedgerEntry) -> "TransactionResponse":
        return cls(
            id=entry.id,
            amount=str(entry.amount),
            kind=entry.kind.value,
            status=entry.status.value,
            description=entry.description,
            related_booking_id=entry.related_booking_id,
            reference=entry.reference,
            bank_account_id=entry.bank_account_id,
            failure_reason=entry.metadata.get("failure_reason"),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class TransactionListResponse(BaseModel):
    """Page of ledger history, newest first."""

    items: List[TransactionResponse]
    total: int
    offset: int
    limit: int

    @classmethod
    def from_page(cls, page: TransactionPage) -> "TransactionListResponse":
        return cls(
            items=[TransactionResponse.from_entity(e) for e in page.items],
            total=page.total,
            offset=page.offset,
            limit=page.limit,
        )


class DepositResponse(BaseModel):
    """Deposit outcome; duplicate is true for a replayed reference."""

    entry: TransactionResponse
    duplicate: bool


class SessionSettlementResponse(BaseModel):
    """Both legs of a session settlement."""

    payment: TransactionResponse
    earning: TransactionResponse
    duplicate: bool


class WebhookAckResponse(BaseModel):
    """Acknowledgement for the gateway."""

    event: str
    status: str
    entry_id: Optional[UUID] = None


class RechargeOrderResponse(BaseModel):
    """Everything the checkout widget needs."""

    order_id: str
    amount: int = Field(..., description="Amount in paise", examples=[50000])
    currency: str
    receipt: str
    key_id: Optional[str] = None
    description: str
    prefill: Dict[str, str] = Field(default_factory=dict)
    entry: TransactionResponse

    @classmethod
    def from_result(cls, result: RechargeOrder) -> "RechargeOrderResponse":
        return cls(
            order_id=result.order.order_id,
            amount=result.order.amount_minor,
            currency=result.order.currency,
            receipt=result.order.receipt,
            key_id=result.key_id,
            description=result.description,
            prefill=result.prefill,
            entry=TransactionResponse.from_entity(result.entry),
        )
