"""
Create Recharge Order use case.

Opens a checkout order for a wallet top-up and records a pending deposit
against it. The client pays the order in the gateway's checkout; the
deposit completes when the payment is verified or its webhook arrives.
"""

import secrets
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from tresorier.application.amounts import parse_positive_amount
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus, LedgerEntry
from tresorier.domain.exceptions import OutOfBoundsError, ValidationError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_payment_order_gateway import (
    IPaymentOrderGateway,
    PaymentOrder,
)
from tresorier.domain.value_objects import to_minor
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import ledger_entries_total

logger = get_logger(__name__)

ORDER_ID_KEY = "razorpay_order_id"
SUPPORTED_CURRENCY = "INR"


@dataclass
class RechargeOrder:
    """
    What the client needs to open the checkout.

    Attributes:
        entry: Pending deposit keyed by the order id
        order: Gateway order
        key_id: Public gateway key for the checkout widget
        description: Label shown in the checkout
        prefill: Contact details to prefill
    """

    entry: LedgerEntry
    order: PaymentOrder
    key_id: Optional[str]
    description: str
    prefill: Dict[str, str] = field(default_factory=dict)


class CreateRechargeOrder:
    """
    Start a wallet recharge.

    Business rules:
    - Amount positive and within [min_amount, max_amount], both inclusive
    - INR only
    - The pending deposit counts toward no balance until completed
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        order_gateway: IPaymentOrderGateway,
        key_id: Optional[str] = None,
        min_amount: Decimal = Decimal("1"),
        max_amount: Decimal = Decimal("100000"),
    ):
        self.uow = uow
        self.order_gateway = order_gateway
        self.key_id = key_id
        self.min_amount = min_amount
        self.max_amount = max_amount

    async def execute(
        self,
        account: Account,
        amount: Decimal | str,
        currency: str = SUPPORTED_CURRENCY,
    ) -> RechargeOrder:
        """
        Execute order creation.

        Raises:
            InvalidAmountError: Amount not positive
            OutOfBoundsError: Amount outside limits
            ValidationError: Unsupported currency
            GatewayError: Order could not be created (nothing recorded)
        """
        value = parse_positive_amount(amount)
        if value < self.min_amount or value > self.max_amount:
            raise OutOfBoundsError(value, self.min_amount, self.max_amount)
        if (currency or "").upper() != SUPPORTED_CURRENCY:
            raise ValidationError("currency", f"Only {SUPPORTED_CURRENCY} is supported")

        receipt = f"WALLET_RECHARGE_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
        description = f"Wallet recharge of {SUPPORTED_CURRENCY} {value}"

        order = await self.order_gateway.create_order(
            amount_minor=to_minor(value),
            currency=SUPPORTED_CURRENCY,
            receipt=receipt,
            notes={
                "account_id": str(account.id),
                "type": "wallet_recharge",
                "description": description,
            },
        )

        entry = LedgerEntry(
            account_id=account.id,
            amount=value,
            kind=EntryKind.DEPOSIT,
            status=EntryStatus.PENDING,
            reference=order.order_id,
            description=description,
            metadata={
                "gateway": "razorpay",
                ORDER_ID_KEY: order.order_id,
                "receipt": order.receipt,
                "currency": order.currency,
            },
        )
        entry = await self.uow.ledger.append(entry)
        await self.uow.commit()

        ledger_entries_total.labels(kind="deposit", status="pending").inc()
        logger.info(
            "Recharge order created",
            extra={
                "account_id": str(account.id),
                "entry_id": str(entry.id),
                "order_id": order.order_id,
                "amount": str(value),
            },
        )

        prefill = {"email": account.email or "", "contact": account.phone or ""}
        return RechargeOrder(
            entry=entry,
            order=order,
            key_id=self.key_id,
            description=description,
            prefill=prefill,
        )
