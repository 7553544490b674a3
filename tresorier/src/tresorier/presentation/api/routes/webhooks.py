"""
Payment gateway webhook routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from tresorier.application.use_cases.process_payment_webhook import (
    ProcessPaymentWebhook,
)
from tresorier.di.dependencies import get_process_payment_webhook
from tresorier.presentation.schemas.wallet_schemas import WebhookAckResponse

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/payments",
    response_model=WebhookAckResponse,
    summary="Payment gateway callback",
)
async def payment_webhook(
    request: Request,
    signature: Optional[str] = Header(default=None, alias="X-Razorpay-Signature"),
    use_case: ProcessPaymentWebhook = Depends(get_process_payment_webhook),
) -> WebhookAckResponse:
    """
    Signed gateway callback.

    The signature covers the raw body, so the body is read unparsed.
    Replays answer 200 with status duplicate.
    """
    body = await request.body()
    result = await use_case.execute(body, signature)
    return WebhookAckResponse(
        event=result.event,
        status=result.status,
        entry_id=result.entry_id,
    )
