"""
smartreceipt/api/payment.py

Purpose: Payment confirmation webhook

- Authenticates the gateway with a shared secret header
- Validates the payload and hands it to the payment service
- Notifies the user through the channel router
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Header

from smartreceipt.channels.base import channel_router
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import AuthenticationError
from smartreceipt.core.logging import get_logger
from smartreceipt.schemas.payment import PaymentWebhookPayload
from smartreceipt.services.payment_service import process_payment_webhook

logger = get_logger(__name__)
router = APIRouter()


def verify_webhook_secret(provided: Optional[str]) -> None:
    expected = settings.PAYMENT_WEBHOOK_SECRET
    if not expected:
        if settings.is_production:
            raise AuthenticationError("Payment webhook secret is not configured")
        return
    if not provided or not hmac.compare_digest(provided, expected):
        logger.warning("🚫 Payment webhook rejected: bad secret")
        raise AuthenticationError("Invalid webhook secret")


@router.post("/payments/webhook")
async def payment_webhook(
    payload: PaymentWebhookPayload,
    x_webhook_secret: Optional[str] = Header(None),
):
    """
    Payment confirmation pushed by PaymentPoint.

    Repeated notifications for the same transaction are acknowledged
    without side effects.
    """
    verify_webhook_secret(x_webhook_secret)
    logger.info(f"💰 Payment webhook received: {payload.transaction_id}")
    return await process_payment_webhook(payload, channel=channel_router)
