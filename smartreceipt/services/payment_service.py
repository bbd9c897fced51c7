"""
smartreceipt/services/payment_service.py

Purpose: PaymentPoint integration

- Creates a dedicated virtual account for a subscribing user
- The account phone comes from the brand contact phone (Nigerian 11-digit form)
- Confirms payments pushed to the webhook (idempotent on transaction id)
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from smartreceipt.channels.base import MessagingChannel, native_id, platform_of
from smartreceipt.schemas.payment import PaymentWebhookPayload, VirtualAccount
from smartreceipt.services import user_service
from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import PAYMENT_CONFIRMED_MESSAGE
from smartreceipt.utils.time_utils import add_months, format_timestamp

logger = get_logger(__name__)

PAYMENTPOINT_BANK_CODES = ["20946"]
MAX_ACCOUNT_NAME_LENGTH = 30
PHONE_NUMBER_PLATFORMS = ("whatsapp",)


def format_phone_for_api(raw: Optional[str]) -> Optional[str]:
    """
    Normalizes a phone number to the 11-digit local form.

    Examples:
        +234 801 234 5678 -> 08012345678
        8012345678        -> 08012345678
        0801-234-5678     -> 08012345678

    Returns:
        The phone, or None when the text is not a Nigerian number
    """
    if not raw:
        return None
    number = re.sub(r"\D", "", raw.split("@")[0])

    if number.startswith("234") and len(number) == 13:
        return "0" + number[3:]
    if len(number) == 10 and not number.startswith("0"):
        return "0" + number
    if len(number) == 11 and number.startswith("0"):
        return number
    return None


def payment_phone_for(profile: Dict[str, Any]) -> Optional[str]:
    """
    Phone used to open the virtual account.

    The contact phone from the brand profile comes first. Only channels
    whose identities are phone numbers fall back to the identity itself;
    a Telegram chat id is never a phone.
    """
    phone = format_phone_for_api(profile.get("contact_phone"))
    if phone:
        return phone

    user_id = profile.get("user_id") or ""
    if platform_of(user_id) in PHONE_NUMBER_PLATFORMS:
        return format_phone_for_api(native_id(user_id))
    return None


def payment_email(phone: str) -> str:
    return f"{phone}@{settings.PAYMENT_EMAIL_DOMAIN}"


def account_holder_name(brand_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9 ]", "", brand_name or "")[:MAX_ACCOUNT_NAME_LENGTH]


async def create_virtual_account(profile: Dict[str, Any]) -> Optional[VirtualAccount]:
    """
    Requests a virtual bank account for the profile.

    The derived phone is stored on the profile so the payment webhook can
    find it again.

    Returns:
        The first bank account, or None on any failure
    """
    user_id = profile["user_id"]
    phone = payment_phone_for(profile)
    if phone is None:
        logger.error(f"No usable phone number for user: {user_id}")
        return None

    payload = {
        "name": account_holder_name(profile.get("brand_name")),
        "email": payment_email(phone),
        "phoneNumber": phone,
        "bankCode": PAYMENTPOINT_BANK_CODES,
        "businessId": settings.PAYMENTPOINT_BUSINESS_ID,
    }
    headers = {
        "Content-Type": "application/json",
        "api-key": settings.PAYMENTPOINT_API_KEY or "",
        "Authorization": f"Bearer {settings.PAYMENTPOINT_SECRET_KEY or ''}",
    }

    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(
                f"{settings.PAYMENTPOINT_BASE_URL.rstrip('/')}/createVirtualAccount",
                json=payload,
                headers=headers,
            )
    except httpx.TimeoutException:
        logger.error("PaymentPoint API timeout")
        return None
    except httpx.RequestError as e:
        logger.error(f"Network error calling PaymentPoint: {e}")
        return None

    if response.status_code not in (200, 201):
        logger.error(f"❌ PaymentPoint API error: {response.status_code} - {response.text[:300]}")
        return None

    accounts = (response.json() or {}).get("bankAccounts") or []
    if not accounts:
        logger.error("PaymentPoint returned no bank accounts")
        return None

    account = VirtualAccount.model_validate(accounts[0])
    await user_service.set_payment_phone(user_id, phone)
    logger.info(f"🏦 Virtual account created at {account.bank_name}")
    return account


async def process_payment_webhook(
    payload: PaymentWebhookPayload,
    channel: Optional[MessagingChannel] = None,
) -> Dict[str, Any]:
    """
    Activates the subscription of the profile the payment belongs to.

    A transaction id already recorded on the profile is acknowledged
    without changing anything.

    Returns:
        {"status": "activated" | "duplicate" | "ignored" | "unknown_customer", ...}
    """
    if not payload.is_successful:
        logger.info(f"Ignoring payment notification with status {payload.notification_status}")
        return {"status": "ignored"}

    profile = await user_service.find_by_payment_phone(payload.phone)
    if not profile:
        logger.warning(f"⚠️ Payment for unknown customer {payload.customer.email}")
        return {"status": "unknown_customer"}

    user_id = profile["user_id"]
    expiry = add_months(datetime.utcnow(), settings.SUBSCRIPTION_MONTHS)
    if not await user_service.activate_subscription(user_id, expiry, reference=payload.transaction_id):
        logger.info(f"Duplicate payment notification {payload.transaction_id}")
        return {"status": "duplicate", "user_id": user_id}

    if channel is not None:
        try:
            await channel.send_text(
                user_id,
                PAYMENT_CONFIRMED_MESSAGE.format(expiry=format_timestamp(expiry, "%d %B %Y")),
            )
        except Exception as e:
            # Subscription is already active; delivery failure is not fatal
            logger.error(f"Failed to notify {user_id} of payment: {e}", exc_info=True)

    logger.info(f"✅ Payment confirmed for {user_id}")
    return {"status": "activated", "user_id": user_id, "expiry": expiry.isoformat()}
