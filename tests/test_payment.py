from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from smartreceipt.channels.base import channel_router
from smartreceipt.core.config import settings
from smartreceipt.main import app
from smartreceipt.schemas.payment import PaymentWebhookPayload, VirtualAccount
from smartreceipt.services import session_service, user_service
from smartreceipt.services.payment_service import (
    create_virtual_account,
    format_phone_for_api,
    payment_phone_for,
    process_payment_webhook,
)

from conftest import USER_ID, make_profile

client = TestClient(app)

WEBHOOK_URL = f"{settings.API_PREFIX}/payments/webhook"


def _payload(transaction_id="TXN-1", phone="08012345678"):
    return {
        "transaction_id": transaction_id,
        "notification_status": "payment_successful",
        "amount_paid": 2000,
        "customer": {"email": f"{phone}@smartreceipt.user", "name": "Acme Stores"},
    }


def test_phone_formatting():
    assert format_phone_for_api("+234 801 234 5678") == "08012345678"
    assert format_phone_for_api("8012345678") == "08012345678"
    assert format_phone_for_api("0801-234-5678") == "08012345678"
    assert format_phone_for_api("12345") is None
    assert format_phone_for_api(None) is None


def test_payment_phone_prefers_the_contact_phone():
    profile = {"user_id": "telegram:5123456789", "contact_phone": "+234 803 555 0101"}
    assert payment_phone_for(profile) == "08035550101"


def test_telegram_chat_id_is_never_a_phone():
    assert payment_phone_for({"user_id": "telegram:5123456789", "contact_phone": None}) is None
    assert payment_phone_for({"user_id": "telegram:123456789", "contact_phone": "hello"}) is None


def test_whatsapp_identity_is_a_phone():
    assert payment_phone_for({"user_id": "whatsapp:2348012345678", "contact_phone": None}) == "08012345678"


async def test_yes_creates_virtual_account(send, channel):
    await make_profile(receipt_count=2)
    await send("new receipt")

    account = VirtualAccount(bankName="PalmPay", accountNumber="6601234567")
    with patch("smartreceipt.services.payment_service.create_virtual_account", new=AsyncMock(return_value=account)):
        await send("Yes")

    assert "Generating a secure payment account" in channel.texts_to(USER_ID)[-2]
    assert "*Account Number:* 6601234567" in channel.last_text(USER_ID)
    assert await session_service.get_session(USER_ID) is None


async def test_yes_with_gateway_failure(send, channel):
    await make_profile(receipt_count=2)
    await send("new receipt")

    with patch("smartreceipt.services.payment_service.create_virtual_account", new=AsyncMock(return_value=None)):
        await send("yes")

    assert "couldn't generate a payment account" in channel.last_text(USER_ID)


async def test_no_and_unclear_answers(send, channel):
    await make_profile(receipt_count=2)
    await send("new receipt")

    await send("hmm")
    assert channel.last_text(USER_ID) == "Please reply with just 'Yes' or 'No'."

    await send("no")
    assert "thank you for trying" in channel.last_text(USER_ID)
    assert await session_service.get_session(USER_ID) is None


async def test_webhook_activates_once(channel):
    await make_profile()
    await user_service.set_payment_phone(USER_ID, "08012345678")
    payload = PaymentWebhookPayload.model_validate(_payload())

    first = await process_payment_webhook(payload, channel=channel)
    second = await process_payment_webhook(payload, channel=channel)

    assert first["status"] == "activated"
    assert second["status"] == "duplicate"

    profile = await user_service.get_profile(USER_ID)
    assert profile["is_paid"] is True
    assert profile["subscription_expiry_date"] > datetime.utcnow() + timedelta(days=150)
    assert profile["payment_references"] == ["TXN-1"]
    assert len(channel.texts_to(USER_ID)) == 1
    assert "Payment received" in channel.last_text(USER_ID)


async def test_webhook_for_unknown_customer():
    payload = PaymentWebhookPayload.model_validate(_payload(phone="09000000000"))
    assert (await process_payment_webhook(payload))["status"] == "unknown_customer"


async def test_webhook_ignores_failed_payments():
    data = _payload()
    data["notification_status"] = "payment_failed"
    payload = PaymentWebhookPayload.model_validate(data)
    assert (await process_payment_webhook(payload))["status"] == "ignored"


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "s3cret")
    return "s3cret"


async def test_webhook_endpoint_checks_the_secret(webhook_secret):
    await make_profile()
    await user_service.set_payment_phone(USER_ID, "08012345678")

    response = client.post(WEBHOOK_URL, json=_payload(), headers={"X-Webhook-Secret": "wrong"})
    assert response.status_code == 401
    assert response.json()["code"] == "AUTHENTICATION_FAILED"
    assert (await user_service.get_profile(USER_ID))["is_paid"] is False

    with patch.object(channel_router, "send_text", new=AsyncMock()):
        response = client.post(WEBHOOK_URL, json=_payload(), headers={"X-Webhook-Secret": webhook_secret})

    assert response.status_code == 200
    assert response.json()["status"] == "activated"
    assert (await user_service.get_profile(USER_ID))["is_paid"] is True


def test_webhook_endpoint_validates_payload(webhook_secret):
    response = client.post(WEBHOOK_URL, json={"transaction_id": "TXN-1"}, headers={"X-Webhook-Secret": webhook_secret})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_user_without_a_phone_is_asked_for_one(send, channel):
    user_id = "telegram:123456789"
    await make_profile(user_id, receipt_count=2, contact_phone=None, contact_info="hello@acme.ng")
    await send("new receipt", user_id=user_id)

    gateway = AsyncMock()
    with patch("smartreceipt.services.payment_service.create_virtual_account", new=gateway):
        await send("yes", user_id=user_id)

    gateway.assert_not_awaited()
    assert "I need a Nigerian phone number" in channel.last_text(user_id)
    assert await session_service.get_session(user_id) is None


async def test_virtual_account_is_opened_with_the_contact_phone():
    user_id = "telegram:5123456789"
    profile = await make_profile(user_id, contact_phone="0803 555 0101")
    response = httpx.Response(200, json={"bankAccounts": [{"bankName": "PalmPay", "accountNumber": "6601234567"}]})

    with patch.object(httpx.AsyncClient, "post", new=AsyncMock(return_value=response)) as post:
        account = await create_virtual_account(profile)

    assert account.account_number == "6601234567"
    sent = post.call_args.kwargs["json"]
    assert sent["phoneNumber"] == "08035550101"
    assert sent["email"] == "08035550101@smartreceipt.user"
    assert (await user_service.get_profile(user_id))["payment_phone"] == "08035550101"


async def test_payment_phone_moves_to_the_latest_profile():
    await make_profile()
    await make_profile("telegram:42", brand_name="Other Shop")
    await user_service.set_payment_phone(USER_ID, "08012345678")
    await user_service.set_payment_phone("telegram:42", "08012345678")

    assert "payment_phone" not in await user_service.get_profile(USER_ID)
    assert (await user_service.find_by_payment_phone("08012345678"))["user_id"] == "telegram:42"


async def test_repeated_reference_does_not_reactivate():
    await make_profile()
    first_expiry = datetime(2027, 1, 1)

    assert await user_service.activate_subscription(USER_ID, first_expiry, reference="TXN-9") is True
    assert await user_service.activate_subscription(USER_ID, datetime(2030, 1, 1), reference="TXN-9") is False

    profile = await user_service.get_profile(USER_ID)
    assert profile["subscription_expiry_date"] == first_expiry
    assert profile["payment_references"] == ["TXN-9"]
