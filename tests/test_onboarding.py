from unittest.mock import AsyncMock, patch

from smartreceipt.core.config import settings
from smartreceipt.flow.states import ConversationState
from smartreceipt.services import session_service, settings_service, user_service

from conftest import ADMIN_ID, USER_ID


async def test_full_onboarding_flow(send, channel):
    await send("hi")
    session = await session_service.get_session(USER_ID)
    assert session.state == ConversationState.AWAITING_BRAND_NAME
    assert "Step 1 of 5" in channel.last_text(USER_ID)

    await send("Acme Stores")
    assert (await user_service.get_profile(USER_ID))["brand_name"] == "Acme Stores"
    assert "Step 2 of 5" in channel.last_text(USER_ID)

    await send("#1D4ED8")
    await send("skip")
    await send("12 Marina Road, Lagos")
    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_CONTACT_INFO

    await send("08012345678 hello@acme.ng")

    profile = await user_service.get_profile(USER_ID)
    assert profile["brand_color"] == "#1D4ED8"
    assert profile["logo_url"] is None
    assert profile["address"] == "12 Marina Road, Lagos"
    assert profile["contact_email"] == "hello@acme.ng"
    assert profile["contact_phone"] == "08012345678"
    assert profile["onboarding_complete"] is True
    assert await session_service.get_session(USER_ID) is None
    assert "Setup Complete" in channel.last_text(USER_ID)


async def test_logo_step_rejects_plain_text(send, channel):
    await send("hi")
    await send("Acme")
    await send("blue")
    await send("here is my logo")

    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_LOGO
    assert "not an image" in channel.last_text(USER_ID)


async def test_logo_upload(send, channel):
    await send("hi")
    await send("Acme")
    await send("blue")

    with patch("smartreceipt.services.media_service.upload_logo", new=AsyncMock(return_value="https://i.ibb.co/logo.png")):
        await send("", has_media=True, media_ref="file-1")

    profile = await user_service.get_profile(USER_ID)
    assert profile["logo_url"] == "https://i.ibb.co/logo.png"
    assert "Logo uploaded successfully!" in channel.texts_to(USER_ID)
    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_ADDRESS


async def test_logo_upload_failure_proceeds_without_logo(send, channel):
    await send("hi")
    await send("Acme")
    await send("blue")

    with patch("smartreceipt.services.media_service.upload_logo", new=AsyncMock(return_value=None)):
        await send("", has_media=True, media_ref="file-1")

    assert (await user_service.get_profile(USER_ID))["logo_url"] is None
    assert any("couldn't upload the logo" in text for text in channel.texts_to(USER_ID))
    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_ADDRESS


async def test_registrations_closed_blocks_new_users(send, channel):
    await settings_service.set_registrations_open(False, changed_by=ADMIN_ID)

    await send("hi")

    assert "registrations are closed" in channel.last_text(USER_ID)
    assert await session_service.get_session(USER_ID) is None
    assert await user_service.get_profile(USER_ID) is None


async def test_authorized_group_members_may_register_while_closed(send, channel, monkeypatch):
    monkeypatch.setattr(settings, "AUTHORIZED_GROUP_ID", "-100200300")
    channel.group_members.add(USER_ID)
    await settings_service.set_registrations_open(False, changed_by=ADMIN_ID)

    await send("hi")

    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_BRAND_NAME


async def test_admins_may_register_while_closed(send, admins):
    await settings_service.set_registrations_open(False, changed_by=ADMIN_ID)

    await send("hi", user_id=ADMIN_ID)

    assert (await session_service.get_session(ADMIN_ID)).state == ConversationState.AWAITING_BRAND_NAME


async def test_profileless_command_starts_onboarding(send, channel):
    await send("new receipt")
    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_BRAND_NAME


async def test_profileless_user_can_list_commands(send, channel):
    await send("commands")
    assert "available commands" in channel.last_text(USER_ID)
    assert await session_service.get_session(USER_ID) is None
