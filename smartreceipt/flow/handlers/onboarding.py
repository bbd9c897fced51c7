"""
smartreceipt/flow/handlers/onboarding.py

Handles: new-user setup

- Gate on the global registrations flag (admins and group members bypass)
- brand name -> color -> logo (optional) -> address -> contact info
- Each step persists exactly one field before advancing
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState, get_progress_message
from smartreceipt.schemas.drafts import OnboardingDraft
from smartreceipt.services import media_service, session_service, settings_service, user_service
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import ExternalServiceError, StateConsistencyError
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    ASK_ADDRESS_MESSAGE,
    ASK_BRAND_COLOR_MESSAGE,
    ASK_CONTACT_MESSAGE,
    ASK_LOGO_MESSAGE,
    LOGO_NOT_IMAGE_MESSAGE,
    LOGO_RECEIVED_MESSAGE,
    LOGO_UPLOAD_FAILED_ONBOARDING_MESSAGE,
    LOGO_UPLOADED_MESSAGE,
    ONBOARDING_COMPLETE_MESSAGE,
    REGISTRATIONS_CLOSED_MESSAGE,
    SKIP_KEYWORD,
    WELCOME_NEW_USER_MESSAGE,
)
from smartreceipt.utils.parsing import parse_contact_info

logger = get_logger(__name__)


def _with_progress(message: str, state: ConversationState) -> str:
    return f"{message}\n\n{get_progress_message(state)}"


async def _advance(ctx: MessageContext, state: ConversationState, message: str) -> Dict[str, Any]:
    await session_service.save_session(ctx.user_id, state, OnboardingDraft())
    return {"message": _with_progress(message, state)}


async def _set_field(ctx: MessageContext, fields: Dict[str, Any]) -> None:
    if not await user_service.update_profile(ctx.user_id, fields):
        raise StateConsistencyError("Onboarding step without a profile")


async def can_register(ctx: MessageContext) -> bool:
    """
    Registrations may be closed by an admin; admins and members of the
    authorized group can still sign up.
    """
    if await settings_service.registrations_open():
        return True
    if ctx.is_admin:
        return True
    if settings.AUTHORIZED_GROUP_ID:
        return await ctx.channel.is_group_member(ctx.user_id, settings.AUTHORIZED_GROUP_ID)
    return False


async def start_onboarding(ctx: MessageContext) -> Dict[str, Any]:
    if not await can_register(ctx):
        logger.info("Registration refused, registrations are closed")
        return {"message": REGISTRATIONS_CLOSED_MESSAGE}

    logger.info("👋 Starting onboarding")
    return await _advance(ctx, ConversationState.AWAITING_BRAND_NAME, WELCOME_NEW_USER_MESSAGE)


async def handle_brand_name(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": _with_progress(WELCOME_NEW_USER_MESSAGE, ConversationState.AWAITING_BRAND_NAME)}

    await user_service.create_profile(ctx.user_id, ctx.text)
    return await _advance(
        ctx,
        ConversationState.AWAITING_BRAND_COLOR,
        ASK_BRAND_COLOR_MESSAGE.format(brand_name=ctx.text),
    )


async def handle_brand_color(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": ASK_BRAND_COLOR_MESSAGE.format(brand_name=(ctx.profile or {}).get("brand_name", ""))}

    await _set_field(ctx, {"brand_color": ctx.text})
    return await _advance(ctx, ConversationState.AWAITING_LOGO, ASK_LOGO_MESSAGE)


async def receive_logo(ctx: MessageContext) -> bool:
    """
    Downloads the attached image and hosts it.

    Returns:
        True if the profile now has the new logo
    """
    try:
        image = await ctx.channel.download_media(ctx.message)
    except ExternalServiceError as e:
        logger.error(f"Logo download failed: {e.message}")
        return False

    logo_url = await media_service.upload_logo(image)
    if not logo_url:
        return False

    await _set_field(ctx, {"logo_url": logo_url})
    return True


async def handle_logo(ctx: MessageContext) -> Dict[str, Any]:
    if ctx.message.has_media:
        await ctx.reply(LOGO_RECEIVED_MESSAGE)
        if await receive_logo(ctx):
            await ctx.reply(LOGO_UPLOADED_MESSAGE)
        else:
            await ctx.reply(LOGO_UPLOAD_FAILED_ONBOARDING_MESSAGE)
    elif ctx.lower_text != SKIP_KEYWORD:
        return {"message": LOGO_NOT_IMAGE_MESSAGE}

    return await _advance(ctx, ConversationState.AWAITING_ADDRESS, ASK_ADDRESS_MESSAGE)


async def handle_address(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": ASK_ADDRESS_MESSAGE}

    await _set_field(ctx, {"address": ctx.text})
    return await _advance(ctx, ConversationState.AWAITING_CONTACT_INFO, ASK_CONTACT_MESSAGE)


async def handle_contact_info(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": ASK_CONTACT_MESSAGE}

    email, phone = parse_contact_info(ctx.text)
    await _set_field(ctx, {
        "contact_info": ctx.text,
        "contact_email": email,
        "contact_phone": phone,
        "onboarding_complete": True,
    })
    await session_service.clear_session(ctx.user_id)

    logger.info("✅ Onboarding complete")
    return {"message": ONBOARDING_COMPLETE_MESSAGE}
