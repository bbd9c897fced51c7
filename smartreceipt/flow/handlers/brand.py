"""
smartreceipt/flow/handlers/brand.py

Handles: brand settings and receipt preferences

- mybrand: numbered menu -> single-field update -> confirmation, session cleared
- format: PNG or PDF
- changereceipt: template number
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.handlers.onboarding import receive_logo
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import BrandDraft
from smartreceipt.services import session_service, user_service
from smartreceipt.services.receipt_pipeline import FORMAT_PDF, FORMAT_PNG
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import StateConsistencyError
from smartreceipt.utils.constants import (
    ASK_NEW_ADDRESS_MESSAGE,
    ASK_NEW_BRAND_COLOR_MESSAGE,
    ASK_NEW_BRAND_NAME_MESSAGE,
    ASK_NEW_CONTACT_MESSAGE,
    ASK_NEW_LOGO_MESSAGE,
    FORMAT_MENU_MESSAGE,
    FORMAT_SAVED_MESSAGE,
    INVALID_FORMAT_CHOICE_MESSAGE,
    INVALID_TEMPLATE_CHOICE_MESSAGE,
    LOGO_UPDATE_FAILED_MESSAGE,
    LOGO_UPDATE_NOT_IMAGE_MESSAGE,
    LOGO_UPDATED_MESSAGE,
    MYBRAND_MENU_MESSAGE,
    NEW_LOGO_RECEIVED_MESSAGE,
    POOL_INVALID_CHOICE,
    POOL_UPDATE_SUCCESS,
    TEMPLATE_MENU_MESSAGE,
    TEMPLATE_SAVED_MESSAGE,
)
from smartreceipt.utils.parsing import parse_contact_info

MYBRAND_MENU = {
    "1": (ConversationState.UPDATING_BRAND_NAME, ASK_NEW_BRAND_NAME_MESSAGE),
    "2": (ConversationState.UPDATING_BRAND_COLOR, ASK_NEW_BRAND_COLOR_MESSAGE),
    "3": (ConversationState.UPDATING_LOGO, ASK_NEW_LOGO_MESSAGE),
    "4": (ConversationState.UPDATING_ADDRESS, ASK_NEW_ADDRESS_MESSAGE),
    "5": (ConversationState.UPDATING_CONTACT_INFO, ASK_NEW_CONTACT_MESSAGE),
}

# Field and prompt of each single-field text update state
TEXT_FIELDS = {
    ConversationState.UPDATING_BRAND_NAME: ("brand_name", ASK_NEW_BRAND_NAME_MESSAGE),
    ConversationState.UPDATING_BRAND_COLOR: ("brand_color", ASK_NEW_BRAND_COLOR_MESSAGE),
    ConversationState.UPDATING_ADDRESS: ("address", ASK_NEW_ADDRESS_MESSAGE),
}

FORMAT_CHOICES = {"1": FORMAT_PNG, "2": FORMAT_PDF}


async def start_mybrand(ctx: MessageContext) -> Dict[str, Any]:
    await session_service.save_session(ctx.user_id, ConversationState.AWAITING_MYBRAND_CHOICE, BrandDraft())
    return {"message": MYBRAND_MENU_MESSAGE}


async def handle_mybrand_choice(ctx: MessageContext) -> Dict[str, Any]:
    choice = MYBRAND_MENU.get(ctx.text)
    if choice is None:
        return {"message": ctx.pick(POOL_INVALID_CHOICE)}

    state, prompt = choice
    await session_service.save_session(ctx.user_id, state, BrandDraft())
    return {"message": prompt}


async def _updated(ctx: MessageContext, fields: Dict[str, Any]) -> Dict[str, Any]:
    if not await user_service.update_profile(ctx.user_id, fields):
        raise StateConsistencyError("Brand update without a profile")
    await session_service.clear_session(ctx.user_id)
    return {"message": ctx.pick(POOL_UPDATE_SUCCESS)}


async def handle_text_update(ctx: MessageContext) -> Dict[str, Any]:
    """Brand name, color and address updates."""
    field, prompt = TEXT_FIELDS[ctx.state]
    if not ctx.text:
        return {"message": prompt}
    return await _updated(ctx, {field: ctx.text})


async def handle_contact_update(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": ASK_NEW_CONTACT_MESSAGE}

    email, phone = parse_contact_info(ctx.text)
    return await _updated(ctx, {
        "contact_info": ctx.text,
        "contact_email": email,
        "contact_phone": phone,
    })


async def handle_logo_update(ctx: MessageContext) -> Dict[str, Any]:
    """
    One attempt only: the update ends whether or not an image arrived.
    """
    if not ctx.message.has_media:
        await session_service.clear_session(ctx.user_id)
        return {"message": LOGO_UPDATE_NOT_IMAGE_MESSAGE}

    await ctx.reply(NEW_LOGO_RECEIVED_MESSAGE)
    uploaded = await receive_logo(ctx)
    await session_service.clear_session(ctx.user_id)
    return {"message": LOGO_UPDATED_MESSAGE if uploaded else LOGO_UPDATE_FAILED_MESSAGE}


async def start_format(ctx: MessageContext) -> Dict[str, Any]:
    await session_service.save_session(ctx.user_id, ConversationState.AWAITING_FORMAT_CHOICE, BrandDraft())
    return {"message": FORMAT_MENU_MESSAGE}


async def handle_format_choice(ctx: MessageContext) -> Dict[str, Any]:
    fmt = FORMAT_CHOICES.get(ctx.text)
    if fmt is None:
        return {"message": INVALID_FORMAT_CHOICE_MESSAGE}

    await user_service.update_profile(ctx.user_id, {"receipt_format": fmt})
    await session_service.clear_session(ctx.user_id)
    return {"message": FORMAT_SAVED_MESSAGE.format(format=fmt)}


async def start_template(ctx: MessageContext) -> Dict[str, Any]:
    await session_service.save_session(ctx.user_id, ConversationState.AWAITING_TEMPLATE_CHOICE, BrandDraft())
    return {"message": TEMPLATE_MENU_MESSAGE.format(count=settings.TEMPLATE_COUNT)}


async def handle_template_choice(ctx: MessageContext) -> Dict[str, Any]:
    choice = int(ctx.text) if ctx.text.isdecimal() else 0
    if not 1 <= choice <= settings.TEMPLATE_COUNT:
        return {"message": INVALID_TEMPLATE_CHOICE_MESSAGE.format(count=settings.TEMPLATE_COUNT)}

    await user_service.update_profile(ctx.user_id, {"preferred_template": choice})
    await session_service.clear_session(ctx.user_id)
    return {"message": TEMPLATE_SAVED_MESSAGE.format(template=choice)}
