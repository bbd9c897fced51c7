"""
smartreceipt/flow/handlers/admin.py

Handles: admin bot settings

- settings: numbered menu showing the registrations flag
- 1: ask to confirm the toggle
- yes/no: apply or discard
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import AdminSettingsDraft
from smartreceipt.services import session_service, settings_service
from smartreceipt.utils.constants import (
    ADMIN_SETTINGS_CONFIRM_MESSAGE,
    ADMIN_SETTINGS_MENU_MESSAGE,
    ADMIN_SETTINGS_SAVED_MESSAGE,
    ADMIN_SETTINGS_UNCHANGED_MESSAGE,
    ADMIN_YES_NO_MESSAGE,
    POOL_INVALID_CHOICE,
)


def _status(is_open: bool) -> str:
    return "OPEN" if is_open else "CLOSED"


async def handle_admin_settings(ctx: MessageContext) -> Dict[str, Any]:
    is_open = await settings_service.registrations_open()
    await session_service.save_session(ctx.user_id, ConversationState.ADMIN_SETTINGS_MENU, AdminSettingsDraft())
    return {"message": ADMIN_SETTINGS_MENU_MESSAGE.format(status=_status(is_open))}


async def handle_settings_menu_choice(ctx: MessageContext) -> Dict[str, Any]:
    if ctx.text != "1":
        return {"message": ctx.pick(POOL_INVALID_CHOICE)}

    target = not await settings_service.registrations_open()
    await session_service.save_session(
        ctx.user_id,
        ConversationState.ADMIN_SETTINGS_CONFIRM,
        AdminSettingsDraft(pending_registrations_open=target),
    )
    return {"message": ADMIN_SETTINGS_CONFIRM_MESSAGE.format(target=_status(target))}


async def handle_settings_confirm(ctx: MessageContext) -> Dict[str, Any]:
    draft: AdminSettingsDraft = ctx.draft

    if ctx.lower_text == "yes":
        if draft.pending_registrations_open is None:
            await session_service.clear_session(ctx.user_id)
            return {"message": ADMIN_SETTINGS_UNCHANGED_MESSAGE}
        await settings_service.set_registrations_open(draft.pending_registrations_open, changed_by=ctx.user_id)
        await session_service.clear_session(ctx.user_id)
        return {"message": ADMIN_SETTINGS_SAVED_MESSAGE.format(status=_status(draft.pending_registrations_open))}

    if ctx.lower_text == "no":
        await session_service.clear_session(ctx.user_id)
        return {"message": ADMIN_SETTINGS_UNCHANGED_MESSAGE}

    return {"message": ADMIN_YES_NO_MESSAGE}
