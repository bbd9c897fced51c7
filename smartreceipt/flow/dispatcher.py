"""
smartreceipt/flow/dispatcher.py

Purpose: Central message dispatcher

- Receives normalized messages from any channel adapter
- Holds the per-user guard for the whole pass (drops re-entrant messages)
- Loads profile + session, classifies the text, applies the paywall
- Routes to the flow handler and sends its response
- Converts any failure into an apology; stale sessions fall back to idle
"""

import random
from typing import Any, Awaitable, Callable, Dict, Optional

from smartreceipt.channels.base import MessagingChannel
from smartreceipt.core.concurrency import ConcurrencyGuard, processing_guard
from smartreceipt.core.exceptions import StateConsistencyError
from smartreceipt.core.logging import LogContext, get_logger
from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.handlers import (
    account, admin, brand, catalog, commands, edit, history, onboarding, payment, receipt, support,
)
from smartreceipt.flow.router import Route, RouteKind, classify
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.message import IncomingMessage
from smartreceipt.services import session_service, user_service
from smartreceipt.services.paywall import GateDecision, gate
from smartreceipt.services.renderer import Renderer
from smartreceipt.utils import constants as c

logger = get_logger(__name__)

Handler = Callable[[MessageContext], Awaitable[Dict[str, Any]]]

S = ConversationState

STATE_HANDLERS: Dict[ConversationState, Handler] = {
    # Onboarding
    S.AWAITING_BRAND_NAME: onboarding.handle_brand_name,
    S.AWAITING_BRAND_COLOR: onboarding.handle_brand_color,
    S.AWAITING_LOGO: onboarding.handle_logo,
    S.AWAITING_ADDRESS: onboarding.handle_address,
    S.AWAITING_CONTACT_INFO: onboarding.handle_contact_info,
    # Receipt creation
    S.RECEIPT_CUSTOMER_NAME: receipt.handle_customer_name,
    S.RECEIPT_ITEMS: receipt.handle_items,
    S.RECEIPT_MANUAL_PRICES: receipt.handle_manual_prices,
    S.RECEIPT_PAYMENT_METHOD: receipt.handle_payment_method,
    S.AWAITING_INITIAL_FORMAT_CHOICE: receipt.handle_initial_format_choice,
    # Editing
    S.AWAITING_EDIT_CHOICE: edit.handle_edit_choice,
    S.EDITING_CUSTOMER_NAME: edit.handle_editing_customer_name,
    S.EDITING_ITEMS: edit.handle_editing_items,
    S.EDITING_PRICES: edit.handle_editing_prices,
    S.EDITING_PAYMENT_METHOD: edit.handle_editing_payment_method,
    # Catalog
    S.ADDING_PRODUCT_NAME: catalog.handle_product_name,
    S.ADDING_PRODUCT_PRICE: catalog.handle_product_price,
    # Brand and preferences
    S.AWAITING_MYBRAND_CHOICE: brand.handle_mybrand_choice,
    S.UPDATING_BRAND_NAME: brand.handle_text_update,
    S.UPDATING_BRAND_COLOR: brand.handle_text_update,
    S.UPDATING_LOGO: brand.handle_logo_update,
    S.UPDATING_ADDRESS: brand.handle_text_update,
    S.UPDATING_CONTACT_INFO: brand.handle_contact_update,
    S.AWAITING_FORMAT_CHOICE: brand.handle_format_choice,
    S.AWAITING_TEMPLATE_CHOICE: brand.handle_template_choice,
    # History
    S.AWAITING_HISTORY_CHOICE: history.handle_history_choice,
    # Paywall
    S.AWAITING_PAYMENT_DECISION: payment.handle_payment_decision,
    # Support
    S.AWAITING_SUPPORT_MESSAGE: support.handle_new_ticket,
    S.IN_SUPPORT_CONVERSATION: support.handle_ticket_response,
    # Admin settings
    S.ADMIN_SETTINGS_MENU: admin.handle_settings_menu_choice,
    S.ADMIN_SETTINGS_CONFIRM: admin.handle_settings_confirm,
}

COMMAND_HANDLERS: Dict[str, Handler] = {
    c.CMD_NEW_RECEIPT: receipt.start_new_receipt,
    c.CMD_EDIT: edit.start_edit,
    c.CMD_HISTORY: history.handle_history,
    c.CMD_STATS: history.handle_stats,
    c.CMD_EXPORT: history.handle_export,
    c.CMD_PRODUCTS: catalog.handle_products,
    c.CMD_ADD_PRODUCT: catalog.start_add_product,
    c.CMD_REMOVE_PRODUCT: catalog.handle_remove_product,
    c.CMD_MYBRAND: brand.start_mybrand,
    c.CMD_FORMAT: brand.start_format,
    c.CMD_CHANGE_RECEIPT: brand.start_template,
    c.CMD_BACKUP: account.handle_backup,
    c.CMD_RESTORE: account.handle_restore,
    c.CMD_COMMANDS: commands.handle_commands,
    c.CMD_CANCEL: commands.handle_cancel,
}

ADMIN_HANDLERS: Dict[str, Handler] = {
    c.CMD_TICKETS: support.handle_admin_tickets,
    c.CMD_REPLY: support.handle_admin_reply,
    c.CMD_CLOSE: support.handle_admin_close,
    c.CMD_SETTINGS: admin.handle_admin_settings,
}

# Admin commands that work on tickets leave the admin's own session alone
SESSIONLESS_ADMIN_COMMANDS = (c.CMD_TICKETS, c.CMD_REPLY, c.CMD_CLOSE)


async def dispatch_message(
    message: IncomingMessage,
    channel: MessagingChannel,
    renderer: Optional[Renderer] = None,
    guard: Optional[ConcurrencyGuard] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """
    Main dispatcher for incoming chat messages

    Args:
        message: Normalized message
        channel: Channel used for every reply
        renderer: Rendering collaborator for receipts (process-wide one if omitted)
        guard: Concurrency guard (process-wide one if omitted)
        rng: Random source for reply pools

    Returns:
        {"status": "success" | "dropped" | "reset" | "error"}
    """
    guard = guard or processing_guard

    async with guard.hold(message.user_id) as acquired:
        if not acquired:
            return {"status": "dropped"}

        with LogContext(user_id=message.user_id, platform=message.platform):
            logger.info(f"📨 Dispatching message: {message.text[:50] if message.text else '<media>'}")
            ctx = MessageContext(message=message, channel=channel, renderer=renderer, rng=rng)

            try:
                await process_message(ctx)
                return {"status": "success"}

            except StateConsistencyError as e:
                logger.warning(f"⚠️ Stale session, resetting: {e.message}")
                await session_service.clear_session(message.user_id)
                await _send_idle_fallback(ctx)
                return {"status": "reset"}

            except Exception as e:
                logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
                try:
                    await channel.send_text(message.user_id, c.TECHNICAL_ERROR_MESSAGE)
                except Exception as send_error:
                    logger.error(f"Failed to send error message: {send_error}")
                return {"status": "error", "error": str(e)}


async def _send_idle_fallback(ctx: MessageContext) -> None:
    if ctx.profile is None:
        await ctx.reload_profile()
    if ctx.profile:
        response = await commands.handle_idle(ctx)
        await ctx.reply(response["message"])
    else:
        await ctx.reply(c.CONFUSED_MESSAGE)


async def process_message(ctx: MessageContext) -> None:
    """
    One pass: load state, route, run the handler, send its response.
    """
    ctx.profile = await user_service.get_profile(ctx.user_id)
    ctx.session = await session_service.get_session(ctx.user_id)

    route = classify(
        ctx.message.text,
        ctx.state,
        is_admin=ctx.is_admin,
        has_profile=ctx.profile is not None,
    )
    logger.info(f"🚦 Route: {route.kind.value} {route.command or ''} (state={ctx.state.value if ctx.state else None})")

    handler = await resolve_handler(ctx, route)
    response = await handler(ctx)
    await send_response(ctx, response)


async def _discard_session(ctx: MessageContext) -> None:
    if ctx.session is not None:
        await session_service.clear_session(ctx.user_id)
        ctx.session = None


async def resolve_handler(ctx: MessageContext, route: Route) -> Handler:
    """
    Picks the handler for a route. Commands discard the active session
    first; premium commands may be diverted to the paywall.
    """
    ctx.argument = route.argument

    if route.kind == RouteKind.ADMIN_COMMAND:
        if route.command not in SESSIONLESS_ADMIN_COMMANDS:
            await _discard_session(ctx)
        return ADMIN_HANDLERS[route.command]

    if route.kind == RouteKind.SUPPORT_COMMAND:
        await _discard_session(ctx)
        return support.handle_support_command

    if route.kind == RouteKind.COMMAND:
        await _discard_session(ctx)
        if ctx.profile is None and route.command not in c.PROFILELESS_COMMANDS:
            return onboarding.start_onboarding

        if ctx.profile is not None and gate(ctx.profile, route.command, user_id=ctx.user_id) == GateDecision.REQUIRE_PAYMENT:
            command = route.command

            async def paywall(context: MessageContext) -> Dict[str, Any]:
                return await payment.require_payment(context, command)

            return paywall

        return COMMAND_HANDLERS[route.command]

    if route.kind == RouteKind.SCOPED_INPUT:
        return STATE_HANDLERS[ctx.state]

    if route.kind == RouteKind.ONBOARDING:
        return onboarding.start_onboarding

    return commands.handle_idle


async def send_response(ctx: MessageContext, response: Optional[Dict[str, Any]]) -> None:
    """
    Sends the handler's text response, if any
    """
    message_text = (response or {}).get("message")
    if not message_text:
        return

    logger.debug(f"📤 Sending response: {message_text[:100]}")
    await ctx.channel.send_text(ctx.user_id, message_text)
