"""
smartreceipt/flow/handlers/support.py

Handles: support tickets

- support: open a ticket, or resume the user's open one
- awaiting_support_message: first message creates the ticket, admins notified
- in_support_conversation: further messages thread onto the same ticket;
  "close ticket" closes it
- Admin commands (outside any session): tickets, reply <id> <text>, close <id>
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from smartreceipt.channels.base import MessagingChannel
from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState, FlowFamily, get_family
from smartreceipt.schemas.drafts import TicketRef
from smartreceipt.services import session_service, ticket_service
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import ExternalServiceError, StateConsistencyError
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    ADMIN_NEW_TICKET_NOTIFICATION,
    ADMIN_REPLY_NOT_DELIVERED_MESSAGE,
    ADMIN_REPLY_SENT_MESSAGE,
    ADMIN_REPLY_TO_USER_MESSAGE,
    ADMIN_TICKET_UPDATE_NOTIFICATION,
    CLOSE_TICKET_KEYWORD,
    CLOSE_USAGE_MESSAGE,
    NO_OPEN_TICKETS_MESSAGE,
    OPEN_TICKET_LINE,
    OPEN_TICKETS_FOOTER,
    OPEN_TICKETS_HEADER,
    REPLY_USAGE_MESSAGE,
    SUPPORT_CONNECTED_MESSAGE,
    SUPPORT_RESUMED_MESSAGE,
    TICKET_ALREADY_CLOSED_MESSAGE,
    TICKET_AMBIGUOUS_MESSAGE,
    TICKET_CLOSED_ADMIN_MESSAGE,
    TICKET_CLOSED_BY_USER_MESSAGE,
    TICKET_CLOSED_OTHER_ADMINS_MESSAGE,
    TICKET_CLOSED_USER_NOTICE,
    TICKET_CREATED_MESSAGE,
    TICKET_MESSAGE_ADDED,
    TICKET_NO_LONGER_OPEN_MESSAGE,
    TICKET_NOT_FOUND_MESSAGE,
)

logger = get_logger(__name__)


async def notify_admins(channel: MessagingChannel, text: str, exclude: Iterable[str] = ()) -> int:
    """
    Sends `text` to every admin. Delivery failures are logged, not raised.

    Returns:
        Number of admins reached
    """
    delivered = 0
    for admin_id in settings.ADMIN_IDS:
        if admin_id in exclude:
            continue
        try:
            await channel.send_text(admin_id, text)
            delivered += 1
        except Exception as e:
            logger.error(f"Failed to send notification to admin {admin_id}: {e}")
    return delivered


def _brand_name(ctx: MessageContext) -> str:
    return (ctx.profile or {}).get("brand_name") or ctx.user_id


# ============================================================
# USER SIDE
# ============================================================

async def handle_support_command(ctx: MessageContext) -> Dict[str, Any]:
    ticket = await ticket_service.get_open_ticket_for_user(ctx.user_id)
    if ticket:
        await session_service.save_session(
            ctx.user_id,
            ConversationState.IN_SUPPORT_CONVERSATION,
            TicketRef(ticket_id=ticket["ticket_id"]),
        )
        return {"message": SUPPORT_RESUMED_MESSAGE.format(ticket_id=ticket["ticket_id"])}

    await session_service.save_session(ctx.user_id, ConversationState.AWAITING_SUPPORT_MESSAGE, TicketRef())
    return {"message": SUPPORT_CONNECTED_MESSAGE}


async def handle_new_ticket(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": SUPPORT_CONNECTED_MESSAGE}

    brand_name = _brand_name(ctx)
    ticket = await ticket_service.create_ticket(ctx.user_id, brand_name, ctx.text)
    ticket_id = ticket["ticket_id"]

    await session_service.save_session(
        ctx.user_id,
        ConversationState.IN_SUPPORT_CONVERSATION,
        TicketRef(ticket_id=ticket_id),
    )
    await ctx.reply(TICKET_CREATED_MESSAGE.format(ticket_id=ticket_id))

    await notify_admins(
        ctx.channel,
        ADMIN_NEW_TICKET_NOTIFICATION.format(brand_name=brand_name, ticket_id=ticket_id, message=ctx.text),
    )
    return {}


async def handle_ticket_response(ctx: MessageContext) -> Dict[str, Any]:
    draft: TicketRef = ctx.draft
    if not draft.ticket_id:
        raise StateConsistencyError("Support conversation without a ticket")

    if ctx.lower_text == CLOSE_TICKET_KEYWORD:
        await ticket_service.close_ticket(draft.ticket_id, closed_by=ctx.user_id)
        await session_service.clear_session(ctx.user_id)
        return {"message": TICKET_CLOSED_BY_USER_MESSAGE}

    if not ctx.text:
        return {}

    if not await ticket_service.append_message(draft.ticket_id, ticket_service.SENDER_USER, ctx.text):
        await session_service.clear_session(ctx.user_id)
        return {"message": TICKET_NO_LONGER_OPEN_MESSAGE}

    await notify_admins(
        ctx.channel,
        ADMIN_TICKET_UPDATE_NOTIFICATION.format(
            ticket_id=draft.ticket_id, brand_name=_brand_name(ctx), message=ctx.text
        ),
    )
    return {"message": TICKET_MESSAGE_ADDED}


# ============================================================
# ADMIN SIDE
# ============================================================

async def resolve_ticket(fragment: str) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Finds the one ticket whose id contains `fragment` (case-insensitive).

    An exact id match wins over other partial matches.

    Returns:
        (ticket, None) on a unique match, else (None, error message)
    """
    matches = await ticket_service.find_tickets_by_fragment(fragment)
    if not matches:
        return None, TICKET_NOT_FOUND_MESSAGE

    exact = [t for t in matches if t["ticket_id"].lower() == fragment.strip().lower()]
    if len(exact) == 1:
        return exact[0], None
    if len(matches) > 1:
        ids = ", ".join(t["ticket_id"] for t in matches[:5])
        return None, TICKET_AMBIGUOUS_MESSAGE.format(fragment=fragment, matches=ids)
    return matches[0], None


async def handle_admin_tickets(ctx: MessageContext) -> Dict[str, Any]:
    tickets: List[Dict[str, Any]] = await ticket_service.list_open_tickets()
    if not tickets:
        return {"message": NO_OPEN_TICKETS_MESSAGE}

    message = OPEN_TICKETS_HEADER
    for ticket in tickets:
        messages = ticket.get("messages") or [{}]
        message += OPEN_TICKET_LINE.format(
            brand_name=ticket.get("brand_name", ""),
            ticket_id=ticket["ticket_id"],
            last_message=messages[-1].get("message", ""),
        )
    return {"message": message + OPEN_TICKETS_FOOTER}


async def handle_admin_reply(ctx: MessageContext) -> Dict[str, Any]:
    parts = ctx.argument.split(None, 1)
    if len(parts) < 2 or not parts[1].strip():
        return {"message": REPLY_USAGE_MESSAGE}

    fragment, reply_text = parts[0], parts[1].strip()
    ticket, error = await resolve_ticket(fragment)
    if error:
        return {"message": error}

    ticket_id = ticket["ticket_id"]
    if ticket.get("status") != ticket_service.STATUS_OPEN:
        return {"message": TICKET_ALREADY_CLOSED_MESSAGE.format(ticket_id=ticket_id)}

    # Deliver first so a failed send leaves no log entry behind
    try:
        await ctx.channel.send_text(
            ticket["user_id"],
            ADMIN_REPLY_TO_USER_MESSAGE.format(ticket_id=ticket_id, message=reply_text),
        )
    except ExternalServiceError as e:
        logger.error(f"Reply to {ticket_id} not delivered: {e}", extra={"ticket_id": ticket_id})
        return {"message": ADMIN_REPLY_NOT_DELIVERED_MESSAGE.format(ticket_id=ticket_id)}

    if not await ticket_service.append_message(ticket_id, ticket_service.SENDER_ADMIN, reply_text):
        return {"message": TICKET_ALREADY_CLOSED_MESSAGE.format(ticket_id=ticket_id)}

    logger.info("Admin replied to ticket", extra={"ticket_id": ticket_id})
    return {"message": ADMIN_REPLY_SENT_MESSAGE.format(ticket_id=ticket_id)}


async def _end_owner_support_session(owner_id: str) -> None:
    """The owner must not stay mid-thread on a closed ticket."""
    try:
        session = await session_service.get_session(owner_id)
    except StateConsistencyError:
        await session_service.clear_session(owner_id)
        return
    if session and get_family(session.state) == FlowFamily.SUPPORT:
        await session_service.clear_session(owner_id)


async def handle_admin_close(ctx: MessageContext) -> Dict[str, Any]:
    fragment = ctx.argument.split(None, 1)[0] if ctx.argument.strip() else ""
    if not fragment:
        return {"message": CLOSE_USAGE_MESSAGE}

    ticket, error = await resolve_ticket(fragment)
    if error:
        return {"message": error}

    ticket_id = ticket["ticket_id"]
    if not await ticket_service.close_ticket(ticket_id, closed_by=ctx.user_id):
        return {"message": TICKET_ALREADY_CLOSED_MESSAGE.format(ticket_id=ticket_id)}

    owner_id = ticket["user_id"]
    await _end_owner_support_session(owner_id)

    try:
        await ctx.channel.send_text(owner_id, TICKET_CLOSED_USER_NOTICE.format(ticket_id=ticket_id))
    except Exception as e:
        logger.error(f"Failed to notify ticket owner {owner_id}: {e}")

    await notify_admins(
        ctx.channel,
        TICKET_CLOSED_OTHER_ADMINS_MESSAGE.format(ticket_id=ticket_id),
        exclude=(ctx.user_id,),
    )
    return {"message": TICKET_CLOSED_ADMIN_MESSAGE.format(ticket_id=ticket_id)}
