"""
smartreceipt/flow/handlers/commands.py

Handles: general commands

- commands: list what the bot can do (admins see their extra commands)
- cancel: the active session was already discarded by the dispatcher
- idle greeting for users with a profile and nothing in progress
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.utils.constants import (
    ACTION_CANCELLED_MESSAGE,
    ADMIN_COMMANDS_SUFFIX,
    COMMANDS_LIST_MESSAGE,
    IDLE_GREETING,
)


async def handle_commands(ctx: MessageContext) -> Dict[str, Any]:
    message = COMMANDS_LIST_MESSAGE
    if ctx.is_admin:
        message += ADMIN_COMMANDS_SUFFIX
    return {"message": message}


async def handle_cancel(ctx: MessageContext) -> Dict[str, Any]:
    return {"message": ACTION_CANCELLED_MESSAGE}


async def handle_idle(ctx: MessageContext) -> Dict[str, Any]:
    brand_name = (ctx.profile or {}).get("brand_name") or "there"
    return {"message": IDLE_GREETING.format(brand_name=brand_name)}
