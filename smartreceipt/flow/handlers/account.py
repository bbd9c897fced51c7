"""
smartreceipt/flow/handlers/account.py

Handles: account backup and restore

- backup: issue (once) and show the recovery code
- restore <code>: re-link the code's profile to the current identity
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.services import user_service
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    BACKUP_CODE_MESSAGE,
    BACKUP_REQUIRES_SETUP_MESSAGE,
    RESTORE_INVALID_CODE_MESSAGE,
    RESTORE_SELF_MESSAGE,
    RESTORE_SUCCESS_MESSAGE,
    RESTORE_USAGE_MESSAGE,
)

logger = get_logger(__name__)


async def handle_backup(ctx: MessageContext) -> Dict[str, Any]:
    profile = ctx.profile
    if not profile or not profile.get("onboarding_complete"):
        return {"message": BACKUP_REQUIRES_SETUP_MESSAGE}

    code = await user_service.get_or_create_backup_code(profile)
    return {"message": BACKUP_CODE_MESSAGE.format(code=code)}


async def handle_restore(ctx: MessageContext) -> Dict[str, Any]:
    """
    Exchanges a backup code for the profile it belongs to.

    The profile (if any) under the current identity is replaced, never
    duplicated.
    """
    code = ctx.argument.strip()
    if not code:
        return {"message": RESTORE_USAGE_MESSAGE}

    restored = await user_service.find_by_backup_code(code)
    if not restored:
        logger.info("Restore attempted with an unknown code")
        return {"message": RESTORE_INVALID_CODE_MESSAGE}

    if restored["user_id"] == ctx.user_id:
        return {"message": RESTORE_SELF_MESSAGE}

    await user_service.restore_account(ctx.user_id, restored)
    await ctx.reload_profile()
    return {"message": RESTORE_SUCCESS_MESSAGE.format(brand_name=restored.get("brand_name", ""))}
