"""
smartreceipt/flow/handlers/payment.py

Handles: paywall decision

- Entered when a premium command is blocked
- yes: create a virtual account to pay into
- no: acknowledge; anything else re-prompts
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import PaywallDraft
from smartreceipt.services import payment_service, session_service
from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    GENERATING_ACCOUNT_MESSAGE,
    PAYMENT_PHONE_REQUIRED_MESSAGE,
    PAYWALL_DECLINED_MESSAGE,
    PAYWALL_MESSAGE,
    PAYWALL_YES_NO_MESSAGE,
    VIRTUAL_ACCOUNT_FAILED_MESSAGE,
    VIRTUAL_ACCOUNT_MESSAGE,
)
from smartreceipt.utils.parsing import format_amount

logger = get_logger(__name__)


async def require_payment(ctx: MessageContext, command: str) -> Dict[str, Any]:
    """
    Moves the user to the payment decision instead of running `command`.
    """
    profile = ctx.require_profile()
    logger.info(f"💳 Paywall hit on '{command}'")
    await session_service.save_session(
        ctx.user_id,
        ConversationState.AWAITING_PAYMENT_DECISION,
        PaywallDraft(blocked_command=command),
    )
    return {
        "message": PAYWALL_MESSAGE.format(
            brand_name=profile.get("brand_name", ""),
            limit=settings.FREE_TRIAL_LIMIT,
            fee=format_amount(settings.SUBSCRIPTION_FEE),
            months=settings.SUBSCRIPTION_MONTHS,
        )
    }


async def handle_payment_decision(ctx: MessageContext) -> Dict[str, Any]:
    answer = ctx.lower_text

    if answer == "yes":
        profile = ctx.require_profile()
        if payment_service.payment_phone_for(profile) is None:
            await session_service.clear_session(ctx.user_id)
            return {"message": PAYMENT_PHONE_REQUIRED_MESSAGE}

        await ctx.reply(GENERATING_ACCOUNT_MESSAGE)
        account = await payment_service.create_virtual_account(profile)
        await session_service.clear_session(ctx.user_id)
        if account is None:
            return {"message": VIRTUAL_ACCOUNT_FAILED_MESSAGE}
        return {
            "message": VIRTUAL_ACCOUNT_MESSAGE.format(
                months=settings.SUBSCRIPTION_MONTHS,
                fee=format_amount(settings.SUBSCRIPTION_FEE),
                bank_name=account.bank_name,
                account_number=account.account_number,
            )
        }

    if answer == "no":
        await session_service.clear_session(ctx.user_id)
        return {"message": PAYWALL_DECLINED_MESSAGE}

    return {"message": PAYWALL_YES_NO_MESSAGE}
