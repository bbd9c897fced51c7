"""
smartreceipt/flow/handlers/edit.py

Handles: editing the latest receipt

- Free-edit limit per receipt for non-subscribers
- Menu: customer name / items & prices / payment method
- Items and prices are re-entered together; a count mismatch aborts the edit
- Finalizes through the receipt pipeline in edit mode
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import EditDraft
from smartreceipt.services import receipt_service, session_service
from smartreceipt.services.paywall import edit_limit_reached
from smartreceipt.services.receipt_pipeline import PipelineMode, ReceiptPayload, generate_and_send_receipt
from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    ASK_NEW_CUSTOMER_NAME_MESSAGE,
    ASK_NEW_ITEMS_MESSAGE,
    ASK_NEW_PAYMENT_METHOD_MESSAGE,
    ASK_NEW_PRICES_MESSAGE,
    EDIT_COUNT_MISMATCH_MESSAGE,
    EDIT_LIMIT_REACHED_MESSAGE,
    EDIT_MENU_MESSAGE,
    NO_RECEIPT_TO_EDIT_MESSAGE,
    POOL_INVALID_CHOICE,
    PRICE_NOT_NUMERIC_MESSAGE,
)
from smartreceipt.utils.parsing import parse_input_list, parse_price, price_to_str

logger = get_logger(__name__)

EDIT_MENU = {
    "1": (ConversationState.EDITING_CUSTOMER_NAME, ASK_NEW_CUSTOMER_NAME_MESSAGE),
    "2": (ConversationState.EDITING_ITEMS, ASK_NEW_ITEMS_MESSAGE),
    "3": (ConversationState.EDITING_PAYMENT_METHOD, ASK_NEW_PAYMENT_METHOD_MESSAGE),
}


async def start_edit(ctx: MessageContext) -> Dict[str, Any]:
    profile = ctx.require_profile()
    receipt = await receipt_service.get_latest_receipt(ctx.user_id)
    if not receipt:
        return {"message": NO_RECEIPT_TO_EDIT_MESSAGE}

    if edit_limit_reached(profile, receipt, user_id=ctx.user_id):
        return {"message": EDIT_LIMIT_REACHED_MESSAGE.format(limit=settings.FREE_EDIT_LIMIT)}

    draft = EditDraft(
        receipt_id=str(receipt["_id"]),
        customer_name=receipt.get("customer_name", ""),
        items=receipt.get("items", []),
        prices=[str(p) for p in receipt.get("prices", [])],
        payment_method=receipt.get("payment_method", ""),
        edit_count=receipt.get("edit_count", 0),
        created_at=receipt.get("created_at"),
    )
    await session_service.save_session(ctx.user_id, ConversationState.AWAITING_EDIT_CHOICE, draft)
    return {"message": EDIT_MENU_MESSAGE.format(customer_name=draft.customer_name)}


async def handle_edit_choice(ctx: MessageContext) -> Dict[str, Any]:
    choice = EDIT_MENU.get(ctx.text)
    if choice is None:
        return {"message": ctx.pick(POOL_INVALID_CHOICE)}

    state, prompt = choice
    await session_service.save_session(ctx.user_id, state, ctx.draft)
    return {"message": prompt}


async def _finalize(ctx: MessageContext, draft: EditDraft) -> Dict[str, Any]:
    payload = ReceiptPayload(
        customer_name=draft.customer_name,
        items=draft.items,
        prices=draft.prices,
        payment_method=draft.payment_method,
    )
    await generate_and_send_receipt(
        ctx.channel, ctx.user_id, ctx.require_profile(), payload,
        mode=PipelineMode.EDIT, receipt_id=draft.receipt_id, renderer=ctx.renderer,
    )
    return {}


async def handle_editing_customer_name(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": ASK_NEW_CUSTOMER_NAME_MESSAGE}

    draft: EditDraft = ctx.draft
    draft.customer_name = ctx.text
    return await _finalize(ctx, draft)


async def handle_editing_items(ctx: MessageContext) -> Dict[str, Any]:
    items = parse_input_list(ctx.text)
    if not items:
        return {"message": ASK_NEW_ITEMS_MESSAGE}

    draft: EditDraft = ctx.draft
    draft.items = items
    await session_service.save_session(ctx.user_id, ConversationState.EDITING_PRICES, draft)
    return {"message": ASK_NEW_PRICES_MESSAGE}


async def handle_editing_prices(ctx: MessageContext) -> Dict[str, Any]:
    draft: EditDraft = ctx.draft
    entries = parse_input_list(ctx.text)

    if len(entries) != len(draft.items):
        logger.info("Edit aborted, item and price counts differ")
        await session_service.clear_session(ctx.user_id)
        return {"message": EDIT_COUNT_MISMATCH_MESSAGE}

    prices = []
    for entry in entries:
        value = parse_price(entry)
        if value is None:
            return {"message": PRICE_NOT_NUMERIC_MESSAGE.format(value=entry)}
        prices.append(price_to_str(value))

    draft.prices = prices
    return await _finalize(ctx, draft)


async def handle_editing_payment_method(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": ASK_NEW_PAYMENT_METHOD_MESSAGE}

    draft: EditDraft = ctx.draft
    draft.payment_method = ctx.text
    return await _finalize(ctx, draft)
