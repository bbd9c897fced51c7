"""
smartreceipt/flow/handlers/receipt.py

Handles: receipt creation

- customer name -> items -> manual prices -> payment method
- "<product> xN" resolves against the catalog; anything else is priced manually
- First receipt without a format preference asks PNG/PDF before rendering
- Finalizes through the receipt pipeline
"""

from typing import Dict, Any, List

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import ReceiptDraft
from smartreceipt.services import product_service, session_service, user_service
from smartreceipt.services.receipt_pipeline import (
    FORMAT_PDF,
    FORMAT_PNG,
    PipelineMode,
    ReceiptPayload,
    generate_and_send_receipt,
)
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    ASK_ITEMS_MESSAGE,
    ASK_ITEMS_WITH_CATALOG_MESSAGE,
    ASK_MANUAL_PRICES_MESSAGE,
    CATALOG_ITEMS_ADDED_MESSAGE,
    INITIAL_FORMAT_MESSAGE,
    INVALID_FORMAT_CHOICE_MESSAGE,
    NEW_RECEIPT_MESSAGE,
    NO_ITEMS_MESSAGE,
    PRICE_COUNT_MISMATCH_MESSAGE,
    PRICE_NOT_NUMERIC_MESSAGE,
    PRICES_SAVED_MESSAGE,
)
from smartreceipt.utils.parsing import parse_input_list, parse_price, parse_quick_add, price_to_str

logger = get_logger(__name__)

FORMAT_CHOICES = {"1": FORMAT_PNG, "2": FORMAT_PDF}


async def start_new_receipt(ctx: MessageContext) -> Dict[str, Any]:
    await session_service.save_session(
        ctx.user_id, ConversationState.RECEIPT_CUSTOMER_NAME, ReceiptDraft()
    )
    return {"message": NEW_RECEIPT_MESSAGE}


async def handle_customer_name(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": NEW_RECEIPT_MESSAGE}

    draft: ReceiptDraft = ctx.draft
    draft.customer_name = ctx.text
    await session_service.save_session(ctx.user_id, ConversationState.RECEIPT_ITEMS, draft)

    if await product_service.has_products(ctx.user_id):
        return {"message": ASK_ITEMS_WITH_CATALOG_MESSAGE.format(customer_name=ctx.text)}
    return {"message": ASK_ITEMS_MESSAGE.format(customer_name=ctx.text)}


async def resolve_items(user_id: str, parts: List[str], draft: ReceiptDraft) -> None:
    """
    Splits parsed item parts into catalog matches and manual items.

    "Fanta x2" with Fanta priced 500 adds Fanta twice at 500; a shorthand
    naming an unknown product is kept verbatim as a manual item.
    """
    draft.quick_add_items, draft.quick_add_prices, draft.manual_items = [], [], []

    for part in parts:
        quick_add = parse_quick_add(part)
        if quick_add:
            name, quantity = quick_add
            product = await product_service.find_product(user_id, name)
            if product:
                draft.quick_add_items.extend([product["name"]] * quantity)
                draft.quick_add_prices.extend([price_to_str(product["price"])] * quantity)
                continue
        draft.manual_items.append(part)


async def handle_items(ctx: MessageContext) -> Dict[str, Any]:
    parts = parse_input_list(ctx.text)
    if not parts:
        return {"message": NO_ITEMS_MESSAGE}

    draft: ReceiptDraft = ctx.draft
    await resolve_items(ctx.user_id, parts, draft)

    if draft.manual_items:
        await session_service.save_session(ctx.user_id, ConversationState.RECEIPT_MANUAL_PRICES, draft)
        return {"message": ASK_MANUAL_PRICES_MESSAGE.format(manual_items="\n".join(draft.manual_items))}

    draft.items = list(draft.quick_add_items)
    draft.prices = list(draft.quick_add_prices)
    await session_service.save_session(ctx.user_id, ConversationState.RECEIPT_PAYMENT_METHOD, draft)
    return {"message": CATALOG_ITEMS_ADDED_MESSAGE}


async def handle_manual_prices(ctx: MessageContext) -> Dict[str, Any]:
    draft: ReceiptDraft = ctx.draft
    entries = parse_input_list(ctx.text)

    if len(entries) != len(draft.manual_items):
        return {"message": PRICE_COUNT_MISMATCH_MESSAGE}

    prices = []
    for entry in entries:
        value = parse_price(entry)
        if value is None:
            return {"message": PRICE_NOT_NUMERIC_MESSAGE.format(value=entry)}
        prices.append(price_to_str(value))

    draft.items = draft.quick_add_items + draft.manual_items
    draft.prices = draft.quick_add_prices + prices
    await session_service.save_session(ctx.user_id, ConversationState.RECEIPT_PAYMENT_METHOD, draft)
    return {"message": PRICES_SAVED_MESSAGE}


def _payload(draft: ReceiptDraft) -> ReceiptPayload:
    return ReceiptPayload(
        customer_name=draft.customer_name or "",
        items=draft.items,
        prices=draft.prices,
        payment_method=draft.payment_method or "",
    )


async def handle_payment_method(ctx: MessageContext) -> Dict[str, Any]:
    if not ctx.text:
        return {"message": PRICES_SAVED_MESSAGE}

    profile = ctx.require_profile()
    draft: ReceiptDraft = ctx.draft
    draft.payment_method = ctx.text

    if not profile.get("receipt_format"):
        await session_service.save_session(
            ctx.user_id, ConversationState.AWAITING_INITIAL_FORMAT_CHOICE, draft
        )
        return {"message": INITIAL_FORMAT_MESSAGE}

    await generate_and_send_receipt(
        ctx.channel, ctx.user_id, profile, _payload(draft),
        mode=PipelineMode.CREATE, renderer=ctx.renderer,
    )
    return {}


async def handle_initial_format_choice(ctx: MessageContext) -> Dict[str, Any]:
    fmt = FORMAT_CHOICES.get(ctx.text)
    if fmt is None:
        return {"message": INVALID_FORMAT_CHOICE_MESSAGE}

    await user_service.update_profile(ctx.user_id, {"receipt_format": fmt})
    await ctx.reload_profile()
    profile = ctx.require_profile()

    await generate_and_send_receipt(
        ctx.channel, ctx.user_id, profile, _payload(ctx.draft),
        mode=PipelineMode.CREATE, renderer=ctx.renderer,
    )
    return {}
