"""
smartreceipt/flow/handlers/catalog.py

Handles: product catalog

- add product: name -> price, looping until "done"
- products: list sorted by name
- remove product "<name>": case-insensitive exact name
"""

from typing import Dict, Any

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import CatalogDraft
from smartreceipt.services import product_service, session_service
from smartreceipt.utils.constants import (
    ADD_PRODUCT_MESSAGE,
    ASK_PRODUCT_PRICE_MESSAGE,
    CATALOG_DONE_MESSAGE,
    DONE_KEYWORD,
    INVALID_PRODUCT_PRICE_MESSAGE,
    NO_PRODUCTS_MESSAGE,
    PRODUCT_LIST_HEADER,
    PRODUCT_NOT_FOUND_MESSAGE,
    PRODUCT_REMOVED_MESSAGE,
    PRODUCT_SAVED_MESSAGE,
    REMOVE_PRODUCT_USAGE_MESSAGE,
)
from smartreceipt.utils.parsing import format_amount, parse_price, strip_quotes


async def start_add_product(ctx: MessageContext) -> Dict[str, Any]:
    await session_service.save_session(ctx.user_id, ConversationState.ADDING_PRODUCT_NAME, CatalogDraft())
    return {"message": ADD_PRODUCT_MESSAGE}


async def handle_product_name(ctx: MessageContext) -> Dict[str, Any]:
    if ctx.lower_text == DONE_KEYWORD:
        await session_service.clear_session(ctx.user_id)
        return {"message": CATALOG_DONE_MESSAGE}

    name = strip_quotes(ctx.text)
    if not name:
        return {"message": ADD_PRODUCT_MESSAGE}

    await session_service.save_session(
        ctx.user_id,
        ConversationState.ADDING_PRODUCT_PRICE,
        CatalogDraft(new_product_name=name),
    )
    return {"message": ASK_PRODUCT_PRICE_MESSAGE.format(name=name)}


async def handle_product_price(ctx: MessageContext) -> Dict[str, Any]:
    price = parse_price(ctx.text)
    if price is None:
        return {"message": INVALID_PRODUCT_PRICE_MESSAGE}

    draft: CatalogDraft = ctx.draft
    name = draft.new_product_name
    if not name:
        await session_service.save_session(ctx.user_id, ConversationState.ADDING_PRODUCT_NAME, CatalogDraft())
        return {"message": ADD_PRODUCT_MESSAGE}

    await product_service.upsert_product(ctx.user_id, name, price)
    await session_service.save_session(ctx.user_id, ConversationState.ADDING_PRODUCT_NAME, CatalogDraft())
    return {"message": PRODUCT_SAVED_MESSAGE.format(name=name, price=format_amount(price))}


async def handle_products(ctx: MessageContext) -> Dict[str, Any]:
    products = await product_service.list_products(ctx.user_id)
    if not products:
        return {"message": NO_PRODUCTS_MESSAGE}

    lines = [f"*{p['name']}* - {format_amount(p['price'])}" for p in products]
    return {"message": PRODUCT_LIST_HEADER + "\n".join(lines)}


async def handle_remove_product(ctx: MessageContext) -> Dict[str, Any]:
    name = strip_quotes(ctx.argument)
    if not name:
        return {"message": REMOVE_PRODUCT_USAGE_MESSAGE}

    if await product_service.remove_product(ctx.user_id, name):
        return {"message": PRODUCT_REMOVED_MESSAGE.format(name=name)}
    return {"message": PRODUCT_NOT_FOUND_MESSAGE.format(name=name)}
