"""
smartreceipt/flow/handlers/history.py

Handles: read-only receipt views

- history: last receipts, reply with a number to resend one
- stats [YYYY-MM]: receipt count and sales for a month
- export [YYYY-MM]: plain-text sales report delivered as a file
"""

from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from smartreceipt.flow.context import MessageContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import HistoryDraft
from smartreceipt.schemas.message import OutboundFile
from smartreceipt.services import receipt_service, session_service
from smartreceipt.services.receipt_pipeline import PipelineMode, ReceiptPayload, generate_and_send_receipt
from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    EXPORT_CAPTION,
    EXPORT_EMPTY_MESSAGE,
    EXPORT_GATHERING_MESSAGE,
    HISTORY_FOOTER,
    HISTORY_HEADER,
    HISTORY_LINE,
    HISTORY_RECEIPT_MISSING_MESSAGE,
    INVALID_MONTH_MESSAGE,
    NO_RECEIPTS_MESSAGE,
    POOL_INVALID_CHOICE,
    STATS_MESSAGE,
)
from smartreceipt.utils.parsing import format_amount, parse_price
from smartreceipt.utils.time_utils import month_label, month_range, parse_month, utcnow

logger = get_logger(__name__)


async def handle_history(ctx: MessageContext) -> Dict[str, Any]:
    receipts = await receipt_service.get_recent_receipts(ctx.user_id, limit=settings.HISTORY_LIMIT)
    if not receipts:
        return {"message": NO_RECEIPTS_MESSAGE}

    message = HISTORY_HEADER.format(count=len(receipts))
    for index, receipt in enumerate(receipts, 1):
        message += HISTORY_LINE.format(
            index=index,
            customer_name=receipt.get("customer_name", ""),
            total=format_amount(receipt.get("total_amount", 0)),
        )
    message += HISTORY_FOOTER.format(count=len(receipts))

    await session_service.save_session(
        ctx.user_id,
        ConversationState.AWAITING_HISTORY_CHOICE,
        HistoryDraft(receipt_ids=[str(r["_id"]) for r in receipts]),
    )
    return {"message": message}


async def handle_history_choice(ctx: MessageContext) -> Dict[str, Any]:
    draft: HistoryDraft = ctx.draft
    choice = int(ctx.text) if ctx.text.isdecimal() else 0
    if not 1 <= choice <= len(draft.receipt_ids):
        return {"message": ctx.pick(POOL_INVALID_CHOICE)}

    # Picking a receipt ends the history flow; resending never touches the session
    await session_service.clear_session(ctx.user_id)

    receipt_id = draft.receipt_ids[choice - 1]
    receipt = await receipt_service.get_receipt(receipt_id, user_id=ctx.user_id)
    if not receipt:
        return {"message": HISTORY_RECEIPT_MISSING_MESSAGE}

    payload = ReceiptPayload(
        customer_name=receipt.get("customer_name", ""),
        items=receipt.get("items", []),
        prices=[str(p) for p in receipt.get("prices", [])],
        payment_method=receipt.get("payment_method", ""),
    )
    await generate_and_send_receipt(
        ctx.channel, ctx.user_id, ctx.require_profile(), payload,
        mode=PipelineMode.RESEND, receipt_id=receipt_id, renderer=ctx.renderer,
    )
    return {}


def _selected_month(argument: str) -> Optional[datetime]:
    if not argument:
        return utcnow()
    return parse_month(argument)


async def _month_receipts(ctx: MessageContext) -> Tuple[Optional[datetime], List[Dict[str, Any]]]:
    month = _selected_month(ctx.argument)
    if month is None:
        return None, []
    start, end = month_range(month)
    return start, await receipt_service.get_receipts_between(ctx.user_id, start, end)


async def handle_stats(ctx: MessageContext) -> Dict[str, Any]:
    start, receipts = await _month_receipts(ctx)
    if start is None:
        return {"message": INVALID_MONTH_MESSAGE}

    total = sum(r.get("total_amount", 0) or 0 for r in receipts)
    return {
        "message": STATS_MESSAGE.format(
            month=month_label(start),
            count=len(receipts),
            total=format_amount(total),
        )
    }


def build_export_report(brand_name: str, month: datetime, receipts: List[Dict[str, Any]]) -> str:
    label = month_label(month)
    lines = [
        f"SmartReceipt - Sales Report for {label}",
        f"Brand: {brand_name}",
        "-" * 40,
        "",
    ]
    for receipt in receipts:
        created_at = receipt.get("created_at")
        lines.append(f"Date: {created_at.strftime('%d/%m/%Y') if created_at else 'N/A'}")
        lines.append(f"Customer: {receipt.get('customer_name', '')}")
        prices = receipt.get("prices", [])
        for index, item in enumerate(receipt.get("items", [])):
            price = parse_price(prices[index]) if index < len(prices) else None
            lines.append(f"  - {item}: {format_amount(price or 0)}")
        lines.append(f"Total: {format_amount(receipt.get('total_amount', 0))}")
        lines.append("-" * 20)

    total = sum(r.get("total_amount", 0) or 0 for r in receipts)
    lines.append("")
    lines.append(f"GRAND TOTAL FOR {label.upper()}: {format_amount(total)}")
    return "\n".join(lines)


async def handle_export(ctx: MessageContext) -> Dict[str, Any]:
    month = _selected_month(ctx.argument)
    if month is None:
        return {"message": INVALID_MONTH_MESSAGE}

    label = month_label(month)
    await ctx.reply(EXPORT_GATHERING_MESSAGE.format(month=label))

    start, receipts = await _month_receipts(ctx)
    if not receipts:
        return {"message": EXPORT_EMPTY_MESSAGE.format(month=label)}

    report = build_export_report(ctx.require_profile().get("brand_name", ""), start, receipts)
    await ctx.channel.send_file(
        ctx.user_id,
        OutboundFile(
            buffer=report.encode("utf-8"),
            file_name=f"SmartReceipt_Export_{start.strftime('%Y_%m')}.txt",
            mime_type="text/plain",
        ),
        caption=EXPORT_CAPTION.format(month=label),
    )
    logger.info(f"📤 Export sent ({len(receipts)} receipts)")
    return {}
