"""
smartreceipt/services/receipt_pipeline.py

Purpose: Receipt assembly and delivery

- Persists (create), updates (edit) or leaves untouched (resend)
- Builds the template URL from brand and receipt fields
- Renders PNG or PDF on a fresh page, always closed afterwards
- Delivers the file, bumps the usage counter (create only), clears the session
- A failed render apologises and still clears the session
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from smartreceipt.channels.base import MessagingChannel
from smartreceipt.schemas.message import OutboundFile
from smartreceipt.services import receipt_service, user_service
from smartreceipt.services.session_service import clear_session
from smartreceipt.services.renderer import Renderer, RenderPage, get_renderer
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import ValidationError
from smartreceipt.core.logging import get_logger
from smartreceipt.utils.constants import (
    GENERATING_RECEIPT_MESSAGE,
    RESENDING_RECEIPT_MESSAGE,
    RECEIPT_CAPTION,
    RENDER_FAILED_MESSAGE,
    EDIT_RECEIPT_GONE_MESSAGE,
)
from smartreceipt.utils.parsing import compute_subtotal

logger = get_logger(__name__)

FORMAT_PNG = "PNG"
FORMAT_PDF = "PDF"


class PipelineMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    RESEND = "resend"


class ReceiptPayload(BaseModel):
    """Content of one receipt; items and prices are parallel lists."""
    customer_name: str
    items: List[str] = Field(default_factory=list)
    prices: List[str] = Field(default_factory=list)
    payment_method: str = ""


def build_receipt_url(profile: Dict[str, Any], payload: ReceiptPayload, receipt_id: str) -> str:
    """
    Template URL with a deterministic query string.

    Example:
        https://host/template.2.html?bn=Acme&bc=blue&logo=&cn=Ada&items=Rice%7C%7CBeans&...
    """
    params = [
        ("bn", profile.get("brand_name") or ""),
        ("bc", profile.get("brand_color") or ""),
        ("logo", profile.get("logo_url") or ""),
        ("cn", payload.customer_name),
        ("items", "||".join(payload.items)),
        ("prices", ",".join(str(p) for p in payload.prices)),
        ("pm", payload.payment_method),
        ("addr", profile.get("address") or ""),
        ("ciPhone", profile.get("contact_phone") or ""),
        ("ciEmail", profile.get("contact_email") or ""),
        ("rid", str(receipt_id)),
    ]
    template = profile.get("preferred_template") or 1
    return f"{settings.RECEIPT_BASE_URL}template.{template}.html?{urlencode(params)}"


def output_format(profile: Dict[str, Any]) -> str:
    fmt = (profile.get("receipt_format") or FORMAT_PNG).upper()
    return FORMAT_PDF if fmt == FORMAT_PDF else FORMAT_PNG


async def _capture(page: RenderPage, fmt: str, customer_name: str) -> OutboundFile:
    if fmt == FORMAT_PDF:
        return OutboundFile(
            buffer=await page.pdf(),
            file_name=f"SmartReceipt_{customer_name}.pdf",
            mime_type="application/pdf",
        )
    return OutboundFile(
        buffer=await page.screenshot(),
        file_name="SmartReceipt.png",
        mime_type="image/png",
    )


async def generate_and_send_receipt(
    channel: MessagingChannel,
    user_id: str,
    profile: Dict[str, Any],
    payload: ReceiptPayload,
    mode: PipelineMode = PipelineMode.CREATE,
    receipt_id: Optional[str] = None,
    renderer: Optional[Renderer] = None,
) -> Optional[str]:
    """
    Runs the full receipt pipeline for one receipt.

    Args:
        channel: Where the file (and progress messages) go
        user_id: Target identity
        profile: Owner's profile (brand fields, format, template)
        payload: Receipt content
        mode: create | edit | resend
        receipt_id: Existing receipt (edit and resend)
        renderer: Rendering collaborator (process-wide one if omitted)

    Returns:
        The receipt id on success, None when the receipt was not delivered

    Raises:
        ValidationError: items and prices differ in length (nothing persisted)
    """
    if len(payload.items) != len(payload.prices):
        raise ValidationError(
            "Items and prices must have the same length",
            details={"items": len(payload.items), "prices": len(payload.prices)},
        )
    if mode != PipelineMode.CREATE and not receipt_id:
        raise ValidationError(f"receipt_id is required in {mode.value} mode")

    renderer = renderer or get_renderer()

    if mode == PipelineMode.CREATE:
        await channel.send_text(user_id, GENERATING_RECEIPT_MESSAGE)
    elif mode == PipelineMode.RESEND:
        await channel.send_text(user_id, RESENDING_RECEIPT_MESSAGE)

    subtotal = compute_subtotal(payload.prices)

    if mode == PipelineMode.CREATE:
        receipt_id = str(await receipt_service.insert_receipt(
            user_id=user_id,
            customer_name=payload.customer_name,
            items=payload.items,
            prices=payload.prices,
            payment_method=payload.payment_method,
            total_amount=subtotal,
        ))
    elif mode == PipelineMode.EDIT:
        updated = await receipt_service.apply_edit(
            receipt_id,
            customer_name=payload.customer_name,
            items=payload.items,
            prices=payload.prices,
            payment_method=payload.payment_method,
            total_amount=subtotal,
        )
        if not updated:
            logger.warning("Edited receipt no longer exists", extra={"receipt_id": receipt_id})
            await channel.send_text(user_id, EDIT_RECEIPT_GONE_MESSAGE)
            await clear_session(user_id)
            return None

    url = build_receipt_url(profile, payload, receipt_id)
    fmt = output_format(profile)

    page: Optional[RenderPage] = None
    try:
        page = await renderer.new_page()
        await page.goto(url)
        file = await _capture(page, fmt, payload.customer_name)
        await page.close()

        await channel.send_file(
            user_id,
            file,
            caption=RECEIPT_CAPTION.format(customer_name=payload.customer_name),
        )

        if mode == PipelineMode.CREATE:
            await user_service.increment_receipt_count(user_id)
        if mode != PipelineMode.RESEND:
            await clear_session(user_id)

        logger.info(
            f"🧾 Receipt delivered ({mode.value}, {fmt})",
            extra={"receipt_id": receipt_id}
        )
        return receipt_id

    except Exception as e:
        logger.error(
            f"❌ Error during receipt generation: {e}",
            exc_info=True,
            extra={"receipt_id": receipt_id}
        )
        await channel.send_text(user_id, RENDER_FAILED_MESSAGE)
        await clear_session(user_id)
        return None

    finally:
        if page is not None and not page.is_closed:
            await page.close()
