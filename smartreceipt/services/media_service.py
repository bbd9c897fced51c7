"""
smartreceipt/services/media_service.py

Purpose: Logo hosting via ImgBB
"""

import base64
from typing import Optional

import httpx

from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)

IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"


async def upload_logo(image: bytes) -> Optional[str]:
    """
    Uploads an image to ImgBB.

    Returns:
        The display URL of the uploaded image or None on failure
    """
    if not settings.IMGBB_API_KEY:
        logger.error("IMGBB_API_KEY is not configured")
        return None

    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(
                IMGBB_UPLOAD_URL,
                params={"key": settings.IMGBB_API_KEY},
                data={"image": base64.b64encode(image).decode("ascii"), "name": "logo"},
            )
    except httpx.HTTPError as e:
        logger.error(f"ImgBB upload failed: {e}")
        return None

    if response.status_code != 200:
        logger.error(f"ImgBB upload failed: {response.status_code} - {response.text[:200]}")
        return None

    url = (response.json().get("data") or {}).get("display_url")
    if url:
        logger.info("🖼️ Logo uploaded")
    return url
