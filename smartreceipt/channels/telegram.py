"""
smartreceipt/channels/telegram.py

Purpose: Telegram Bot API adapter

- Sends text (Markdown), photos and documents via httpx
- Downloads photos/image documents for logo uploads
- Group membership check for gated registrations
- parse_update() normalizes a Telegram update into IncomingMessage
"""

from typing import Any, Dict, List, Optional

import httpx

from smartreceipt.channels.base import MessagingChannel, native_id
from smartreceipt.schemas.message import IncomingMessage, OutboundFile
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import ExternalServiceError
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)

PLATFORM = "telegram"
MEMBER_STATUSES = ("creator", "administrator", "member", "restricted")


def parse_update(update: Dict[str, Any]) -> Optional[IncomingMessage]:
    """
    Parses a Telegram update.

    Returns None for updates that carry no message from a user
    (edits, channel posts, service messages).
    """
    message = update.get("message")
    if not message or "from" not in message:
        return None

    chat_id = message.get("chat", {}).get("id", message["from"]["id"])
    text = message.get("text") or message.get("caption") or ""

    media_ref = None
    if message.get("photo"):
        # Largest size is last
        media_ref = message["photo"][-1]["file_id"]
    elif message.get("document", {}).get("mime_type", "").startswith("image/"):
        media_ref = message["document"]["file_id"]

    return IncomingMessage(
        user_id=f"{PLATFORM}:{chat_id}",
        platform=PLATFORM,
        text=text,
        message_id=str(message.get("message_id", "")),
        has_media=media_ref is not None,
        media_ref=media_ref,
    )


class TelegramChannel(MessagingChannel):
    """Telegram adapter over the Bot HTTP API."""

    platform = PLATFORM

    def __init__(self, token: Optional[str] = None, api_base: Optional[str] = None):
        self.token = token or settings.TELEGRAM_BOT_TOKEN
        self.api_base = (api_base or settings.TELEGRAM_API_BASE).rstrip("/")
        self._timeout = 30.0

    @property
    def base_url(self) -> str:
        return f"{self.api_base}/bot{self.token}"

    def is_configured(self) -> bool:
        return bool(self.token)

    async def _call(self, method: str, timeout: Optional[float] = None, **kwargs) -> Any:
        try:
            async with httpx.AsyncClient(timeout=timeout or self._timeout) as client:
                response = await client.post(f"{self.base_url}/{method}", **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Telegram API timeout on {method}")
            raise ExternalServiceError(f"Telegram {method} timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Network error calling Telegram {method}: {e}")
            raise ExternalServiceError(f"Telegram {method} failed") from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            # Proxies and outages answer with HTML
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code != 200 or not body.get("ok"):
            logger.error(f"❌ Telegram API error on {method}: {response.status_code} - {response.text[:200]}")
            raise ExternalServiceError(
                f"Telegram {method} failed",
                details={"status_code": response.status_code, "description": body.get("description")},
            )
        return body.get("result", {})

    async def send_text(self, user_id: str, text: str) -> None:
        await self._call(
            "sendMessage",
            json={"chat_id": native_id(user_id), "text": text, "parse_mode": "Markdown"},
        )
        logger.debug(f"📤 Telegram message sent to {user_id}")

    async def send_file(self, user_id: str, file: OutboundFile, caption: Optional[str] = None) -> None:
        # Images go out as photos so they preview inline
        if file.mime_type.startswith("image/"):
            method, field = "sendPhoto", "photo"
        else:
            method, field = "sendDocument", "document"

        data = {"chat_id": native_id(user_id)}
        if caption:
            data["caption"] = caption

        await self._call(
            method,
            data=data,
            files={field: (file.file_name, file.buffer, file.mime_type)},
        )
        logger.info(f"📎 Telegram {field} sent to {user_id}: {file.file_name}")

    async def download_media(self, message: IncomingMessage) -> bytes:
        if not message.media_ref:
            raise ExternalServiceError("Message has no media")

        result = await self._call("getFile", json={"file_id": message.media_ref})
        file_path = result.get("file_path")
        if not file_path:
            raise ExternalServiceError("Telegram returned no file path")

        url = f"{self.api_base}/file/bot{self.token}/{file_path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            raise ExternalServiceError("Telegram file download failed") from e

        if response.status_code != 200:
            raise ExternalServiceError(
                "Telegram file download failed",
                details={"status_code": response.status_code},
            )
        return response.content

    async def is_group_member(self, user_id: str, group_id: str) -> bool:
        try:
            result = await self._call(
                "getChatMember",
                json={"chat_id": group_id, "user_id": native_id(user_id)},
            )
        except ExternalServiceError as e:
            logger.warning(f"Group membership check failed for {user_id}: {e.message}")
            return False
        return result.get("status") in MEMBER_STATUSES

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 25) -> List[Dict[str, Any]]:
        """
        Long-polls for new updates. Returns as soon as any arrive, or
        with an empty list after `timeout` seconds.
        """
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        # HTTP timeout must outlast the long poll
        result = await self._call("getUpdates", timeout=timeout + 10, json=payload)
        return result if isinstance(result, list) else []
