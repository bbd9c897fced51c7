"""
smartreceipt/channels/base.py

Purpose: Messaging collaborator interface

- One interface for every chat channel (send text, send file, download media)
- ChannelRouter delivers to any identity by its channel prefix
  ("telegram:123" -> the telegram adapter)
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from smartreceipt.schemas.message import IncomingMessage, OutboundFile
from smartreceipt.core.exceptions import ExternalServiceError
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)


def platform_of(user_id: str) -> str:
    """'telegram:123' -> 'telegram'."""
    return user_id.split(":", 1)[0] if ":" in user_id else ""


def native_id(user_id: str) -> str:
    """'telegram:123' -> '123'."""
    return user_id.split(":", 1)[1] if ":" in user_id else user_id


class MessagingChannel(ABC):
    """
    Capability set every channel adapter implements.
    Core logic only ever talks to this interface.
    """

    platform: str = ""

    @abstractmethod
    async def send_text(self, user_id: str, text: str) -> None:
        ...

    @abstractmethod
    async def send_file(self, user_id: str, file: OutboundFile, caption: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def download_media(self, message: IncomingMessage) -> bytes:
        """
        Returns the raw bytes of the media attached to `message`.

        Raises:
            ExternalServiceError: media could not be fetched
        """

    async def is_group_member(self, user_id: str, group_id: str) -> bool:
        """Channels without groups never grant membership."""
        return False


class ChannelRouter(MessagingChannel):
    """
    Dispatches to the adapter registered for the identity's platform.
    Lets an admin on one channel reply to a user on another.
    """

    def __init__(self):
        self._channels: Dict[str, MessagingChannel] = {}

    def register(self, channel: MessagingChannel) -> None:
        self._channels[channel.platform] = channel
        logger.info(f"📡 Channel registered: {channel.platform}")

    @property
    def platforms(self) -> List[str]:
        return sorted(self._channels)

    def get(self, user_id: str) -> MessagingChannel:
        platform = platform_of(user_id)
        channel = self._channels.get(platform)
        if channel is None:
            raise ExternalServiceError(f"No channel registered for platform '{platform}'")
        return channel

    async def send_text(self, user_id: str, text: str) -> None:
        await self.get(user_id).send_text(user_id, text)

    async def send_file(self, user_id: str, file: OutboundFile, caption: Optional[str] = None) -> None:
        await self.get(user_id).send_file(user_id, file, caption)

    async def download_media(self, message: IncomingMessage) -> bytes:
        return await self.get(message.user_id).download_media(message)

    async def is_group_member(self, user_id: str, group_id: str) -> bool:
        return await self.get(user_id).is_group_member(user_id, group_id)


# Process-wide router; adapters register at startup
channel_router = ChannelRouter()
