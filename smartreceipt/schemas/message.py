"""
smartreceipt/schemas/message.py

Purpose: Channel-agnostic message schemas

- IncomingMessage: what every channel adapter hands to the dispatcher
- OutboundFile: an in-memory file the channel delivers with a caption
"""

from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime


class IncomingMessage(BaseModel):
    """
    Normalized inbound message.
    `user_id` is channel-scoped (e.g. "telegram:123456", "whatsapp:2348012345678");
    the channel adapter maps it back to its native chat address.
    """
    user_id: str = Field(..., description="Channel-scoped sender identity")
    platform: str = Field(..., description="Source channel name")
    text: str = Field(default="", description="Message text content (may be empty for media)")
    message_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    has_media: bool = False
    media_ref: Optional[Any] = Field(
        default=None,
        description="Channel-specific handle used by download_media (e.g. Telegram file_id)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "telegram:123456",
                "platform": "telegram",
                "text": "new receipt",
                "message_id": "42",
            }
        }


class OutboundFile(BaseModel):
    buffer: bytes
    file_name: str
    mime_type: str
