"""
smartreceipt/flow/context.py

Purpose: Per-message context handed to every flow handler

- Sender identity, text, profile and current session
- Reply helper bound to the channel
- Injectable random source for reply pools
"""

import random
from dataclasses import dataclass
from typing import Any, Dict, Optional

from smartreceipt.channels.base import MessagingChannel
from smartreceipt.flow.states import ConversationState
from smartreceipt.schemas.drafts import ConversationSession, Draft
from smartreceipt.schemas.message import IncomingMessage
from smartreceipt.services.paywall import is_admin
from smartreceipt.services.renderer import Renderer
from smartreceipt.services.user_service import get_profile
from smartreceipt.core.exceptions import StateConsistencyError
from smartreceipt.utils.replies import pick_reply


@dataclass
class MessageContext:
    message: IncomingMessage
    channel: MessagingChannel
    profile: Optional[Dict[str, Any]] = None
    session: Optional[ConversationSession] = None
    argument: str = ""
    renderer: Optional[Renderer] = None
    rng: Optional[random.Random] = None

    @property
    def user_id(self) -> str:
        return self.message.user_id

    @property
    def text(self) -> str:
        return (self.message.text or "").strip()

    @property
    def lower_text(self) -> str:
        return self.text.lower()

    @property
    def is_admin(self) -> bool:
        return is_admin(self.user_id)

    @property
    def state(self) -> Optional[ConversationState]:
        return self.session.state if self.session else None

    @property
    def draft(self) -> Draft:
        if self.session is None:
            raise StateConsistencyError("No active session")
        return self.session.data

    def require_profile(self) -> Dict[str, Any]:
        if self.profile is None:
            raise StateConsistencyError("Profile required for this step")
        return self.profile

    async def reload_profile(self) -> Optional[Dict[str, Any]]:
        self.profile = await get_profile(self.user_id)
        return self.profile

    async def reply(self, text: str) -> None:
        await self.channel.send_text(self.user_id, text)

    def pick(self, pool_id: str) -> str:
        return pick_reply(pool_id, self.rng)
