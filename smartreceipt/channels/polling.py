"""
smartreceipt/channels/polling.py

Purpose: Telegram inbound loop

- Long-polls getUpdates and advances the offset past every update seen
- Hands each parsed message to the dispatcher as its own task, so users
  are served concurrently (the per-user guard drops re-entrant messages)
- A failed poll is logged and retried after a pause; the loop only ends
  when it is cancelled on shutdown
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from smartreceipt.channels.base import MessagingChannel
from smartreceipt.channels.telegram import TelegramChannel, parse_update
from smartreceipt.core.config import settings
from smartreceipt.core.exceptions import ExternalServiceError
from smartreceipt.core.logging import get_logger
from smartreceipt.flow.dispatcher import dispatch_message
from smartreceipt.schemas.message import IncomingMessage

logger = get_logger(__name__)

Dispatch = Callable[[IncomingMessage, MessagingChannel], Awaitable[Dict[str, Any]]]


class TelegramPoller:
    """
    Feeds Telegram updates into the dispatcher.

    Args:
        telegram: Adapter used for getUpdates
        channel: Channel the dispatcher replies through (usually the router)
        dispatch: Message handler, dispatch_message by default
    """

    def __init__(
        self,
        telegram: TelegramChannel,
        channel: MessagingChannel,
        dispatch: Optional[Dispatch] = None,
        poll_timeout: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self.telegram = telegram
        self.channel = channel
        self.dispatch = dispatch or dispatch_message
        self.poll_timeout = settings.TELEGRAM_POLL_TIMEOUT if poll_timeout is None else poll_timeout
        self.retry_delay = settings.TELEGRAM_POLL_RETRY_DELAY if retry_delay is None else retry_delay
        self.offset: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> int:
        """
        One getUpdates round.

        Returns:
            Number of messages handed to the dispatcher
        """
        updates = await self.telegram.get_updates(offset=self.offset, timeout=self.poll_timeout)
        dispatched = 0

        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self.offset = max(self.offset or 0, update_id + 1)

            message = parse_update(update)
            if message is None:
                continue

            task = asyncio.create_task(self._handle(message))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)
            dispatched += 1

        return dispatched

    async def _handle(self, message: IncomingMessage) -> None:
        try:
            await self.dispatch(message, self.channel)
        except Exception as e:
            # dispatch_message already converts failures; this guards custom dispatchers
            logger.error(f"❌ Unhandled error for {message.user_id}: {e}", exc_info=True)

    async def run(self) -> None:
        logger.info("📡 Telegram polling started")
        while True:
            try:
                await self.poll_once()
            except ExternalServiceError as e:
                logger.warning(f"⚠️ getUpdates failed, retrying in {self.retry_delay}s: {e.message}")
                await asyncio.sleep(self.retry_delay)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """
        Cancels the loop, then lets messages already being handled finish.
        """
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        logger.info("📡 Telegram polling stopped")
