import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from smartreceipt.channels.polling import TelegramPoller
from smartreceipt.channels.telegram import TelegramChannel
from smartreceipt.core.exceptions import ExternalServiceError

from conftest import USER_ID, make_profile

CHAT_ID = int(USER_ID.split(":")[1])


def _text_update(update_id, text, chat_id=CHAT_ID):
    return {
        "update_id": update_id,
        "message": {"message_id": update_id, "from": {"id": chat_id}, "chat": {"id": chat_id}, "text": text},
    }


class StubTelegram(TelegramChannel):
    """getUpdates answered from a script of batches (or exceptions)."""

    def __init__(self, batches):
        super().__init__(token="123:abc")
        self.batches = list(batches)
        self.offsets = []

    async def get_updates(self, offset=None, timeout=25):
        self.offsets.append(offset)
        if not self.batches:
            await asyncio.Event().wait()
        batch = self.batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch


async def test_poll_dispatches_messages_and_advances_offset(channel):
    telegram = StubTelegram([[_text_update(10, "hello"), {"update_id": 11, "edited_message": {"text": "x"}}]])
    dispatch = AsyncMock(return_value={"status": "success"})
    poller = TelegramPoller(telegram, channel, dispatch=dispatch)

    assert await poller.poll_once() == 1
    await poller.stop()

    message, used_channel = dispatch.call_args.args
    assert message.user_id == USER_ID
    assert message.text == "hello"
    assert used_channel is channel
    assert poller.offset == 12


async def test_polled_message_reaches_the_conversation(channel):
    await make_profile()
    poller = TelegramPoller(StubTelegram([[_text_update(1, "hello")]]), channel)

    await poller.poll_once()
    await poller.stop()

    assert channel.last_text(USER_ID) == "Hi Acme Stores! Send 'commands' to see what I can do."


async def test_polling_survives_a_failed_call_and_stops_on_shutdown(channel):
    delivered = asyncio.Event()

    async def dispatch(message, used_channel):
        delivered.set()
        return {"status": "success"}

    telegram = StubTelegram([ExternalServiceError("Telegram getUpdates failed"), [_text_update(5, "hi")]])
    poller = TelegramPoller(telegram, channel, dispatch=dispatch, retry_delay=0)

    poller.start()
    await asyncio.wait_for(delivered.wait(), timeout=2)
    assert poller.running

    await poller.stop()

    assert not poller.running
    assert telegram.offsets[:2] == [None, None]


async def test_get_updates_sends_offset_and_returns_results():
    telegram = TelegramChannel(token="123:abc")
    response = httpx.Response(200, json={"ok": True, "result": [_text_update(7, "hi")]})

    with patch.object(httpx.AsyncClient, "post", new=AsyncMock(return_value=response)) as post:
        updates = await telegram.get_updates(offset=7, timeout=20)

    assert updates[0]["update_id"] == 7
    assert post.call_args.args[0].endswith("/bot123:abc/getUpdates")
    assert post.call_args.kwargs["json"] == {"timeout": 20, "allowed_updates": ["message"], "offset": 7}


async def test_non_json_error_page_is_an_external_service_error():
    telegram = TelegramChannel(token="123:abc")
    response = httpx.Response(502, text="<html>Bad Gateway</html>")

    with patch.object(httpx.AsyncClient, "post", new=AsyncMock(return_value=response)):
        with pytest.raises(ExternalServiceError) as exc_info:
            await telegram.send_text(USER_ID, "hello")

    assert exc_info.value.details["status_code"] == 502
