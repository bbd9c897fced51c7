import logging

from smartreceipt.channels.telegram import parse_update
from smartreceipt.core.logging import ContextFilter, LogContext
from smartreceipt.flow.states import ConversationState
from smartreceipt.services import session_service

from conftest import USER_ID, make_profile


async def test_idle_greeting(send, channel):
    await make_profile()
    await send("hello there")
    assert channel.last_text(USER_ID) == "Hi Acme Stores! Send 'commands' to see what I can do."


async def test_unknown_state_resets_to_idle(send, channel, db):
    await make_profile()
    await db["conversations"].insert_one({"user_id": USER_ID, "state": "awaiting_spaceship", "data": {}})

    result = await send("Rice")

    assert result["status"] == "reset"
    assert await session_service.get_session(USER_ID) is None
    assert channel.last_text(USER_ID).startswith("Hi Acme Stores!")


async def test_draft_of_the_wrong_flow_resets(send, channel, db):
    await db["conversations"].insert_one({
        "user_id": USER_ID, "state": "receipt_items", "data": {"kind": "support"},
    })

    result = await send("Rice")

    assert result["status"] == "reset"
    assert channel.last_text(USER_ID) == "Sorry, I got confused. Let's start over."


async def test_missing_draft_field_resets(send, channel, db):
    await make_profile()
    await db["conversations"].insert_one({
        "user_id": USER_ID, "state": "editing_items", "data": {"kind": "edit"},
    })

    assert (await send("Rice"))["status"] == "reset"


async def test_session_state_survives_between_messages(send):
    await make_profile()
    await send("new receipt")
    await send("Ada")
    session = await session_service.get_session(USER_ID)
    assert session.state == ConversationState.RECEIPT_ITEMS
    assert session.data.customer_name == "Ada"


def test_parse_telegram_text_update():
    message = parse_update({
        "update_id": 1,
        "message": {
            "message_id": 7,
            "from": {"id": 8012345678},
            "chat": {"id": 8012345678, "type": "private"},
            "text": "/newreceipt",
        },
    })
    assert message.user_id == "telegram:8012345678"
    assert message.text == "/newreceipt"
    assert message.message_id == "7"
    assert not message.has_media


def test_parse_telegram_photo_update():
    message = parse_update({
        "message": {
            "from": {"id": 5},
            "chat": {"id": 5},
            "photo": [{"file_id": "small"}, {"file_id": "large"}],
            "caption": "logo",
        },
    })
    assert message.has_media
    assert message.media_ref == "large"
    assert message.text == "logo"


def test_parse_telegram_ignores_non_messages():
    assert parse_update({"edited_message": {"text": "x"}}) is None


def test_log_context_is_attached_to_records():
    record = logging.LogRecord("smartreceipt.test", logging.INFO, __file__, 1, "msg", None, None)
    explicit = logging.LogRecord("smartreceipt.test", logging.INFO, __file__, 1, "msg", None, None)
    explicit.user_id = "telegram:other"

    with LogContext(user_id=USER_ID, state="receipt_items"):
        ContextFilter().filter(record)
        ContextFilter().filter(explicit)

    assert record.user_id == USER_ID
    assert record.state == "receipt_items"
    assert explicit.user_id == "telegram:other"

    after = logging.LogRecord("smartreceipt.test", logging.INFO, __file__, 1, "msg", None, None)
    ContextFilter().filter(after)
    assert not hasattr(after, "user_id")
