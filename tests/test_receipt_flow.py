from smartreceipt.flow.states import ConversationState
from smartreceipt.services import product_service, session_service, user_service
from smartreceipt.services.receipt_service import get_latest_receipt

from conftest import USER_ID, make_profile


async def test_manual_receipt_end_to_end(send, channel, renderer):
    await make_profile()

    await send("new receipt")
    await send("Ada Obi")
    await send("Rice, Beans")
    assert (await session_service.get_session(USER_ID)).state == ConversationState.RECEIPT_MANUAL_PRICES

    await send("30,000, 1,500")
    await send("Transfer")

    receipt = await get_latest_receipt(USER_ID)
    assert receipt["customer_name"] == "Ada Obi"
    assert receipt["items"] == ["Rice", "Beans"]
    assert receipt["prices"] == ["30000", "1500"]
    assert receipt["payment_method"] == "Transfer"
    assert receipt["total_amount"] == 31500.0
    assert receipt["edit_count"] == 0

    assert (await user_service.get_profile(USER_ID))["receipt_count"] == 1
    assert await session_service.get_session(USER_ID) is None

    user_id, file, caption = channel.files[-1]
    assert user_id == USER_ID
    assert file.mime_type == "image/png"
    assert caption == "Here is the receipt for Ada Obi."
    assert renderer.pages[-1].is_closed


async def test_catalog_quick_add_skips_manual_prices(send, channel):
    await make_profile()
    await product_service.upsert_product(USER_ID, "Fanta", 500)

    await send("new receipt")
    await send("Ada")
    assert "catalog" in channel.last_text(USER_ID)

    await send("fanta x2")
    session = await session_service.get_session(USER_ID)
    assert session.state == ConversationState.RECEIPT_PAYMENT_METHOD
    assert session.data.items == ["Fanta", "Fanta"]
    assert session.data.prices == ["500", "500"]

    await send("Cash")
    receipt = await get_latest_receipt(USER_ID)
    assert receipt["items"] == ["Fanta", "Fanta"]
    assert receipt["total_amount"] == 1000.0


async def test_unknown_quick_add_falls_back_to_manual(send):
    await make_profile()
    await product_service.upsert_product(USER_ID, "Fanta", 500)

    await send("new receipt")
    await send("Ada")
    await send("Fanta x2, Sprite x3")

    session = await session_service.get_session(USER_ID)
    assert session.state == ConversationState.RECEIPT_MANUAL_PRICES
    assert session.data.manual_items == ["Sprite x3"]

    await send("900")
    session = await session_service.get_session(USER_ID)
    assert session.data.items == ["Fanta", "Fanta", "Sprite x3"]
    assert session.data.prices == ["500", "500", "900"]


async def test_price_count_mismatch_reprompts(send, channel):
    await make_profile()
    await send("new receipt")
    await send("Ada")
    await send("Rice, Beans")
    await send("500")

    assert "does not match" in channel.last_text(USER_ID)
    assert (await session_service.get_session(USER_ID)).state == ConversationState.RECEIPT_MANUAL_PRICES


async def test_non_numeric_price_reprompts(send, channel):
    await make_profile()
    await send("new receipt")
    await send("Ada")
    await send("Rice")
    await send("cheap")

    assert '"cheap" is not a valid price' in channel.last_text(USER_ID)
    assert (await session_service.get_session(USER_ID)).state == ConversationState.RECEIPT_MANUAL_PRICES


async def test_first_receipt_asks_for_format(send, channel, renderer):
    await make_profile(receipt_format=None)
    await send("new receipt")
    await send("Ada")
    await send("Rice")
    await send("500")
    await send("Cash")

    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_INITIAL_FORMAT_CHOICE
    assert not channel.files

    await send("3")
    assert "reply with *1*" in channel.last_text(USER_ID)

    await send("2")
    assert (await user_service.get_profile(USER_ID))["receipt_format"] == "PDF"
    assert channel.files[-1][1].mime_type == "application/pdf"
    assert renderer.pages[-1].captured == "pdf"
    assert await session_service.get_session(USER_ID) is None


async def test_command_mid_flow_discards_the_draft(send, channel):
    await make_profile()
    await send("new receipt")
    await send("Ada")
    await send("history")

    assert await session_service.get_session(USER_ID) is None
    assert "haven't generated any receipts" in channel.last_text(USER_ID)


async def test_cancel_clears_the_session(send, channel):
    await make_profile()
    await send("new receipt")
    await send("cancel")

    assert await session_service.get_session(USER_ID) is None
    assert channel.last_text(USER_ID) == "Action cancelled."


async def test_paywall_blocks_after_free_trial(send, channel):
    await make_profile(receipt_count=2)
    await send("new receipt")

    session = await session_service.get_session(USER_ID)
    assert session.state == ConversationState.AWAITING_PAYMENT_DECISION
    assert session.data.blocked_command == "new receipt"
    assert "₦2,000 for 6 months" in channel.last_text(USER_ID)
