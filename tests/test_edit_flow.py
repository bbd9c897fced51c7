from smartreceipt.flow.states import ConversationState
from smartreceipt.services import receipt_service, session_service

from conftest import USER_ID, make_profile


async def _seed_receipt():
    return str(await receipt_service.insert_receipt(
        USER_ID, "Ada", ["Rice", "Beans"], ["1000", "500"], "Cash", 1500.0
    ))


async def test_edit_customer_name(send, channel):
    await make_profile()
    receipt_id = await _seed_receipt()
    before = await receipt_service.get_receipt(receipt_id)

    await send("edit")
    assert "for *Ada*" in channel.last_text(USER_ID)
    await send("1")
    await send("Ada Obi")

    receipt = await receipt_service.get_receipt(receipt_id)
    assert receipt["customer_name"] == "Ada Obi"
    assert receipt["items"] == ["Rice", "Beans"]
    assert receipt["edit_count"] == 1
    assert receipt["created_at"] == before["created_at"]
    assert await session_service.get_session(USER_ID) is None
    assert channel.files


async def test_edit_items_and_prices(send):
    await make_profile()
    receipt_id = await _seed_receipt()

    await send("edit")
    await send("2")
    await send("Garri, Oil, Salt")
    assert (await session_service.get_session(USER_ID)).state == ConversationState.EDITING_PRICES
    await send("700, 2,500, 100")

    receipt = await receipt_service.get_receipt(receipt_id)
    assert receipt["items"] == ["Garri", "Oil", "Salt"]
    assert receipt["prices"] == ["700", "2500", "100"]
    assert receipt["total_amount"] == 3300.0


async def test_edit_price_count_mismatch_aborts(send, channel):
    await make_profile()
    receipt_id = await _seed_receipt()

    await send("edit")
    await send("2")
    await send("Garri, Oil")
    await send("700")

    assert "don't match" in channel.last_text(USER_ID)
    assert await session_service.get_session(USER_ID) is None
    assert (await receipt_service.get_receipt(receipt_id))["edit_count"] == 0


async def test_edit_payment_method(send):
    await make_profile()
    receipt_id = await _seed_receipt()

    await send("edit")
    await send("3")
    await send("POS")

    assert (await receipt_service.get_receipt(receipt_id))["payment_method"] == "POS"


async def test_invalid_menu_choice_keeps_the_menu(send, channel):
    await make_profile()
    await _seed_receipt()

    await send("edit")
    await send("9")

    assert (await session_service.get_session(USER_ID)).state == ConversationState.AWAITING_EDIT_CHOICE


async def test_no_receipt_to_edit(send, channel):
    await make_profile()
    await send("edit")
    assert channel.last_text(USER_ID) == "You don't have any recent receipts to edit."
    assert await session_service.get_session(USER_ID) is None


async def test_free_edit_limit(send, channel):
    await make_profile()
    receipt_id = await _seed_receipt()

    for name in ("Ada One", "Ada Two"):
        await send("edit")
        await send("1")
        await send(name)

    await send("edit")

    assert "free edit limit of 2" in channel.last_text(USER_ID)
    assert await session_service.get_session(USER_ID) is None
    assert (await receipt_service.get_receipt(receipt_id))["edit_count"] == 2
