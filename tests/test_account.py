from smartreceipt.services import product_service, receipt_service, user_service

from conftest import USER_ID, make_profile

NEW_ID = "telegram:8099998888"


async def test_backup_requires_completed_setup(send, channel):
    await make_profile(onboarding_complete=False)
    await send("backup")
    assert "complete setup" in channel.last_text(USER_ID)


async def test_backup_code_is_stable(send, channel):
    await make_profile()
    await send("backup")
    profile = await user_service.get_profile(USER_ID)
    code = profile["backup_code"]

    assert len(code) == 8
    assert code == code.upper()
    assert code in channel.last_text(USER_ID)

    await send("backup")
    assert (await user_service.get_profile(USER_ID))["backup_code"] == code


async def test_restore_moves_profile_and_data(send, channel):
    await make_profile(brand_name="Acme Stores", receipt_count=7)
    await product_service.upsert_product(USER_ID, "Fanta", 500)
    await receipt_service.insert_receipt(USER_ID, "Ada", ["Rice"], ["1000"], "Cash", 1000.0)
    await send("backup")
    code = (await user_service.get_profile(USER_ID))["backup_code"]

    # The new identity already started over with its own profile
    await make_profile(user_id=NEW_ID, brand_name="Temp")
    await product_service.upsert_product(NEW_ID, "Sprite", 300)

    await send(f"restore {code.lower()}", user_id=NEW_ID)

    restored = await user_service.get_profile(NEW_ID)
    assert restored["brand_name"] == "Acme Stores"
    assert restored["receipt_count"] == 7
    assert await user_service.get_profile(USER_ID) is None
    assert [p["name"] for p in await product_service.list_products(NEW_ID)] == ["Fanta"]
    assert (await receipt_service.get_latest_receipt(NEW_ID))["customer_name"] == "Ada"
    assert "Welcome back, Acme Stores" in channel.last_text(NEW_ID)


async def test_restore_without_profile(send, channel):
    await make_profile()
    await send("backup")
    code = (await user_service.get_profile(USER_ID))["backup_code"]

    await send(f"restore {code}", user_id=NEW_ID)

    assert (await user_service.get_profile(NEW_ID))["brand_name"] == "Acme Stores"


async def test_restore_invalid_code(send, channel):
    await send("restore ZZZZ0000", user_id=NEW_ID)
    assert channel.last_text(NEW_ID) == "Sorry, that backup code is not valid."


async def test_restore_usage_and_self(send, channel):
    await make_profile()
    await send("restore")
    assert "provide a backup code" in channel.last_text(USER_ID)

    await send("backup")
    code = (await user_service.get_profile(USER_ID))["backup_code"]
    await send(f"restore {code}")
    assert "already linked" in channel.last_text(USER_ID)
