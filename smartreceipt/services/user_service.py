"""
smartreceipt/services/user_service.py

Purpose: User profile management

- Create profile on the first onboarding answer
- Single-field updates for onboarding and brand settings
- Usage counter, backup codes, subscription flags
- Account restore (re-link an old profile to a new identity)
"""

import secrets
from datetime import datetime
from typing import Optional, Dict, Any

from smartreceipt.db.mongo import (
    get_users_collection,
    get_receipts_collection,
    get_products_collection,
    get_tickets_collection,
)
from smartreceipt.core.logging import get_logger, LogContext

logger = get_logger(__name__)

PROFILE_DEFAULTS = {
    "brand_color": None,
    "logo_url": None,
    "address": None,
    "contact_info": None,
    "contact_email": None,
    "contact_phone": None,
    "is_paid": False,
    "subscription_expiry_date": None,
    "receipt_count": 0,
    "receipt_format": None,
    "preferred_template": 1,
    "onboarding_complete": False,
}


async def get_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Retrieves a profile by identity.

    Returns:
        Profile document or None if not found
    """
    users = get_users_collection()
    return await users.find_one({"user_id": user_id})


async def create_profile(user_id: str, brand_name: str) -> Dict[str, Any]:
    """
    Creates the profile with its brand name (first onboarding answer).

    An existing profile under the same identity is overwritten field by
    field rather than duplicated.
    """
    with LogContext(user_id=user_id):
        users = get_users_collection()
        now = datetime.utcnow()

        await users.update_one(
            {"user_id": user_id},
            {
                "$set": {"brand_name": brand_name, "onboarding_complete": False},
                "$setOnInsert": {
                    **{k: v for k, v in PROFILE_DEFAULTS.items() if k != "onboarding_complete"},
                    "user_id": user_id,
                    "created_at": now,
                },
            },
            upsert=True,
        )
        logger.info("Profile created")

    return await get_profile(user_id)


async def update_profile(user_id: str, fields: Dict[str, Any]) -> bool:
    """
    Sets profile fields.

    Args:
        user_id: Identity
        fields: Field -> value mapping

    Returns:
        True if the profile exists
    """
    users = get_users_collection()
    result = await users.update_one({"user_id": user_id}, {"$set": fields})

    found = result.matched_count > 0
    if not found:
        logger.warning("Profile update on missing user", extra={"user_id": user_id})
    return found


async def increment_receipt_count(user_id: str) -> None:
    users = get_users_collection()
    await users.update_one({"user_id": user_id}, {"$inc": {"receipt_count": 1}})


async def get_or_create_backup_code(profile: Dict[str, Any]) -> str:
    """
    Returns the profile's backup code, generating one on first use.

    Codes are 8 upper-case hex characters.
    """
    code = profile.get("backup_code")
    if code:
        return code

    users = get_users_collection()
    while True:
        code = secrets.token_hex(4).upper()
        if not await users.find_one({"backup_code": code}):
            break

    await users.update_one({"user_id": profile["user_id"]}, {"$set": {"backup_code": code}})
    logger.info("Backup code issued", extra={"user_id": profile["user_id"]})
    return code


async def find_by_backup_code(code: str) -> Optional[Dict[str, Any]]:
    users = get_users_collection()
    return await users.find_one({"backup_code": code.strip().upper()})


async def restore_account(current_user_id: str, restored: Dict[str, Any]) -> None:
    """
    Re-points `restored` to `current_user_id`.

    Any profile (and catalog) already stored under the current identity is
    removed first so the identity maps to exactly one profile. Receipts and
    tickets of the old identity follow the profile.
    """
    old_user_id = restored["user_id"]

    with LogContext(user_id=current_user_id):
        users = get_users_collection()
        products = get_products_collection()

        await users.delete_one({"user_id": current_user_id})
        await products.delete_many({"user_id": current_user_id})

        await users.update_one({"_id": restored["_id"]}, {"$set": {"user_id": current_user_id}})
        await get_receipts_collection().update_many(
            {"user_id": old_user_id}, {"$set": {"user_id": current_user_id}}
        )
        await products.update_many(
            {"user_id": old_user_id}, {"$set": {"user_id": current_user_id}}
        )
        await get_tickets_collection().update_many(
            {"user_id": old_user_id}, {"$set": {"user_id": current_user_id}}
        )

        logger.info(
            "Account restored",
            extra={"previous_user_id": old_user_id}
        )


async def set_payment_phone(user_id: str, phone: str) -> None:
    """
    Attaches the payment phone to the profile.

    A phone is unique across profiles, so it is first released by any
    other profile that registered it before.
    """
    users = get_users_collection()
    await users.update_many(
        {"payment_phone": phone, "user_id": {"$ne": user_id}},
        {"$unset": {"payment_phone": ""}},
    )
    await users.update_one({"user_id": user_id}, {"$set": {"payment_phone": phone}})


async def find_by_payment_phone(phone: str) -> Optional[Dict[str, Any]]:
    users = get_users_collection()
    return await users.find_one({"payment_phone": phone})


async def activate_subscription(user_id: str, expiry: datetime, reference: Optional[str] = None) -> bool:
    """
    Marks the profile paid until `expiry`, remembering the payment reference.

    The reference is checked in the same update that records it, so two
    deliveries of one payment activate the subscription once.

    Returns:
        False if `reference` was already recorded
    """
    query: Dict[str, Any] = {"user_id": user_id}
    update: Dict[str, Any] = {"$set": {"is_paid": True, "subscription_expiry_date": expiry}}
    if reference:
        query["payment_references"] = {"$ne": reference}
        update["$addToSet"] = {"payment_references": reference}

    users = get_users_collection()
    result = await users.update_one(query, update)
    if result.matched_count == 0:
        return False

    logger.info("Subscription activated", extra={"user_id": user_id, "expiry": expiry.isoformat()})
    return True
