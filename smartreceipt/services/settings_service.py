"""
smartreceipt/services/settings_service.py

Purpose: Global bot settings (single document)
"""

from datetime import datetime

from smartreceipt.db.mongo import get_settings_collection
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)

GLOBAL_SETTINGS_ID = "global"


async def registrations_open() -> bool:
    """New-user onboarding is open unless an admin closed it."""
    doc = await get_settings_collection().find_one({"_id": GLOBAL_SETTINGS_ID})
    if not doc:
        return True
    return bool(doc.get("registrations_open", True))


async def set_registrations_open(value: bool, changed_by: str) -> None:
    await get_settings_collection().update_one(
        {"_id": GLOBAL_SETTINGS_ID},
        {"$set": {
            "registrations_open": value,
            "updated_by": changed_by,
            "updated_at": datetime.utcnow(),
        }},
        upsert=True,
    )
    logger.info(f"Registrations {'opened' if value else 'closed'} by {changed_by}")
