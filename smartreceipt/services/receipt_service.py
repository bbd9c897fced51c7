"""
smartreceipt/services/receipt_service.py

Purpose: Receipt persistence

- Insert new receipts (edit_count starts at 0)
- Apply edits (fields overwritten, edit_count incremented, created_at untouched)
- History and month-range queries for stats/export
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ASCENDING

from smartreceipt.db.mongo import get_receipts_collection
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)


def to_object_id(receipt_id) -> Optional[ObjectId]:
    if isinstance(receipt_id, ObjectId):
        return receipt_id
    try:
        return ObjectId(str(receipt_id))
    except (InvalidId, TypeError):
        return None


async def insert_receipt(
    user_id: str,
    customer_name: str,
    items: List[str],
    prices: List[str],
    payment_method: str,
    total_amount: float,
) -> ObjectId:
    """
    Stores a new receipt.

    Returns:
        The generated receipt id
    """
    receipts = get_receipts_collection()
    now = datetime.utcnow()
    result = await receipts.insert_one({
        "user_id": user_id,
        "created_at": now,
        "updated_at": now,
        "customer_name": customer_name,
        "items": list(items),
        "prices": [str(p) for p in prices],
        "payment_method": payment_method,
        "total_amount": total_amount,
        "edit_count": 0,
    })
    logger.info("Receipt stored", extra={"receipt_id": str(result.inserted_id)})
    return result.inserted_id


async def apply_edit(
    receipt_id,
    customer_name: str,
    items: List[str],
    prices: List[str],
    payment_method: str,
    total_amount: float,
) -> bool:
    """
    Overwrites the mutable fields of a receipt and bumps edit_count.

    Returns:
        True if the receipt exists
    """
    oid = to_object_id(receipt_id)
    if oid is None:
        return False

    receipts = get_receipts_collection()
    result = await receipts.update_one(
        {"_id": oid},
        {
            "$set": {
                "customer_name": customer_name,
                "items": list(items),
                "prices": [str(p) for p in prices],
                "payment_method": payment_method,
                "total_amount": total_amount,
                "updated_at": datetime.utcnow(),
            },
            "$inc": {"edit_count": 1},
        },
    )
    return result.matched_count > 0


async def get_receipt(receipt_id, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    oid = to_object_id(receipt_id)
    if oid is None:
        return None
    query: Dict[str, Any] = {"_id": oid}
    if user_id is not None:
        query["user_id"] = user_id
    return await get_receipts_collection().find_one(query)


async def get_latest_receipt(user_id: str) -> Optional[Dict[str, Any]]:
    receipts = get_receipts_collection()
    return await receipts.find_one({"user_id": user_id}, sort=[("created_at", DESCENDING)])


async def get_recent_receipts(user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Most recent receipts first.
    """
    receipts = get_receipts_collection()
    cursor = receipts.find({"user_id": user_id}).sort("created_at", DESCENDING).limit(limit)
    return await cursor.to_list(length=limit)


async def get_receipts_between(user_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    """
    Receipts created in [start, end), oldest first.
    """
    receipts = get_receipts_collection()
    cursor = receipts.find({
        "user_id": user_id,
        "created_at": {"$gte": start, "$lt": end},
    }).sort("created_at", ASCENDING)
    return await cursor.to_list(length=None)
