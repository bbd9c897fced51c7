"""
smartreceipt/services/product_service.py

Purpose: Per-user product catalog

- Case-insensitive unique names via the lower-cased name_key
- Upsert keeps the latest spelling and price
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING

from smartreceipt.db.mongo import get_products_collection
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)


def name_key(name: str) -> str:
    return " ".join(name.split()).lower()


async def find_product(user_id: str, name: str) -> Optional[Dict[str, Any]]:
    products = get_products_collection()
    return await products.find_one({"user_id": user_id, "name_key": name_key(name)})


async def has_products(user_id: str) -> bool:
    products = get_products_collection()
    return await products.find_one({"user_id": user_id}) is not None


async def upsert_product(user_id: str, name: str, price: float) -> None:
    """
    Saves a product, replacing any same-named (case-insensitive) entry.
    """
    products = get_products_collection()
    await products.update_one(
        {"user_id": user_id, "name_key": name_key(name)},
        {
            "$set": {"name": name.strip(), "price": price, "updated_at": datetime.utcnow()},
            "$setOnInsert": {"user_id": user_id, "name_key": name_key(name)},
        },
        upsert=True,
    )
    logger.info(f"Product saved: {name}", extra={"user_id": user_id})


async def list_products(user_id: str) -> List[Dict[str, Any]]:
    products = get_products_collection()
    cursor = products.find({"user_id": user_id}).sort("name_key", ASCENDING)
    return await cursor.to_list(length=None)


async def remove_product(user_id: str, name: str) -> bool:
    """
    Returns:
        True if a product was deleted
    """
    products = get_products_collection()
    result = await products.delete_one({"user_id": user_id, "name_key": name_key(name)})
    return result.deleted_count > 0
