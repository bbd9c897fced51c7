"""
smartreceipt/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- Unique conversations.user_id keeps at most one session per user
- Case-insensitive product uniqueness through products.name_key
"""

from pymongo import ASCENDING, DESCENDING

from smartreceipt.db.mongo import (
    get_users_collection,
    get_conversations_collection,
    get_receipts_collection,
    get_products_collection,
    get_tickets_collection,
)
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        conversations = get_conversations_collection()
        receipts = get_receipts_collection()
        products = get_products_collection()
        tickets = get_tickets_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS
        # ==============================================
        await users.create_index("user_id", unique=True, name="user_id_unique")
        await users.create_index("backup_code", unique=True, sparse=True, name="backup_code_unique")
        await users.create_index("payment_phone", unique=True, sparse=True, name="payment_phone_unique")
        logger.debug("Created indexes on users")

        # ==============================================
        # CONVERSATIONS
        # ==============================================
        await conversations.create_index("user_id", unique=True, name="session_user_unique")
        logger.debug("Created unique index on conversations.user_id")

        # ==============================================
        # RECEIPTS
        # ==============================================
        await receipts.create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
            name="user_receipts_idx"
        )
        logger.debug("Created compound index on receipts.user_id + created_at")

        # ==============================================
        # PRODUCTS
        # ==============================================
        await products.create_index(
            [("user_id", ASCENDING), ("name_key", ASCENDING)],
            unique=True,
            name="user_product_unique"
        )
        logger.debug("Created unique index on products.user_id + name_key")

        # ==============================================
        # TICKETS
        # ==============================================
        await tickets.create_index("ticket_id", unique=True, name="ticket_id_unique")
        await tickets.create_index(
            [("user_id", ASCENDING), ("status", ASCENDING)],
            name="ticket_owner_status_idx"
        )
        logger.debug("Created indexes on tickets")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    import asyncio
    from smartreceipt.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
