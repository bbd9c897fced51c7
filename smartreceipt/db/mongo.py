"""
smartreceipt/db/mongo.py

Purpose: MongoDB connection setup

- Initializes Motor client with connection pooling
- Collections: users, conversations, receipts, products, tickets, settings
- Health checks and retry logic
- Proper connection lifecycle management
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


async def connect_to_mongo():
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    max_retries = 3
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            _client = AsyncIOMotorClient(
                settings.MONGODB_URL,
                maxPoolSize=50,
                minPoolSize=5,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
            )

            _database = _client[settings.MONGODB_DB_NAME]

            # Verify connection
            await _client.admin.command("ping")

            logger.info(
                f"✅ Successfully connected to MongoDB: {settings.MONGODB_DB_NAME}"
            )
            return

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )
            _client = None
            _database = None

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


async def close_mongo_connection():
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    global _client, _database

    if _client:
        logger.info("Closing MongoDB connection")
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        if _client is None:
            logger.error("MongoDB client not initialized")
            return False

        await _client.admin.command("ping")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def use_database(database) -> None:
    """
    Installs an already-constructed database handle.

    Used by scripts that manage their own client and by the test suite.
    """
    global _database
    _database = database


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_users_collection():
    """
    Returns the users (profile) collection.

    Fields:
    - user_id: str (channel-scoped identity, unique)
    - brand_name, brand_color, logo_url, address: str
    - contact_info, contact_email, contact_phone: str
    - is_paid: bool, subscription_expiry_date: datetime
    - receipt_count: int
    - receipt_format: "PNG" | "PDF", preferred_template: int
    - backup_code: str, payment_phone: str
    - onboarding_complete: bool, created_at: datetime
    """
    return get_database()["users"]


def get_conversations_collection():
    """
    Returns the conversations collection (one session document per user).

    Fields: user_id, state, data, updated_at
    """
    return get_database()["conversations"]


def get_receipts_collection():
    """
    Returns the receipts collection.

    Fields: user_id, created_at, updated_at, customer_name, items, prices,
    payment_method, total_amount, edit_count
    """
    return get_database()["receipts"]


def get_products_collection():
    """Returns the product catalog collection (user_id, name, name_key, price)."""
    return get_database()["products"]


def get_tickets_collection():
    """Returns the support tickets collection."""
    return get_database()["tickets"]


def get_settings_collection():
    """Returns the global settings collection."""
    return get_database()["settings"]
