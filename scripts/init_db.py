"""
Database initialization script - SmartReceipt collections and indexes

Run once to create collections and indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from smartreceipt.db.mongo import connect_to_mongo, close_mongo_connection, get_database
from smartreceipt.db.indexes import create_indexes

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

COLLECTIONS = ["users", "conversations", "receipts", "products", "tickets", "settings"]


async def verify_indexes():
    """Lists the indexes and document counts of every collection"""
    db = get_database()

    logger.info("\n🔍 Verifying indexes...")
    for collection_name in COLLECTIONS:
        collection = db[collection_name]
        indexes = await collection.index_information()
        count = await collection.count_documents({})
        logger.info(f"\n  {collection_name} ({count} documents):")
        for idx_name in indexes.keys():
            if idx_name != "_id_":
                logger.info(f"    ✅ {idx_name}")


async def main():
    """Main initialization"""
    logger.info("=" * 60)
    logger.info("  SmartReceipt Database Setup")
    logger.info("=" * 60 + "\n")

    await connect_to_mongo()
    try:
        await create_indexes()
        await verify_indexes()
        logger.info("\n✅ Database initialization complete!")
    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise
    finally:
        await close_mongo_connection()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
