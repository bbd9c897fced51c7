"""
Manual subscription grant

Marks a user as paid with an expiry SUBSCRIPTION_MONTHS from now.
Used when a payment was confirmed outside the webhook.

    python scripts/grant_subscription.py telegram:123456789
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

from smartreceipt.core.config import settings
from smartreceipt.db.mongo import connect_to_mongo, close_mongo_connection
from smartreceipt.services import user_service
from smartreceipt.utils.time_utils import add_months, format_timestamp, utcnow

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def grant(user_id: str) -> bool:
    profile = await user_service.get_profile(user_id)
    if not profile:
        logger.error(f"❌ No profile found for {user_id}")
        return False

    expiry = add_months(utcnow(), settings.SUBSCRIPTION_MONTHS)
    await user_service.activate_subscription(user_id, expiry)
    logger.info(f"✅ {profile.get('brand_name', user_id)} is subscribed until {format_timestamp(expiry, '%d %B %Y')}")
    return True


async def main(user_id: str) -> int:
    await connect_to_mongo()
    try:
        return 0 if await grant(user_id) else 1
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/grant_subscription.py <user_id>")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
