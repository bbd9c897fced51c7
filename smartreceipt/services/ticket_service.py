"""
smartreceipt/services/ticket_service.py

Purpose: Support ticket persistence

- Ticket ids derived from the creation time (base-36 milliseconds)
- Ordered conversation log of {sender, message, timestamp}
- Case-insensitive substring lookup for admin commands
"""

import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from smartreceipt.db.mongo import get_tickets_collection
from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)

STATUS_OPEN = "Open"
STATUS_CLOSED = "Closed"

SENDER_USER = "user"
SENDER_ADMIN = "admin"

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def make_ticket_id(created_at: datetime) -> str:
    """
    e.g. 2026-10-19 12:00:00 -> "TMGX0Q1C0"
    """
    millis = int((created_at - datetime(1970, 1, 1)).total_seconds() * 1000)
    return f"T{_to_base36(millis)}"


async def create_ticket(user_id: str, brand_name: str, message: str) -> Dict[str, Any]:
    """
    Opens a ticket whose first log entry is the user's message.

    Returns:
        The stored ticket document
    """
    tickets = get_tickets_collection()
    created_at = datetime.utcnow()

    ticket_id = make_ticket_id(created_at)
    while await tickets.find_one({"ticket_id": ticket_id}):
        created_at += timedelta(milliseconds=1)
        ticket_id = make_ticket_id(created_at)

    ticket = {
        "ticket_id": ticket_id,
        "user_id": user_id,
        "brand_name": brand_name,
        "status": STATUS_OPEN,
        "created_at": created_at,
        "messages": [
            {"sender": SENDER_USER, "message": message, "timestamp": created_at}
        ],
    }
    await tickets.insert_one(ticket)
    logger.info("Support ticket opened", extra={"ticket_id": ticket_id})
    return ticket


async def append_message(ticket_id: str, sender: str, message: str) -> bool:
    """
    Appends to an open ticket's log.

    Returns:
        False if the ticket does not exist or is closed
    """
    tickets = get_tickets_collection()
    result = await tickets.update_one(
        {"ticket_id": ticket_id, "status": STATUS_OPEN},
        {"$push": {"messages": {"sender": sender, "message": message, "timestamp": datetime.utcnow()}}},
    )
    return result.matched_count > 0


async def get_ticket(ticket_id: str) -> Optional[Dict[str, Any]]:
    return await get_tickets_collection().find_one({"ticket_id": ticket_id})


async def get_open_ticket_for_user(user_id: str) -> Optional[Dict[str, Any]]:
    tickets = get_tickets_collection()
    return await tickets.find_one(
        {"user_id": user_id, "status": STATUS_OPEN},
        sort=[("created_at", DESCENDING)],
    )


async def list_open_tickets() -> List[Dict[str, Any]]:
    tickets = get_tickets_collection()
    cursor = tickets.find({"status": STATUS_OPEN}).sort("created_at", ASCENDING)
    return await cursor.to_list(length=None)


async def find_tickets_by_fragment(fragment: str) -> List[Dict[str, Any]]:
    """
    Tickets whose id contains `fragment`, ignoring case.
    """
    tickets = get_tickets_collection()
    cursor = tickets.find(
        {"ticket_id": {"$regex": re.escape(fragment.strip()), "$options": "i"}}
    ).sort("created_at", DESCENDING)
    return await cursor.to_list(length=None)


async def close_ticket(ticket_id: str, closed_by: str) -> bool:
    """
    Returns:
        True if an open ticket was closed
    """
    tickets = get_tickets_collection()
    result = await tickets.update_one(
        {"ticket_id": ticket_id, "status": STATUS_OPEN},
        {"$set": {"status": STATUS_CLOSED, "closed_by": closed_by, "closed_at": datetime.utcnow()}},
    )
    closed = result.modified_count > 0
    if closed:
        logger.info(f"Ticket closed by {closed_by}", extra={"ticket_id": ticket_id})
    return closed
