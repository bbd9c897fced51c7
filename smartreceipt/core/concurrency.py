"""
smartreceipt/core/concurrency.py

Purpose: Per-user processing guard

- Tracks user identities with a message currently in flight
- Atomic test-and-set acquire (no await between check and add)
- Release on every exit path via the `hold` context manager
- Messages arriving while a pass is in flight are dropped, not queued
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Set

from smartreceipt.core.logging import get_logger

logger = get_logger(__name__)


class ConcurrencyGuard:
    """
    In-memory set of identities currently being processed.

    All callers run on one event loop, so the membership check and the
    insert in `acquire` cannot interleave with another task.
    """

    def __init__(self):
        self._in_flight: Set[str] = set()

    def acquire(self, user_id: str) -> bool:
        """Returns True if the caller now holds the guard for user_id."""
        if user_id in self._in_flight:
            return False
        self._in_flight.add(user_id)
        return True

    def release(self, user_id: str) -> None:
        self._in_flight.discard(user_id)

    def is_held(self, user_id: str) -> bool:
        return user_id in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[bool]:
        """
        Acquire for the duration of the block.

        Yields False when another pass already holds the guard; in that case
        nothing is released on exit.
        """
        acquired = self.acquire(user_id)
        if not acquired:
            logger.info("Dropping message, a pass is already in flight", extra={"user_id": user_id})
        try:
            yield acquired
        finally:
            if acquired:
                self.release(user_id)


# Process-wide guard shared by every channel
processing_guard = ConcurrencyGuard()
