"""
smartreceipt/utils/replies.py

Purpose: Flavor-text selection

- Maps a pool id to one reply from REPLY_POOLS
- The random source is injectable so tests can pin the choice
"""

import random
from typing import Optional

from smartreceipt.utils.constants import REPLY_POOLS


def pick_reply(pool_id: str, rng: Optional[random.Random] = None) -> str:
    """
    Returns one entry of the named pool.

    Raises:
        KeyError: unknown pool id
    """
    pool = REPLY_POOLS[pool_id]
    chooser = rng if rng is not None else random
    return chooser.choice(pool)
