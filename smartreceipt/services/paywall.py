"""
smartreceipt/services/paywall.py

Purpose: Usage gating

- Subscription status (admins are always active)
- Free-trial gate for premium commands
- Per-receipt free-edit limit
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from smartreceipt.core.config import settings
from smartreceipt.utils.constants import PREMIUM_COMMANDS


class GateDecision(str, Enum):
    ALLOW = "allow"
    REQUIRE_PAYMENT = "require_payment"


def is_admin(user_id: str) -> bool:
    return user_id in settings.ADMIN_IDS


def is_subscription_active(profile: Optional[Dict[str, Any]], user_id: Optional[str] = None,
                           now: Optional[datetime] = None) -> bool:
    """
    True for admins, else when the profile is paid and its expiry is
    strictly in the future.
    """
    identity = user_id or (profile or {}).get("user_id")
    if identity and is_admin(identity):
        return True
    if not profile or not profile.get("is_paid"):
        return False

    expiry = profile.get("subscription_expiry_date")
    if not isinstance(expiry, datetime):
        return False
    return expiry > (now or datetime.utcnow())


def gate(profile: Dict[str, Any], command: str, user_id: Optional[str] = None,
         now: Optional[datetime] = None) -> GateDecision:
    """
    Decides whether `command` may run for this profile.

    Premium commands are blocked once the subscription check fails and the
    receipt counter has reached FREE_TRIAL_LIMIT.
    """
    if command not in PREMIUM_COMMANDS:
        return GateDecision.ALLOW
    if is_subscription_active(profile, user_id=user_id, now=now):
        return GateDecision.ALLOW
    if profile.get("receipt_count", 0) >= settings.FREE_TRIAL_LIMIT:
        return GateDecision.REQUIRE_PAYMENT
    return GateDecision.ALLOW


def edit_limit_reached(profile: Dict[str, Any], receipt: Dict[str, Any],
                       user_id: Optional[str] = None) -> bool:
    """
    Non-subscribers may edit each receipt FREE_EDIT_LIMIT times.
    """
    if is_subscription_active(profile, user_id=user_id):
        return False
    return receipt.get("edit_count", 0) >= settings.FREE_EDIT_LIMIT
