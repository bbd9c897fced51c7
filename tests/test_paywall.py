from datetime import datetime, timedelta

from smartreceipt.services.paywall import GateDecision, edit_limit_reached, gate, is_subscription_active

from conftest import ADMIN_ID

NOW = datetime(2026, 10, 19, 12, 0)


def _profile(**fields):
    profile = {"user_id": "telegram:42", "is_paid": False, "receipt_count": 0}
    profile.update(fields)
    return profile


def test_non_premium_commands_are_always_allowed():
    profile = _profile(receipt_count=50)
    for command in ("history", "stats", "products", "mybrand"):
        assert gate(profile, command, now=NOW) == GateDecision.ALLOW


def test_free_trial_allows_until_the_limit():
    assert gate(_profile(receipt_count=1), "new receipt", now=NOW) == GateDecision.ALLOW
    assert gate(_profile(receipt_count=2), "new receipt", now=NOW) == GateDecision.REQUIRE_PAYMENT
    assert gate(_profile(receipt_count=2), "edit", now=NOW) == GateDecision.REQUIRE_PAYMENT
    assert gate(_profile(receipt_count=3), "export", now=NOW) == GateDecision.REQUIRE_PAYMENT


def test_active_subscription_bypasses_the_trial():
    profile = _profile(receipt_count=10, is_paid=True, subscription_expiry_date=NOW + timedelta(days=1))
    assert is_subscription_active(profile, now=NOW)
    assert gate(profile, "new receipt", now=NOW) == GateDecision.ALLOW


def test_expired_subscription_is_inactive():
    profile = _profile(receipt_count=10, is_paid=True, subscription_expiry_date=NOW)
    assert not is_subscription_active(profile, now=NOW)
    assert gate(profile, "new receipt", now=NOW) == GateDecision.REQUIRE_PAYMENT


def test_paid_without_expiry_is_inactive():
    assert not is_subscription_active(_profile(is_paid=True), now=NOW)


def test_admins_are_always_active(admins):
    profile = _profile(user_id=ADMIN_ID, receipt_count=99)
    assert is_subscription_active(profile, now=NOW)
    assert gate(profile, "new receipt", now=NOW) == GateDecision.ALLOW


def test_edit_limit_per_receipt():
    profile = _profile()
    assert not edit_limit_reached(profile, {"edit_count": 1})
    assert edit_limit_reached(profile, {"edit_count": 2})

    subscribed = _profile(is_paid=True, subscription_expiry_date=datetime.utcnow() + timedelta(days=30))
    assert not edit_limit_reached(subscribed, {"edit_count": 20})
