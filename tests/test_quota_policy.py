import math
from datetime import datetime
from decimal import Decimal

import pytest

from models.bundle import SubscriptionBundle
from models.enums import BillingCycle, BundleTier
from models.monthly_usage import UserMonthlyUsage
from services import quota_policy

T0 = datetime(2024, 1, 1)


def _bundle(max_messages=10, used=0, active=True, created_at=T0, bundle_id="b1"):
    return SubscriptionBundle(
        id=bundle_id,
        user_id=1,
        tier=BundleTier.BASIC,
        billing_cycle=BillingCycle.MONTHLY,
        max_messages=max_messages,
        price=Decimal("9.99"),
        start_date=T0,
        end_date=datetime(2024, 2, 1),
        renewal_date=None,
        auto_renew=False,
        is_active=active,
        messages_used=used,
        created_at=created_at,
        updated_at=created_at,
    )


def _usage(used):
    return UserMonthlyUsage(
        id="u1", user_id=1, year=2024, month=1, messages_used=used,
        last_reset_date=T0, created_at=T0, updated_at=T0,
    )


@pytest.mark.parametrize("max_messages, used, expected", [
    (10, 0, 10),
    (10, 7, 3),
    (10, 10, 0),
    (10, 12, 0),
    (0, 0, 0),
])
def test_remaining_quota_never_negative(max_messages, used, expected):
    assert quota_policy.remaining_quota(_bundle(max_messages, used)) == expected


def test_unlimited_bundle_has_infinite_quota():
    assert math.isinf(quota_policy.remaining_quota(_bundle(-1, 5)))


@pytest.mark.parametrize("active", [True, False])
def test_unlimited_can_use_tracks_is_active(active):
    b = _bundle(-1, 1_000_000, active=active)
    assert quota_policy.can_use(b) is active


@pytest.mark.parametrize("active, used, expected", [
    (True, 0, True),
    (True, 9, True),
    (True, 10, False),
    (False, 0, False),
])
def test_limited_can_use_needs_active_and_room(active, used, expected):
    assert quota_policy.can_use(_bundle(10, used, active=active)) is expected


def test_free_quota_exhausted_at_three():
    usage = _usage(3)
    assert quota_policy.can_use_free_quota(usage) is False
    assert quota_policy.remaining_free_quota(usage) == 0


def test_free_quota_with_two_used_leaves_one():
    usage = _usage(2)
    assert quota_policy.remaining_free_quota(usage) == 1
    assert quota_policy.can_use_free_quota(usage) is True


def test_missing_usage_row_means_full_free_quota():
    assert quota_policy.remaining_free_quota(None) == 3


def test_pick_bundle_prefers_newest_usable():
    old = _bundle(10, 0, created_at=datetime(2024, 1, 1), bundle_id="old")
    new_full = _bundle(10, 10, created_at=datetime(2024, 1, 3), bundle_id="full")
    newer_inactive = _bundle(10, 0, active=False, created_at=datetime(2024, 1, 4), bundle_id="off")
    new = _bundle(10, 2, created_at=datetime(2024, 1, 2), bundle_id="new")

    picked = quota_policy.pick_bundle([old, new_full, newer_inactive, new])
    assert picked.id == "new"
    assert quota_policy.pick_bundle([new_full, newer_inactive]) is None
