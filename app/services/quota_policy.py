"""Read-only quota rules over bundle and monthly-usage snapshots."""
from __future__ import annotations

import math

from models.bundle import SubscriptionBundle
from models.monthly_usage import UserMonthlyUsage
from services.tier_catalog import FREE_MONTHLY_MESSAGES


def remaining_quota(bundle: SubscriptionBundle) -> int | float:
    """Messages left in the current period; ``math.inf`` for unlimited bundles."""
    if bundle.is_unlimited:
        return math.inf
    return max(0, bundle.max_messages - bundle.messages_used)


def can_use(bundle: SubscriptionBundle) -> bool:
    if not bundle.is_active:
        return False
    if bundle.is_unlimited:
        return True
    return remaining_quota(bundle) > 0


def remaining_free_quota(usage: UserMonthlyUsage | None) -> int:
    if usage is None:
        return FREE_MONTHLY_MESSAGES
    return max(0, FREE_MONTHLY_MESSAGES - usage.messages_used)


def can_use_free_quota(usage: UserMonthlyUsage | None) -> bool:
    return remaining_free_quota(usage) > 0


def pick_bundle(bundles: list[SubscriptionBundle]) -> SubscriptionBundle | None:
    """Most recently created usable bundle, or None."""
    usable = [b for b in bundles if can_use(b)]
    if not usable:
        return None
    return max(usable, key=lambda b: b.created_at)
