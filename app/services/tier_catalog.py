from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from core.errors import ValidationError
from models.bundle import UNLIMITED
from models.enums import BillingCycle, BundleTier

FREE_MONTHLY_MESSAGES = 3


@dataclass(frozen=True)
class Tier:
    name: BundleTier
    max_messages: int
    monthly_price: Decimal
    yearly_price: Decimal

    @property
    def is_unlimited(self) -> bool:
        return self.max_messages == UNLIMITED

    def price_for(self, cycle: BillingCycle) -> Decimal:
        if cycle == BillingCycle.MONTHLY:
            return self.monthly_price
        return self.yearly_price


TIERS: dict[BundleTier, Tier] = {
    BundleTier.BASIC: Tier(BundleTier.BASIC, 10, Decimal("9.99"), Decimal("99.99")),
    BundleTier.PRO: Tier(BundleTier.PRO, 100, Decimal("29.99"), Decimal("299.99")),
    BundleTier.ENTERPRISE: Tier(BundleTier.ENTERPRISE, UNLIMITED, Decimal("99.99"), Decimal("999.99")),
}


def parse_tier(value) -> BundleTier:
    try:
        return BundleTier(value)
    except ValueError:
        allowed = ", ".join(t.value for t in BundleTier)
        raise ValidationError(f"Invalid tier. Must be one of: {allowed}")


def parse_billing_cycle(value) -> BillingCycle:
    try:
        return BillingCycle(value)
    except ValueError:
        allowed = ", ".join(c.value for c in BillingCycle)
        raise ValidationError(f"Invalid billing cycle. Must be one of: {allowed}")


def get_tier(tier) -> Tier:
    return TIERS[parse_tier(tier)]


def list_tiers() -> list[Tier]:
    return [TIERS[t] for t in BundleTier]
