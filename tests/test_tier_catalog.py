from decimal import Decimal

import pytest

from core.errors import ValidationError
from models.enums import BillingCycle, BundleTier
from services.tier_catalog import get_tier, list_tiers, parse_billing_cycle, parse_tier


def test_catalog_prices_and_limits():
    basic = get_tier("Basic")
    assert basic.max_messages == 10
    assert basic.price_for(BillingCycle.MONTHLY) == Decimal("9.99")
    assert basic.price_for(BillingCycle.YEARLY) == Decimal("99.99")

    pro = get_tier(BundleTier.PRO)
    assert pro.max_messages == 100
    assert pro.price_for(BillingCycle.YEARLY) == Decimal("299.99")

    ent = get_tier("Enterprise")
    assert ent.is_unlimited
    assert ent.price_for(BillingCycle.MONTHLY) == Decimal("99.99")

    assert [t.name for t in list_tiers()] == [BundleTier.BASIC, BundleTier.PRO, BundleTier.ENTERPRISE]


@pytest.mark.parametrize("value", ["basic", "Gold", "", None])
def test_unknown_tier_is_validation_error(value):
    with pytest.raises(ValidationError) as exc:
        parse_tier(value)
    assert "Basic, Pro, Enterprise" in exc.value.message


def test_unknown_cycle_is_validation_error():
    with pytest.raises(ValidationError):
        parse_billing_cycle("weekly")


def test_free_ceiling_is_a_catalog_constant_not_a_setting():
    from core.settings import Settings
    from services.tier_catalog import FREE_MONTHLY_MESSAGES

    assert FREE_MONTHLY_MESSAGES == 3
    assert not hasattr(Settings(), "free_monthly_messages")
