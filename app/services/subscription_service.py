from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy.orm import Session

from core.base_classes import utcnow
from core.errors import ConflictError, NotFoundError, ValidationError
from models.bundle import NewBundle, SubscriptionBundle
from models.enums import BillingCycle, PaymentOutcome
from repositories.bundle_repository import BundleRepository
from repositories.user_repository import UserRepository
from services.payment_service import PaymentGateway, get_payment_gateway
from services.tier_catalog import get_tier, parse_billing_cycle

logger = logging.getLogger(__name__)

CANCEL_RETRY_ATTEMPTS = 3


def _now_utc() -> datetime:
    return utcnow()


def add_months(start: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping to end-of-month when needed."""
    month = start.month - 1 + months
    year = start.year + month // 12
    month = month % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return start.replace(year=year, month=month, day=min(start.day, last_day))


def period_end(start: datetime, cycle: BillingCycle) -> datetime:
    if cycle == BillingCycle.MONTHLY:
        return add_months(start, 1)
    return add_months(start, 12)


# Transitions: pure functions from one snapshot to the next.

def cancelled(bundle: SubscriptionBundle) -> SubscriptionBundle:
    # is_active stays as it is: the paid period runs out at end_date
    return replace(bundle, renewal_date=None, auto_renew=False)


def renewal_failed(bundle: SubscriptionBundle) -> SubscriptionBundle:
    return replace(bundle, renewal_date=None, auto_renew=False, is_active=False)


def renewed(bundle: SubscriptionBundle) -> SubscriptionBundle:
    start = bundle.end_date
    end = period_end(start, bundle.billing_cycle)
    return replace(
        bundle,
        start_date=start,
        end_date=end,
        renewal_date=end if bundle.auto_renew else None,
        is_active=True,
        messages_used=0,
    )


def is_due(bundle: SubscriptionBundle, now: datetime) -> bool:
    return (
        bundle.auto_renew
        and bundle.is_active
        and bundle.renewal_date is not None
        and bundle.renewal_date < now
    )


@dataclass
class RenewalSummary:
    checked: int = 0
    renewed: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "checked": self.checked,
            "renewed": self.renewed,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class SubscriptionService:
    def __init__(
        self,
        db: Session,
        payments: PaymentGateway | None = None,
        bundles: BundleRepository | None = None,
        users: UserRepository | None = None,
        clock=_now_utc,
    ):
        self.bundles = bundles or BundleRepository(db)
        self.users = users or UserRepository(db)
        self.payments = payments or get_payment_gateway()
        self.clock = clock

    def _require_user(self, user_id: int) -> None:
        if not self.users.exists(user_id):
            raise NotFoundError("User")

    def create_subscription(self, user_id: int, tier, billing_cycle, auto_renew: bool = False) -> SubscriptionBundle:
        self._require_user(user_id)
        config = get_tier(tier)
        tier = config.name
        cycle = parse_billing_cycle(billing_cycle)

        start = self.clock()
        end = period_end(start, cycle)

        bundle = self.bundles.create(
            NewBundle(
                user_id=user_id,
                tier=tier,
                billing_cycle=cycle,
                max_messages=config.max_messages,
                price=config.price_for(cycle),
                start_date=start,
                end_date=end,
                renewal_date=end if auto_renew else None,
                auto_renew=bool(auto_renew),
                is_active=True,
            )
        )
        logger.info(
            "Created %s/%s bundle %s for user %s (auto_renew=%s)",
            tier.value, cycle.value, bundle.id, user_id, bundle.auto_renew,
        )
        return bundle

    def get_user_subscriptions(self, user_id: int) -> list[SubscriptionBundle]:
        self._require_user(user_id)
        return self.bundles.find_by_user_id(user_id)

    def get_active_subscriptions(self, user_id: int) -> list[SubscriptionBundle]:
        self._require_user(user_id)
        return self.bundles.find_active_by_user_id(user_id)

    def cancel_subscription(self, bundle_id: str, user_id: int) -> SubscriptionBundle:
        for _ in range(CANCEL_RETRY_ATTEMPTS):
            bundle = self.bundles.find_by_id(bundle_id)
            if bundle is None:
                raise NotFoundError("Subscription bundle")
            if bundle.user_id != user_id:
                raise ValidationError("You can only cancel your own subscriptions")

            if not bundle.auto_renew and bundle.renewal_date is None:
                return bundle

            stored = self.bundles.update(cancelled(bundle))
            if stored is not None:
                logger.info("Cancelled auto-renew for bundle %s (user %s)", bundle_id, user_id)
                return stored
            # a concurrent write (renewal, usage) bumped the version; re-read and reapply

        raise ConflictError("Subscription is being modified concurrently, please retry")

    def renew_if_due(self, bundle_id: str, now: datetime | None = None) -> SubscriptionBundle | None:
        """Renew the bundle if its renewal instant has passed.

        Returns the new snapshot, or None when nothing was due or a concurrent
        writer changed the bundle first.
        """
        bundle = self.bundles.find_by_id(bundle_id)
        if bundle is None or not bundle.auto_renew:
            return None

        if not is_due(bundle, now or self.clock()):
            return None

        outcome = self.payments.charge_renewal(bundle)
        if outcome == PaymentOutcome.FAILED:
            stored = self.bundles.update(renewal_failed(bundle))
            if stored is not None:
                logger.warning("Renewal payment failed, bundle %s deactivated", bundle_id)
            return stored

        stored = self.bundles.update(renewed(bundle))
        if stored is not None:
            logger.info(
                "Renewed bundle %s until %s", bundle_id, stored.end_date.isoformat(),
            )
        return stored

    def renew_due_bundles(self, now: datetime | None = None) -> RenewalSummary:
        now = now or self.clock()
        summary = RenewalSummary()
        for bundle_id in self.bundles.find_due_for_renewal(now):
            summary.checked += 1
            result = self.renew_if_due(bundle_id, now)
            if result is None:
                summary.skipped += 1
            elif result.is_active:
                summary.renewed += 1
            else:
                summary.failed += 1
        logger.info("Renewal sweep finished: %s", summary.to_dict())
        return summary
