from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from core.base_classes import utcnow
from core.errors import NotFoundError, QuotaExceededError
from core.settings import settings
from models.bundle import SubscriptionBundle
from models.enums import UsageSource
from models.monthly_usage import UserMonthlyUsage
from repositories.bundle_repository import BundleRepository
from repositories.usage_repository import UsageRepository
from repositories.user_repository import UserRepository
from services import quota_policy
from services.tier_catalog import FREE_MONTHLY_MESSAGES

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return utcnow()


def _year_month(dt: datetime) -> tuple[int, int]:
    return dt.year, dt.month


@dataclass(frozen=True)
class Consumption:
    source: UsageSource
    bundle_id: str | None
    remaining_free: int
    remaining_bundle: int | None  # None: unlimited or not a bundle message

    @property
    def source_label(self) -> str:
        return self.bundle_id if self.source == UsageSource.BUNDLE else UsageSource.FREE.value


def get_usage(db: Session, user_id: int, year: int, month: int) -> UserMonthlyUsage | None:
    return UsageRepository(db).find_by_user_id_and_month(user_id, year, month)


def ensure_usage(db: Session, user_id: int, year: int, month: int) -> UserMonthlyUsage:
    repo = UsageRepository(db)
    usage = repo.find_by_user_id_and_month(user_id, year, month)
    if usage:
        return usage
    return repo.create(user_id, year, month)


def reset_usage(db: Session, user_id: int, year: int, month: int) -> UserMonthlyUsage:
    if not UserRepository(db).exists(user_id):
        raise NotFoundError("User")
    repo = UsageRepository(db)
    ensure_usage(db, user_id, year, month)
    repo.reset_monthly_quota(user_id, year, month)
    logger.info("Reset free usage for user %s %s-%02d", user_id, year, month)
    return repo.find_by_user_id_and_month(user_id, year, month)


def _consume_free(db: Session, user_id: int, now: datetime) -> UserMonthlyUsage | None:
    year, month = _year_month(now)
    usage = ensure_usage(db, user_id, year, month)
    if not quota_policy.can_use_free_quota(usage):
        return None
    if not UsageRepository(db).try_increment(usage.id, FREE_MONTHLY_MESSAGES):
        return None
    return get_usage(db, user_id, year, month)


def _consume_bundle(db: Session, user_id: int) -> SubscriptionBundle | None:
    repo = BundleRepository(db)
    for _ in range(max(1, settings.consume_retry_attempts)):
        bundle = repo.find_latest_active_with_quota(user_id)
        if bundle is None:
            return None
        if repo.try_increment_usage(bundle.id):
            return repo.find_by_id(bundle.id)
        # drained by a concurrent request between read and write
        logger.debug("Bundle %s exhausted concurrently, reselecting", bundle.id)
    return None


def consume_message(db: Session, user_id: int, now: datetime | None = None) -> Consumption:
    """Record one message for the user, drawing on free quota before bundles.

    Every increment is a conditional UPDATE, so concurrent requests can never
    push a counter past its ceiling.
    """
    if not UserRepository(db).exists(user_id):
        raise NotFoundError("User")

    now = now or _now_utc()
    usage = _consume_free(db, user_id, now)
    if usage is not None:
        return Consumption(
            source=UsageSource.FREE,
            bundle_id=None,
            remaining_free=quota_policy.remaining_free_quota(usage),
            remaining_bundle=None,
        )

    bundle = _consume_bundle(db, user_id)
    if bundle is None:
        logger.info("User %s has no free or bundle quota left", user_id)
        raise QuotaExceededError()

    remaining = quota_policy.remaining_quota(bundle)
    return Consumption(
        source=UsageSource.BUNDLE,
        bundle_id=bundle.id,
        remaining_free=0,
        remaining_bundle=None if math.isinf(remaining) else int(remaining),
    )


def quota_summary(db: Session, user_id: int, now: datetime | None = None) -> dict:
    if not UserRepository(db).exists(user_id):
        raise NotFoundError("User")

    now = now or _now_utc()
    year, month = _year_month(now)
    usage = get_usage(db, user_id, year, month)
    bundles = BundleRepository(db).find_active_by_user_id(user_id)

    bundle_rows = []
    for b in bundles:
        remaining = quota_policy.remaining_quota(b)
        bundle_rows.append({
            "bundle": b,
            "remaining": None if math.isinf(remaining) else int(remaining),
            "can_use": quota_policy.can_use(b),
        })

    return {
        "year": year,
        "month": month,
        "free_messages_used": usage.messages_used if usage else 0,
        "free_remaining": quota_policy.remaining_free_quota(usage),
        "bundles": bundle_rows,
        "can_send": quota_policy.can_use_free_quota(usage) or quota_policy.pick_bundle(bundles) is not None,
    }
