from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.base_classes import utcnow
from models.bundle import UNLIMITED, NewBundle, SubscriptionBundle
from models.orm_subscription import SubscriptionBundleEntity

logger = logging.getLogger(__name__)


class BundleRepository:
    """Durable store for subscription bundles.

    Writes are conditional: ``update`` only lands when the stored version still
    matches the snapshot, and ``try_increment_usage`` only lands while the
    bundle is active and below its ceiling. Both are single UPDATE statements.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(SubscriptionBundleEntity)

    def create(self, bundle: NewBundle) -> SubscriptionBundle:
        now = utcnow()
        row = SubscriptionBundleEntity(
            user_id=bundle.user_id,
            tier=bundle.tier.value,
            billing_cycle=bundle.billing_cycle.value,
            max_messages=bundle.max_messages,
            price=bundle.price,
            start_date=bundle.start_date,
            end_date=bundle.end_date,
            renewal_date=bundle.renewal_date,
            auto_renew=bundle.auto_renew,
            is_active=bundle.is_active,
            messages_used=0,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return SubscriptionBundle.from_entity(row)

    def find_by_id(self, bundle_id: str) -> SubscriptionBundle | None:
        row = self._query().filter(SubscriptionBundleEntity.id == bundle_id).first()
        return SubscriptionBundle.from_entity(row) if row else None

    def find_by_user_id(self, user_id: int) -> list[SubscriptionBundle]:
        rows = (
            self._query()
            .filter(SubscriptionBundleEntity.user_id == user_id)
            .order_by(SubscriptionBundleEntity.created_at.desc())
            .all()
        )
        return [SubscriptionBundle.from_entity(r) for r in rows]

    def find_active_by_user_id(self, user_id: int) -> list[SubscriptionBundle]:
        rows = (
            self._query()
            .filter(
                SubscriptionBundleEntity.user_id == user_id,
                SubscriptionBundleEntity.is_active.is_(True),
            )
            .order_by(SubscriptionBundleEntity.created_at.desc())
            .all()
        )
        return [SubscriptionBundle.from_entity(r) for r in rows]

    def find_latest_active_with_quota(self, user_id: int) -> SubscriptionBundle | None:
        row = (
            self._query()
            .filter(
                SubscriptionBundleEntity.user_id == user_id,
                SubscriptionBundleEntity.is_active.is_(True),
                or_(
                    SubscriptionBundleEntity.max_messages == UNLIMITED,
                    SubscriptionBundleEntity.messages_used < SubscriptionBundleEntity.max_messages,
                ),
            )
            .order_by(SubscriptionBundleEntity.created_at.desc())
            .first()
        )
        return SubscriptionBundle.from_entity(row) if row else None

    def find_due_for_renewal(self, now) -> list[str]:
        rows = (
            self.db.query(SubscriptionBundleEntity.id)
            .filter(
                SubscriptionBundleEntity.auto_renew.is_(True),
                SubscriptionBundleEntity.is_active.is_(True),
                SubscriptionBundleEntity.renewal_date.isnot(None),
                SubscriptionBundleEntity.renewal_date < now,
            )
            .order_by(SubscriptionBundleEntity.renewal_date.asc())
            .all()
        )
        return [r.id for r in rows]

    def update(self, bundle: SubscriptionBundle) -> SubscriptionBundle | None:
        """Write ``bundle`` over the stored row if nobody else wrote it since it was read.

        Returns the stored snapshot, or None when the row changed underneath.
        """
        count = (
            self._query()
            .filter(
                SubscriptionBundleEntity.id == bundle.id,
                SubscriptionBundleEntity.version == bundle.version,
            )
            .update(
                {
                    SubscriptionBundleEntity.tier: bundle.tier.value,
                    SubscriptionBundleEntity.billing_cycle: bundle.billing_cycle.value,
                    SubscriptionBundleEntity.max_messages: bundle.max_messages,
                    SubscriptionBundleEntity.price: bundle.price,
                    SubscriptionBundleEntity.start_date: bundle.start_date,
                    SubscriptionBundleEntity.end_date: bundle.end_date,
                    SubscriptionBundleEntity.renewal_date: bundle.renewal_date,
                    SubscriptionBundleEntity.auto_renew: bundle.auto_renew,
                    SubscriptionBundleEntity.is_active: bundle.is_active,
                    SubscriptionBundleEntity.messages_used: bundle.messages_used,
                    SubscriptionBundleEntity.version: SubscriptionBundleEntity.version + 1,
                    SubscriptionBundleEntity.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        if count != 1:
            logger.info("Stale write rejected for bundle %s at version %s", bundle.id, bundle.version)
            return None
        return self.find_by_id(bundle.id)

    def try_increment_usage(self, bundle_id: str, amount: int = 1) -> bool:
        count = (
            self._query()
            .filter(
                SubscriptionBundleEntity.id == bundle_id,
                SubscriptionBundleEntity.is_active.is_(True),
                or_(
                    SubscriptionBundleEntity.max_messages == UNLIMITED,
                    SubscriptionBundleEntity.messages_used + amount <= SubscriptionBundleEntity.max_messages,
                ),
            )
            .update(
                {
                    SubscriptionBundleEntity.messages_used: SubscriptionBundleEntity.messages_used + amount,
                    SubscriptionBundleEntity.version: SubscriptionBundleEntity.version + 1,
                    SubscriptionBundleEntity.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return count == 1
