from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from models.enums import BillingCycle, BundleTier

UNLIMITED = -1


@dataclass(frozen=True)
class SubscriptionBundle:
    """Immutable snapshot of a subscription bundle row.

    Lifecycle transitions never mutate a snapshot; they build a new one with
    ``dataclasses.replace`` and hand it to the repository, which writes it only
    if the stored ``version`` still equals the snapshot's.
    """

    id: str
    user_id: int
    tier: BundleTier
    billing_cycle: BillingCycle
    max_messages: int
    price: Decimal
    start_date: datetime
    end_date: datetime
    renewal_date: datetime | None
    auto_renew: bool
    is_active: bool
    messages_used: int
    created_at: datetime
    updated_at: datetime
    version: int = 1

    @property
    def is_unlimited(self) -> bool:
        return self.max_messages == UNLIMITED

    @classmethod
    def from_entity(cls, row) -> "SubscriptionBundle":
        return cls(
            id=row.id,
            user_id=row.user_id,
            tier=BundleTier(row.tier),
            billing_cycle=BillingCycle(row.billing_cycle),
            max_messages=row.max_messages,
            price=Decimal(str(row.price)),
            start_date=row.start_date,
            end_date=row.end_date,
            renewal_date=row.renewal_date,
            auto_renew=row.auto_renew,
            is_active=row.is_active,
            messages_used=row.messages_used,
            created_at=row.created_at,
            updated_at=row.updated_at,
            version=row.version,
        )


@dataclass(frozen=True)
class NewBundle:
    """Bundle fields chosen by the caller; id, timestamps and usage are assigned on insert."""

    user_id: int
    tier: BundleTier
    billing_cycle: BillingCycle
    max_messages: int
    price: Decimal
    start_date: datetime
    end_date: datetime
    renewal_date: datetime | None
    auto_renew: bool
    is_active: bool = True
