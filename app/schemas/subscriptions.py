from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel
from typing import Optional, List, Literal

TierName = Literal["Basic", "Pro", "Enterprise"]
CycleName = Literal["monthly", "yearly"]


class TierOut(BaseModel):
    name: str
    max_messages: int
    unlimited: bool
    monthly_price: Decimal
    yearly_price: Decimal


class TiersOut(BaseModel):
    tiers: List[TierOut]


class CreateSubscriptionIn(BaseModel):
    # checked against the tier catalog by SubscriptionService
    tier: str
    billing_cycle: str
    auto_renew: bool = False


class BundleOut(BaseModel):
    id: str
    user_id: int
    tier: TierName
    billing_cycle: CycleName
    max_messages: int
    price: Decimal
    start_date: datetime
    end_date: datetime
    renewal_date: Optional[datetime]
    auto_renew: bool
    is_active: bool
    messages_used: int


class BundleListOut(BaseModel):
    subscriptions: List[BundleOut]


class CancelOut(BaseModel):
    subscription: BundleOut
    message: str


class RenewOut(BaseModel):
    renewed: bool
    subscription: Optional[BundleOut] = None


class RenewalSweepOut(BaseModel):
    checked: int
    renewed: int
    failed: int
    skipped: int
