from fastapi import APIRouter, Depends

from api.deps import get_current_user, get_subscription_service
from models.bundle import SubscriptionBundle
from models.orm_user import UserEntity
from schemas.subscriptions import BundleOut, BundleListOut, CancelOut, CreateSubscriptionIn, TierOut, TiersOut
from services.subscription_service import SubscriptionService
from services.tier_catalog import list_tiers

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def bundle_out(b: SubscriptionBundle) -> BundleOut:
    return BundleOut(
        id=b.id,
        user_id=b.user_id,
        tier=b.tier.value,
        billing_cycle=b.billing_cycle.value,
        max_messages=b.max_messages,
        price=b.price,
        start_date=b.start_date,
        end_date=b.end_date,
        renewal_date=b.renewal_date,
        auto_renew=b.auto_renew,
        is_active=b.is_active,
        messages_used=b.messages_used,
    )


@router.get("/tiers", response_model=TiersOut)
def tiers():
    return TiersOut(
        tiers=[
            TierOut(
                name=t.name.value,
                max_messages=t.max_messages,
                unlimited=t.is_unlimited,
                monthly_price=t.monthly_price,
                yearly_price=t.yearly_price,
            )
            for t in list_tiers()
        ]
    )


@router.post("", response_model=BundleOut, status_code=201)
def create(
    data: CreateSubscriptionIn,
    user: UserEntity = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    bundle = service.create_subscription(user.id, data.tier, data.billing_cycle, data.auto_renew)
    return bundle_out(bundle)


@router.get("", response_model=BundleListOut)
def list_all(
    user: UserEntity = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return BundleListOut(subscriptions=[bundle_out(b) for b in service.get_user_subscriptions(user.id)])


@router.get("/active", response_model=BundleListOut)
def list_active(
    user: UserEntity = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return BundleListOut(subscriptions=[bundle_out(b) for b in service.get_active_subscriptions(user.id)])


@router.post("/{bundle_id}/cancel", response_model=CancelOut)
def cancel(
    bundle_id: str,
    user: UserEntity = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    bundle = service.cancel_subscription(bundle_id, user.id)
    return CancelOut(
        subscription=bundle_out(bundle),
        message="Subscription cancelled successfully. It will remain active until the end of the current billing cycle.",
    )
