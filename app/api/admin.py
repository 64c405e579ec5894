from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_db, get_subscription_service, require_admin
from api.subscriptions import bundle_out
from core.base_classes import utcnow
from models.orm_user import UserEntity
from schemas.subscriptions import RenewOut, RenewalSweepOut
from schemas.usage import UsageOut
from services import quota_policy
from services.subscription_service import SubscriptionService
from services.usage_service import reset_usage

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/subscriptions/renew-due", response_model=RenewalSweepOut)
def renew_due(
    service: SubscriptionService = Depends(get_subscription_service),
    _: UserEntity = Depends(require_admin),
):
    return RenewalSweepOut(**service.renew_due_bundles().to_dict())


@router.post("/subscriptions/{bundle_id}/renew", response_model=RenewOut)
def renew_one(
    bundle_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
    _: UserEntity = Depends(require_admin),
):
    bundle = service.renew_if_due(bundle_id)
    if bundle is None:
        return RenewOut(renewed=False)
    return RenewOut(renewed=bundle.is_active, subscription=bundle_out(bundle))


@router.post("/usage/{user_id}/reset", response_model=UsageOut)
def reset_free_usage(
    user_id: int,
    db: Session = Depends(get_db),
    _: UserEntity = Depends(require_admin),
):
    now = utcnow()
    usage = reset_usage(db, user_id, now.year, now.month)
    return UsageOut(
        user_id=usage.user_id,
        year=usage.year,
        month=usage.month,
        messages_used=usage.messages_used,
        free_remaining=quota_policy.remaining_free_quota(usage),
    )
