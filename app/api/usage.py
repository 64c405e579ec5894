from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user
from models.orm_user import UserEntity
from schemas.usage import BundleQuotaOut, QuotaSummaryOut
from services.usage_service import quota_summary

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("/me", response_model=QuotaSummaryOut)
def me(user: UserEntity = Depends(get_current_user), db: Session = Depends(get_db)):
    s = quota_summary(db, user.id)
    return QuotaSummaryOut(
        year=s["year"],
        month=s["month"],
        free_messages_used=s["free_messages_used"],
        free_remaining=s["free_remaining"],
        bundles=[
            BundleQuotaOut(
                bundle_id=row["bundle"].id,
                tier=row["bundle"].tier.value,
                messages_used=row["bundle"].messages_used,
                max_messages=row["bundle"].max_messages,
                remaining=row["remaining"],
                can_use=row["can_use"],
            )
            for row in s["bundles"]
        ],
        can_send=s["can_send"],
    )
