from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from db.session import SessionLocal
from models.orm_user import UserEntity
from services.answer_service import AnswerBackend, get_answer_backend
from services.auth_service import decode_token
from services.payment_service import PaymentGateway, get_payment_gateway
from services.subscription_service import SubscriptionService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> UserEntity:
    try:
        payload = decode_token(token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = (
        db.query(UserEntity)
        .filter(UserEntity.id == user_id, UserEntity.is_active.is_(True))
        .first()
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


def require_admin(user: UserEntity = Depends(get_current_user)) -> UserEntity:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return user


def get_payments() -> PaymentGateway:
    return get_payment_gateway()


def get_answer_backend_dep() -> AnswerBackend:
    return get_answer_backend()


def get_subscription_service(
    db: Session = Depends(get_db),
    payments: PaymentGateway = Depends(get_payments),
) -> SubscriptionService:
    return SubscriptionService(db, payments=payments)
