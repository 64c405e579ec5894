from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_user
from core.settings import settings
from schemas.auth import AccessTokenOut, AccountOut, Credentials, SignupIn
from models.orm_user import UserEntity
from services.auth_service import authenticate, create_access_token, register_user


router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=AccountOut, status_code=201)
def register(data: SignupIn, db: Session = Depends(get_db)):
    return register_user(db, data.username, data.email, data.password)


@router.post("/login", response_model=AccessTokenOut)
def login(data: Credentials, db: Session = Depends(get_db)):
    user = authenticate(db, data.username, data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return AccessTokenOut(
        access_token=create_access_token(user_id=user.id),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=AccountOut)
def me(user: UserEntity = Depends(get_current_user)):
    return user
