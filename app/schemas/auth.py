from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class Credentials(BaseModel):
    username: str
    password: str


class SignupIn(Credentials):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=128)
    email: EmailStr


class AccessTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class AccountOut(BaseModel):
    """Public view of a user account; credentials and role flags stay server-side."""

    id: int
    username: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True
