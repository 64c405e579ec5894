from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import BaseEntity


class UserEntity(Base, BaseEntity):
    __tablename__ = "users"

    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)

    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    bundles = relationship(
        "SubscriptionBundleEntity",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    usage_rows = relationship(
        "UserMonthlyUsageEntity",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    chat_messages = relationship(
        "ChatMessageEntity",
        back_populates="user",
        cascade="all, delete-orphan",
    )
