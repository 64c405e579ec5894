from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, CheckConstraint
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import UUIDEntity


class SubscriptionBundleEntity(Base, UUIDEntity):
    __tablename__ = "subscription_bundles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    tier = Column(String, nullable=False)
    billing_cycle = Column(String, nullable=False)
    max_messages = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    renewal_date = Column(DateTime, nullable=True)

    auto_renew = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    messages_used = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)

    user = relationship("UserEntity", back_populates="bundles")

    __table_args__ = (
        CheckConstraint("messages_used >= 0", name="ck_subscription_bundles_messages_used"),
        CheckConstraint("end_date > start_date", name="ck_subscription_bundles_period"),
        Index("ix_subscription_bundles_user_active", "user_id", "is_active"),
        Index("ix_subscription_bundles_renewal_date", "renewal_date"),
    )
