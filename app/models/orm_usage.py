from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from db.base import Base
from core.base_classes import UUIDEntity


class UserMonthlyUsageEntity(Base, UUIDEntity):
    __tablename__ = "user_monthly_usage"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    messages_used = Column(Integer, nullable=False, default=0)
    last_reset_date = Column(DateTime, nullable=False, server_default=func.now())

    user = relationship("UserEntity", back_populates="usage_rows")

    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_user_monthly_usage_user_year_month"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_user_monthly_usage_month_range"),
        Index("ix_user_monthly_usage_period", "year", "month"),
    )
