from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.base_classes import utcnow
from models.monthly_usage import UserMonthlyUsage
from models.orm_usage import UserMonthlyUsageEntity

logger = logging.getLogger(__name__)


class UsageRepository:
    def __init__(self, db: Session):
        self.db = db

    def _by_key(self, user_id: int, year: int, month: int):
        return self.db.query(UserMonthlyUsageEntity).filter(
            UserMonthlyUsageEntity.user_id == user_id,
            UserMonthlyUsageEntity.year == year,
            UserMonthlyUsageEntity.month == month,
        )

    def find_by_user_id_and_month(self, user_id: int, year: int, month: int) -> UserMonthlyUsage | None:
        row = self._by_key(user_id, year, month).first()
        return UserMonthlyUsage.from_entity(row) if row else None

    def create(self, user_id: int, year: int, month: int, messages_used: int = 0) -> UserMonthlyUsage:
        """Insert the (user, year, month) row; if a concurrent insert won, return that row."""
        now = utcnow()
        row = UserMonthlyUsageEntity(
            user_id=user_id,
            year=year,
            month=month,
            messages_used=messages_used,
            last_reset_date=now,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.find_by_user_id_and_month(user_id, year, month)
            if existing is None:
                raise
            logger.debug("Usage row for user %s %s-%02d created concurrently", user_id, year, month)
            return existing
        self.db.refresh(row)
        return UserMonthlyUsage.from_entity(row)

    def update(self, usage: UserMonthlyUsage) -> UserMonthlyUsage:
        self.db.query(UserMonthlyUsageEntity).filter(UserMonthlyUsageEntity.id == usage.id).update(
            {
                UserMonthlyUsageEntity.messages_used: usage.messages_used,
                UserMonthlyUsageEntity.last_reset_date: usage.last_reset_date,
                UserMonthlyUsageEntity.updated_at: utcnow(),
            },
            synchronize_session=False,
        )
        self.db.commit()
        return usage

    def reset_monthly_quota(self, user_id: int, year: int, month: int) -> int:
        now = utcnow()
        count = self._by_key(user_id, year, month).update(
            {
                UserMonthlyUsageEntity.messages_used: 0,
                UserMonthlyUsageEntity.last_reset_date: now,
                UserMonthlyUsageEntity.updated_at: now,
            },
            synchronize_session=False,
        )
        self.db.commit()
        return count

    def try_increment(self, usage_id: str, ceiling: int, amount: int = 1) -> bool:
        count = (
            self.db.query(UserMonthlyUsageEntity)
            .filter(
                UserMonthlyUsageEntity.id == usage_id,
                UserMonthlyUsageEntity.messages_used + amount <= ceiling,
            )
            .update(
                {
                    UserMonthlyUsageEntity.messages_used: UserMonthlyUsageEntity.messages_used + amount,
                    UserMonthlyUsageEntity.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return count == 1
