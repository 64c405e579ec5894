from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserMonthlyUsage:
    id: str
    user_id: int
    year: int
    month: int
    messages_used: int
    last_reset_date: datetime
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, row) -> "UserMonthlyUsage":
        return cls(
            id=row.id,
            user_id=row.user_id,
            year=row.year,
            month=row.month,
            messages_used=row.messages_used,
            last_reset_date=row.last_reset_date,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
