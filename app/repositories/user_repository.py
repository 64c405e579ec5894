from __future__ import annotations

from sqlalchemy.orm import Session

from models.orm_user import UserEntity


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, user_id: int) -> bool:
        return self.db.query(UserEntity.id).filter(UserEntity.id == user_id).first() is not None
