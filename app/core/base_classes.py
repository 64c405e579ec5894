import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import declared_attr


def utcnow() -> datetime:
    # naive UTC, matching how the columns are declared
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_uuid() -> str:
    return str(uuid.uuid4())


class BaseEntity:
    __abstract__ = True

    @declared_attr
    def id(cls):
        return Column(Integer, primary_key=True, index=True)

    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=utcnow, server_default=func.now(), nullable=False)


class UUIDEntity:
    __abstract__ = True

    @declared_attr
    def id(cls):
        return Column(String(36), primary_key=True, default=new_uuid)

    @declared_attr
    def created_at(cls):
        return Column(DateTime, default=utcnow, server_default=func.now(), nullable=False, index=True)

    @declared_attr
    def updated_at(cls):
        return Column(DateTime, default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)
