import threading
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from core.errors import QuotaExceededError
from db.base import Base
import models  # noqa: F401  registers all tables
from models.orm_subscription import SubscriptionBundleEntity
from models.orm_usage import UserMonthlyUsageEntity
from models.orm_user import UserEntity
from repositories.bundle_repository import BundleRepository
from services.usage_service import consume_message

NOW = datetime(2024, 1, 15)


@pytest.fixture()
def file_sessionmaker(tmp_path):
    eng = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    # take the write lock at BEGIN so concurrent writers queue on the busy timeout
    @event.listens_for(eng, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(bind=eng)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=eng)
    finally:
        eng.dispose()


def _seed(Session, *, max_messages, free_used):
    db = Session()
    try:
        user = UserEntity(username="racer", email="racer@example.com", password_hash="x")
        db.add(user)
        db.commit()
        db.refresh(user)

        bundle = SubscriptionBundleEntity(
            user_id=user.id,
            tier="Basic",
            billing_cycle="monthly",
            max_messages=max_messages,
            price=Decimal("9.99"),
            start_date=datetime(2024, 1, 1),
            end_date=datetime(2024, 2, 1),
            renewal_date=None,
            auto_renew=False,
            is_active=True,
            messages_used=0,
        )
        db.add(bundle)
        db.add(UserMonthlyUsageEntity(user_id=user.id, year=NOW.year, month=NOW.month, messages_used=free_used))
        db.commit()
        return user.id, bundle.id
    finally:
        db.close()


def _run_in_threads(n, fn):
    barrier = threading.Barrier(n)
    results = [None] * n

    def worker(i):
        barrier.wait()
        results[i] = fn()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def _messages_used(Session, bundle_id):
    db = Session()
    try:
        return db.query(SubscriptionBundleEntity).filter(SubscriptionBundleEntity.id == bundle_id).one().messages_used
    finally:
        db.close()


def test_two_concurrent_increments_on_single_message_bundle(file_sessionmaker):
    _, bundle_id = _seed(file_sessionmaker, max_messages=1, free_used=3)

    def increment():
        db = file_sessionmaker()
        try:
            return BundleRepository(db).try_increment_usage(bundle_id)
        finally:
            db.close()

    results = _run_in_threads(2, increment)

    assert sorted(results) == [False, True]
    assert _messages_used(file_sessionmaker, bundle_id) == 1


def test_concurrent_messages_never_exceed_ceiling(file_sessionmaker):
    user_id, bundle_id = _seed(file_sessionmaker, max_messages=2, free_used=2)

    def send():
        db = file_sessionmaker()
        try:
            return consume_message(db, user_id, now=NOW).source.value
        except QuotaExceededError:
            return "exceeded"
        finally:
            db.close()

    results = _run_in_threads(6, send)

    assert results.count("free") == 1
    assert results.count("bundle") == 2
    assert results.count("exceeded") == 3
    assert _messages_used(file_sessionmaker, bundle_id) == 2
