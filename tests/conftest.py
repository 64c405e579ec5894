import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from db.base import Base

import models.orm_user
import models.orm_subscription
import models.orm_usage
import models.orm_chat_message

from main import app
from api.deps import get_db, get_current_user, get_payments, get_answer_backend_dep
from models.orm_user import UserEntity
from services.answer_service import MockAnswerBackend
from services.payment_service import FixedPaymentGateway


@pytest.fixture(scope="session")
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
    )

    # let SAVEPOINTs nest inside the outer per-test transaction
    @event.listens_for(eng, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=eng)
    return eng


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()

    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make(username=None, *, is_admin=False):
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        user = UserEntity(
            username=name,
            email=f"{name}@example.com",
            password_hash="x",
            is_admin=is_admin,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def payments():
    return FixedPaymentGateway()


def _client_for(db_session, payments, user=None):
    def _get_db_override():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_override
    app.dependency_overrides[get_payments] = lambda: payments
    app.dependency_overrides[get_answer_backend_dep] = lambda: MockAnswerBackend()
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
    return TestClient(app)


@pytest.fixture()
def user(make_user):
    return make_user("testuser")


@pytest.fixture()
def client(db_session, payments, user):
    try:
        yield _client_for(db_session, payments, user)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def admin_client(db_session, payments, make_user):
    admin = make_user("admin", is_admin=True)
    try:
        yield _client_for(db_session, payments, admin)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def public_client(db_session, payments):
    try:
        yield _client_for(db_session, payments)
    finally:
        app.dependency_overrides.clear()
