from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.settings import settings


def build_engine(database_url: str = settings.database_url):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
