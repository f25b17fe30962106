"""
Record store wiring for the COR engine.

Every service takes a Session; engines are built from a URL so the API,
Alembic and the test suite configure SQLite and Postgres identically.
"""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from cor_engine.core.config import get_settings

# seconds a SQLite writer waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 15


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the record store.

    SQLite connections are shared across FastAPI's worker threads and wait
    on locks instead of failing immediately; server databases get pre-ping
    so dropped pooled connections are replaced.
    """
    connect_args: Dict[str, Any] = {}
    if _is_sqlite(database_url):
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}

    return create_engine(
        database_url,
        pool_pre_ping=not _is_sqlite(database_url),
        echo=echo,
        connect_args=connect_args,
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    """Sessions never autoflush; services flush explicitly inside store_operation."""
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


_settings = get_settings()

engine = build_engine(_settings.sqlalchemy_database_uri, echo=_settings.DEBUG)
SessionLocal = build_session_factory(engine)


class Base(DeclarativeBase):
    """Declarative base for the COR record tables."""


def get_db():
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
