"""
Database session management with PgBouncer compatibility.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from keepsake.core.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Driver specific engine options."""
    if database_url.startswith("postgresql"):
        return {
            "pool_pre_ping": True,
            "connect_args": {"options": "-c statement_timeout=30000"},  # 30s timeout
        }
    return {}


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """
    Let pysqlite run SAVEPOINTs (Session.begin_nested).

    The driver's own transaction handling is switched off and SQLAlchemy
    emits BEGIN itself.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_url: str | None = None) -> Engine:
    url = database_url or settings.database_url
    engine = create_engine(url, **engine_options(url))
    if url.startswith("sqlite"):
        enable_sqlite_savepoints(engine)
    return engine


sync_engine = build_engine()

SyncSessionLocal = sessionmaker(
    bind=sync_engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_sync_db() -> Iterator[Session]:
    """Get synchronous database session for FastAPI routes."""
    db = SyncSessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(factory: sessionmaker = SyncSessionLocal) -> Iterator[Session]:
    """Session for background tasks, closed on exit."""
    db = factory()
    try:
        yield db
    finally:
        db.close()
