"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Callable, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

_POSTGRES_POOL_KWARGS: dict[str, Any] = {
    "pool_size": settings.database_pool_size,
    "max_overflow": settings.database_max_overflow,
    # Fail fast when the pool is exhausted instead of queueing requests
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
    "pool_use_lifo": True,
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    if db_url.startswith("sqlite"):
        # Sessions hop between the event loop and worker threads (asyncio.to_thread)
        return {"connect_args": {"check_same_thread": False}}
    return dict(_POSTGRES_POOL_KWARGS)


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(db_url: str) -> Engine:
    built = create_engine(db_url, **_build_engine_kwargs(db_url))
    if db_url.startswith("sqlite"):
        enable_sqlite_foreign_keys(built)
    return built


engine: Engine = build_engine(settings.database_url)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


def build_session_factory(bind: Engine) -> Callable[[], Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind, expire_on_commit=False)


SessionLocal = build_session_factory(engine)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """
    Session factory for code that opens its own short-lived sessions.

    The live transport handles many events over one connection, so it opens
    a session per event instead of holding one for the socket's lifetime.
    Overridden in tests.
    """
    return SessionLocal
