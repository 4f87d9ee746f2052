"""
Database engine, session factory, and metadata shared across the engine.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from timetable.core.config import settings

logger = logging.getLogger(__name__)

Base: DeclarativeMeta = declarative_base()


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        # pysqlite defers BEGIN until the first write; take over transaction control
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        logger.debug("SQLite connection established with foreign keys enabled")

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Any) -> None:
        # Write lock is held from the first statement of every transaction
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(
    db_url: Optional[str] = None,
    *,
    echo: Optional[bool] = None,
    busy_timeout: Optional[float] = None,
) -> Engine:
    """
    Create an engine for the timetable store.

    Server databases run at the configured isolation level so the conflict
    checks and slot writes of one operation cannot interleave with another.
    SQLite transactions start with BEGIN IMMEDIATE, so a second writer waits
    up to ``busy_timeout`` seconds and then fails. In-memory SQLite shares a
    single connection across sessions.
    """
    url = db_url or settings.database_url
    kwargs: dict[str, Any] = {
        "echo": settings.db_echo if echo is None else echo,
        "future": True,
    }

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.db_sqlite_busy_timeout if busy_timeout is None else busy_timeout,
        }
        if ":memory:" in url or url.rstrip("/") in {"sqlite:", "sqlite+pysqlite:"}:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        _configure_sqlite(engine)
    else:
        if settings.db_isolation_level:
            kwargs["isolation_level"] = settings.db_isolation_level
        kwargs["pool_pre_ping"] = True
        engine = create_engine(url, **kwargs)

    logger.info("Database engine created", extra={"dialect": engine.dialect.name})
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(bind: Engine) -> None:
    """Create all tables on the given engine."""
    # Import models so Base.metadata is populated
    import timetable.models  # noqa: F401

    Base.metadata.create_all(bind)


__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "init_db",
]
