"""Database connection and session management."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wage_ledger.config import get_settings
from wage_ledger.models import Base

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT rollback works on pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine(database_url: str | None = None) -> Engine:
    """Create database engine."""
    url = database_url or get_settings().database_url
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across sessions
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if ":memory:" in url else None,
        )
        _enable_sqlite_savepoints(engine)
        return engine
    return create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


# Global engine and session factory
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_db(database_url: str | None = None) -> tuple[Engine, sessionmaker[Session]]:
    """Initialize database engine and session factory."""
    global _engine, _session_factory
    if _engine is None:
        _engine = get_engine(database_url)
        _session_factory = sessionmaker(
            _engine,
            class_=Session,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine, _session_factory


def dispose_db() -> None:
    """Dispose the global engine (used on shutdown and in tests)."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def create_schema(engine: Engine | None = None) -> None:
    """Create all tables that do not exist yet."""
    if engine is None:
        engine, _ = init_db()
    Base.metadata.create_all(engine)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a database session that commits on success."""
    _, factory = init_db()
    with factory() as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
