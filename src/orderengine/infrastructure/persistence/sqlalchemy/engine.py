"""Engine and session factory construction.

SQLite gets the driver tweaks it needs to behave as a transactional store
under concurrent writers: foreign keys on, pysqlite's own transaction
handling off, and every transaction opened with ``BEGIN IMMEDIATE`` so the
write lock is taken up front and competing writers wait (up to the busy
timeout) instead of failing on lock upgrade.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from orderengine.domain.exceptions import PersistenceError
from orderengine.infrastructure.persistence.sqlalchemy.models import Base

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def create_engine_from_url(url: str, echo: bool = False) -> Engine:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo, pool_pre_ping=True)

    database = parsed.database
    in_memory = not database or database == ":memory:"
    if in_memory:
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        Path(database).parent.mkdir(parents=True, exist_ok=True)  # type: ignore[arg-type]
        engine = create_engine(
            url,
            echo=echo,
            connect_args={
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
            },
        )
    _enable_sqlite_transactions(engine)
    return engine


def _enable_sqlite_transactions(engine: Engine) -> None:

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def init_schema(engine: Engine) -> None:
    """Create every table that does not exist yet."""
    try:
        Base.metadata.create_all(engine)
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Could not create database schema: {exc}") from exc


def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)
