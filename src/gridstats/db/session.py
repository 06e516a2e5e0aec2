"""Engine and session plumbing for the statistics store.

Configuration comes from the environment:
    GRIDSTATS_DB_PATH   SQLite file, default data/gridstats.db
    GRIDSTATS_DEBUG_SQL 1/true/yes to echo SQL and log report queries
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gridstats.db.schema import Base

DEFAULT_DB_PATH = Path(os.environ.get("GRIDSTATS_DB_PATH", "data/gridstats.db"))

DEBUG_SQL = os.environ.get("GRIDSTATS_DEBUG_SQL", "").lower() in ("1", "true", "yes")

# Keyed by resolved database path
_engines: dict[str, Engine] = {}
_session_factories: dict[str, sessionmaker] = {}


def configure_sqlite(engine: Engine) -> None:
    """Enforce foreign keys and let SQLAlchemy own transaction boundaries.

    pysqlite opens transactions lazily and on its own terms, which breaks
    SAVEPOINT. With the driver in autocommit mode SQLAlchemy emits BEGIN
    itself, so repo writes can run inside session.begin_nested().
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN")


def _cache_key(db_path: Path | None) -> tuple[Path, str]:
    path = Path(db_path if db_path is not None else DEFAULT_DB_PATH)
    return path, str(path.resolve())


def get_engine(db_path: Path | None = None) -> Engine:
    """Return the engine for db_path, creating and caching it on first use.

    A single shared connection (StaticPool) serves all threads, as FastAPI
    runs sync routes in a thread pool.
    """
    path, key = _cache_key(db_path)
    if key in _engines:
        return _engines[key]

    path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        f"sqlite:///{path}",
        echo=DEBUG_SQL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    _engines[key] = engine
    return engine


def get_session(db_path: Path | None = None) -> Session:
    """Open a session; the caller closes it."""
    _, key = _cache_key(db_path)
    factory = _session_factories.get(key)
    if factory is None:
        factory = sessionmaker(bind=get_engine(db_path))
        _session_factories[key] = factory
    return factory()


@contextmanager
def get_db_session(db_path: Path | None = None) -> Generator[Session, None, None]:
    """Session scoped to one unit of work: commit on success, else roll back."""
    session = get_session(db_path)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_path: Path | None = None) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(get_engine(db_path))
