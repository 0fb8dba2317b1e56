"""Database configuration and session management.

This module provides SQLAlchemy 2.x ORM infrastructure including:
- Engine creation (SQLite by default, any SQLAlchemy URL via ``DB_URL``)
- Session factory with commit/rollback transaction handling
- Lazy table creation on first engine access

Environment variables (``.env`` files are honoured):
    DB_URL: Database URL. Defaults to sqlite:///<project_root>/portfolio_registry.db
    DB_ECHO: Echo emitted SQL when set to 1/true/yes/on.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

load_dotenv()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_database_url() -> str:
    """Return ``DB_URL`` if set, else the registry's SQLite file at the project root."""
    env_url = os.getenv("DB_URL")
    if env_url:
        return env_url

    project_root = Path(__file__).resolve().parents[3]
    db_path = project_root / "portfolio_registry.db"
    return URL.create("sqlite", database=str(db_path)).render_as_string(hide_password=False)


def _echo_enabled() -> bool:
    value = os.getenv("DB_ECHO")
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _get_engine() -> Engine:
    global _engine
    if _engine is None:
        database_url = get_database_url()
        _engine = create_engine(database_url, echo=_echo_enabled(), future=True)
        if _engine.dialect.name == "sqlite":
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        _ensure_tables_created()
    return _engine


def _ensure_tables_created() -> None:
    """Create the portfolio and professional_details tables if they are missing."""
    # Both models must be registered on Base before create_all
    from portfolio_registry.data.models import (  # noqa: F401
        portfolio,
        professional_details,
    )

    Base.metadata.create_all(bind=_engine)


def _get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=_get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _SessionLocal


def init_db() -> None:
    """Create all tables defined on the Base metadata.

    Tables are created automatically on first database access, so this is
    only needed for explicit initialization (tests, setup scripts).
    """
    _get_engine()


def reset_db() -> None:
    """Drop and recreate every table. Destroys all stored data."""
    engine = _get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def dispose_engine() -> None:
    """Release pooled connections and forget the cached engine and session factory."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on any error.

    Service functions open one of these per operation, so a bulk save or a
    cascading delete is a single transaction.
    """
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
