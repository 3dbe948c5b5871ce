"""
db/session.py

Lazily created engine and session factory for the scan results database.

Nothing connects at import time: the CLI dry-run path and the unit tests
import the storage layer without a database being configured.
"""

from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _pool_size() -> int:
    # Every parallel study holds its own short-lived session per write, and the
    # batch runner, the API and the scheduler can overlap.
    configured = _env_int("DB_POOL_SIZE", 5)
    scan_workers = max(1, _env_int("MARKET_SCAN_MAX_CONCURRENCY", 3))
    return max(configured, scan_workers + 2)


def create_db_engine() -> Engine:
    database_url = resolve_database_url()
    if not database_url.startswith("postgresql"):
        raise RuntimeError("Scan results are stored in PostgreSQL only (JSONB and UUID columns).")

    return create_engine(
        database_url,
        echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
        pool_pre_ping=True,
        pool_recycle=_env_int("DB_POOL_RECYCLE", 1800),
        pool_size=_pool_size(),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
    )


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """
    Shared sessionmaker handed to result sinks, run bookkeeping and the study catalog.

    Objects stay readable after commit so a run id can be returned from a
    closed session.
    """

    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            class_=Session,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


def SessionLocal() -> Session:
    """Open one session from the shared factory."""
    return get_session_factory()()
