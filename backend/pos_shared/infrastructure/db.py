"""
Database engine and session management.
SQLAlchemy 2.0 synchronous sessions, one per request.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pos_shared.config.settings import DATABASE_URL


def _calculate_pool_size() -> int:
    """
    Pool size from CPU cores: (2 * cores) + 1, capped at 20.
    """
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def build_engine(url: str) -> Engine:
    """
    Create the engine for a database URL.

    PostgreSQL gets a tuned connection pool; SQLite (local runs, tests)
    keeps SQLAlchemy's default pool and allows cross-thread use.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    engine_kwargs: dict[str, Any] = {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": _calculate_pool_size(),
        "max_overflow": 15,
        "pool_timeout": 30,  # Wait max 30s for a pooled connection
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
        "connect_args": {"connect_timeout": 10},
        "echo": False,
    }
    return create_engine(url, **engine_kwargs)


engine = build_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/products")
        def list_products(db: Session = Depends(get_db)):
            ...

    The session is closed after the request completes; uncommitted work
    is discarded.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for sessions outside of FastAPI (startup seed, scripts).

    Usage:
        with get_db_context() as db:
            seed_plan_limits(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back so the error
    handlers can map it (IntegrityError -> 409/400, OperationalError -> 503).
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
