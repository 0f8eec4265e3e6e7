# portfolio_tracker/database.py
"""
Engine, session factory and the per-request session dependency.

SQLite is the default store (one user, one portfolio). The engine setup
still honors the DB_POOL_* settings when DATABASE_URL points at a server
database.
"""

import logging
from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .config import settings

logger = logging.getLogger(__name__)


def _engine_options() -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.debug}

    if not settings.is_sqlite:
        options.update(
            poolclass=QueuePool,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
        )
        return options

    # Sessions are used from FastAPI's worker threads
    options["connect_args"] = {"check_same_thread": False}
    if ":memory:" in settings.database_url:
        # One shared connection, otherwise each checkout sees an empty database
        options["poolclass"] = StaticPool
    return options


def build_engine() -> Engine:
    options = _engine_options()
    pool = options.get("poolclass")
    logger.info(
        f"Database engine: {make_url(settings.database_url).render_as_string(hide_password=True)} "
        f"(pool={pool.__name__ if pool else 'default'})"
    )
    return create_engine(settings.database_url, **options)


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_database() -> None:
    """Create missing tables; existing tables are left alone."""
    from .models import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
