"""SQLAlchemy async engine and session management.

Provides a factory for async engines (asyncpg in production, aiosqlite in
tests), a session factory, a scoped-session context manager that maps
driver failures onto :class:`StoreUnavailable`, and schema creation.

Engines and session factories are passed explicitly to the stores; there
is no module-level singleton.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from audit_room.core.errors import StoreError, StoreUnavailable

from .models import Base

logger = logging.getLogger(__name__)


def create_engine(
    url: str,
    *,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """Build the async engine behind the SQL fill and override stores.

    SQLite URLs (``sqlite+aiosqlite:///audit.db``) and *use_null_pool* get a
    ``NullPool``; anything else gets a sized pool, recycled every
    *pool_recycle* seconds.
    """
    pool_kwargs: dict = {}
    if use_null_pool or url.startswith("sqlite"):
        pool_kwargs["poolclass"] = NullPool
    else:
        pool_kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
        )

    engine = create_async_engine(url, echo=echo, **pool_kwargs)
    logger.info("Created async engine for %s (pool_size=%s)", url.split("@")[-1], pool_size)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create the ``trade_fills`` and ``audit_overrides`` tables if missing."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (DBAPIError, OSError) as exc:
        raise StoreUnavailable("postgres", str(exc)) from exc
    logger.info("Database tables created / verified.")


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
    store: str,
) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error.

    Connection-level failures surface as :class:`StoreUnavailable` tagged
    with *store*. Constraint violations are not outages and surface as a
    plain :class:`StoreError`.
    """
    session = factory()
    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise StoreError(f"Store [{store}] rejected write: {exc.orig}") from exc
    except (DBAPIError, OSError) as exc:
        await session.rollback()
        raise StoreUnavailable(store, str(exc)) from exc
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()
