"""Async engine, sessions and the URL conversion Alembic needs."""

import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from subway.core.config import settings

# Built on first use: a forked worker must not inherit the parent's connections
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_init_lock = threading.Lock()


def _build_engine() -> AsyncEngine:
    options: dict[str, Any] = {"echo": settings.DATABASE_ECHO}
    if settings.DEBUG:
        # Each test runs its own event loop; pooled asyncpg connections are bound to the first one
        options["poolclass"] = NullPool
    else:
        options.update(pool_size=settings.DATABASE_POOL_SIZE, max_overflow=settings.DATABASE_MAX_OVERFLOW)
    return create_async_engine(settings.DATABASE_URL, **options)


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first call."""
    global _engine  # noqa: PLW0603
    if _engine is None:
        with _init_lock:
            if _engine is None:
                _engine = _build_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to get_engine()."""
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        engine = get_engine()
        with _init_lock:
            if _session_factory is None:
                _session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""
    async with get_session_factory()() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession]:
    """Session for code running outside a request, such as CLI commands."""
    async with get_session_factory()() as session:
        yield session


def convert_async_db_url_to_sync(database_url: str) -> str:
    """
    Swap the asyncpg driver for psycopg so Alembic can migrate synchronously.

    Examples:
        >>> convert_async_db_url_to_sync("postgresql+asyncpg://u:p@db:5432/subway")
        'postgresql+psycopg://u:p@db:5432/subway'
        >>> convert_async_db_url_to_sync("sqlite:///subway.db")
        'sqlite:///subway.db'
    """
    parsed = urlparse(database_url)
    if "+asyncpg" not in parsed.scheme:
        return database_url
    return urlunparse(parsed._replace(scheme=parsed.scheme.replace("+asyncpg", "+psycopg")))
