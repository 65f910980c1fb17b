"""
Database configuration.

Engine and session factory construction shared by scripts and tasks.
"""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import settings


def build_engine_kwargs(poolclass: type | None = None) -> dict[str, Any]:
    """
    Engine options derived from settings.

    Args:
        poolclass: Pool override; NullPool engines skip pre-ping

    Returns:
        Keyword arguments for create_async_engine
    """
    kwargs: dict[str, Any] = {"echo": settings.database_echo}
    if settings.database_isolation_level:
        kwargs["isolation_level"] = settings.database_isolation_level
    if poolclass is not None:
        kwargs["poolclass"] = poolclass
    if poolclass is not NullPool and not settings.database_url.startswith(
        "sqlite"
    ):
        kwargs["pool_pre_ping"] = True
    return kwargs


def create_engine(poolclass: type | None = None) -> AsyncEngine:
    """Create the async engine for the configured database."""
    return create_async_engine(
        settings.async_database_url,
        **build_engine_kwargs(poolclass),
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker; objects stay loaded after commit."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Ready-to-use instances
async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
