"""Redis connection utilities.

Helpers for Redis connections configured from settings. Used by the job
broker and by the reconciliation sweep lock.
"""

import redis.asyncio as redis

from app.config.settings import settings


def get_redis_client() -> redis.Redis:
    """
    Create a Redis client with settings from config.

    Returns:
        redis.Redis: Configured Redis client with decode_responses=True

    Example:
        >>> redis_client = get_redis_client()
        >>> async with redis_client.lock("hierarchy_reconciliation", timeout=900):
        ...     ...
        >>> await redis_client.aclose()
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )


def get_redis_url_masked() -> str:
    """
    Build Redis URL with masked password for safe logging.

    Returns:
        str: Redis connection URL, e.g. "redis://:****@localhost:6379/0"
    """
    auth = ":****@" if settings.redis_password else ""
    return (
        f"redis://{auth}{settings.redis_host}:{settings.redis_port}"
        f"/{settings.redis_db}"
    )
