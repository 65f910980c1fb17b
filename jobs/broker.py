"""
Dramatiq broker configuration.

Redis-based message broker for hierarchy and commission jobs.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from app.config.logging import setup_logging
from app.config.operational_constants import DEFAULT_MAX_RETRIES
from app.config.settings import settings
from app.utils.redis_utils import get_redis_url_masked

setup_logging()

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# Retries: exponential backoff, 1 second up to 1 minute
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=DEFAULT_MAX_RETRIES,
        min_backoff=1000,
        max_backoff=60000,
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(f"Dramatiq broker initialized: {get_redis_url_masked()}")
