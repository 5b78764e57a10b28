"""
Dramatiq broker configuration.

Redis-based message broker for manual ledger runs.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from app.utils.redis_utils import get_redis_url, get_redis_url_masked

redis_broker = RedisBroker(url=get_redis_url())

# ShutdownNotifications: lets workers stop between units of work
# CurrentMessage: exposes the message id to actors for logging
# Retries: batch runs roll back entirely, so a retry starts clean
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=2,
        min_backoff=5000,  # 5 seconds
        max_backoff=60000,  # 1 minute
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(f"Dramatiq broker initialized: {get_redis_url_masked()}")
