"""Redis connection used by the job queue."""

import logging

from redis import Redis

from app.core.config import settings

logger = logging.getLogger(__name__)

# RQ works with the synchronous client
_redis_client: Redis | None = None


def get_redis() -> Redis:
    """Get or create the Redis connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.redis_url)
        logger.debug(f"Created Redis connection for {settings.redis_url}")
    return _redis_client


def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
