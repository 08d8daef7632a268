"""
Redis utility module for centralized cache connection logic.

Provides secure Redis connection management with production validation. The
returned client is owned by the caller, which closes it at shutdown.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from examstats.config import Config

logger = logging.getLogger(__name__)


class RedisUtils:
    """Centralized Redis configuration and connection utilities."""

    @staticmethod
    def get_secure_redis_url() -> Optional[str]:
        """Get Redis URL with security validation for production deployments."""
        redis_url = Config.REDIS_URL
        if redis_url:
            if RedisUtils._validate_redis_security(redis_url):
                return redis_url
            logger.error("REDIS_URL contains insecure configuration")
            return None

        if not Config.DEBUG:
            logger.error("Production deployment requires secure Redis configuration. Set REDIS_URL with rediss:// protocol and authentication.")
            return None

        logger.warning("Development mode: using insecure localhost Redis. Do not use in production!")
        return 'redis://localhost:6379'

    @staticmethod
    def _validate_redis_security(redis_url: str) -> bool:
        """Validate that Redis URL meets security requirements."""
        if not redis_url:
            return False

        if not Config.DEBUG:
            if not redis_url.startswith('rediss://'):
                logger.error("Production Redis must use rediss:// (TLS) protocol")
                return False
            if '@' not in redis_url:
                logger.error("Production Redis must include authentication credentials")
                return False
            return True

        if redis_url.startswith(('redis://localhost', 'redis://127.0.0.1', 'rediss://')):
            return True
        logger.warning(f"Potentially insecure Redis URL in development: {redis_url}")
        return True

    @staticmethod
    async def create_redis_client(redis_url: Optional[str] = None) -> Optional[redis.Redis]:
        """Create a Redis client, or None when the cache cannot be reached.

        A None client is a valid input to CacheStore, which then serves every
        read as a miss.
        """
        redis_url = redis_url or RedisUtils.get_secure_redis_url()
        if not redis_url:
            return None

        client = redis.from_url(redis_url)
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            await client.aclose()
            return None

        logger.info("Successfully connected to Redis")
        return client
