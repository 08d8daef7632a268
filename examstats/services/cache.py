"""
Cache-aside store over Redis.

Generic get/set/delete with TTL jitter and negative-result markers. Knows
nothing about exam data: values are JSON-serializable payloads.

Design:
- every write adds uniform jitter to its TTL so keys populated in a burst do
  not all expire together
- a "confirmed absent" marker can be stored and is reported by get() as
  NEGATIVE_RESULT, distinct from a miss (None)
- if Redis is unreachable, reads are misses and writes report False; nothing
  here ever raises to the caller
"""

import json
import logging
import random
from typing import Any, Optional

from redis.exceptions import RedisError

from examstats.config import Config
from examstats.utils.exceptions import CacheUnavailable

logger = logging.getLogger(__name__)

NEGATIVE_MARKER = '__examstats_negative__'


class _NegativeResult:
    """Sentinel returned by CacheStore.get for a cached "not found"."""

    def __repr__(self):
        return 'NEGATIVE_RESULT'

    def __bool__(self):
        return False


NEGATIVE_RESULT = _NegativeResult()


def jittered_ttl(base_ttl: int, variance: int, rng: random.Random = random) -> int:
    """base_ttl plus a uniform integer in [-variance, +variance], at least 1."""
    jitter = rng.randint(-variance, variance) if variance > 0 else 0
    return max(1, base_ttl + jitter)


class CacheStore:
    """Namespaced cache-aside store that degrades to a miss when Redis is down."""

    def __init__(
        self,
        redis_client=None,
        namespace: Optional[str] = None,
        ttl_variance: Optional[int] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the store with an injected client.

        Args:
            redis_client: redis.asyncio.Redis handle, or None to run without a cache
            namespace: Key prefix; defaults to Config.CACHE_NAMESPACE
            ttl_variance: Jitter bound in seconds; defaults to Config.CACHE_TTL_VARIANCE
            rng: Random source for jitter
        """
        self.redis_client = redis_client
        self.namespace = namespace or Config.CACHE_NAMESPACE
        self.ttl_variance = Config.CACHE_TTL_VARIANCE if ttl_variance is None else ttl_variance
        self._rng = rng or random.Random()
        if self.redis_client is None:
            logger.warning("No Redis client configured. Cache reads will always miss.")

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def is_healthy(self) -> bool:
        return self.redis_client is not None

    async def _execute(self, operation: str, call):
        if self.redis_client is None:
            raise CacheUnavailable(operation, "no client configured")
        try:
            return await call(self.redis_client)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(operation, str(e)) from e

    async def get(self, key: str) -> Any:
        """
        Read a cached value.

        Returns:
            The decoded value, NEGATIVE_RESULT for a cached "not found", or
            None on a miss (including when the cache is unavailable)
        """
        full_key = self._key(key)
        try:
            raw = await self._execute('get', lambda client: client.get(full_key))
        except CacheUnavailable as e:
            logger.warning(f"Cache get for '{key}' degraded to miss: {e}")
            return None

        if raw is None:
            return None

        try:
            if isinstance(raw, bytes):
                raw = raw.decode('utf-8')
            if raw == NEGATIVE_MARKER:
                return NEGATIVE_RESULT
            return json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning(f"Undecodable cache payload for '{key}', treating as miss")
            return None

    async def set(self, key: str, value: Any, base_ttl: Optional[int] = None) -> bool:
        """Store a value with a jittered TTL. Returns False if the cache rejected it."""
        return await self._store(key, json.dumps(value), base_ttl)

    async def set_negative(self, key: str, base_ttl: Optional[int] = None) -> bool:
        """Record that the source of truth has nothing for this key."""
        if base_ttl is None:
            base_ttl = Config.NEGATIVE_CACHE_TTL_SECONDS
        return await self._store(key, NEGATIVE_MARKER, base_ttl)

    async def _store(self, key: str, payload: str, base_ttl: Optional[int]) -> bool:
        if base_ttl is None:
            base_ttl = Config.CACHE_TTL_SECONDS
        ttl = jittered_ttl(base_ttl, self.ttl_variance, self._rng)
        full_key = self._key(key)
        try:
            await self._execute('set', lambda client: client.set(full_key, payload, ex=ttl))
        except CacheUnavailable as e:
            logger.warning(f"Cache set for '{key}' skipped: {e}")
            return False

        logger.debug(f"Cached '{key}' (TTL: {ttl}s)")
        return True

    async def delete(self, key: str) -> bool:
        """
        Delete one key.

        Returns True whenever the cache answered, whether or not the key
        existed; False only when the cache is unavailable.
        """
        full_key = self._key(key)
        try:
            removed = await self._execute('delete', lambda client: client.delete(full_key))
        except CacheUnavailable as e:
            logger.warning(f"Cache delete for '{key}' skipped: {e}")
            return False
        logger.debug(f"Deleted '{key}' ({removed} removed)")
        return True

    async def delete_namespace(self, batch_size: int = 500) -> bool:
        """Delete every key under this store's namespace."""
        pattern = f"{self.namespace}:*"

        async def _flush(client):
            removed = 0
            batch = []
            async for key in client.scan_iter(match=pattern, count=batch_size):
                batch.append(key)
                if len(batch) >= batch_size:
                    removed += await client.delete(*batch)
                    batch = []
            if batch:
                removed += await client.delete(*batch)
            return removed

        try:
            removed = await self._execute('delete_namespace', _flush)
        except CacheUnavailable as e:
            logger.warning(f"Cache namespace flush skipped: {e}")
            return False

        logger.info(f"Flushed cache namespace '{self.namespace}' ({removed} keys)")
        return True

    async def close(self):
        """Close the underlying Redis connection."""
        if self.redis_client is not None:
            try:
                await self.redis_client.aclose()
            except (RedisError, OSError) as e:
                logger.warning(f"Error closing Redis connection: {e}")
            self.redis_client = None
