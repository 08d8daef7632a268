"""
Process-wide wiring for the analytics core.

The request-serving layer creates one AnalyticsApp at startup, uses its
`analytics` service for every request and calls close() at shutdown.
"""

from typing import Optional

from examstats.config import Config
from examstats.database.database import Database
from examstats.services.analytics import AnalyticsService
from examstats.services.cache import CacheStore
from examstats.services.score_repository import ScoreRepository
from examstats.utils.logger import setup_logger
from examstats.utils.redis_utils import RedisUtils


class AnalyticsApp:
    def __init__(self):
        self.logger = setup_logger(__name__)
        self.db: Optional[Database] = None
        self.cache: Optional[CacheStore] = None
        self.repository: Optional[ScoreRepository] = None
        self.analytics: Optional[AnalyticsService] = None

    async def start(self, database_url: Optional[str] = None, redis_url: Optional[str] = None):
        """Open the record store and the cache, then build the services"""
        self.logger.info("Starting exam analytics core...")
        Config.validate()

        self.db = Database(database_url)
        await self.db.initialize()
        self.repository = ScoreRepository(self.db.session_factory)

        redis_client = await RedisUtils.create_redis_client(redis_url)
        if redis_client is None:
            self.logger.warning("Running without cache; every request recomputes from the record store")
        self.cache = CacheStore(redis_client)

        self.analytics = AnalyticsService(self.repository, self.cache)
        self.logger.info("Exam analytics core ready")
        return self

    async def close(self):
        """Cleanup when the process is shutting down"""
        self.logger.info("Shutting down exam analytics core...")

        if self.analytics:
            await self.analytics.cleanup()
        if self.cache:
            await self.cache.close()
        if self.db:
            await self.db.close()
