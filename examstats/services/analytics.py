"""
Analytics orchestrator.

Composes the cache-aside store with the aggregation and ranking engines:
cache-first reads, recomputation from a full scan on a miss, and explicit
invalidation called by the loading pipeline after bulk changes.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from examstats.config import Config
from examstats.constants import (
    ALL_SELECTOR, CATEGORIES, CATEGORY_NAMES, CATEGORY_SUBJECTS, SUBJECT_NAMES, SUBJECTS, CacheKeys
)
from examstats.data_models.scores import (
    CategoryMembership, CategoryRankingPage, RankingEntry, ScoreRecord, StatisticsSnapshot
)
from examstats.services.cache import NEGATIVE_RESULT, CacheStore
from examstats.services.ranking import RankingUtility
from examstats.services.statistics import compute_snapshot, filter_snapshot, validate_filter
from examstats.utils.exceptions import InvalidCategory, InvalidStudentId, StudentNotFoundError

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Cache-first statistics, rankings and student lookups."""

    def __init__(self, record_store, cache: CacheStore, cache_ttl: Optional[int] = None):
        """
        Initialize the orchestrator.

        Args:
            record_store: Object providing async fetch_all_records() and
                find_by_student_id(student_id), e.g. ScoreRepository
            cache: Cache-aside store; its client lifecycle belongs to the caller
            cache_ttl: Base TTL for cached values, defaults to Config.CACHE_TTL_SECONDS
        """
        self.record_store = record_store
        self.cache = cache
        self.cache_ttl = cache_ttl or Config.CACHE_TTL_SECONDS
        # Background task tracking for proper lifecycle management
        self._background_tasks: set = set()

    # Statistics

    async def get_statistics_snapshot(self) -> StatisticsSnapshot:
        """Full subject x level histogram, from cache when available."""
        cached = await self.cache.get(CacheKeys.FULL_STATISTICS)
        if isinstance(cached, dict):
            try:
                snapshot = StatisticsSnapshot.from_dict(cached)
            except (KeyError, TypeError) as e:
                logger.warning(f"Discarding malformed cached statistics: {e}")
            else:
                logger.debug("Statistics cache HIT")
                return snapshot

        logger.info("Statistics cache MISS - running full aggregation")
        records = await self.record_store.fetch_all_records()
        snapshot = compute_snapshot(records)

        # Caller gets the snapshot now; the write finishes on its own
        self._spawn(
            self._populate_cache(CacheKeys.FULL_STATISTICS, snapshot.to_dict()),
            'statistics cache population'
        )
        return snapshot

    async def filter_statistics(self, subjects: List[str], levels: List[str]) -> Dict[str, Dict[str, int]]:
        """Subset of the snapshot; no source access beyond obtaining the snapshot."""
        validate_filter(subjects, levels)
        snapshot = await self.get_statistics_snapshot()
        return filter_snapshot(snapshot, subjects, levels)

    async def invalidate_statistics(self) -> bool:
        return await self.cache.delete(CacheKeys.FULL_STATISTICS)

    # Rankings

    async def get_category_ranking(
        self,
        category: str,
        k: int = Config.DEFAULT_TOP_K,
        min_total: Optional[float] = None
    ) -> CategoryRankingPage:
        """Top k of a category, optionally only entries with total_score >= min_total."""
        subjects = RankingUtility.subjects_for(category)
        rankings = await self._load_rankings([category])
        ranking = rankings[category]

        if min_total is None:
            entries = RankingUtility.top_k(ranking, k)
        else:
            entries = RankingUtility.top_k_with_minimum(ranking, k, min_total)

        return CategoryRankingPage(
            category=category,
            entries=entries,
            total_qualifying=len(ranking),
            min_total=min_total,
            subjects=tuple(subjects)
        )

    async def get_all_categories_top(self, k: int = Config.DEFAULT_TOP_K) -> Dict[str, List[RankingEntry]]:
        """Top k of every category."""
        rankings = await self._load_rankings(list(CATEGORIES))
        return {category: RankingUtility.top_k(rankings[category], k) for category in CATEGORIES}

    async def get_student_membership(self, student_id: str) -> List[CategoryMembership]:
        """Categories in which the student is within the top window (10)."""
        student_id = self._normalize_student_id(student_id)
        rankings = await self._load_rankings(list(CATEGORIES))
        return RankingUtility.membership(rankings, student_id)

    async def invalidate(self, target: str) -> bool:
        """
        Drop cached rankings after a bulk change to the records.

        Args:
            target: A category code, or "all" to flush the whole namespace
                (rankings, statistics and student lookups)

        Returns:
            True if the cache accepted the invalidation
        """
        if target == ALL_SELECTOR:
            result = await self.cache.delete_namespace()
            logger.info("Invalidated cache for all categories")
            return result

        if not RankingUtility.validate_category(target):
            raise InvalidCategory(target)
        result = await self.cache.delete(CacheKeys.category_ranking(target))
        logger.info(f"Invalidated cache for category {target}")
        return result

    async def _load_rankings(self, categories: List[str]) -> Dict[str, List[RankingEntry]]:
        """Full ranked sequences per category; one scan covers every miss."""
        rankings = {}
        missing = []
        for category in categories:
            cached = await self.cache.get(CacheKeys.category_ranking(category))
            ranking = self._decode_ranking(category, cached)
            if ranking is None:
                missing.append(category)
            else:
                logger.debug(f"Ranking cache HIT for category {category} - {len(ranking)} entries")
                rankings[category] = ranking

        if missing:
            logger.info(f"Ranking cache MISS for categories {', '.join(missing)} - running full scan")
            records = await self.record_store.fetch_all_records()
            for category in missing:
                ranking = RankingUtility.compute_ranking(records, category)
                rankings[category] = ranking
                await self.cache.set(
                    CacheKeys.category_ranking(category),
                    [entry.to_dict() for entry in ranking],
                    self.cache_ttl
                )

        return rankings

    @staticmethod
    def _decode_ranking(category: str, cached) -> Optional[List[RankingEntry]]:
        if not isinstance(cached, list):
            return None
        try:
            return [RankingEntry.from_dict(item) for item in cached]
        except (KeyError, TypeError) as e:
            logger.warning(f"Discarding malformed cached ranking for category {category}: {e}")
            return None

    # Student lookup

    async def lookup_student(self, student_id: str) -> ScoreRecord:
        """
        Point lookup with negative caching.

        A confirmed "no such student" is cached too, so repeated lookups of an
        unknown id do not reach the record store until the marker expires.

        Raises:
            StudentNotFoundError: No record exists for the id
        """
        student_id = self._normalize_student_id(student_id)
        cache_key = CacheKeys.student(student_id)

        cached = await self.cache.get(cache_key)
        if cached is NEGATIVE_RESULT:
            logger.debug(f"Negative cache HIT for student {student_id}")
            raise StudentNotFoundError(student_id)
        if isinstance(cached, dict):
            try:
                return ScoreRecord.from_dict(cached)
            except (KeyError, TypeError) as e:
                logger.warning(f"Discarding malformed cached record for student {student_id}: {e}")

        record = await self.record_store.find_by_student_id(student_id)
        if record is None:
            await self.cache.set_negative(cache_key, self.cache_ttl)
            raise StudentNotFoundError(student_id)

        await self.cache.set(cache_key, record.to_dict(), self.cache_ttl)
        return record

    # Metadata

    def get_available_subjects(self) -> List[Dict[str, str]]:
        return [{'key': subject, 'name': SUBJECT_NAMES[subject]} for subject in SUBJECTS]

    def get_category_info(self) -> List[Dict]:
        return [
            {
                'category': category,
                'name': CATEGORY_NAMES[category],
                'subjects': [SUBJECT_NAMES[subject] for subject in CATEGORY_SUBJECTS[category]],
            }
            for category in CATEGORIES
        ]

    # Background work

    def _spawn(self, coro, description: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=description)
        self._background_tasks.add(task)
        # Remove task from set when it completes to prevent memory leaks
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _populate_cache(self, key: str, value) -> None:
        try:
            stored = await self.cache.set(key, value, self.cache_ttl)
        except Exception as e:
            # Background tasks must fail gracefully; the response is already out
            logger.error(f"Background cache population for '{key}' failed: {e}", exc_info=True)
            return
        if stored:
            logger.info(f"Cached '{key}' in background")
        else:
            logger.warning(f"Background cache population for '{key}' was not stored")

    async def wait_for_background_tasks(self):
        """Wait for outstanding cache population tasks to finish."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def cleanup(self):
        """Cleanup background tasks for graceful shutdown."""
        if self._background_tasks:
            logger.info(f"Waiting for {len(self._background_tasks)} background tasks to complete...")
            for task in list(self._background_tasks):
                if not task.done():
                    task.cancel()
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
            self._background_tasks.clear()
            logger.info("All background tasks cleaned up.")

    @staticmethod
    def _normalize_student_id(student_id: str) -> str:
        if not isinstance(student_id, str) or not student_id.strip():
            raise InvalidStudentId(student_id)
        return student_id.strip()
