"""
Shared fixtures for the analytics core tests.
"""

import os
import random
import sys
from fnmatch import fnmatch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from examstats.data_models.scores import ScoreRecord
from examstats.services.analytics import AnalyticsService
from examstats.services.cache import CacheStore
from examstats.utils.exceptions import DataSourceUnavailable


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis the cache uses."""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("fake redis is down")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value.encode('utf-8') if isinstance(value, str) else value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if isinstance(key, bytes):
                key = key.decode('utf-8')
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed

    async def scan_iter(self, match=None, count=None):
        self._check()
        for key in list(self.store):
            if match is None or fnmatch(key, match):
                yield key

    async def aclose(self):
        self.closed = True


class InMemoryRecordStore:
    """Record store double that counts source-of-truth queries."""

    def __init__(self, records=()):
        self.records = list(records)
        self.fetch_calls = 0
        self.lookup_calls = 0
        self.fail = False

    async def fetch_all_records(self):
        self.fetch_calls += 1
        if self.fail:
            raise DataSourceUnavailable("full scan", "store offline")
        return list(self.records)

    async def find_by_student_id(self, student_id):
        self.lookup_calls += 1
        if self.fail:
            raise DataSourceUnavailable("student lookup", "store offline")
        for record in self.records:
            if record.student_id == student_id:
                return record
        return None


def make_record(student_id, **scores):
    return ScoreRecord(student_id=student_id, **scores)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return CacheStore(fake_redis, namespace='test', ttl_variance=60, rng=random.Random(1234))


@pytest.fixture
def block_a_records():
    """Three qualifying category A students and one missing vat_li."""
    return [
        make_record('S001', toan=9, vat_li=9, hoa_hoc=9),
        make_record('S002', toan=8, vat_li=7, hoa_hoc=6),
        make_record('S003', toan=5, vat_li=5, hoa_hoc=5),
        make_record('S004', toan=10, hoa_hoc=10),
    ]


@pytest.fixture
def record_store(block_a_records):
    return InMemoryRecordStore(block_a_records)


@pytest.fixture
async def analytics(record_store, cache):
    service = AnalyticsService(record_store, cache, cache_ttl=3600)
    yield service
    await service.cleanup()
