"""
Tests for the analytics orchestrator: cache-first reads, background
population, negative caching and invalidation.
"""

import pytest

from examstats.data_models.scores import CategoryMembership, ScoreRecord
from examstats.services.analytics import AnalyticsService
from examstats.services.cache import CacheStore
from examstats.utils.exceptions import (
    DataSourceUnavailable, InvalidCategory, InvalidFilterError, InvalidStudentId, StudentNotFoundError
)

from conftest import InMemoryRecordStore, make_record


# Statistics path

async def test_statistics_miss_computes_and_populates_in_background(analytics, record_store, fake_redis):
    snapshot = await analytics.get_statistics_snapshot()

    assert snapshot.total_records == 4
    assert snapshot.for_subject('toan').total == 4
    assert record_store.fetch_calls == 1
    # Response returned before the cache write ran
    assert 'test:stats:full' not in fake_redis.store

    await analytics.wait_for_background_tasks()

    assert 'test:stats:full' in fake_redis.store


async def test_statistics_hit_skips_record_store(analytics, record_store):
    first = await analytics.get_statistics_snapshot()
    await analytics.wait_for_background_tasks()

    second = await analytics.get_statistics_snapshot()

    assert second == first
    assert record_store.fetch_calls == 1


async def test_statistics_survive_cache_outage(analytics, record_store, fake_redis):
    fake_redis.fail = True

    first = await analytics.get_statistics_snapshot()
    await analytics.wait_for_background_tasks()
    second = await analytics.get_statistics_snapshot()

    assert first == second
    assert record_store.fetch_calls == 2


async def test_statistics_fail_when_record_store_is_down(analytics, record_store):
    record_store.fail = True

    with pytest.raises(DataSourceUnavailable):
        await analytics.get_statistics_snapshot()


async def test_filter_statistics_uses_cached_snapshot(analytics, record_store):
    await analytics.get_statistics_snapshot()
    await analytics.wait_for_background_tasks()

    filtered = await analytics.filter_statistics(['toan'], ['excellent', 'good'])

    assert filtered == {'toan': {'total': 4, 'excellent': 3, 'good': 0}}
    assert record_store.fetch_calls == 1


async def test_filter_statistics_validates_before_any_io(analytics, record_store):
    with pytest.raises(InvalidFilterError):
        await analytics.filter_statistics(['physics'], ['all'])

    assert record_store.fetch_calls == 0


# Ranking path

async def test_category_ranking_top_two(analytics):
    page = await analytics.get_category_ranking('A', k=2)

    assert [(entry.total_score, entry.rank) for entry in page.entries] == [(27, 1), (21, 2)]
    assert page.total_qualifying == 3
    assert page.subjects == ('toan', 'vat_li', 'hoa_hoc')


async def test_category_ranking_with_minimum(analytics):
    page = await analytics.get_category_ranking('A', k=10, min_total=16)

    assert [entry.total_score for entry in page.entries] == [27, 21]
    assert page.min_total == 16


async def test_full_sequence_is_cached_for_larger_requests(analytics, record_store):
    await analytics.get_category_ranking('A', k=1)

    larger = await analytics.get_category_ranking('A', k=10)
    filtered = await analytics.get_category_ranking('A', k=10, min_total=20)

    assert len(larger.entries) == 3
    assert [entry.student_id for entry in filtered.entries] == ['S001', 'S002']
    assert record_store.fetch_calls == 1


async def test_unknown_category_is_rejected_without_io(analytics, record_store):
    with pytest.raises(InvalidCategory):
        await analytics.get_category_ranking('Z')

    assert record_store.fetch_calls == 0


async def test_ranking_fails_when_record_store_is_down(analytics, record_store):
    record_store.fail = True

    with pytest.raises(DataSourceUnavailable):
        await analytics.get_category_ranking('A')


async def test_all_categories_share_one_scan(analytics, record_store):
    tops = await analytics.get_all_categories_top(k=5)

    assert set(tops) == {'A', 'B', 'C', 'D'}
    assert [entry.student_id for entry in tops['A']] == ['S001', 'S002', 'S003']
    assert tops['C'] == []
    assert record_store.fetch_calls == 1


# Membership

async def test_membership_respects_top_ten_window(cache):
    records = [
        make_record(f'L{i + 1:03d}', toan=10 - i * 0.5, vat_li=10 - i * 0.5, hoa_hoc=10 - i * 0.5)
        for i in range(15)
    ]
    service = AnalyticsService(InMemoryRecordStore(records), cache)

    ranked_twelfth = await service.get_student_membership('L012')
    ranked_ninth = await service.get_student_membership('L009')

    assert ranked_twelfth == []
    assert ranked_ninth == [CategoryMembership(category='A', rank=9, total_score=18.0)]


async def test_membership_rejects_blank_student_id(analytics):
    with pytest.raises(InvalidStudentId):
        await analytics.get_student_membership('   ')


# Student lookup

async def test_unknown_student_is_negatively_cached(analytics, record_store):
    with pytest.raises(StudentNotFoundError):
        await analytics.lookup_student('NOPE')
    with pytest.raises(StudentNotFoundError):
        await analytics.lookup_student('NOPE')

    assert record_store.lookup_calls == 1


async def test_found_student_is_cached(analytics, record_store):
    first = await analytics.lookup_student('S002')
    second = await analytics.lookup_student(' S002 ')

    assert first == second == ScoreRecord(student_id='S002', toan=8, vat_li=7, hoa_hoc=6)
    assert first.average_score() == 7.0
    assert record_store.lookup_calls == 1


async def test_lookup_without_cache_always_queries_store(record_store):
    service = AnalyticsService(record_store, CacheStore(None, namespace='test'))

    for _ in range(2):
        with pytest.raises(StudentNotFoundError):
            await service.lookup_student('NOPE')

    assert record_store.lookup_calls == 2


# Invalidation

async def test_invalidate_category_forces_recompute(analytics, record_store):
    await analytics.get_category_ranking('A')
    record_store.records.append(make_record('S005', toan=10, vat_li=10, hoa_hoc=10))

    assert await analytics.invalidate('A') is True
    page = await analytics.get_category_ranking('A')

    assert page.entries[0].student_id == 'S005'
    assert record_store.fetch_calls == 2


async def test_invalidate_all_flushes_namespace(analytics, fake_redis):
    await analytics.get_category_ranking('A')
    await analytics.get_statistics_snapshot()
    await analytics.wait_for_background_tasks()
    with pytest.raises(StudentNotFoundError):
        await analytics.lookup_student('NOPE')

    assert await analytics.invalidate('all') is True

    assert fake_redis.store == {}


async def test_invalidate_statistics_only_drops_snapshot(analytics, fake_redis):
    await analytics.get_category_ranking('B')
    await analytics.get_statistics_snapshot()
    await analytics.wait_for_background_tasks()

    assert await analytics.invalidate_statistics() is True

    assert list(fake_redis.store) == ['test:ranking:B']


async def test_invalidate_cold_category_is_accepted(analytics, fake_redis):
    assert fake_redis.store == {}

    assert await analytics.invalidate('A') is True


async def test_invalidate_unknown_category(analytics):
    with pytest.raises(InvalidCategory):
        await analytics.invalidate('Q')


async def test_invalidate_reports_cache_outage(analytics, fake_redis):
    fake_redis.fail = True

    assert await analytics.invalidate('A') is False
    assert await analytics.invalidate('all') is False


# Metadata

async def test_metadata_lists(analytics):
    subjects = analytics.get_available_subjects()
    categories = analytics.get_category_info()

    assert subjects[0] == {'key': 'toan', 'name': 'Toán'}
    assert len(subjects) == 9
    assert categories[0] == {'category': 'A', 'name': 'Khối A', 'subjects': ['Toán', 'Vật Lý', 'Hóa Học']}
