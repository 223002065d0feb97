"""Series cache tests."""
from datetime import date, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from saas_dashboard.metrics.cache import MemorySeriesCache, SqlSeriesCache, fingerprint
from saas_dashboard.models import SeriesCacheEntry

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest_asyncio.fixture()
async def session_maker():
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(SeriesCacheEntry.__table__.create)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


class TestFingerprint:
    def test_stable_for_same_range(self):
        assert fingerprint(date(2024, 1, 1), date(2024, 1, 31)) == fingerprint(date(2024, 1, 1), date(2024, 1, 31))

    def test_differs_by_range(self):
        assert fingerprint(date(2024, 1, 1), date(2024, 1, 31)) != fingerprint(date(2024, 1, 2), date(2024, 1, 31))

    def test_hex_digest(self):
        key = fingerprint(date(2024, 1, 1), date(2024, 1, 31))
        assert len(key) == 64
        int(key, 16)


class TestMemorySeriesCache:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, sample_series):
        cache = MemorySeriesCache(ttl_seconds=60)
        assert await cache.get("k") is None

        await cache.put("k", sample_series)
        assert await cache.get("k") == sample_series

    @pytest.mark.asyncio
    async def test_entries_expire(self, sample_series):
        clock = FakeClock(1000.0)
        cache = MemorySeriesCache(ttl_seconds=60, clock=clock)
        await cache.put("k", sample_series)

        clock.now += 61
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_put_drops_expired_entries(self, sample_series):
        clock = FakeClock(1000.0)
        cache = MemorySeriesCache(ttl_seconds=60, clock=clock)
        await cache.put("old", sample_series)

        clock.now += 61
        await cache.put("new", sample_series)
        assert list(cache._entries) == ["new"]


class TestSqlSeriesCache:
    @pytest.mark.asyncio
    async def test_round_trip(self, session_maker, sample_series):
        cache = SqlSeriesCache(session_maker, ttl_minutes=15)
        await cache.put("k", sample_series)

        assert await cache.get("k") == sample_series

    @pytest.mark.asyncio
    async def test_miss(self, session_maker):
        cache = SqlSeriesCache(session_maker, ttl_minutes=15)
        assert await cache.get("absent") is None

    @pytest.mark.asyncio
    async def test_put_replaces_entry(self, session_maker, sample_series):
        cache = SqlSeriesCache(session_maker, ttl_minutes=15)
        await cache.put("k", sample_series)
        await cache.put("k", sample_series[:3])

        assert await cache.get("k") == sample_series[:3]

    @pytest.mark.asyncio
    async def test_stale_entry_is_a_miss(self, session_maker, sample_series):
        clock = FakeClock(datetime(2024, 3, 1, 12, 0))
        cache = SqlSeriesCache(session_maker, ttl_minutes=15, clock=clock)
        await cache.put("k", sample_series)

        clock.now += timedelta(minutes=10)
        assert await cache.get("k") is not None

        clock.now += timedelta(minutes=10)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_empty_series_not_stored(self, session_maker):
        cache = SqlSeriesCache(session_maker, ttl_minutes=15)
        await cache.put("k", [])
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_put_removes_expired_rows(self, session_maker, sample_series):
        clock = FakeClock(datetime(2024, 3, 1, 12, 0))
        cache = SqlSeriesCache(session_maker, ttl_minutes=15, clock=clock)
        await cache.put("old", sample_series)

        clock.now += timedelta(minutes=5)
        await cache.put("recent", sample_series)

        clock.now += timedelta(minutes=12)
        await cache.put("new", sample_series[:2])

        async with session_maker() as session:
            rows = (await session.execute(select(SeriesCacheEntry.fingerprint))).scalars().all()
        assert sorted(rows) == ["new", "recent"]
