"""Series cache keyed by request fingerprint.

The pipeline only talks to the ``SeriesCache`` protocol; where entries
live is up to the implementation passed in.
"""
import hashlib
import json
import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from saas_dashboard.metrics.records import DashboardMetrics
from saas_dashboard.models import SeriesCacheEntry

logger = logging.getLogger(__name__)

FINGERPRINT_VERSION = 1


def fingerprint(start_date: date, end_date: date) -> str:
    """Stable cache key for a resolved date range."""
    params = {
        "start": start_date.isoformat(),
        "end": end_date.isoformat(),
        "v": FINGERPRINT_VERSION,
    }
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SeriesCache(Protocol):
    async def get(self, fingerprint: str) -> Optional[list[DashboardMetrics]]:
        ...

    async def put(self, fingerprint: str, series: list[DashboardMetrics]) -> None:
        ...


class MemorySeriesCache:
    """Process-local cache with a TTL."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, tuple[float, list[DashboardMetrics]]] = {}

    async def get(self, fingerprint: str) -> Optional[list[DashboardMetrics]]:
        entry = self._entries.get(fingerprint)
        if entry is None:
            return None
        stored_at, series = entry
        if self.clock() - stored_at > self.ttl_seconds:
            del self._entries[fingerprint]
            return None
        return list(series)

    async def put(self, fingerprint: str, series: list[DashboardMetrics]) -> None:
        now = self.clock()
        self._entries = {
            key: entry for key, entry in self._entries.items()
            if now - entry[0] <= self.ttl_seconds
        }
        self._entries[fingerprint] = (now, list(series))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlSeriesCache:
    """Cache stored in the ``series_cache`` table."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        ttl_minutes: int,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_maker = session_maker
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock

    async def get(self, fingerprint: str) -> Optional[list[DashboardMetrics]]:
        async with self.session_maker() as session:
            entry = await session.get(SeriesCacheEntry, fingerprint)

        if entry is None or entry.created_at < self.clock() - self.ttl:
            return None

        return [DashboardMetrics.model_validate(item) for item in entry.payload]

    async def put(self, fingerprint: str, series: list[DashboardMetrics]) -> None:
        if not series:
            return

        entry = SeriesCacheEntry(
            fingerprint=fingerprint,
            start_date=series[0].date,
            end_date=series[-1].date,
            payload=[record.model_dump(mode="json") for record in series],
            created_at=self.clock(),
        )
        async with self.session_maker() as session:
            # Drop expired entries
            await session.execute(
                delete(SeriesCacheEntry).where(SeriesCacheEntry.created_at < entry.created_at - self.ttl)
            )
            await session.merge(entry)
            await session.commit()

        logger.info(f"Cached {len(series)} days under {fingerprint[:12]}")
