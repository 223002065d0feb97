"""Dashboard data service."""
import asyncio
import logging
import random
from datetime import date
from functools import lru_cache
from typing import Optional

import httpx

from saas_dashboard.collectors import LemonSqueezyCollector, PostHogCollector
from saas_dashboard.config import Settings, get_settings
from saas_dashboard.database import async_session_maker
from saas_dashboard.metrics.aggregate import aggregate_series
from saas_dashboard.metrics.cache import SeriesCache, SqlSeriesCache, fingerprint
from saas_dashboard.metrics.merge import merge_series
from saas_dashboard.metrics.ranges import resolve_time_range
from saas_dashboard.metrics.rates import apply_rates
from saas_dashboard.metrics.records import (
    DashboardMetrics,
    DashboardSummary,
    Granularity,
    RateConfig,
    RatedMetrics,
)

logger = logging.getLogger(__name__)


def summarize(series: list[DashboardMetrics], start_date: date, end_date: date) -> DashboardSummary:
    """Headline cards for a daily series."""
    latest = series[-1] if series else None
    return DashboardSummary(
        total_revenue=round(sum(record.revenue for record in series), 2),
        current_mrr=latest.mrr if latest else 0.0,
        active_customers=latest.active_customers if latest else 0,
        total_visitors=sum(record.visitors for record in series),
        start_date=start_date,
        end_date=end_date,
    )


class DashboardService:
    """Fetches, merges and shapes dashboard series."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache: SeriesCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache
        self.transport = transport
        self.rng = rng

    async def get_daily_series(
        self,
        start_date: date,
        end_date: date,
        refresh: bool = False,
    ) -> list[DashboardMetrics]:
        """Merged daily series for [start_date, end_date].

        Billing and analytics are fetched concurrently. ``refresh`` skips
        the cache lookup but still stores the new result.
        """
        key = fingerprint(start_date, end_date)

        if not refresh:
            cached = await self._cache_get(key)
            if cached is not None:
                logger.info(f"Cache hit for {start_date}..{end_date}")
                return cached

        async with LemonSqueezyCollector(self.settings, transport=self.transport) as billing, \
                PostHogCollector(self.settings, transport=self.transport, rng=self.rng) as analytics:
            ledger, tracked = await asyncio.gather(
                billing.collect(start_date, end_date),
                analytics.collect(start_date, end_date),
            )

        series = merge_series(ledger, tracked)

        if series:
            await self._cache_put(key, series)
        else:
            logger.warning(f"No billing data for {start_date}..{end_date}, result not cached")

        return series

    async def get_dashboard(
        self,
        preset: str = "30d",
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
        granularity: Granularity | str = Granularity.DAY,
        rate_config: Optional[RateConfig] = None,
        today: Optional[date] = None,
    ) -> list[RatedMetrics]:
        """Chart series: resolve the range, bucket, then attach rates."""
        start_date, end_date = resolve_time_range(preset, custom_start, custom_end, today)
        daily = await self.get_daily_series(start_date, end_date)
        return apply_rates(aggregate_series(daily, granularity), rate_config)

    async def get_summary(
        self,
        preset: str = "30d",
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> DashboardSummary:
        start_date, end_date = resolve_time_range(preset, custom_start, custom_end, today)
        daily = await self.get_daily_series(start_date, end_date)
        return summarize(daily, start_date, end_date)

    async def _cache_get(self, key: str) -> Optional[list[DashboardMetrics]]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.error(f"Cache read failed, fetching fresh data: {e}")
            return None

    async def _cache_put(self, key: str, series: list[DashboardMetrics]) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.put(key, series)
        except Exception as e:
            logger.error(f"Cache write failed: {e}")


@lru_cache
def get_dashboard_service() -> DashboardService:
    """Get the shared service, backed by the SQL cache."""
    settings = get_settings()
    cache = SqlSeriesCache(async_session_maker, ttl_minutes=settings.cache_ttl_minutes)
    return DashboardService(settings, cache=cache)
