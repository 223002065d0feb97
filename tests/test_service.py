"""Dashboard service tests against fake upstreams."""
import random
from datetime import date

import pytest

from _helpers import FakeLemonSqueezy, FakePostHog, ls_page, ls_record, make_settings, routed_transport, trend_result
from saas_dashboard.metrics.cache import MemorySeriesCache, fingerprint
from saas_dashboard.metrics.records import Granularity, MetricField, RateConfig
from saas_dashboard.metrics.service import DashboardService, summarize

START = date(2024, 1, 1)
END = date(2024, 1, 3)
DAYS = ["2024-01-01", "2024-01-02", "2024-01-03"]


def _lemonsqueezy():
    return FakeLemonSqueezy({
        "orders": [ls_page([
            ls_record(2, "2024-01-03T12:00:00Z", status="paid", total=4900),
            ls_record(1, "2024-01-01T12:00:00Z", status="paid", total=1900),
        ])],
        "subscription-invoices": [ls_page([
            ls_record(7, "2024-01-02T12:00:00Z", status="paid", total=1900, billing_reason="renewal"),
        ])],
        "customers": [ls_page([ls_record(1, "2023-06-01T00:00:00Z", mrr=1900)])],
        "subscriptions": [ls_page([ls_record(5, "2023-06-01T00:00:00Z", customer_id=1)])],
    })


def _posthog():
    return FakePostHog(
        {"result": [
            trend_result("$pageview", DAYS, [100, 200, 300]),
            trend_result("pricing_modal_opened", DAYS, [10, 20, 30]),
            trend_result("pricing_get_started_clicked", DAYS, [2, 4, 6]),
            trend_result("purchase_thank_you", DAYS, [7, 7, 7]),
        ]},
        {"result": [trend_result("google.com", DAYS, [50, 60, 70])]},
    )


class BrokenCache:
    async def get(self, fingerprint):
        raise RuntimeError("cache down")

    async def put(self, fingerprint, series):
        raise RuntimeError("cache down")


def _service(lemonsqueezy, posthog, cache=None, **settings):
    return DashboardService(
        make_settings(**settings),
        cache=cache,
        transport=routed_transport(lemonsqueezy, posthog),
        rng=random.Random(5),
    )


class TestDailySeries:
    @pytest.mark.asyncio
    async def test_merges_both_sources(self):
        service = _service(_lemonsqueezy(), _posthog())
        series = await service.get_daily_series(START, END)

        assert [r.date for r in series] == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert [r.visitors for r in series] == [100, 200, 300]
        assert [r.revenue for r in series] == [19.0, 19.0, 49.0]
        assert [r.renewal_revenue for r in series] == [0, 19.0, 0]
        # Lemon Squeezy orders, not the PostHog purchase event
        assert [r.purchases for r in series] == [1, 0, 1]
        assert {r.mrr for r in series} == {19.0}
        assert series[0].referring_domains == {"google.com": 50}

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self):
        lemonsqueezy, posthog = _lemonsqueezy(), _posthog()
        service = _service(lemonsqueezy, posthog, cache=MemorySeriesCache(ttl_seconds=600))

        first = await service.get_daily_series(START, END)
        requests_after_first = len(lemonsqueezy.requests) + len(posthog.requests)
        second = await service.get_daily_series(START, END)

        assert second == first
        assert len(lemonsqueezy.requests) + len(posthog.requests) == requests_after_first

    @pytest.mark.asyncio
    async def test_refresh_bypasses_cache(self):
        lemonsqueezy, posthog = _lemonsqueezy(), _posthog()
        service = _service(lemonsqueezy, posthog, cache=MemorySeriesCache(ttl_seconds=600))

        await service.get_daily_series(START, END)
        await service.get_daily_series(START, END, refresh=True)

        assert len(posthog.requests) == 4

    @pytest.mark.asyncio
    async def test_billing_unavailable_is_empty_and_not_cached(self):
        cache = MemorySeriesCache(ttl_seconds=600)
        service = _service(_lemonsqueezy(), _posthog(), cache=cache, lemonsqueezy_api_key=None)

        assert await service.get_daily_series(START, END) == []
        assert await cache.get(fingerprint(START, END)) is None

    @pytest.mark.asyncio
    async def test_analytics_failure_still_returns_billing_days(self):
        posthog = FakePostHog({}, {}, trend_status=500, breakdown_status=500)
        service = _service(_lemonsqueezy(), posthog)
        series = await service.get_daily_series(START, END)

        assert [r.purchases for r in series] == [1, 0, 1]
        assert all(500 <= r.visitors < 1000 for r in series)

    @pytest.mark.asyncio
    async def test_cache_errors_do_not_fail_requests(self):
        service = _service(_lemonsqueezy(), _posthog(), cache=BrokenCache())
        series = await service.get_daily_series(START, END)
        assert len(series) == 3


class TestDashboard:
    @pytest.mark.asyncio
    async def test_custom_range_weekly_with_rates(self):
        service = _service(_lemonsqueezy(), _posthog())
        buckets = await service.get_dashboard(
            "custom", START, END,
            granularity=Granularity.WEEK,
            rate_config=RateConfig(numerator=MetricField.CHECKOUTS, denominator=MetricField.VISITORS),
        )

        assert len(buckets) == 1
        week = buckets[0]
        assert week.date == date(2024, 1, 1)
        assert week.visitors == 600
        assert week.revenue == 87.0
        assert week.visitor_to_price_view_rate == 10.0
        assert week.custom_rate == 2.0

    @pytest.mark.asyncio
    async def test_summary(self):
        service = _service(_lemonsqueezy(), _posthog())
        summary = await service.get_summary("custom", START, END)

        assert summary.total_revenue == 87.0
        assert summary.current_mrr == 19.0
        assert summary.active_customers == 1
        assert summary.total_visitors == 600
        assert (summary.start_date, summary.end_date) == (START, END)

    def test_summary_of_empty_series(self):
        summary = summarize([], START, END)
        assert (summary.total_revenue, summary.current_mrr, summary.active_customers) == (0, 0, 0)
