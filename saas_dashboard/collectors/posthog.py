"""PostHog analytics collector."""
import json
import logging
import random
from datetime import date
from typing import Any

import httpx

from saas_dashboard.collectors.base import BaseCollector, CollectorError
from saas_dashboard.config import Settings
from saas_dashboard.metrics.ranges import iter_days
from saas_dashboard.metrics.records import AnalyticsMetrics

logger = logging.getLogger(__name__)

# Funnel events, in query order, and the field each one fills
FUNNEL_EVENTS = [
    ("$pageview", "visitors"),
    ("pricing_modal_opened", "pricing_views"),
    ("pricing_get_started_clicked", "checkouts"),
    ("purchase_thank_you", "purchases"),
]

REFERRER_LIMIT = 10

MOCK_DOMAINS = ["google.com", "twitter.com", "linkedin.com", "direct", "facebook.com"]


def generate_mock_series(
    start_date: date,
    end_date: date,
    rng: random.Random | None = None,
) -> list[AnalyticsMetrics]:
    """Plausible stand-in funnel data, one record per day."""
    rng = rng or random.Random()
    series = []

    for day in iter_days(start_date, end_date):
        visitors = 500 + rng.randrange(500)
        pricing_views = int(visitors * 0.3)
        checkouts = int(pricing_views * 0.1)
        purchases = int(checkouts * 0.5)

        referring_domains: dict[str, int] = {}
        remaining = visitors
        for domain in MOCK_DOMAINS:
            count = int(rng.random() * (remaining / 2))
            referring_domains[domain] = count
            remaining -= count
        if remaining > 0:
            referring_domains["other"] = remaining

        series.append(
            AnalyticsMetrics(
                date=day,
                visitors=visitors,
                pricing_views=pricing_views,
                checkouts=checkouts,
                purchases=purchases,
                referring_domains=referring_domains,
            )
        )

    return series


def _count(value: Any) -> int:
    return int(value or 0)


def parse_referrers(breakdown: dict[str, Any]) -> dict[str, dict[str, int]]:
    """Referring domain counts per day from the breakdown response."""
    referrers: dict[str, dict[str, int]] = {}
    items = breakdown.get("result") or []
    if not isinstance(items, list):
        raise CollectorError("PostHog breakdown result is not a list")

    for item in items:
        domain = str(item.get("label") or item.get("breakdown_value"))
        for day, count in zip(item.get("days") or [], item.get("data") or []):
            referrers.setdefault(day, {})[domain] = _count(count)

    return referrers


def build_analytics_series(
    trend: dict[str, Any],
    referrers: dict[str, dict[str, int]] | None = None,
) -> list[AnalyticsMetrics]:
    """Combine the funnel trend with per-day referrer counts."""
    trend_results = trend.get("result")
    if not isinstance(trend_results, list):
        raise CollectorError("PostHog trend response has no result list")

    referrers = referrers or {}
    results: dict[str, dict[str, Any]] = {}

    # The first event's axis defines which days exist
    if trend_results:
        for day in trend_results[0].get("days") or []:
            results[day] = {
                "visitors": 0,
                "pricing_views": 0,
                "checkouts": 0,
                "purchases": 0,
                "referring_domains": dict(referrers.get(day, {})),
            }

    for (_, field), event_result in zip(FUNNEL_EVENTS, trend_results):
        for day, count in zip(event_result.get("days") or [], event_result.get("data") or []):
            if day in results:
                results[day][field] = _count(count)

    return [
        AnalyticsMetrics(date=day, **values)
        for day, values in sorted(results.items())
    ]


class PostHogCollector(BaseCollector):
    """Collect daily funnel counts from PostHog trends."""

    name = "posthog"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ):
        super().__init__(settings, transport)
        self.rng = rng or random.Random()

    async def collect(self, start_date: date, end_date: date) -> list[AnalyticsMetrics]:
        """Fetch funnel data, falling back to mock data on any failure."""
        if not self.settings.analytics_configured:
            logger.warning(f"[{self.name}] credentials missing, using mock data")
            return generate_mock_series(start_date, end_date, self.rng)

        try:
            trend = await self.request_json(
                self._trend_url(),
                params=self._trend_params(start_date, end_date),
                headers=self._headers(),
            )
            referrers = await self._fetch_referrers(start_date, end_date)

            series = build_analytics_series(trend, referrers)
            logger.info(f"[{self.name}] Collected {len(series)} days of data")
            return series

        except Exception as e:
            logger.error(f"[{self.name}] Error fetching data, using mock data: {e}")
            return generate_mock_series(start_date, end_date, self.rng)

    async def _fetch_referrers(self, start_date: date, end_date: date) -> dict[str, dict[str, int]]:
        """Referrer counts per day; an empty map when the breakdown is unusable."""
        breakdown = await self.fetch_json(
            self._trend_url(),
            params=self._breakdown_params(start_date, end_date),
            headers=self._headers(),
        )
        if breakdown is None:
            logger.warning(f"[{self.name}] Referring domain breakdown unavailable, continuing without it")
            return {}

        try:
            return parse_referrers(breakdown)
        except Exception as e:
            logger.warning(f"[{self.name}] Malformed referring domain breakdown, continuing without it: {e}")
            return {}

    def _trend_url(self) -> str:
        host = self.settings.posthog_host.rstrip("/")
        return f"{host}/api/projects/{self.settings.posthog_project_id}/insights/trend/"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.posthog_api_key}"}

    def _trend_params(self, start_date: date, end_date: date) -> dict[str, str]:
        # dau = unique persons per day
        return {
            "events": json.dumps([{"id": event_id, "math": "dau"} for event_id, _ in FUNNEL_EVENTS]),
            "date_from": start_date.isoformat(),
            "date_to": end_date.isoformat(),
            "display": "ActionsLineGraph",
            "interval": "day",
        }

    def _breakdown_params(self, start_date: date, end_date: date) -> dict[str, str]:
        return {
            "events": json.dumps([{"id": "$pageview", "math": "dau"}]),
            "date_from": start_date.isoformat(),
            "date_to": end_date.isoformat(),
            "breakdown": "$referring_domain",
            "breakdown_limit": str(REFERRER_LIMIT),
            "interval": "day",
        }
