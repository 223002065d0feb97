"""Shared test fixtures."""
import os
from datetime import date, timedelta

import pytest

# Keep the module-level engine off the filesystem before any app import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from _helpers import daily_record, make_settings  # noqa: E402
from saas_dashboard.config import Settings  # noqa: E402
from saas_dashboard.metrics.records import DashboardMetrics  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def sample_series() -> list[DashboardMetrics]:
    """45 days starting Monday 2024-01-01 with varying flows."""
    start = date(2024, 1, 1)
    return [
        daily_record(
            start + timedelta(days=i),
            visitors=100 + i,
            pricing_views=20 + i % 7,
            checkouts=5 + i % 3,
            purchases=i % 2,
            revenue=round(12.5 * (i % 5), 2),
            renewal_revenue=round(2.5 * (i % 5), 2),
            mrr=100.0 + i,
            active_customers=10 + i,
            referring_domains={"google.com": i, "direct": 1},
        )
        for i in range(45)
    ]
