"""Metric record types."""
from datetime import date
from enum import Enum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MetricsModel(BaseModel):
    """Immutable record, serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class BillingMetrics(MetricsModel):
    """One day of the Lemon Squeezy ledger."""
    date: date
    mrr: float = 0.0  # Snapshot, same on every day of a fetch
    revenue: float = 0.0
    renewal_revenue: float = 0.0
    churn_rate: float = 0.0  # Not computed upstream, always 0
    active_customers: int = 0  # Active subscription count
    purchases: int = 0


class AnalyticsMetrics(MetricsModel):
    """One day of PostHog funnel counts."""
    date: date
    visitors: int = 0
    pricing_views: int = 0
    checkouts: int = 0
    purchases: int = 0
    referring_domains: dict[str, int] = Field(default_factory=dict)


class DashboardMetrics(MetricsModel):
    """Merged daily (or bucketed) record."""
    date: date
    # PostHog
    visitors: int = 0
    pricing_views: int = 0
    checkouts: int = 0
    referring_domains: dict[str, int] = Field(default_factory=dict)
    # Lemon Squeezy
    mrr: float = 0.0
    revenue: float = 0.0
    renewal_revenue: float = 0.0
    churn_rate: float = 0.0
    active_customers: int = 0
    purchases: int = 0


class RatedMetrics(DashboardMetrics):
    """Dashboard record with funnel rates, as percentages."""
    visitor_to_price_view_rate: float = 0.0
    price_view_to_checkout_rate: float = 0.0
    checkout_to_purchase_rate: float = 0.0
    custom_rate: float = 0.0


class DashboardSummary(MetricsModel):
    """Headline numbers for a date range."""
    total_revenue: float
    current_mrr: float
    active_customers: int
    total_visitors: int
    start_date: date
    end_date: date


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class MetricField(str, Enum):
    """Fields selectable for the custom rate."""
    VISITORS = "visitors"
    PRICING_VIEWS = "pricingViews"
    CHECKOUTS = "checkouts"
    PURCHASES = "purchases"
    MRR = "mrr"


_FIELD_GETTERS: dict[MetricField, Callable[[DashboardMetrics], float]] = {
    MetricField.VISITORS: lambda r: r.visitors,
    MetricField.PRICING_VIEWS: lambda r: r.pricing_views,
    MetricField.CHECKOUTS: lambda r: r.checkouts,
    MetricField.PURCHASES: lambda r: r.purchases,
    MetricField.MRR: lambda r: r.mrr,
}


def metric_value(record: DashboardMetrics, field: MetricField) -> float:
    """Read a selectable field from a record."""
    return _FIELD_GETTERS[MetricField(field)](record)


class RateConfig(BaseModel):
    """Numerator/denominator pair for the custom rate."""
    numerator: MetricField = MetricField.PURCHASES
    denominator: MetricField = MetricField.VISITORS
