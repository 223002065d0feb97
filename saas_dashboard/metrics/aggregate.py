"""Roll a daily series up into weekly or monthly buckets."""
from datetime import date, timedelta
from typing import Any

from saas_dashboard.metrics.records import DashboardMetrics, Granularity

# Flow quantities, summed across the bucket
SUMMED_FIELDS = (
    "visitors",
    "pricing_views",
    "checkouts",
    "purchases",
)

# Currency amounts, summed in cents
MONEY_FIELDS = (
    "revenue",
    "renewal_revenue",
)

# Point-in-time values, the last day in the bucket wins
SNAPSHOT_FIELDS = (
    "mrr",
    "active_customers",
    "churn_rate",
)


def to_cents(amount: float) -> int:
    return round(amount * 100)


def _flush(current: dict[str, Any]) -> DashboardMetrics:
    values = dict(current)
    for field in MONEY_FIELDS:
        values[field] = values[field] / 100
    return DashboardMetrics(**values)


def bucket_start(day: date, granularity: Granularity) -> date:
    """Key of the bucket containing ``day``: Monday for weeks, the 1st for months."""
    if granularity == Granularity.WEEK:
        return day - timedelta(days=day.weekday())
    if granularity == Granularity.MONTH:
        return day.replace(day=1)
    return day


def aggregate_series(
    series: list[DashboardMetrics],
    granularity: Granularity | str,
) -> list[DashboardMetrics]:
    """Aggregate a date-ordered daily series by ``granularity``.

    ``day`` returns the series unchanged.
    """
    granularity = Granularity(granularity)
    if granularity == Granularity.DAY:
        return list(series)

    buckets: list[DashboardMetrics] = []
    current: dict[str, Any] | None = None

    for record in series:
        key = bucket_start(record.date, granularity)

        if current is None or current["date"] != key:
            if current is not None:
                buckets.append(_flush(current))
            current = record.model_dump()
            current["date"] = key
            current["referring_domains"] = dict(record.referring_domains)
            for field in MONEY_FIELDS:
                current[field] = to_cents(current[field])
            continue

        for field in SUMMED_FIELDS:
            current[field] += getattr(record, field)
        for field in MONEY_FIELDS:
            current[field] += to_cents(getattr(record, field))
        for field in SNAPSHOT_FIELDS:
            current[field] = getattr(record, field)

        domains = current["referring_domains"]
        for domain, count in record.referring_domains.items():
            domains[domain] = domains.get(domain, 0) + count

    if current is not None:
        buckets.append(_flush(current))

    return buckets
