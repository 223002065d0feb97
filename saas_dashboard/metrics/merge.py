"""Merge the billing ledger with the analytics series."""
from saas_dashboard.metrics.records import AnalyticsMetrics, BillingMetrics, DashboardMetrics


def merge_day(billing: BillingMetrics, analytics: AnalyticsMetrics) -> DashboardMetrics:
    """Combine one day from each source.

    Funnel counts and referring domains come from analytics. Money,
    snapshots and ``purchases`` come from billing; Lemon Squeezy orders
    are the authoritative purchase count even though PostHog tracks a
    purchase event too.
    """
    return DashboardMetrics(
        date=billing.date,
        visitors=analytics.visitors,
        pricing_views=analytics.pricing_views,
        checkouts=analytics.checkouts,
        referring_domains=dict(analytics.referring_domains),
        mrr=billing.mrr,
        revenue=billing.revenue,
        renewal_revenue=billing.renewal_revenue,
        churn_rate=billing.churn_rate,
        active_customers=billing.active_customers,
        purchases=billing.purchases,
    )


def merge_series(
    billing: list[BillingMetrics],
    analytics: list[AnalyticsMetrics],
) -> list[DashboardMetrics]:
    """Merge by date, one output record per ledger day.

    The ledger drives presence and order. Ledger days missing from the
    analytics series get zero counts; analytics days outside the ledger
    are dropped.
    """
    analytics_by_date = {item.date: item for item in analytics}

    merged = []
    for ledger_day in billing:
        tracked = analytics_by_date.get(ledger_day.date) or AnalyticsMetrics(date=ledger_day.date)
        merged.append(merge_day(ledger_day, tracked))

    return merged
