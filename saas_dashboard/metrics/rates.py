"""Funnel conversion rates."""
import math
from typing import Optional

from saas_dashboard.metrics.records import (
    DashboardMetrics,
    RateConfig,
    RatedMetrics,
    metric_value,
)


def calculate_rate(numerator: Optional[float], denominator: Optional[float]) -> float:
    """Return numerator/denominator as a percentage, 0 when undefined."""
    if not denominator:
        return 0.0
    rate = ((numerator or 0) / denominator) * 100
    return rate if math.isfinite(rate) else 0.0


def apply_rates(
    series: list[DashboardMetrics],
    config: Optional[RateConfig] = None,
) -> list[RatedMetrics]:
    """Attach the three funnel rates and the configured custom rate."""
    config = config or RateConfig()

    rated = []
    for record in series:
        rates = {
            "visitor_to_price_view_rate": calculate_rate(record.pricing_views, record.visitors),
            "price_view_to_checkout_rate": calculate_rate(record.checkouts, record.pricing_views),
            "checkout_to_purchase_rate": calculate_rate(record.purchases, record.checkouts),
            "custom_rate": calculate_rate(
                metric_value(record, config.numerator),
                metric_value(record, config.denominator),
            ),
        }
        rated.append(RatedMetrics(**{**record.model_dump(), **rates}))

    return rated
