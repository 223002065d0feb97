"""Data collectors for the billing and analytics APIs."""
from saas_dashboard.collectors.lemonsqueezy import LemonSqueezyCollector
from saas_dashboard.collectors.posthog import PostHogCollector

__all__ = [
    "LemonSqueezyCollector",
    "PostHogCollector",
]
