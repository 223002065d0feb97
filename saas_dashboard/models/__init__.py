"""SQLAlchemy models."""
from saas_dashboard.models.cache import SeriesCacheEntry

__all__ = [
    "SeriesCacheEntry",
]
