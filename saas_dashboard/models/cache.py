"""Cached dashboard series."""
from sqlalchemy import Column, String, Date, DateTime, JSON

from saas_dashboard.database import Base


class SeriesCacheEntry(Base):
    """Merged daily series keyed by request fingerprint."""

    __tablename__ = "series_cache"

    fingerprint = Column(String(64), primary_key=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    payload = Column(JSON, nullable=False)  # list of DashboardMetrics dumps
    created_at = Column(DateTime, nullable=False, index=True)  # naive UTC
