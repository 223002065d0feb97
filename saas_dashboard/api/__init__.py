"""API routes."""
from saas_dashboard.api.dashboard import router as dashboard_router

__all__ = [
    "dashboard_router",
]
