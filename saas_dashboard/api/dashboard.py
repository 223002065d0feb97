"""Dashboard API endpoints."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from saas_dashboard.api.auth import verify_api_key
from saas_dashboard.metrics.records import (
    DashboardSummary,
    Granularity,
    MetricField,
    RateConfig,
    RatedMetrics,
)
from saas_dashboard.metrics.service import DashboardService, get_dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=list[RatedMetrics])
async def get_dashboard(
    range_: str = Query("30d", alias="range"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    granularity: Granularity = Query(Granularity.DAY),
    numerator: MetricField = Query(MetricField.PURCHASES),
    denominator: MetricField = Query(MetricField.VISITORS),
    service: DashboardService = Depends(get_dashboard_service),
    _: str | None = Depends(verify_api_key),
):
    """Get the chart series with funnel and custom rates."""
    try:
        return await service.get_dashboard(
            range_,
            custom_start=start,
            custom_end=end,
            granularity=granularity,
            rate_config=RateConfig(numerator=numerator, denominator=denominator),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(
    range_: str = Query("30d", alias="range"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    service: DashboardService = Depends(get_dashboard_service),
    _: str | None = Depends(verify_api_key),
):
    """Get headline totals for the selected range."""
    try:
        return await service.get_summary(range_, custom_start=start, custom_end=end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
