"""
Bond routes - treasury spread proxy.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.api.routes.markets import get_metrics_service
from app.config import settings
from app.domain.models import LookbackPeriod
from app.domain.schemas.metrics import SpreadReportResponse
from app.services.metrics_service import MetricsService

router = APIRouter()


@router.get("/treasury-spread")
async def treasury_spread(
    period: Optional[LookbackPeriod] = None,
    service: MetricsService = Depends(get_metrics_service),
):
    """Estimated spread level, statistics and 30-observation trend"""
    report = await service.spread_report(period or LookbackPeriod(settings.SECONDARY_PERIOD))
    return {"success": True, "data": SpreadReportResponse.from_report(report)}
