"""
Market metric routes - ratio, volatility, bubble index, dashboard.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import settings
from app.domain.errors import MetricValidationError, UnknownMarketError
from app.domain.models import LookbackPeriod, MetricRequest
from app.domain.schemas.metrics import (
    BubbleIndexResponse,
    DashboardResponse,
    MarketProfileResponse,
    RatioReportResponse,
    SpreadReportResponse,
    VolatilityReportResponse,
)
from app.services.metrics_service import MetricsService, VolatilityReport

router = APIRouter()

# MetricRequest field -> query parameter
QUERY_PARAMS = {
    "ratio": "ratio",
    "z_score": "z_score",
    "historical_mean": "mean",
    "historical_max": "max",
    "secondary_signal": "secondary_signal",
}


def get_metrics_service(request: Request) -> MetricsService:
    service = getattr(request.app.state, "metrics_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Metrics service not initialized")
    return service


def _require_market(service: MetricsService, market: str) -> None:
    if not service.config_engine.has_market(market):
        raise UnknownMarketError(market)


def _parse_number(name: str, raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise MetricValidationError(f"Parameter is not numeric: {name}", parameter=name) from None
    if not math.isfinite(value):
        raise MetricValidationError(f"Parameter is not finite: {name}", parameter=name)
    return value


@router.get("")
async def list_markets(service: MetricsService = Depends(get_metrics_service)):
    """Configured market profiles"""
    return {
        "success": True,
        "data": [MarketProfileResponse.from_domain(p) for p in service.config_engine.markets],
    }


@router.get("/{market}/ratio")
async def market_ratio(
    market: str,
    period: Optional[LookbackPeriod] = None,
    service: MetricsService = Depends(get_metrics_service),
):
    """Index/gold ratio series, statistics and z-score risk"""
    _require_market(service, market)
    report = await service.ratio_report(market, period or LookbackPeriod(settings.DEFAULT_PERIOD))
    return {
        "success": True,
        "data": RatioReportResponse.from_report(report, history_tail=settings.HISTORY_TAIL),
    }


@router.get("/{market}/volatility")
async def market_volatility(
    market: str,
    period: Optional[LookbackPeriod] = None,
    service: MetricsService = Depends(get_metrics_service),
):
    """Annualized and trailing volatility of the market's index"""
    _require_market(service, market)
    report = await service.volatility_report(
        market, period or LookbackPeriod(settings.SECONDARY_PERIOD)
    )
    return {"success": True, "data": VolatilityReportResponse.from_report(report)}


@router.get("/{market}/bubble-index")
async def market_bubble_index(
    market: str,
    ratio: Optional[str] = None,
    z_score: Optional[str] = None,
    mean: Optional[str] = None,
    max: Optional[str] = None,
    secondary_signal: Optional[str] = None,
    service: MetricsService = Depends(get_metrics_service),
):
    """Score caller-supplied metrics; every parameter is required"""
    _require_market(service, market)
    request = MetricRequest(
        ratio=_parse_number("ratio", ratio),
        z_score=_parse_number("z_score", z_score),
        historical_mean=_parse_number("mean", mean),
        historical_max=_parse_number("max", max),
        secondary_signal=_parse_number("secondary_signal", secondary_signal),
    )
    missing = [QUERY_PARAMS[name] for name in request.missing()]
    if missing:
        raise MetricValidationError(
            f"Missing required parameter: {', '.join(missing)}", parameter=missing[0]
        )
    result = service.bubble_index(market, request)
    return {"success": True, "data": BubbleIndexResponse.from_domain(market, result)}


@router.get("/{market}/dashboard")
async def market_dashboard(
    market: str,
    period: Optional[LookbackPeriod] = None,
    service: MetricsService = Depends(get_metrics_service),
):
    """Every metric of one market, recomputed for the requested lookback"""
    _require_market(service, market)
    report = await service.dashboard(market, period or LookbackPeriod(settings.DEFAULT_PERIOD))

    if isinstance(report.secondary, VolatilityReport):
        secondary = VolatilityReportResponse.from_report(report.secondary)
        places = 2
    else:
        secondary = SpreadReportResponse.from_report(report.secondary)
        places = 3

    profile = report.ratio.profile
    return {
        "success": True,
        "data": DashboardResponse(
            market=profile.key,
            secondary_signal_kind=profile.secondary_signal.value,
            secondary_signal=f"{report.secondary_signal:.{places}f}",
            ratio=RatioReportResponse.from_report(report.ratio, history_tail=settings.HISTORY_TAIL),
            secondary=secondary,
            bubble_index=BubbleIndexResponse.from_domain(profile.key, report.bubble_index),
        ),
    }
