"""
Metric response schemas.

Numbers are rendered as fixed-precision text: prices 2 dp, ratios and
means 3 dp, z-scores 2 dp, percentages 2 dp.
"""

from __future__ import annotations

from typing import Any, List, Union

from pydantic import BaseModel

from app.domain.models import (
    BubbleIndexResult,
    MarketProfile,
    RatioObservation,
    RiskAssessment,
    SpreadObservation,
)


def fixed(value: float, places: int) -> str:
    return f"{value:.{places}f}"


class RiskResponse(BaseModel):
    level: str
    color_tag: str
    description: str

    @classmethod
    def from_domain(cls, risk: RiskAssessment) -> "RiskResponse":
        return cls(level=risk.level, color_tag=risk.color_tag.value, description=risk.description)


# ----------------------------------------------------------------------
# Ratio
# ----------------------------------------------------------------------

class RatioPointResponse(BaseModel):
    date: str
    numerator: str
    denominator: str
    ratio: str

    @classmethod
    def from_domain(cls, obs: RatioObservation) -> "RatioPointResponse":
        return cls(
            date=obs.date.isoformat(),
            numerator=fixed(obs.numerator_price, 2),
            denominator=fixed(obs.denominator_price, 2),
            ratio=fixed(obs.ratio, 3),
        )


class RatioStatisticsResponse(BaseModel):
    mean: str
    variance: str
    std: str
    max: str
    min: str
    z_score: str
    count: int


class HistoricalComparisonResponse(BaseModel):
    name: str
    reference_ratio: float
    vs_reference_pct: str
    position: str


class RatioReportResponse(BaseModel):
    market: str
    name: str
    numerator_symbol: str
    denominator_symbol: str
    period: str
    current: RatioPointResponse
    statistics: RatioStatisticsResponse
    risk: RiskResponse
    historical_comparison: List[HistoricalComparisonResponse]
    historical_data: List[RatioPointResponse]
    full_historical_data: List[RatioPointResponse]

    @classmethod
    def from_report(cls, report: Any, history_tail: int = 365) -> "RatioReportResponse":
        stats = report.statistics
        latest = stats.latest
        points = [RatioPointResponse.from_domain(obs) for obs in report.series]
        comparisons = [
            HistoricalComparisonResponse(
                name=name,
                reference_ratio=ref,
                vs_reference_pct=f"{fixed((latest.ratio - ref) / ref * 100, 2)}%",
                position="below" if latest.ratio < ref else "above",
            )
            for name, ref in report.reference_ratios.items()
        ]
        return cls(
            market=report.profile.key,
            name=report.profile.name,
            numerator_symbol=report.profile.numerator_symbol,
            denominator_symbol=report.profile.denominator_symbol,
            period=report.period.value,
            current=RatioPointResponse.from_domain(latest),
            statistics=RatioStatisticsResponse(
                mean=fixed(stats.mean, 3),
                variance=fixed(stats.variance, 3),
                std=fixed(stats.std, 3),
                max=fixed(stats.max, 3),
                min=fixed(stats.min, 3),
                z_score=fixed(stats.z_score, 2),
                count=stats.count,
            ),
            risk=RiskResponse.from_domain(report.risk),
            historical_comparison=comparisons,
            historical_data=points[-history_tail:],
            full_historical_data=points,
        )


# ----------------------------------------------------------------------
# Volatility
# ----------------------------------------------------------------------

class VolatilityCurrentResponse(BaseModel):
    volatility: str
    bond_yield: str
    bond_yield_simulated: bool


class VolatilityStatisticsResponse(BaseModel):
    avg_volatility: str
    recent_volatility: str
    trend: str
    return_count: int
    trailing_window: int


class VolatilityReportResponse(BaseModel):
    market: str
    symbol: str
    period: str
    current: VolatilityCurrentResponse
    statistics: VolatilityStatisticsResponse
    risk: RiskResponse
    note: str

    @classmethod
    def from_report(cls, report: Any) -> "VolatilityReportResponse":
        vol = report.volatility
        return cls(
            market=report.profile.key,
            symbol=report.symbol,
            period=report.period.value,
            current=VolatilityCurrentResponse(
                volatility=fixed(vol.annualized, 2),
                bond_yield=fixed(report.bond_yield, 3),
                bond_yield_simulated=True,
            ),
            statistics=VolatilityStatisticsResponse(
                avg_volatility=fixed(vol.annualized, 2),
                recent_volatility=fixed(vol.trailing, 2),
                trend=fixed(vol.trend, 3),
                return_count=vol.return_count,
                trailing_window=vol.trailing_window,
            ),
            risk=RiskResponse.from_domain(report.risk),
            note=(
                "Volatility is computed from daily index closes. The bond yield is a "
                "configured placeholder, not live data."
            ),
        )


# ----------------------------------------------------------------------
# Spread
# ----------------------------------------------------------------------

class SpreadPointResponse(BaseModel):
    date: str
    treasury_yield: str
    corporate_bond_price: str
    spread: str

    @classmethod
    def from_domain(cls, obs: SpreadObservation) -> "SpreadPointResponse":
        return cls(
            date=obs.date.isoformat(),
            treasury_yield=fixed(obs.treasury_yield, 3),
            corporate_bond_price=fixed(obs.corporate_bond_price, 2),
            spread=fixed(obs.spread, 3),
        )


class SpreadStatisticsResponse(BaseModel):
    mean: str
    std: str
    max: str
    min: str
    trend: str


class SpreadReportResponse(BaseModel):
    treasury_symbol: str
    corporate_bond_symbol: str
    period: str
    current: SpreadPointResponse
    statistics: SpreadStatisticsResponse
    risk: RiskResponse
    historical_data: List[SpreadPointResponse]
    note: str

    @classmethod
    def from_report(cls, report: Any) -> "SpreadReportResponse":
        stats = report.statistics
        return cls(
            treasury_symbol=report.treasury_symbol,
            corporate_bond_symbol=report.corporate_bond_symbol,
            period=report.period.value,
            current=SpreadPointResponse.from_domain(stats.latest),
            statistics=SpreadStatisticsResponse(
                mean=fixed(stats.mean, 3),
                std=fixed(stats.std, 3),
                max=fixed(stats.max, 3),
                min=fixed(stats.min, 3),
                trend=fixed(stats.trend, 3),
            ),
            risk=RiskResponse.from_domain(report.risk),
            historical_data=[SpreadPointResponse.from_domain(obs) for obs in report.series],
            note=(
                f"Spread is estimated from the {report.treasury_symbol} yield on dates where "
                f"{report.corporate_bond_symbol} trades; it is a proxy, not a quoted credit spread."
            ),
        )


# ----------------------------------------------------------------------
# Bubble index
# ----------------------------------------------------------------------

class BubbleComponentsResponse(BaseModel):
    ratio_score: int
    deviation_score: int
    secondary_signal_score: int
    historical_score: int


class BubbleIndexResponse(BaseModel):
    market: str
    index: int
    level: str
    label: str
    color_tag: str
    description: str
    components: BubbleComponentsResponse
    breakdown: List[str]
    recommendation: str

    @classmethod
    def from_domain(cls, market: str, result: BubbleIndexResult) -> "BubbleIndexResponse":
        parts = result.components
        return cls(
            market=market,
            index=result.total_score,
            level=result.level.value,
            label=result.label,
            color_tag=result.color_tag.value,
            description=result.description,
            components=BubbleComponentsResponse(
                ratio_score=round(parts.ratio_score),
                deviation_score=round(parts.deviation_score),
                secondary_signal_score=round(parts.secondary_signal_score),
                historical_score=round(parts.historical_score),
            ),
            breakdown=list(result.breakdown),
            recommendation=result.recommendation,
        )


class DashboardResponse(BaseModel):
    market: str
    secondary_signal_kind: str
    secondary_signal: str
    ratio: RatioReportResponse
    secondary: Union[VolatilityReportResponse, SpreadReportResponse]
    bubble_index: BubbleIndexResponse


class MarketProfileResponse(BaseModel):
    key: str
    name: str
    numerator_symbol: str
    denominator_symbol: str
    historical_peak_ratio: float
    historical_peak_label: str
    secondary_signal: str
    reference_ratios: dict

    @classmethod
    def from_domain(cls, profile: MarketProfile) -> "MarketProfileResponse":
        return cls(
            key=profile.key,
            name=profile.name,
            numerator_symbol=profile.numerator_symbol,
            denominator_symbol=profile.denominator_symbol,
            historical_peak_ratio=profile.historical_peak_ratio,
            historical_peak_label=profile.historical_peak_label,
            secondary_signal=profile.secondary_signal.value,
            reference_ratios=dict(profile.reference_ratios),
        )
