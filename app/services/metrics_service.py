"""
Metrics Service

• Fetch both legs of a ratio concurrently
• Align → statistics → risk classification
• Secondary signal (volatility or spread trend) → bubble index
• Fail the whole request on any upstream failure
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional, Tuple, Union

from app.config import Settings, settings as app_settings
from app.domain.models import (
    BubbleIndexResult,
    LookbackPeriod,
    MarketProfile,
    MetricRequest,
    RatioSeries,
    RiskAssessment,
    SecondarySignalKind,
    SpreadObservation,
    SpreadStats,
    Statistics,
    VolatilityStats,
)
from app.domain.services.bubble_index_scorer import BubbleIndexScorer
from app.domain.services.config_engine import ConfigEngine
from app.domain.services.risk_classifier import (
    VOLATILITY_BANDS,
    Z_SCORE_BANDS,
    classify,
    spread_band_table,
)
from app.domain.services.series_aligner import align_ratio_series
from app.domain.services.spread_analyzer import build_spread_series, compute_spread_stats
from app.domain.services.statistics_engine import compute_statistics
from app.domain.services.volatility_estimator import estimate_volatility
from app.infrastructure.market_data.types import PriceSeriesProvider

logger = logging.getLogger(__name__)


async def gather_legs(*legs: Awaitable[Any]) -> List[Any]:
    """
    Run independent fetch legs concurrently and join them.

    The first failure cancels every leg still running and waits for them
    to finish, so no fetch outlives a failed request. Cancellation of the
    caller is propagated the same way.
    """
    tasks = [asyncio.ensure_future(leg) for leg in legs]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        # reap every leg; sibling failures are collected here
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
    return [task.result() for task in tasks]


@dataclass(frozen=True)
class RatioReport:
    profile: MarketProfile
    period: LookbackPeriod
    series: RatioSeries
    statistics: Statistics
    risk: RiskAssessment
    reference_ratios: Dict[str, float]


@dataclass(frozen=True)
class VolatilityReport:
    profile: MarketProfile
    period: LookbackPeriod
    symbol: str
    volatility: VolatilityStats
    risk: RiskAssessment
    bond_yield: float  # placeholder, never fetched


@dataclass(frozen=True)
class SpreadReport:
    period: LookbackPeriod
    treasury_symbol: str
    corporate_bond_symbol: str
    series: Tuple[SpreadObservation, ...]
    statistics: SpreadStats
    risk: RiskAssessment


@dataclass(frozen=True)
class DashboardReport:
    ratio: RatioReport
    secondary: Union[VolatilityReport, SpreadReport]
    secondary_signal: float
    bubble_index: BubbleIndexResult


class MetricsService:
    """
    Per-request metric pipeline
    Stateless apart from its collaborators
    """

    def __init__(
        self,
        provider: PriceSeriesProvider,
        config_engine: ConfigEngine,
        config: Optional[Settings] = None,
    ):
        self.provider = provider
        self.config_engine = config_engine
        self.config = config or app_settings

    # ------------------------------------------------------------------
    # RATIO
    # ------------------------------------------------------------------

    async def ratio_report(self, market: str, period: LookbackPeriod) -> RatioReport:
        profile = self.config_engine.get_market(market)
        numerator, denominator = await gather_legs(
            self.provider.get_price_series(profile.numerator_symbol, period),
            self.provider.get_price_series(profile.denominator_symbol, period),
        )

        series = align_ratio_series(numerator, denominator)
        statistics = compute_statistics(series)
        risk = classify(statistics.z_score, Z_SCORE_BANDS)

        logger.info(
            f"{profile.key} ratio ({period.value}): {len(series)} obs, "
            f"latest={statistics.latest.ratio:.3f}, z={statistics.z_score:.2f}, risk={risk.level}"
        )
        return RatioReport(
            profile=profile,
            period=period,
            series=series,
            statistics=statistics,
            risk=risk,
            reference_ratios=dict(profile.reference_ratios),
        )

    # ------------------------------------------------------------------
    # SECONDARY SIGNALS
    # ------------------------------------------------------------------

    async def volatility_report(self, market: str, period: LookbackPeriod) -> VolatilityReport:
        profile = self.config_engine.get_market(market)
        points = await self.provider.get_price_series(profile.numerator_symbol, period)

        volatility = estimate_volatility(
            [p.price for p in points],
            periods_per_year=self.config.TRADING_PERIODS_PER_YEAR,
            trailing_window=self.config.TRAILING_WINDOW,
        )
        risk = classify(volatility.annualized, VOLATILITY_BANDS)

        logger.info(
            f"{profile.key} volatility ({period.value}): {volatility.annualized:.2f}% "
            f"trailing={volatility.trailing:.2f}% risk={risk.level}"
        )
        return VolatilityReport(
            profile=profile,
            period=period,
            symbol=profile.numerator_symbol,
            volatility=volatility,
            risk=risk,
            bond_yield=self.config.BOND_YIELD_PLACEHOLDER,
        )

    async def spread_report(self, period: LookbackPeriod) -> SpreadReport:
        treasury_symbol = self.config.TREASURY_SYMBOL
        bond_symbol = self.config.CORPORATE_BOND_SYMBOL
        treasury, corporate = await gather_legs(
            self.provider.get_price_series(treasury_symbol, period),
            self.provider.get_price_series(bond_symbol, period),
        )

        series = build_spread_series(treasury, corporate, factor=self.config.SPREAD_ESTIMATE_FACTOR)
        statistics = compute_spread_stats(series, trend_window=self.config.TRAILING_WINDOW)
        risk = classify(statistics.trend, spread_band_table(statistics.std))

        logger.info(
            f"Spread ({period.value}): {statistics.latest.spread:.3f} "
            f"trend={statistics.trend:.3f} risk={risk.level}"
        )
        return SpreadReport(
            period=period,
            treasury_symbol=treasury_symbol,
            corporate_bond_symbol=bond_symbol,
            series=series,
            statistics=statistics,
            risk=risk,
        )

    # ------------------------------------------------------------------
    # BUBBLE INDEX
    # ------------------------------------------------------------------

    def bubble_index(self, market: str, request: MetricRequest) -> BubbleIndexResult:
        profile = self.config_engine.get_market(market)
        return BubbleIndexScorer(profile).score(request)

    async def dashboard(self, market: str, period: LookbackPeriod) -> DashboardReport:
        """Recompute every metric of one market for the given lookback"""
        profile = self.config_engine.get_market(market)
        secondary_period = LookbackPeriod(self.config.SECONDARY_PERIOD)

        if profile.secondary_signal == SecondarySignalKind.VOLATILITY:
            secondary_call = self.volatility_report(market, secondary_period)
        else:
            secondary_call = self.spread_report(secondary_period)

        ratio, secondary = await gather_legs(
            self.ratio_report(market, period),
            secondary_call,
        )

        if isinstance(secondary, VolatilityReport):
            signal = secondary.volatility.annualized
        else:
            signal = secondary.statistics.trend

        stats = ratio.statistics
        bubble = self.bubble_index(
            market,
            MetricRequest(
                ratio=stats.latest.ratio,
                z_score=stats.z_score,
                historical_mean=stats.mean,
                historical_max=stats.max,
                secondary_signal=signal,
            ),
        )
        logger.info(f"{profile.key} bubble index: {bubble.total_score} ({bubble.level.value})")
        return DashboardReport(
            ratio=ratio,
            secondary=secondary,
            secondary_signal=signal,
            bubble_index=bubble,
        )
