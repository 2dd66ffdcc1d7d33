"""
BUBBLE INDEX SCORER
Composite 0-100 bubble score for one market

Components (each clamped before summation):
    ratio extremity      0-30  (vs historical max + vs historical mean)
    z-score deviation    0-30
    secondary signal     0-20  (spread trend or volatility, per market)
    historical peak      0-20  (vs the market's documented bubble peak)

RULES:
✅ One scorer, parameterized by MarketProfile
✅ Deterministic: same inputs, same output
❌ No partial scoring on missing inputs
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from app.domain.errors import MetricValidationError
from app.domain.models import (
    BubbleIndexResult,
    BubbleLevel,
    MarketProfile,
    MetricRequest,
    ScoreComponents,
    ScoreStep,
    SecondarySignalKind,
    SeverityTag,
)

logger = logging.getLogger(__name__)

RATIO_MAX_POINTS = 30
DEVIATION_MAX_POINTS = 30
SECONDARY_MAX_POINTS = 20
HISTORICAL_MAX_POINTS = 20
RATIO_HALF_MAX_POINTS = 15


def steps(*pairs: Tuple[float, float]) -> Tuple[ScoreStep, ...]:
    """Build a step table from (threshold, points) pairs, highest first"""
    return tuple(ScoreStep(threshold=t, points=p) for t, p in pairs)


# -------------------------------------------------------------------
# Step tables shared by every market
# -------------------------------------------------------------------

RATIO_OF_MEAN_STEPS = steps((150, 15), (130, 12), (110, 9), (90, 6), (70, 3))

DEVIATION_STEPS = steps(
    (3.0, 30), (2.5, 27), (2.0, 24), (1.5, 20), (1.0, 15),
    (0.5, 10), (0.0, 5), (-0.5, 3), (-1.0, 1),
)

HISTORICAL_STEPS = steps((100, 20), (90, 18), (80, 15), (70, 12), (60, 9), (50, 6), (40, 3))

# Ratio-of-max table for markets whose config omits `ratio_of_max.steps`
DEFAULT_RATIO_OF_MAX_STEPS = steps(
    (90, 15), (80, 13), (70, 11), (60, 9), (50, 7), (40, 5), (30, 3),
)


def step_score(value: float, table: Sequence[ScoreStep], floor: float = 0.0) -> float:
    """Points of the first step whose threshold ``value`` strictly exceeds"""
    for step in table:
        if value > step.threshold:
            return step.points
    return floor


def clamp(value: float, upper: float, lower: float = 0.0) -> float:
    return max(lower, min(value, upper))


def round_half_up(value: float) -> int:
    """Nearest integer; an exact .5 rounds up (Python's round() would go to even)"""
    return int(math.floor(value + 0.5))


# -------------------------------------------------------------------
# Tier table (scores are inclusive lower bounds)
# -------------------------------------------------------------------

@dataclass(frozen=True)
class _Tier:
    min_score: float
    level: BubbleLevel
    label: str
    color_tag: SeverityTag
    description: str


_TIERS: Tuple[_Tier, ...] = (
    _Tier(80, BubbleLevel.EXTREME, "Extreme Danger", SeverityTag.RED,
          "{market} is in an extreme bubble; consider cutting exposure sharply or exiting"),
    _Tier(65, BubbleLevel.HIGH, "High Risk", SeverityTag.ORANGE,
          "{market} shows a clear bubble; consider reducing exposure to 30-40%"),
    _Tier(50, BubbleLevel.MODERATE, "Moderate Risk", SeverityTag.YELLOW,
          "{market} shows signs of a bubble; consider holding 50-60%"),
    _Tier(35, BubbleLevel.MILD, "Mild Risk", SeverityTag.BLUE,
          "{market} is somewhat overvalued; stay cautious at 60-70%"),
    _Tier(20, BubbleLevel.SAFE, "Relatively Safe", SeverityTag.GREEN,
          "{market} is reasonably valued; normal exposure of 70-80% is fine"),
    _Tier(float("-inf"), BubbleLevel.UNDERVALUED, "Undervalued", SeverityTag.TEAL,
          "{market} may be undervalued; consider adding gradually"),
)

DEFAULT_RECOMMENDATIONS: Dict[BubbleLevel, str] = {
    BubbleLevel.EXTREME: (
        "🚨 Strongly advised: cut exposure to 20-30% or exit and hold cash. "
        "Historically, readings above 80 have preceded major corrections within 6-12 months."
    ),
    BubbleLevel.HIGH: (
        "⚠️ Advised: reduce exposure to 30-40% and add defensive assets (bonds, gold). "
        "Set stop-losses and avoid chasing rallies."
    ),
    BubbleLevel.MODERATE: (
        "⚡ Advised: hold 50-60%, stop adding and watch closely. "
        "Consider taking profits on richly valued names."
    ),
    BubbleLevel.MILD: (
        "💡 Advised: hold 60-70%, be selective and avoid richly valued sectors. "
        "Value stocks are a reasonable tilt."
    ),
    BubbleLevel.SAFE: (
        "✅ Advised: normal exposure of 70-80%. Keep quality holdings but stay diversified."
    ),
    BubbleLevel.UNDERVALUED: (
        "🎯 Advised: the market may be undervalued; consider building to 80-90% in stages "
        "rather than all at once."
    ),
}


class BubbleIndexScorer:
    """
    Bubble Index Scorer
    Pure scoring function bound to one market's constants
    """

    def __init__(self, profile: MarketProfile):
        self.profile = profile

    # ------------------------------------------------------------------
    # PUBLIC
    # ------------------------------------------------------------------

    def score(self, request: MetricRequest) -> BubbleIndexResult:
        """
        Score a metric request.

        Raises:
            MetricValidationError: a parameter is missing, non-finite,
                or (ratio/mean/max) not positive
        """
        self._validate(request)

        components = ScoreComponents(
            ratio_score=self.ratio_score(
                request.ratio, request.historical_mean, request.historical_max
            ),
            deviation_score=self.deviation_score(request.z_score),
            secondary_signal_score=self.secondary_signal_score(request.secondary_signal),
            historical_score=self.historical_score(request.ratio),
        )
        total = round_half_up(components.total)
        tier = self._tier(total)

        logger.debug(
            "Bubble index %s: total=%s components=%s", self.profile.key, total, components
        )

        return BubbleIndexResult(
            total_score=total,
            level=tier.level,
            label=tier.label,
            color_tag=tier.color_tag,
            description=tier.description.format(market=self.profile.market_label),
            components=components,
            breakdown=self._breakdown(components, request),
            recommendation=self.profile.recommendations.get(
                tier.level, DEFAULT_RECOMMENDATIONS[tier.level]
            ),
        )

    def ratio_score(self, ratio: float, mean: float, maximum: float) -> float:
        """Position vs historical max (<=15) plus position vs mean (<=15)"""
        pct_of_max = ratio / maximum * 100
        pct_of_mean = ratio / mean * 100

        vs_max = clamp(
            step_score(pct_of_max, self.profile.ratio_max_steps, self.profile.ratio_max_floor),
            RATIO_HALF_MAX_POINTS,
        )
        vs_mean = clamp(step_score(pct_of_mean, RATIO_OF_MEAN_STEPS), RATIO_HALF_MAX_POINTS)
        return clamp(vs_max + vs_mean, RATIO_MAX_POINTS)

    @staticmethod
    def deviation_score(z_score: float) -> float:
        """Step function of z-score; at or below -1 scores nothing"""
        return clamp(step_score(z_score, DEVIATION_STEPS), DEVIATION_MAX_POINTS)

    def secondary_signal_score(self, signal: float) -> float:
        return clamp(
            step_score(signal, self.profile.secondary_steps, self.profile.secondary_floor),
            SECONDARY_MAX_POINTS,
        )

    def historical_score(self, ratio: float) -> float:
        """Ratio as a percentage of the market's historical bubble peak"""
        pct_of_peak = ratio / self.profile.historical_peak_ratio * 100
        return clamp(step_score(pct_of_peak, HISTORICAL_STEPS), HISTORICAL_MAX_POINTS)

    # ------------------------------------------------------------------
    # INTERNAL
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(request: MetricRequest) -> None:
        missing = request.missing()
        if missing:
            raise MetricValidationError(
                f"Missing or non-numeric parameter: {', '.join(missing)}",
                parameter=missing[0],
            )
        for name in ("ratio", "historical_mean", "historical_max"):
            if getattr(request, name) <= 0:
                raise MetricValidationError(f"Parameter must be positive: {name}", parameter=name)

    @staticmethod
    def _tier(total: float) -> _Tier:
        for tier in _TIERS:
            if total >= tier.min_score:
                return tier
        return _TIERS[-1]

    def _breakdown(self, components: ScoreComponents, request: MetricRequest) -> Tuple[str, ...]:
        profile = self.profile
        pair = f"{profile.numerator_label}/{profile.denominator_label}"
        ratio = request.ratio
        z_score = request.z_score
        lines = []

        ratio_pts = components.ratio_score
        if ratio_pts >= 20:
            text = f"📊 {pair} ratio ({ratio:.3f}) is at a historical high"
        elif ratio_pts >= 10:
            text = f"📊 {pair} ratio ({ratio:.3f}) is elevated"
        else:
            text = f"📊 {pair} ratio ({ratio:.3f}) is reasonable"
        lines.append(f"{text}, {ratio_pts:.0f}/{RATIO_MAX_POINTS} points")

        dev_pts = components.deviation_score
        if dev_pts >= 20:
            text = f"📈 Z-Score ({z_score:.2f}) deviates significantly from the mean"
        elif dev_pts >= 10:
            text = f"📈 Z-Score ({z_score:.2f}) is above the mean"
        else:
            text = f"📈 Z-Score ({z_score:.2f}) is in the normal range"
        lines.append(f"{text}, {dev_pts:.0f}/{DEVIATION_MAX_POINTS} points")

        lines.append(self._secondary_line(components.secondary_signal_score, request.secondary_signal))

        hist_pts = components.historical_score
        if hist_pts >= 15:
            text = f"📚 Current ratio is near or above the {profile.historical_peak_label} level"
        elif hist_pts >= 8:
            text = "📚 Current ratio is above its historical average"
        else:
            text = "📚 Current ratio is below historical bubble levels"
        lines.append(f"{text}, {hist_pts:.0f}/{HISTORICAL_MAX_POINTS} points")

        return tuple(lines)

    def _secondary_line(self, points: float, signal: float) -> str:
        high, medium = self.profile.secondary_breakdown_thresholds
        if self.profile.secondary_signal == SecondarySignalKind.VOLATILITY:
            if points >= high:
                text = f"📊 Market volatility ({signal:.2f}%) is high and sentiment unstable"
            elif points >= medium:
                text = f"📊 Market volatility ({signal:.2f}%) is moderate"
            else:
                text = f"📊 Market volatility ({signal:.2f}%) is low and relatively calm"
        else:
            if points >= high:
                text = "💰 Bond spread is widening fast; risk appetite is falling"
            elif points >= medium:
                text = "💰 Bond spread is rising moderately; worth watching"
            else:
                text = "💰 Bond spread is relatively stable"
        return f"{text}, {points:.0f}/{SECONDARY_MAX_POINTS} points"
