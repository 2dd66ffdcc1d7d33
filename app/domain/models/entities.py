"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple


class SeverityTag(str, Enum):
    """Symbolic severity tag; styling is resolved by the presentation layer"""
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"
    TEAL = "teal"


class LookbackPeriod(str, Enum):
    """Lookback ranges accepted by price series providers"""
    ONE_YEAR = "1y"
    TWO_YEARS = "2y"
    FIVE_YEARS = "5y"
    TEN_YEARS = "10y"
    MAX = "max"


class BubbleLevel(str, Enum):
    """Bubble index tier, most severe first"""
    EXTREME = "extreme"
    HIGH = "high"
    MODERATE = "moderate"
    MILD = "mild"
    SAFE = "safe"
    UNDERVALUED = "undervalued"


class SecondarySignalKind(str, Enum):
    """Which secondary risk signal a market feeds into its bubble index"""
    SPREAD_TREND = "spread_trend"
    VOLATILITY = "volatility"


@dataclass(frozen=True)
class PricePoint:
    """Daily closing price - Immutable"""
    date: date
    price: float


@dataclass(frozen=True)
class RatioObservation:
    """Numerator/denominator prices on one calendar date - Immutable"""
    date: date
    numerator_price: float
    denominator_price: float
    ratio: float

    def __post_init__(self):
        if self.numerator_price <= 0 or self.denominator_price <= 0:
            raise ValueError("Ratio prices must be positive")


RatioSeries = Tuple[RatioObservation, ...]


@dataclass(frozen=True)
class Statistics:
    """Descriptive statistics of a ratio series"""
    mean: float
    variance: float  # population (divisor N)
    std: float
    max: float
    min: float
    z_score: float
    latest: RatioObservation
    count: int


@dataclass(frozen=True)
class RiskBand:
    """One row of a risk band table"""
    lower_bound: Optional[float]  # None marks the catch-all band
    level: str
    color_tag: SeverityTag
    description: str


@dataclass(frozen=True)
class RiskAssessment:
    """Classified risk tier - Immutable"""
    level: str
    color_tag: SeverityTag
    description: str
    severity: int  # 0 = catch-all band, higher = more severe


@dataclass(frozen=True)
class VolatilityStats:
    """Annualized return volatility (percent)"""
    annualized: float
    trailing: float
    trend: float
    return_count: int
    trailing_window: int


@dataclass(frozen=True)
class SpreadObservation:
    """Treasury yield vs corporate bond proxy on one date"""
    date: date
    treasury_yield: float
    corporate_bond_price: float
    spread: float


@dataclass(frozen=True)
class SpreadStats:
    """Spread level statistics and trailing trend"""
    mean: float
    std: float
    max: float
    min: float
    trend: float
    latest: SpreadObservation


@dataclass(frozen=True)
class ScoreStep:
    """Bucket of a step table: value > threshold earns points"""
    threshold: float
    points: float


@dataclass(frozen=True)
class ScoreComponents:
    """Bubble index sub-scores, each clamped to its maximum"""
    ratio_score: float
    deviation_score: float
    secondary_signal_score: float
    historical_score: float

    @property
    def total(self) -> float:
        return (
            self.ratio_score
            + self.deviation_score
            + self.secondary_signal_score
            + self.historical_score
        )


@dataclass(frozen=True)
class BubbleIndexResult:
    """Composite bubble index - Immutable"""
    total_score: int
    level: BubbleLevel
    label: str
    color_tag: SeverityTag
    description: str
    components: ScoreComponents
    breakdown: Tuple[str, ...]
    recommendation: str

    def __post_init__(self):
        if not 0 <= self.total_score <= 100:
            raise ValueError("Bubble index must be between 0 and 100")


@dataclass(frozen=True)
class MetricRequest:
    """Bubble index inputs; every field is required"""
    ratio: Optional[float] = None
    z_score: Optional[float] = None
    historical_mean: Optional[float] = None
    historical_max: Optional[float] = None
    secondary_signal: Optional[float] = None

    def missing(self) -> Tuple[str, ...]:
        """Names of fields that are absent or not finite numbers"""
        names = []
        for name in ("ratio", "z_score", "historical_mean", "historical_max", "secondary_signal"):
            value = getattr(self, name)
            if value is None or isinstance(value, bool):
                names.append(name)
            elif not isinstance(value, (int, float)) or not math.isfinite(value):
                names.append(name)
        return tuple(names)


@dataclass(frozen=True)
class MarketProfile:
    """Per-market scoring constants loaded from markets.yml"""
    key: str
    name: str
    market_label: str
    numerator_symbol: str
    numerator_label: str
    denominator_symbol: str
    denominator_label: str
    historical_peak_ratio: float
    historical_peak_label: str
    secondary_signal: SecondarySignalKind
    secondary_steps: Tuple[ScoreStep, ...]
    secondary_floor: float
    secondary_breakdown_thresholds: Tuple[float, float]
    ratio_max_steps: Tuple[ScoreStep, ...]
    ratio_max_floor: float
    reference_ratios: Dict[str, float] = field(default_factory=dict)
    recommendations: Dict[BubbleLevel, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.key:
            raise ValueError("Market key cannot be empty")
        if self.historical_peak_ratio <= 0:
            raise ValueError("Historical peak ratio must be positive")
