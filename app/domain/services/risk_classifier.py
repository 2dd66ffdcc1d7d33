"""
RISK CLASSIFIER
Map a numeric signal onto an ordered band table

Bands are listed most severe first. The first band whose
lower bound is strictly exceeded wins; a band with
``lower_bound=None`` is the catch-all and must come last.
"""

import math
from typing import Sequence, Tuple

from app.domain.errors import MetricValidationError
from app.domain.models import RiskAssessment, RiskBand, SeverityTag


BandTable = Tuple[RiskBand, ...]


# -------------------------------------------------------------------
# Fixed band tables
# -------------------------------------------------------------------

Z_SCORE_BANDS: BandTable = (
    RiskBand(2.0, "High Risk", SeverityTag.RED,
             "Ratio is well above its historical mean; equities may be in a bubble"),
    RiskBand(1.0, "Medium Risk", SeverityTag.YELLOW,
             "Ratio is above its historical mean; worth watching"),
    RiskBand(-1.0, "Relatively Safe", SeverityTag.GREEN,
             "Ratio is within its normal historical range"),
    RiskBand(None, "Undervalued", SeverityTag.BLUE,
             "Ratio is below its historical mean; possibly a buying opportunity"),
)

VOLATILITY_BANDS: BandTable = (
    RiskBand(30.0, "High Volatility", SeverityTag.RED,
             "Market volatility is high; risk is rising"),
    RiskBand(20.0, "Medium Volatility", SeverityTag.YELLOW,
             "Market volatility is elevated; needs attention"),
    RiskBand(10.0, "Normal", SeverityTag.GREEN,
             "Market volatility is within its normal range"),
    RiskBand(None, "Low Volatility", SeverityTag.BLUE,
             "Market volatility is low and relatively calm"),
)


def spread_band_table(std: float) -> BandTable:
    """Spread-trend bands scaled by the spread's own standard deviation"""
    return (
        RiskBand(0.5 * std, "Spread Widening", SeverityTag.RED,
                 "Spread is widening quickly; market risk is rising"),
        RiskBand(0.2 * std, "Spread Rising", SeverityTag.YELLOW,
                 "Spread is rising moderately; stay alert"),
        RiskBand(-0.2 * std, "Normal", SeverityTag.GREEN,
                 "Spread is within its normal range"),
        RiskBand(None, "Spread Narrowing", SeverityTag.BLUE,
                 "Spread is narrowing; risk appetite is rising"),
    )


def validate_band_table(bands: Sequence[RiskBand]) -> None:
    """
    Check that a table is strictly descending and ends with the catch-all.
    """
    if not bands:
        raise ValueError("Band table cannot be empty")
    if bands[-1].lower_bound is not None:
        raise ValueError("Band table must end with a catch-all band")

    bounds = [band.lower_bound for band in bands[:-1]]
    if any(bound is None for bound in bounds):
        raise ValueError("Only the last band may be a catch-all")
    for upper, lower in zip(bounds, bounds[1:]):
        if not upper > lower:
            raise ValueError("Band thresholds must be strictly descending")


def classify(signal: float, bands: Sequence[RiskBand]) -> RiskAssessment:
    """
    Classify a signal against a band table.

    Args:
        signal: z-score, volatility percentage or spread trend
        bands: table ordered most severe first, catch-all last

    Returns:
        RiskAssessment with severity rank (catch-all = 0)
    """
    if signal is None or not math.isfinite(signal):
        raise MetricValidationError("Risk signal must be a finite number", parameter="signal")
    validate_band_table(bands)

    last = len(bands) - 1
    for index, band in enumerate(bands):
        if band.lower_bound is None or signal > band.lower_bound:
            return RiskAssessment(
                level=band.level,
                color_tag=band.color_tag,
                description=band.description,
                severity=last - index,
            )

    # validate_band_table guarantees a catch-all
    raise AssertionError("unreachable")
