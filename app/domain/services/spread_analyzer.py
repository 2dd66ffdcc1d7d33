"""
SPREAD ANALYZER
Bond-spread proxy from a treasury yield and a corporate bond ETF

The spread is an estimate (treasury yield x factor) on dates where
both legs have data; the corporate ETF only gates which dates count.
"""

from typing import Iterable, Tuple

import numpy as np

from app.domain.errors import DegenerateInputError, InsufficientDataError
from app.domain.models import PricePoint, SpreadObservation, SpreadStats
from app.domain.services.series_aligner import align_ratio_series

DEFAULT_SPREAD_FACTOR = 0.3
TREND_WINDOW = 30


def build_spread_series(
    treasury: Iterable[PricePoint],
    corporate_bond: Iterable[PricePoint],
    factor: float = DEFAULT_SPREAD_FACTOR,
) -> Tuple[SpreadObservation, ...]:
    """Date-aligned spread estimates, oldest first"""
    aligned = align_ratio_series(treasury, corporate_bond)
    return tuple(
        SpreadObservation(
            date=obs.date,
            treasury_yield=obs.numerator_price,
            corporate_bond_price=obs.denominator_price,
            spread=obs.numerator_price * factor,
        )
        for obs in aligned
    )


def compute_spread_stats(
    series: Tuple[SpreadObservation, ...],
    trend_window: int = TREND_WINDOW,
) -> SpreadStats:
    """
    Spread statistics plus trailing trend.

    trend = last spread - first spread within the trailing window.

    Raises:
        InsufficientDataError: fewer than 2 observations
        DegenerateInputError: spread never moves
    """
    if len(series) < 2:
        raise InsufficientDataError(
            f"Need at least 2 spread observations, got {len(series)}"
        )

    ordered = sorted(series, key=lambda obs: obs.date)
    values = np.array([obs.spread for obs in ordered], dtype=float)
    std = float(values.std(ddof=0))
    if std == 0.0 or values.max() == values.min():
        raise DegenerateInputError("Spread is constant; trend bands are undefined")

    recent = ordered[-trend_window:]
    return SpreadStats(
        mean=float(values.mean()),
        std=std,
        max=float(values.max()),
        min=float(values.min()),
        trend=recent[-1].spread - recent[0].spread,
        latest=ordered[-1],
    )
