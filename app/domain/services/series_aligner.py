"""
SERIES ALIGNER
Merge two daily price series into a common-date ratio series

RULES:
✅ Only dates present in both series
✅ Both prices strictly positive
✅ Pure function, linear in input size
"""

import math
from datetime import date
from typing import Dict, Iterable, List

from app.domain.errors import InsufficientDataError
from app.domain.models import PricePoint, RatioObservation, RatioSeries

MIN_ALIGNED_POINTS = 2


def _is_valid_price(price) -> bool:
    return price is not None and math.isfinite(price) and price > 0


def align_ratio_series(
    primary: Iterable[PricePoint],
    secondary: Iterable[PricePoint],
    min_points: int = MIN_ALIGNED_POINTS,
) -> RatioSeries:
    """
    Align two price series by calendar date and divide them.

    Args:
        primary: numerator series (e.g. S&P 500 closes)
        secondary: denominator series (e.g. gold futures closes)
        min_points: minimum aligned observations required

    Returns:
        Date-ascending tuple of RatioObservation

    Raises:
        InsufficientDataError: fewer than ``min_points`` dates survive
    """
    lookup: Dict[date, float] = {point.date: point.price for point in secondary}

    aligned: Dict[date, RatioObservation] = {}
    for point in primary:
        denominator = lookup.get(point.date)
        if not _is_valid_price(point.price) or not _is_valid_price(denominator):
            continue
        aligned[point.date] = RatioObservation(
            date=point.date,
            numerator_price=point.price,
            denominator_price=denominator,
            ratio=point.price / denominator,
        )

    series = tuple(sorted(aligned.values(), key=lambda obs: obs.date))
    if len(series) < min_points:
        raise InsufficientDataError(
            f"Need at least {min_points} aligned observations, got {len(series)}"
        )
    return series


def ratio_values(series: RatioSeries) -> List[float]:
    """Ratio column of a series, in series order"""
    return [obs.ratio for obs in series]
