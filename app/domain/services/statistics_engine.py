"""
DESCRIPTIVE STATISTICS ENGINE
Mean / population std / extrema / z-score of a ratio series

RULES:
✅ Population variance (divisor N)
✅ Latest observation = chronologically last
❌ Never emits NaN or Infinity for a zero-dispersion series
"""

import numpy as np

from app.domain.errors import DegenerateInputError, InsufficientDataError
from app.domain.models import RatioSeries, Statistics


def compute_statistics(series: RatioSeries) -> Statistics:
    """
    Compute descriptive statistics of a ratio series.

    The series is sorted by date before the latest observation is taken,
    so callers may pass observations in any order.

    Raises:
        InsufficientDataError: empty series
        DegenerateInputError: all ratios identical (z-score undefined)
    """
    if not series:
        raise InsufficientDataError("Cannot compute statistics of an empty ratio series")

    ordered = sorted(series, key=lambda obs: obs.date)
    values = np.array([obs.ratio for obs in ordered], dtype=float)

    mean = float(values.mean())
    variance = float(values.var(ddof=0))
    std = float(np.sqrt(variance))
    maximum = float(values.max())
    minimum = float(values.min())

    if std == 0.0 or maximum == minimum:
        raise DegenerateInputError(
            "Standard deviation is zero; z-score is undefined for a constant series"
        )

    latest = ordered[-1]
    z_score = (latest.ratio - mean) / std

    return Statistics(
        mean=mean,
        variance=variance,
        std=std,
        max=maximum,
        min=minimum,
        z_score=z_score,
        latest=latest,
        count=len(ordered),
    )
