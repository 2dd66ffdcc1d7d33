"""
VOLATILITY ESTIMATOR
Annualized return volatility and trailing-window trend

Formula:
    r_i = (p_i - p_{i-1}) / p_{i-1}
    vol = sqrt(var_pop(r) * periods_per_year) * 100
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from app.domain.errors import InsufficientDataError
from app.domain.models import VolatilityStats

TRADING_DAYS_PER_YEAR = 252
TRAILING_WINDOW = 30


def simple_returns(prices: Sequence[Optional[float]]) -> List[float]:
    """
    Period-over-period simple returns.

    A return is produced only when both the current and the prior price
    are present and the prior price is positive.
    """
    returns: List[float] = []
    for prev, curr in zip(prices, prices[1:]):
        if prev is None or curr is None:
            continue
        if not (math.isfinite(prev) and math.isfinite(curr)) or prev <= 0:
            continue
        returns.append((curr - prev) / prev)
    return returns


def annualized_volatility(
    returns: Sequence[float],
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
) -> float:
    """Population std of returns, annualized, in percent"""
    if len(returns) < 2:
        raise InsufficientDataError(
            f"Need at least 2 returns for volatility, got {len(returns)}"
        )
    variance = float(np.var(np.asarray(returns, dtype=float), ddof=0))
    return math.sqrt(variance * periods_per_year) * 100


def estimate_volatility(
    prices: Sequence[Optional[float]],
    periods_per_year: int = TRADING_DAYS_PER_YEAR,
    trailing_window: int = TRAILING_WINDOW,
) -> VolatilityStats:
    """
    Full-period and trailing-window annualized volatility.

    Args:
        prices: closing prices, oldest first (None for missing)
        periods_per_year: 252 for daily data
        trailing_window: number of most recent returns for the trailing figure

    Raises:
        InsufficientDataError: fewer than 2 valid prices, or fewer than
            2 returns inside the trailing window
    """
    valid = [p for p in prices if p is not None and math.isfinite(p) and p > 0]
    if len(valid) < 2:
        raise InsufficientDataError(
            f"Need at least 2 valid prices for volatility, got {len(valid)}"
        )

    returns = simple_returns(prices)
    full = annualized_volatility(returns, periods_per_year)

    recent = returns[-trailing_window:]
    if len(recent) < 2:
        raise InsufficientDataError(
            f"Need at least 2 returns in the trailing window, got {len(recent)}"
        )
    trailing = annualized_volatility(recent, periods_per_year)

    return VolatilityStats(
        annualized=full,
        trailing=trailing,
        trend=trailing - full,
        return_count=len(returns),
        trailing_window=len(recent),
    )
