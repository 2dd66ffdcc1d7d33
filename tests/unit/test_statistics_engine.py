import math
from datetime import date, timedelta

import pytest

from app.domain.errors import DegenerateInputError, InsufficientDataError
from app.domain.models import PricePoint, RatioObservation
from app.domain.services.series_aligner import align_ratio_series
from app.domain.services.statistics_engine import compute_statistics


def _series(ratios, start=date(2024, 1, 1)):
    return tuple(
        RatioObservation(
            date=start + timedelta(days=i),
            numerator_price=r,
            denominator_price=1.0,
            ratio=r,
        )
        for i, r in enumerate(ratios)
    )


def test_known_values():
    stats = compute_statistics(_series([1, 2, 3, 4, 5]))

    assert stats.mean == 3.0
    assert stats.variance == pytest.approx(2.0)
    assert stats.std == pytest.approx(math.sqrt(2))
    assert stats.max == 5.0
    assert stats.min == 1.0
    assert stats.z_score == pytest.approx(2 / math.sqrt(2))
    assert stats.latest.ratio == 5
    assert stats.count == 5


def test_population_variance_not_sample():
    stats = compute_statistics(_series([2, 4]))
    # population std of [2, 4] is 1; sample std would be sqrt(2)
    assert stats.std == pytest.approx(1.0)


def test_constant_series_is_degenerate():
    primary = [PricePoint(date(2020, 1, 1), 100), PricePoint(date(2020, 1, 2), 110)]
    secondary = [PricePoint(date(2020, 1, 1), 50), PricePoint(date(2020, 1, 2), 55)]
    series = align_ratio_series(primary, secondary)

    with pytest.raises(DegenerateInputError):
        compute_statistics(series)


def test_empty_series_is_insufficient():
    with pytest.raises(InsufficientDataError):
        compute_statistics(())


def test_idempotent():
    series = _series([1.2, 1.5, 1.1, 1.9, 1.4])
    first = compute_statistics(series)
    second = compute_statistics(series)

    assert (first.mean, first.std, first.z_score) == (second.mean, second.std, second.z_score)


def test_latest_equal_to_mean_gives_zero_z_score():
    stats = compute_statistics(_series([1, 3, 2]))
    assert stats.z_score == 0


def test_latest_above_mean_gives_positive_z_score():
    stats = compute_statistics(_series([1.0, 1.1, 0.9, 1.6]))
    assert stats.z_score > 0


def test_latest_is_chronologically_last_even_if_unsorted():
    series = _series([1, 2, 3, 4, 5])
    shuffled = (series[4], series[0], series[3], series[1], series[2])
    reordered = tuple(reversed(shuffled))

    stats = compute_statistics(reordered)

    assert stats.latest.date == series[-1].date
    assert stats.z_score == pytest.approx(2 / math.sqrt(2))
