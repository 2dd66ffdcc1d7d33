from datetime import date

import pytest

from app.domain.errors import InsufficientDataError
from app.domain.models import PricePoint
from app.domain.services.series_aligner import align_ratio_series, ratio_values


def _points(*pairs):
    return [PricePoint(date=date.fromisoformat(d), price=p) for d, p in pairs]


def test_keeps_only_dates_present_in_both_series():
    primary = _points(("2024-01-01", 100), ("2024-01-02", 110), ("2024-01-03", 120))
    secondary = _points(("2024-01-02", 55), ("2024-01-03", 60), ("2024-01-04", 65))

    series = align_ratio_series(primary, secondary)

    assert [obs.date for obs in series] == [date(2024, 1, 2), date(2024, 1, 3)]


def test_drops_non_positive_and_missing_prices():
    primary = _points(
        ("2024-01-01", 100),
        ("2024-01-02", 0),
        ("2024-01-03", 120),
        ("2024-01-04", float("nan")),
        ("2024-01-05", 130),
    )
    secondary = _points(
        ("2024-01-01", 50),
        ("2024-01-02", 55),
        ("2024-01-03", -1),
        ("2024-01-04", 60),
        ("2024-01-05", 65),
    )

    series = align_ratio_series(primary, secondary)

    assert [obs.date.isoformat() for obs in series] == ["2024-01-01", "2024-01-05"]
    assert all(obs.numerator_price > 0 and obs.denominator_price > 0 for obs in series)


def test_ratio_is_exact_division():
    primary = _points(("2024-01-01", 4783.45), ("2024-01-02", 4742.83))
    secondary = _points(("2024-01-01", 2064.4), ("2024-01-02", 2073.9))

    series = align_ratio_series(primary, secondary)

    assert series[0].ratio == 4783.45 / 2064.4
    assert series[1].ratio == 4742.83 / 2073.9
    assert ratio_values(series) == [obs.ratio for obs in series]


def test_output_is_date_ascending_and_unique():
    primary = _points(("2024-01-03", 120), ("2024-01-01", 100), ("2024-01-03", 121))
    secondary = _points(("2024-01-01", 50), ("2024-01-03", 60))

    series = align_ratio_series(primary, secondary)

    assert [obs.date for obs in series] == [date(2024, 1, 1), date(2024, 1, 3)]
    assert series[-1].numerator_price == 121


def test_equal_ratio_example():
    primary = _points(("2020-01-01", 100), ("2020-01-02", 110))
    secondary = _points(("2020-01-01", 50), ("2020-01-02", 55))

    series = align_ratio_series(primary, secondary)

    assert ratio_values(series) == [2.0, 2.0]


def test_fewer_than_two_aligned_points_is_insufficient():
    primary = _points(("2024-01-01", 100), ("2024-01-02", 110))
    secondary = _points(("2024-01-02", 55), ("2024-01-05", 60))

    with pytest.raises(InsufficientDataError):
        align_ratio_series(primary, secondary)


def test_disjoint_series_is_insufficient():
    with pytest.raises(InsufficientDataError):
        align_ratio_series(_points(("2024-01-01", 1)), [])
