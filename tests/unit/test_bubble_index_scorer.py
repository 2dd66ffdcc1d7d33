"""
Unit tests for BubbleIndexScorer
"""

import dataclasses
import math

import pytest

from app.domain.errors import MetricValidationError
from app.domain.models import BubbleLevel, MetricRequest, SeverityTag
from app.domain.services.bubble_index_scorer import (
    DEFAULT_RECOMMENDATIONS,
    BubbleIndexScorer,
    round_half_up,
    step_score,
    steps,
)


@pytest.fixture
def a_share_scorer(a_share_profile):
    return BubbleIndexScorer(a_share_profile)


@pytest.fixture
def us_scorer(us_profile):
    return BubbleIndexScorer(us_profile)


class TestStepScore:

    def test_strict_threshold(self):
        table = steps((10, 5), (5, 2))
        assert step_score(10.0, table) == 2
        assert step_score(10.01, table) == 5
        assert step_score(5.0, table, floor=1) == 1


class TestAShareScoring:
    """Volatility-driven market"""

    def test_overheated_market(self, a_share_scorer):
        request = MetricRequest(
            ratio=2.3, z_score=2.6, historical_mean=1.8, historical_max=2.5, secondary_signal=32
        )

        result = a_share_scorer.score(request)

        # 92% of max -> 15, 127.8% of mean -> 9
        assert result.components.ratio_score == 24
        assert result.components.deviation_score == 27
        assert result.components.secondary_signal_score == 16
        # 2.3 / 2.2 = 104.5% of the peak
        assert result.components.historical_score == 20
        assert result.total_score == 87
        assert result.level == BubbleLevel.EXTREME
        assert result.color_tag == SeverityTag.RED
        assert "A-share" in result.description

    def test_breakdown_lines(self, a_share_scorer):
        request = MetricRequest(
            ratio=2.3, z_score=2.6, historical_mean=1.8, historical_max=2.5, secondary_signal=32
        )

        breakdown = a_share_scorer.score(request).breakdown

        assert len(breakdown) == 4
        assert "(2.300)" in breakdown[0] and breakdown[0].endswith("24/30 points")
        assert "(2.60)" in breakdown[1] and breakdown[1].endswith("27/30 points")
        assert "(32.00%)" in breakdown[2] and breakdown[2].endswith("16/20 points")
        assert "2015 or 2007 bubble" in breakdown[3]

    def test_profile_recommendation_used(self, a_share_scorer, a_share_profile):
        request = MetricRequest(
            ratio=2.3, z_score=2.6, historical_mean=1.8, historical_max=2.5, secondary_signal=32
        )
        result = a_share_scorer.score(request)
        assert result.recommendation == a_share_profile.recommendations[BubbleLevel.EXTREME]

    def test_volatility_floor(self, a_share_scorer):
        assert a_share_scorer.secondary_signal_score(5.0) == 2
        assert a_share_scorer.secondary_signal_score(10.0) == 2
        assert a_share_scorer.secondary_signal_score(10.5) == 4


class TestUSScoring:
    """Spread-driven market"""

    def test_calm_market(self, us_scorer):
        request = MetricRequest(
            ratio=1.0, z_score=0.0, historical_mean=1.0, historical_max=2.0, secondary_signal=0.0
        )

        result = us_scorer.score(request)

        # 50% of max -> 5, 100% of mean -> 6
        assert result.components.ratio_score == 11
        assert result.components.deviation_score == 3
        assert result.components.secondary_signal_score == 2
        assert result.components.historical_score == 0
        assert result.total_score == 16
        assert result.level == BubbleLevel.UNDERVALUED
        assert result.color_tag == SeverityTag.TEAL
        assert result.recommendation == DEFAULT_RECOMMENDATIONS[BubbleLevel.UNDERVALUED]

    def test_spread_line_has_no_number(self, us_scorer):
        request = MetricRequest(
            ratio=1.0, z_score=0.0, historical_mean=1.0, historical_max=2.0, secondary_signal=0.6
        )
        line = us_scorer.score(request).breakdown[2]
        assert line.startswith("💰 Bond spread is widening fast")
        assert line.endswith("20/20 points")

    def test_deviation_at_minus_one_scores_nothing(self, us_scorer):
        assert us_scorer.deviation_score(-1.0) == 0
        assert us_scorer.deviation_score(-0.99) == 1


class TestTiers:

    @pytest.mark.parametrize(
        "total, level",
        [
            (100, BubbleLevel.EXTREME),
            (80, BubbleLevel.EXTREME),
            (79, BubbleLevel.HIGH),
            (65, BubbleLevel.HIGH),
            (64, BubbleLevel.MODERATE),
            (50, BubbleLevel.MODERATE),
            (35, BubbleLevel.MILD),
            (20, BubbleLevel.SAFE),
            (19, BubbleLevel.UNDERVALUED),
            (0, BubbleLevel.UNDERVALUED),
        ],
    )
    def test_inclusive_lower_bounds(self, total, level):
        assert BubbleIndexScorer._tier(total).level == level


class TestRounding:
    """Fractional component points round half up"""

    @pytest.mark.parametrize(
        "value, expected",
        [(64.4, 64), (64.5, 65), (86.5, 87), (0.5, 1), (100.0, 100)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_half_point_total_rounds_up(self, a_share_profile):
        profile = dataclasses.replace(a_share_profile, secondary_steps=steps((30, 15.5)))
        request = MetricRequest(
            ratio=2.3, z_score=2.6, historical_mean=1.8, historical_max=2.5, secondary_signal=32
        )

        result = BubbleIndexScorer(profile).score(request)

        assert result.components.secondary_signal_score == 15.5
        # 24 + 27 + 15.5 + 20
        assert result.total_score == 87

    def test_half_point_on_tier_boundary(self, a_share_profile):
        profile = dataclasses.replace(
            a_share_profile,
            ratio_max_steps=steps((90, 7.5)),
            secondary_steps=steps((30, 1)),
        )
        request = MetricRequest(
            ratio=2.3, z_score=2.6, historical_mean=1.8, historical_max=2.5, secondary_signal=32
        )

        result = BubbleIndexScorer(profile).score(request)

        # 7.5 + 9 + 27 + 1 + 20 = 64.5
        assert result.components.ratio_score == 16.5
        assert result.total_score == 65
        assert result.level == BubbleLevel.HIGH


class TestBoundedness:

    @pytest.mark.parametrize(
        "ratio, z_score, mean, maximum, signal",
        [
            (100.0, 50.0, 0.001, 0.001, 500.0),
            (0.0001, -50.0, 100.0, 1000.0, -500.0),
            (2.0, 1.2, 1.5, 2.0, 25.0),
        ],
    )
    def test_components_respect_maximums(self, a_share_scorer, ratio, z_score, mean, maximum, signal):
        request = MetricRequest(
            ratio=ratio,
            z_score=z_score,
            historical_mean=mean,
            historical_max=maximum,
            secondary_signal=signal,
        )
        result = a_share_scorer.score(request)

        c = result.components
        assert 0 <= c.ratio_score <= 30
        assert 0 <= c.deviation_score <= 30
        assert 0 <= c.secondary_signal_score <= 20
        assert 0 <= c.historical_score <= 20
        assert 0 <= result.total_score <= 100

    def test_deterministic(self, us_scorer):
        request = MetricRequest(
            ratio=1.7, z_score=1.1, historical_mean=1.4, historical_max=2.0, secondary_signal=0.15
        )
        assert us_scorer.score(request) == us_scorer.score(request)


class TestValidation:

    def test_missing_parameter_named(self, us_scorer):
        request = MetricRequest(ratio=1.0, z_score=0.5, historical_mean=1.0, historical_max=2.0)

        with pytest.raises(MetricValidationError) as exc:
            us_scorer.score(request)

        assert exc.value.parameter == "secondary_signal"
        assert "secondary_signal" in str(exc.value)

    def test_non_finite_parameter(self, us_scorer):
        request = MetricRequest(
            ratio=1.0, z_score=math.nan, historical_mean=1.0, historical_max=2.0, secondary_signal=0
        )
        with pytest.raises(MetricValidationError) as exc:
            us_scorer.score(request)
        assert exc.value.parameter == "z_score"

    @pytest.mark.parametrize("field", ["ratio", "historical_mean", "historical_max"])
    def test_non_positive_rejected(self, us_scorer, field):
        values = dict(
            ratio=1.0, z_score=0.5, historical_mean=1.0, historical_max=2.0, secondary_signal=0.1
        )
        values[field] = 0.0

        with pytest.raises(MetricValidationError) as exc:
            us_scorer.score(MetricRequest(**values))

        assert exc.value.parameter == field
