"""Tests for ScoreCalculator and the canonical overall formula."""

from datetime import datetime, timezone

import pytest

from rating_system.data_management.schemas import (
    Figure,
    PlatformKind,
    PlatformMetrics,
    PlatformPresence,
)
from rating_system.scoring import ScoreCalculator
from rating_system.utils.stats import compute_overall, population_stdev, present

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def presence(kind, verified=False, **metrics):
    return PlatformPresence(
        platform=kind,
        handle=f"{kind.value}-handle",
        verified=verified,
        metrics=PlatformMetrics(**metrics),
    )


@pytest.fixture
def calculator():
    return ScoreCalculator(clock=lambda: NOW)


class TestStats:
    """Tests for the shared numeric helpers."""

    def test_overall_weights(self):
        """0.5 * 80 + 0.3 * 60 + 0.2 * 40 == 66."""
        assert compute_overall(80, 60, 40) == pytest.approx(66.0)

    def test_overall_clamped(self):
        """Out-of-range inputs still produce an in-range overall."""
        assert compute_overall(300, 300, 300) == 100.0
        assert compute_overall(-10, -10, -10) == 0.0

    def test_present_keeps_zero(self):
        """Zero survives, None is dropped."""
        assert present([0.0, None, 5.0]) == [0.0, 5.0]

    def test_population_stdev(self):
        """Standard deviation divides by N."""
        assert population_stdev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
        assert population_stdev([]) == 0.0


class TestCalculateScores:
    """Tests for calculate_scores."""

    def test_single_platform(self, calculator):
        """All four dimensions follow the weighted formulas."""
        figure = Figure(
            name="Ada",
            platforms=[
                presence(
                    PlatformKind.TWITTER,
                    verified=True,
                    content_quality=60,
                    consistency=40,
                    longevity_days=1825,
                    engagement=50,
                    influence_score=25,
                )
            ],
        )

        score = calculator.calculate_scores(figure)

        # 0.3 * 100 + 0.4 * 60 + 0.3 * 40
        assert score.credibility == pytest.approx(66.0)
        assert score.longevity == pytest.approx(50.0)
        # 0.6 * 50 + 0.4 * 25
        assert score.engagement == pytest.approx(40.0)
        assert score.overall == pytest.approx(compute_overall(66, 50, 40))
        assert score.last_calculated == NOW

    def test_verification_ratio(self, calculator):
        """Verification counts over usable platforms only."""
        figure = Figure(
            name="Ada",
            platforms=[
                presence(PlatformKind.TWITTER, verified=True, followers=10),
                presence(PlatformKind.GITHUB, verified=False, followers=10),
                presence(PlatformKind.YOUTUBE, verified=True),  # no signal
            ],
        )
        score = calculator.calculate_scores(figure)
        assert score.credibility == pytest.approx(0.3 * 50)

    def test_missing_fields_excluded_from_average(self, calculator):
        """A platform without engagement does not pull the average down."""
        figure = Figure(
            name="Ada",
            platforms=[
                presence(PlatformKind.TWITTER, engagement=80, influence_score=0),
                presence(PlatformKind.GITHUB, influence_score=0),
            ],
        )
        score = calculator.calculate_scores(figure)
        assert score.engagement == pytest.approx(0.6 * 80)

    def test_longevity_saturates(self, calculator):
        """Average age beyond ten years caps at 100."""
        figure = Figure(
            name="Ada",
            platforms=[presence(PlatformKind.TWITTER, longevity_days=5000)],
        )
        assert calculator.calculate_scores(figure).longevity == 100.0

    def test_no_platforms(self, calculator):
        """A figure without usable platforms scores zero."""
        score = calculator.calculate_scores(Figure(name="Nobody"))
        assert (score.credibility, score.longevity, score.engagement, score.overall) == (0, 0, 0, 0)
        assert len(score.history) == 1

    def test_appends_exactly_one_snapshot(self, calculator):
        """History grows by one and the snapshot mirrors the new scores."""
        figure = Figure(name="Ada", platforms=[presence(PlatformKind.TWITTER, engagement=10)])

        first = calculator.calculate_scores(figure)
        second = calculator.calculate_scores(figure.with_score(first))

        assert len(first.history) == 1
        assert len(second.history) == 2
        assert second.history[-1].overall == second.overall
        assert second.history[-1].date == NOW

    def test_input_figure_untouched(self, calculator):
        """The input figure keeps its score."""
        figure = Figure(name="Ada", platforms=[presence(PlatformKind.TWITTER, engagement=10)])
        calculator.calculate_scores(figure)
        assert figure.score.history == []
        assert figure.score.overall == 50.0
