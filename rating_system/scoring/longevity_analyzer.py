"""Stability-aware longevity analysis.

- career_longevity: oldest reported account age, 3650 days saturates at 100
- relevance_sustainability: 100 - min(25, stdev(overall history)) / 25 * 100,
  50 with fewer than two snapshots
- consistency_score: mean reported platform consistency, 50 when none report
- longevity_score: 0.4 career + 0.4 sustainability + 0.2 consistency

The pipeline uses longevity_score to overwrite the age-only longevity from
the ScoreCalculator.
"""

from loguru import logger

from rating_system.config.scoring import (
    LONGEVITY_SATURATION_DAYS,
    LONGEVITY_WEIGHTS,
    MAX_EXPECTED_STDEV,
    NEUTRAL_PLACEHOLDER,
)
from rating_system.data_management.schemas import Figure, LongevityAssessment
from rating_system.utils.stats import clamp_score, mean, population_stdev, present


class LongevityAnalyzer:
    """
    Computes a refined longevity figure from account age, score volatility
    and cross-platform consistency.

    Usage:
        analyzer = LongevityAnalyzer()
        assessment = analyzer.analyze(figure)
        figure = analyzer.apply(figure, assessment)
    """

    def __init__(self):
        self.logger = logger.bind(component="LongevityAnalyzer")

    def analyze(self, figure: Figure) -> LongevityAssessment:
        career = self.calculate_career_longevity(figure)
        sustainability = self.calculate_relevance_sustainability(figure)
        consistency = self.calculate_consistency_score(figure)

        longevity_score = clamp_score(
            career * LONGEVITY_WEIGHTS["career"]
            + sustainability * LONGEVITY_WEIGHTS["sustainability"]
            + consistency * LONGEVITY_WEIGHTS["consistency"]
        )

        self.logger.debug(
            f"Longevity for {figure.id}: {longevity_score:.2f}",
            career=round(career, 2),
            sustainability=round(sustainability, 2),
            consistency=round(consistency, 2),
        )

        return LongevityAssessment(
            career_longevity=career,
            relevance_sustainability=sustainability,
            consistency_score=consistency,
            longevity_score=longevity_score,
        )

    def apply(self, figure: Figure, assessment: LongevityAssessment) -> Figure:
        """Overwrite the longevity dimension; overall is left for the final recompute."""
        score = figure.score.with_dimensions(longevity=assessment.longevity_score)
        return figure.with_score(score)

    @staticmethod
    def calculate_career_longevity(figure: Figure) -> float:
        ages = present(p.metrics.longevity_days for p in figure.platforms)
        if not ages:
            return 0.0
        return clamp_score(max(ages) / LONGEVITY_SATURATION_DAYS * 100)

    @staticmethod
    def calculate_relevance_sustainability(figure: Figure) -> float:
        history = figure.score.history
        if len(history) < 2:
            return NEUTRAL_PLACEHOLDER

        stdev = population_stdev([entry.overall for entry in history])
        return 100 - (min(MAX_EXPECTED_STDEV, stdev) / MAX_EXPECTED_STDEV * 100)

    @staticmethod
    def calculate_consistency_score(figure: Figure) -> float:
        scores = present(p.metrics.consistency for p in figure.platforms)
        if not scores:
            return NEUTRAL_PLACEHOLDER
        return clamp_score(mean(scores))


__all__ = ["LongevityAnalyzer"]
