"""Base score calculation from a figure's current platform metrics.

Formulas (P = platforms whose metrics carry at least one numeric signal):
- credibility = 0.3 * verified_ratio * 100 + 0.4 * avg(content_quality) + 0.3 * avg(consistency)
- longevity   = min(100, avg(longevity_days) / 3650 * 100)
- engagement  = 0.6 * avg(engagement) + 0.4 * avg(influence_score)
- overall     = 0.5 * credibility + 0.3 * longevity + 0.2 * engagement

Averages only cover platforms that report the field; an unreported field
averages to 0. Every call appends exactly one ScoreSnapshot to history.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from loguru import logger

from rating_system.config.scoring import (
    CREDIBILITY_WEIGHTS,
    ENGAGEMENT_WEIGHTS,
    LONGEVITY_SATURATION_DAYS,
)
from rating_system.data_management.schemas import Figure, PlatformPresence, Score, ScoreSnapshot
from rating_system.utils.stats import clamp_score, compute_overall, mean, present


class ScoreCalculator:
    """
    Computes credibility, longevity, engagement and overall from platform metrics.

    Usage:
        calculator = ScoreCalculator()
        score = calculator.calculate_scores(figure)
        figure = figure.with_score(score)
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger.bind(component="ScoreCalculator")

    def calculate_scores(self, figure: Figure) -> Score:
        """
        Calculate base scores and append one history snapshot.

        Args:
            figure: Figure with freshly normalized platform metrics

        Returns:
            New Score with the four dimensions (clamped to 0-100) and the
            previous history plus one snapshot
        """
        platforms = self.usable_platforms(figure)
        now = self.clock()

        credibility = clamp_score(self.calculate_credibility(platforms))
        longevity = clamp_score(self.calculate_longevity(platforms))
        engagement = clamp_score(self.calculate_engagement(platforms))
        overall = compute_overall(credibility, longevity, engagement)

        snapshot = ScoreSnapshot(
            date=now,
            credibility=credibility,
            longevity=longevity,
            engagement=engagement,
            overall=overall,
        )

        self.logger.debug(
            f"Base scores for {figure.id}: overall={overall:.2f}",
            usable_platforms=len(platforms),
            credibility=round(credibility, 2),
            longevity=round(longevity, 2),
            engagement=round(engagement, 2),
        )

        return Score(
            credibility=credibility,
            longevity=longevity,
            engagement=engagement,
            overall=overall,
            last_calculated=now,
            history=[*figure.score.history, snapshot],
        )

    @staticmethod
    def usable_platforms(figure: Figure) -> list[PlatformPresence]:
        return [p for p in figure.platforms if p.metrics.has_signal()]

    def calculate_credibility(self, platforms: list[PlatformPresence]) -> float:
        verification_ratio = self.verification_ratio(platforms)
        content_quality = mean(present(p.metrics.content_quality for p in platforms))
        consistency = mean(present(p.metrics.consistency for p in platforms))

        return (
            CREDIBILITY_WEIGHTS["verification"] * verification_ratio * 100
            + CREDIBILITY_WEIGHTS["content_quality"] * content_quality
            + CREDIBILITY_WEIGHTS["consistency"] * consistency
        )

    def calculate_longevity(self, platforms: list[PlatformPresence]) -> float:
        avg_days = mean(present(p.metrics.longevity_days for p in platforms))
        return min(100.0, avg_days / LONGEVITY_SATURATION_DAYS * 100)

    def calculate_engagement(self, platforms: list[PlatformPresence]) -> float:
        avg_engagement = mean(present(p.metrics.engagement for p in platforms))
        avg_influence = mean(present(p.metrics.influence_score for p in platforms))

        return (
            ENGAGEMENT_WEIGHTS["engagement"] * avg_engagement
            + ENGAGEMENT_WEIGHTS["influence"] * avg_influence
        )

    @staticmethod
    def verification_ratio(platforms: list[PlatformPresence]) -> float:
        if not platforms:
            return 0.0
        return sum(1 for p in platforms if p.verified) / len(platforms)


__all__ = ["ScoreCalculator"]
