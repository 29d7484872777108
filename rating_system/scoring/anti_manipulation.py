"""Anti-manipulation detection by comparing current and previous figure snapshots.

Rules are additive and evaluated independently; contributions are summed and
capped at 100 to form the confidence score:

1. Follower growth spike: first matched platform (same kind and handle) with
   growth > 20% adds one flag, +25. Scanning stops at that platform.
2. Engagement anomalies, over every platform:
   a. engagement growth > 300% vs previous: +15 per platform
   b. engagement / followers ratio > 0.5: +15 per platform
3. Bot patterns: pluggable raw-data checks, +20 per flag
4. Cross-platform inconsistency: stdev(engagement) > 2 * mean: +10

A figure is considered manipulated when confidence is strictly above 50.
"""

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from loguru import logger

from rating_system.config.scoring import (
    ENGAGEMENT_RATIO_THRESHOLD,
    ENGAGEMENT_SPIKE_THRESHOLD,
    FOLLOWER_GROWTH_THRESHOLD,
    INCONSISTENCY_STDEV_MULTIPLIER,
    MANIPULATION_PENALTIES,
    MANIPULATION_POINTS,
    MANIPULATION_THRESHOLD,
    REPETITIVE_MAX_INTERVAL_CV,
    REPETITIVE_MIN_EVENTS,
    ROUND_THE_CLOCK_MIN_EVENTS,
    ROUND_THE_CLOCK_MIN_HOURS,
)
from rating_system.data_management.schemas import (
    Figure,
    ManipulationAssessment,
    PlatformPresence,
)
from rating_system.platforms.rules import parse_timestamp
from rating_system.utils.stats import mean, population_stdev

BotPatternCheck = Callable[[PlatformPresence], Optional[str]]


def _activity_times(presence: PlatformPresence) -> List[datetime]:
    raw = presence.metrics.raw_data or {}
    stamps = raw.get("activity_timestamps") if isinstance(raw, dict) else None
    if not isinstance(stamps, (list, tuple)):
        return []
    parsed = [parse_timestamp(s) for s in stamps]
    return sorted(t for t in parsed if t is not None)


def detect_repetitive_timing(presence: PlatformPresence) -> Optional[str]:
    """
    Flag machine-regular activity: near-identical gaps between events.

    Triggers when at least REPETITIVE_MIN_EVENTS timestamps are present and
    the coefficient of variation of their gaps is below the threshold.
    """
    times = _activity_times(presence)
    if len(times) < REPETITIVE_MIN_EVENTS:
        return None

    gaps = [(b - a).total_seconds() for a, b in zip(times, times[1:])]
    avg_gap = mean(gaps)
    if avg_gap <= 0:
        return None

    if population_stdev(gaps) / avg_gap < REPETITIVE_MAX_INTERVAL_CV:
        return f"Bot-like engagement patterns detected on {presence.platform.value}"
    return None


def detect_round_the_clock_activity(presence: PlatformPresence) -> Optional[str]:
    """Flag accounts active across nearly every hour of the day."""
    times = _activity_times(presence)
    if len(times) < ROUND_THE_CLOCK_MIN_EVENTS:
        return None

    active_hours = {t.hour for t in times}
    if len(active_hours) >= ROUND_THE_CLOCK_MIN_HOURS:
        return f"Unusual activity timing patterns on {presence.platform.value}"
    return None


DEFAULT_BOT_CHECKS: Sequence[BotPatternCheck] = (
    detect_repetitive_timing,
    detect_round_the_clock_activity,
)


class AntiManipulationDetector:
    """
    Detects suspicious metric movements and dampens scores when confident.

    Usage:
        detector = AntiManipulationDetector()
        assessment = detector.detect(current_figure, previous_figure)
        figure = detector.adjust(current_figure, assessment)

    Attributes:
        bot_checks: Raw-data pattern checks, one flag each when triggered
    """

    def __init__(self, bot_checks: Optional[Sequence[BotPatternCheck]] = None):
        self.bot_checks = list(DEFAULT_BOT_CHECKS if bot_checks is None else bot_checks)
        self.logger = logger.bind(component="AntiManipulationDetector")

    def detect(
        self,
        current: Figure,
        previous: Optional[Figure] = None,
    ) -> ManipulationAssessment:
        """
        Run every rule and combine their contributions.

        Args:
            current: Figure with freshly fetched metrics
            previous: Figure as it was before this evaluation, if any

        Returns:
            ManipulationAssessment with capped confidence and all flags
        """
        flags: List[str] = []
        score = 0

        growth_flag = self.check_follower_growth(current, previous)
        if growth_flag:
            flags.append(growth_flag)
            score += MANIPULATION_POINTS["follower_growth"]

        engagement_flags = self.check_engagement_anomalies(current, previous)
        flags.extend(engagement_flags)
        score += len(engagement_flags) * MANIPULATION_POINTS["engagement_anomaly"]

        bot_flags = self.check_bot_patterns(current)
        flags.extend(bot_flags)
        score += len(bot_flags) * MANIPULATION_POINTS["bot_pattern"]

        inconsistency_flags = self.check_cross_platform_inconsistencies(current)
        flags.extend(inconsistency_flags)
        score += len(inconsistency_flags) * MANIPULATION_POINTS["cross_platform"]

        confidence = float(min(100, score))
        assessment = ManipulationAssessment(
            is_manipulated=confidence > MANIPULATION_THRESHOLD,
            confidence_score=confidence,
            flags=flags,
        )

        if flags:
            self.logger.info(
                f"Manipulation check for {current.id}: confidence={confidence:.0f}",
                is_manipulated=assessment.is_manipulated,
                flag_count=len(flags),
            )
        return assessment

    def adjust(self, figure: Figure, assessment: ManipulationAssessment) -> Figure:
        """
        Dampen credibility, engagement and overall for a manipulated figure.

        Longevity is left untouched. Flags and confidence go to metadata for
        audit; the canonical Score carries only the dampened values.
        """
        if not assessment.is_manipulated:
            return figure

        penalty = assessment.confidence_score / 100
        score = figure.score
        adjusted = score.with_dimensions(
            credibility=score.credibility * (1 - MANIPULATION_PENALTIES["credibility"] * penalty),
            engagement=score.engagement * (1 - MANIPULATION_PENALTIES["engagement"] * penalty),
            overall=score.overall * (1 - MANIPULATION_PENALTIES["overall"] * penalty),
        )

        self.logger.warning(
            f"Dampened scores for {figure.id}",
            penalty=round(penalty, 2),
            overall_before=round(score.overall, 2),
            overall_after=round(adjusted.overall, 2),
        )

        return figure.with_score(adjusted).with_metadata(
            manipulation_flags=list(assessment.flags),
            manipulation_score=assessment.confidence_score,
        )

    @staticmethod
    def _find_previous(
        presence: PlatformPresence,
        previous: Figure,
    ) -> Optional[PlatformPresence]:
        for candidate in previous.platforms:
            if candidate.platform == presence.platform and candidate.handle == presence.handle:
                return candidate
        return None

    def check_follower_growth(
        self,
        current: Figure,
        previous: Optional[Figure],
    ) -> Optional[str]:
        """Return a flag for the first platform whose followers grew past the threshold."""
        if previous is None:
            return None

        for presence in current.platforms:
            before = self._find_previous(presence, previous)
            if before is None or not presence.metrics.followers or not before.metrics.followers:
                continue

            growth = (presence.metrics.followers - before.metrics.followers) / before.metrics.followers * 100
            if growth > FOLLOWER_GROWTH_THRESHOLD:
                # Only the first offending platform is reported
                return f"Suspicious follower growth of {growth:.2f}% on {presence.platform.value}"

        return None

    def check_engagement_anomalies(
        self,
        current: Figure,
        previous: Optional[Figure],
    ) -> List[str]:
        flags: List[str] = []

        if previous is not None:
            for presence in current.platforms:
                before = self._find_previous(presence, previous)
                if before is None or not presence.metrics.engagement or not before.metrics.engagement:
                    continue

                growth = (presence.metrics.engagement - before.metrics.engagement) / before.metrics.engagement * 100
                if growth > ENGAGEMENT_SPIKE_THRESHOLD:
                    flags.append(
                        f"Abnormal engagement spike of {growth:.2f}% on {presence.platform.value}"
                    )

        for presence in current.platforms:
            if not presence.metrics.engagement or not presence.metrics.followers:
                continue

            ratio = presence.metrics.engagement / presence.metrics.followers
            if ratio > ENGAGEMENT_RATIO_THRESHOLD:
                flags.append(
                    f"Suspiciously high engagement-to-follower ratio ({ratio * 100:.2f}%) "
                    f"on {presence.platform.value}"
                )

        return flags

    def check_bot_patterns(self, current: Figure) -> List[str]:
        flags: List[str] = []
        for presence in current.platforms:
            if not presence.metrics.raw_data:
                continue
            for check in self.bot_checks:
                flag = check(presence)
                if flag:
                    flags.append(flag)
        return flags

    def check_cross_platform_inconsistencies(self, current: Figure) -> List[str]:
        engagements = [
            p.metrics.engagement for p in current.platforms if p.metrics.engagement is not None
        ]
        if len(engagements) < 2:
            return []

        avg = mean(engagements)
        if population_stdev(engagements) > avg * INCONSISTENCY_STDEV_MULTIPLIER:
            return ["Significant engagement inconsistencies across platforms"]
        return []


__all__ = [
    "AntiManipulationDetector",
    "BotPatternCheck",
    "DEFAULT_BOT_CHECKS",
    "detect_repetitive_timing",
    "detect_round_the_clock_activity",
]
