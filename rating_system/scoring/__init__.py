"""Scoring components for the influence rating pipeline.

Leaves first:
- MetricsNormalizer: raw provider payload -> PlatformMetrics
- ScoreCalculator: base credibility/longevity/engagement/overall + history snapshot
- AntiManipulationDetector: additive anomaly rules, optional score dampening
- TrendAnalyzer: interest/news signals blended into engagement and credibility
- LongevityAnalyzer: stability-aware longevity that supersedes the base value
"""

from rating_system.scoring.normalizer import MetricsNormalizer
from rating_system.scoring.score_calculator import ScoreCalculator
from rating_system.scoring.anti_manipulation import (
    AntiManipulationDetector,
    BotPatternCheck,
)
from rating_system.scoring.trend_analyzer import TrendAnalyzer
from rating_system.scoring.longevity_analyzer import LongevityAnalyzer

__all__ = [
    "MetricsNormalizer",
    "ScoreCalculator",
    "AntiManipulationDetector",
    "BotPatternCheck",
    "TrendAnalyzer",
    "LongevityAnalyzer",
]
