"""Schema package for figures, scores and per-evaluation assessments.

All models are immutable pydantic values:
- Figure, PlatformPresence, PlatformMetrics: the rated aggregate
- Score, ScoreSnapshot: current dimensions and append-only history
- ManipulationAssessment, TrendSignal, LongevityAssessment: ephemeral
  per-evaluation results, cached into Figure.metadata for audit only

Usage:
    from rating_system.data_management.schemas import Figure, PlatformKind, PlatformPresence
    figure = Figure(
        name="Ada Lovelace",
        platforms=[PlatformPresence(platform=PlatformKind.GITHUB, handle="ada")],
    )
"""

from rating_system.data_management.schemas.figure_schema import (
    Figure,
    PlatformKind,
    PlatformMetrics,
    PlatformPresence,
    Score,
    ScoreSnapshot,
)

from rating_system.data_management.schemas.assessment_schema import (
    InterestPoint,
    LongevityAssessment,
    ManipulationAssessment,
    NewsArticle,
    RecentEvent,
    TrendSignal,
)

__all__ = [
    # Figure
    "Figure",
    "PlatformKind",
    "PlatformMetrics",
    "PlatformPresence",
    "Score",
    "ScoreSnapshot",
    # Assessments
    "InterestPoint",
    "LongevityAssessment",
    "ManipulationAssessment",
    "NewsArticle",
    "RecentEvent",
    "TrendSignal",
]
