"""Ephemeral assessment records produced during one evaluation.

None of these are stored as entities of their own. They are recomputed on
every evaluation and, where useful for auditing, cached into Figure.metadata.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ManipulationAssessment(BaseModel):
    """Outcome of anomaly detection for one evaluation.

    confidence_score is the capped sum of rule contributions;
    is_manipulated is strictly confidence_score > 50.
    """

    is_manipulated: bool = False
    confidence_score: float = Field(0.0, ge=0.0, le=100.0)
    flags: list[str] = Field(default_factory=list)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "is_manipulated": True,
                    "confidence_score": 65,
                    "flags": [
                        "Suspicious follower growth of 42.00% on twitter",
                        "Abnormal engagement spike of 410.00% on twitter",
                        "Bot-like engagement patterns detected on instagram",
                    ],
                }
            ]
        },
    }


class InterestPoint(BaseModel):
    """One period of a search-interest time series."""

    period: str
    value: float = Field(..., ge=0.0)

    model_config = {"frozen": True}


class NewsArticle(BaseModel):
    """Article from a news feed, as consumed by trend analysis."""

    title: str = ""
    description: Optional[str] = None
    published_at: Optional[datetime] = None
    source: str = "unknown"
    url: str = ""
    relevance_score: Optional[float] = None

    model_config = {"frozen": True}


class RecentEvent(BaseModel):
    """Significant recent event surfaced from the news feed."""

    title: str
    source: str
    url: str
    published_at: Optional[datetime] = None
    summary: Optional[str] = None

    model_config = {"frozen": True}


class TrendSignal(BaseModel):
    """Short-term interest/sentiment signal blended into scores."""

    trending_score: float = Field(50.0, ge=0.0, le=100.0)
    sentiment_score: float = Field(50.0, ge=0.0, le=100.0)
    contextual_relevance: float = Field(0.0, ge=0.0, le=100.0)
    recent_events: list[RecentEvent] = Field(default_factory=list, max_length=5)
    degraded_signals: list[str] = Field(
        default_factory=list,
        description="Signal sources that failed and fell back to neutral values",
    )

    model_config = {"frozen": True}

    @classmethod
    def neutral(cls) -> "TrendSignal":
        return cls(trending_score=50.0, sentiment_score=50.0)


class LongevityAssessment(BaseModel):
    """Stability-aware longevity breakdown, all components 0-100."""

    career_longevity: float = Field(..., ge=0.0, le=100.0)
    relevance_sustainability: float = Field(..., ge=0.0, le=100.0)
    consistency_score: float = Field(..., ge=0.0, le=100.0)
    longevity_score: float = Field(..., ge=0.0, le=100.0)

    model_config = {"frozen": True}
