"""Figure schema: the aggregate root rated by the engine.

Design principle: every record is an immutable value. Pipeline stages never
mutate a Figure in place; they return a new one via model_copy(update=...).
This keeps the pre-evaluation snapshot used for manipulation comparison
isolated from everything that happens afterwards.

Hierarchy:
    Figure
    ├── platforms: list[PlatformPresence]   (unique by platform kind)
    │   └── metrics: PlatformMetrics
    └── score: Score
        └── history: list[ScoreSnapshot]    (append-only, insertion-ordered)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from rating_system.utils.stats import clamp_score


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlatformKind(str, Enum):
    """Services a figure may have a presence on."""

    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    GITHUB = "github"
    HACKER_NEWS = "hacker_news"
    SPOTIFY = "spotify"
    BILLBOARD = "billboard"
    LETTERBOXD = "letterboxd"
    IMDB = "imdb"
    TWITCH = "twitch"
    KICK = "kick"
    REDDIT = "reddit"
    GOOGLE_TRENDS = "google_trends"
    GOOGLE_NEWS = "google_news"


class PlatformMetrics(BaseModel):
    """Normalized metrics for one platform.

    None means "no signal": the platform is excluded from the corresponding
    average. Zero is a real measurement and is kept.
    """

    followers: Optional[float] = Field(None, ge=0)
    engagement: Optional[float] = Field(None, ge=0)
    content_quality: Optional[float] = Field(None, ge=0)
    consistency: Optional[float] = Field(None, ge=0)
    longevity_days: Optional[float] = Field(None, ge=0, description="Account age in days")
    influence_score: Optional[float] = Field(None, ge=0)
    raw_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider payload, only read by bot-pattern checks",
    )

    model_config = {"frozen": True}

    def has_signal(self) -> bool:
        """True if any numeric field is present."""
        return any(
            value is not None
            for value in (
                self.followers,
                self.engagement,
                self.content_quality,
                self.consistency,
                self.longevity_days,
                self.influence_score,
            )
        )


class PlatformPresence(BaseModel):
    """A figure's account on one supported service."""

    platform: PlatformKind
    handle: str = Field(..., min_length=1)
    url: str = ""
    verified: bool = False
    metrics: PlatformMetrics = Field(default_factory=PlatformMetrics)
    last_updated: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}


class ScoreSnapshot(BaseModel):
    """One immutable historical record of all four score dimensions."""

    date: datetime = Field(default_factory=_utcnow)
    credibility: float = Field(..., ge=0.0, le=100.0)
    longevity: float = Field(..., ge=0.0, le=100.0)
    engagement: float = Field(..., ge=0.0, le=100.0)
    overall: float = Field(..., ge=0.0, le=100.0)

    model_config = {"frozen": True}


class Score(BaseModel):
    """Current score dimensions plus the append-only snapshot history."""

    credibility: float = Field(50.0, ge=0.0, le=100.0)
    longevity: float = Field(50.0, ge=0.0, le=100.0)
    engagement: float = Field(50.0, ge=0.0, le=100.0)
    overall: float = Field(50.0, ge=0.0, le=100.0)
    last_calculated: datetime = Field(default_factory=_utcnow)
    history: list[ScoreSnapshot] = Field(default_factory=list)

    model_config = {"frozen": True}

    def with_dimensions(
        self,
        credibility: Optional[float] = None,
        longevity: Optional[float] = None,
        engagement: Optional[float] = None,
        overall: Optional[float] = None,
    ) -> "Score":
        """Return a copy with the given dimensions replaced and every dimension clamped."""
        return self.model_copy(
            update={
                "credibility": clamp_score(self.credibility if credibility is None else credibility),
                "longevity": clamp_score(self.longevity if longevity is None else longevity),
                "engagement": clamp_score(self.engagement if engagement is None else engagement),
                "overall": clamp_score(self.overall if overall is None else overall),
            }
        )

    def latest_snapshot(self) -> Optional[ScoreSnapshot]:
        return self.history[-1] if self.history else None


class Figure(BaseModel):
    """A public figure being rated.

    Usage:
        figure = Figure(
            name="Ada Lovelace",
            professions={"mathematician"},
            platforms=[PlatformPresence(platform=PlatformKind.GITHUB, handle="ada")],
        )
    """

    id: str = Field(default_factory=lambda: f"fig_{uuid.uuid4().hex[:16]}")
    name: str = Field(..., min_length=1)
    professions: set[str] = Field(default_factory=set)
    platforms: list[PlatformPresence] = Field(default_factory=list)
    score: Score = Field(default_factory=Score)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Advisory audit trail (manipulation flags, trend cache); never read for scoring",
    )

    @model_validator(mode="after")
    def _unique_platform_kinds(self) -> "Figure":
        kinds = [p.platform for p in self.platforms]
        duplicates = sorted({k.value for k in kinds if kinds.count(k) > 1})
        if duplicates:
            raise ValueError(f"Duplicate platform presence for: {', '.join(duplicates)}")
        return self

    def get_platform(self, kind: PlatformKind) -> Optional[PlatformPresence]:
        for presence in self.platforms:
            if presence.platform == kind:
                return presence
        return None

    def with_score(self, score: Score) -> "Figure":
        return self.model_copy(update={"score": score})

    def with_metadata(self, **entries: Any) -> "Figure":
        """Return a copy with metadata entries merged in."""
        return self.model_copy(update={"metadata": {**self.metadata, **entries}})

    def to_projection(self) -> dict[str, Any]:
        """
        Flattened view for the caller/API layer.

        Returns:
            JSON-compatible dict with scalar scores, platform list,
            score history and the advisory metadata.
        """
        data = self.model_dump(mode="json")
        score = data.pop("score")
        data["professions"] = sorted(self.professions)
        data.update(
            {
                "credibility": score["credibility"],
                "longevity": score["longevity"],
                "engagement": score["engagement"],
                "overall": score["overall"],
                "last_calculated": score["last_calculated"],
                "history": score["history"],
            }
        )
        for platform in data["platforms"]:
            platform["metrics"].pop("raw_data", None)
        return data

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "fig_3f2a9c1b7d4e5a60",
                    "name": "Ada Lovelace",
                    "professions": ["mathematician", "writer"],
                    "platforms": [
                        {
                            "platform": "github",
                            "handle": "ada",
                            "url": "https://github.com/ada",
                            "verified": False,
                        }
                    ],
                }
            ]
        },
    }
