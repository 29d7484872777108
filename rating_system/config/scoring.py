"""Scoring configuration for the influence rating engine.

Weights, thresholds and keyword sets shared by the scoring components.

Dimension weights:
- Credibility: verification 0.3, content quality 0.4, consistency 0.3
- Engagement: engagement rate 0.6, influence 0.4
- Overall: credibility 0.5, longevity 0.3, engagement 0.2
- Refined longevity: career 0.4, sustainability 0.4, consistency 0.2

Manipulation rule points (summed, capped at 100, manipulated when > 50):
- Follower growth spike (first platform > 20%): +25
- Engagement spike (> 300% vs previous) per platform: +15
- Engagement/follower ratio (> 0.5) per platform: +15
- Bot-pattern flag: +20
- Cross-platform engagement inconsistency: +10
"""

from typing import Dict, FrozenSet

SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0

# Ten years of account age saturates the longevity scale
LONGEVITY_SATURATION_DAYS: float = 3650.0

# Placeholder for providers without a reliable quality/consistency signal
NEUTRAL_PLACEHOLDER: float = 50.0

CREDIBILITY_WEIGHTS: Dict[str, float] = {
    "verification": 0.3,
    "content_quality": 0.4,
    "consistency": 0.3,
}

ENGAGEMENT_WEIGHTS: Dict[str, float] = {
    "engagement": 0.6,
    "influence": 0.4,
}

OVERALL_WEIGHTS: Dict[str, float] = {
    "credibility": 0.5,
    "longevity": 0.3,
    "engagement": 0.2,
}

LONGEVITY_WEIGHTS: Dict[str, float] = {
    "career": 0.4,
    "sustainability": 0.4,
    "consistency": 0.2,
}

# Standard deviation of overall scores at which sustainability bottoms out
MAX_EXPECTED_STDEV: float = 25.0

# Manipulation detection
FOLLOWER_GROWTH_THRESHOLD: float = 20.0  # percent
ENGAGEMENT_SPIKE_THRESHOLD: float = 300.0  # percent
ENGAGEMENT_RATIO_THRESHOLD: float = 0.5
INCONSISTENCY_STDEV_MULTIPLIER: float = 2.0
MANIPULATION_THRESHOLD: float = 50.0

MANIPULATION_POINTS: Dict[str, int] = {
    "follower_growth": 25,
    "engagement_anomaly": 15,
    "bot_pattern": 20,
    "cross_platform": 10,
}

MANIPULATION_PENALTIES: Dict[str, float] = {
    "credibility": 0.5,
    "engagement": 0.7,
    "overall": 0.6,
}

# Bot-pattern heuristics over raw activity timestamps
REPETITIVE_MIN_EVENTS: int = 10
REPETITIVE_MAX_INTERVAL_CV: float = 0.05
ROUND_THE_CLOCK_MIN_EVENTS: int = 48
ROUND_THE_CLOCK_MIN_HOURS: int = 22

# Trend analysis
TREND_WINDOW: int = 3
TRENDING_DIVISOR: float = 200.0  # (score - 50) / 200 -> [-0.25, +0.25]
SENTIMENT_DIVISOR: float = 400.0  # (score - 50) / 400 -> [-0.125, +0.125]
RELEVANCE_DIVISOR: float = 500.0
MAX_RECENT_EVENTS: int = 5
ARTICLE_VOLUME_POINTS: float = 5.0
RELATED_QUERY_POINTS: float = 10.0

RELEVANCE_WEIGHTS: Dict[str, float] = {
    "news": 0.5,
    "interest": 0.3,
    "queries": 0.2,
}

POSITIVE_KEYWORDS: FrozenSet[str] = frozenset({
    "success", "achievement", "award", "positive", "breakthrough", "innovation",
})

NEGATIVE_KEYWORDS: FrozenSet[str] = frozenset({
    "controversy", "scandal", "criticism", "negative", "problem", "issue", "fail",
})

# Influence: log10 of audience size, 10^8 followers saturates
INFLUENCE_LOG_CEILING: float = 8.0
