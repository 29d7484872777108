"""Per-platform extraction rules: raw provider payload -> PlatformMetrics.

Each rule is a pure function of (raw payload, evaluation time). Field names
differ per provider, the output shape does not:

- longevity_days: whole days since the provider's account-creation timestamp,
  omitted when the payload carries none
- engagement: total interactions over followers, scaled to a percentage and
  capped at 100; omitted when the provider exposes no interaction signal
- content_quality / consistency: NEUTRAL_PLACEHOLDER (50) where the provider
  has no reliable signal, so missing data does not drag averages either way
- influence_score: log10 of audience size, 10^8 followers -> 100

A payload missing the fields a rule depends on raises DataUnavailableError.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rating_system.config.scoring import INFLUENCE_LOG_CEILING, NEUTRAL_PLACEHOLDER
from rating_system.data_management.schemas import PlatformMetrics
from rating_system.exceptions import DataUnavailableError


# Epoch numbers above this are milliseconds (seconds would be past year 5000)
EPOCH_MILLIS_THRESHOLD = 1e11


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a provider timestamp into an aware UTC datetime.

    Handles ISO 8601 strings (with or without trailing 'Z'), epoch seconds or
    milliseconds and datetime objects. Returns None for empty, unparseable or
    out-of-range input.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > EPOCH_MILLIS_THRESHOLD else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def account_age_days(created_at: Any, now: datetime) -> Optional[float]:
    """Whole days elapsed since created_at, or None without a timestamp."""
    created = parse_timestamp(created_at)
    if created is None:
        return None
    return float(max(0, (now - created).days))


def engagement_rate(interactions: float, followers: float) -> float:
    """Interactions per follower as a percentage, capped at 100."""
    if not followers:
        return 0.0
    return min(100.0, interactions / followers * 100.0)


def influence_from_audience(followers: float) -> float:
    return min(100.0, math.log10(followers + 1) / INFLUENCE_LOG_CEILING * 100.0)


def _number(payload: Dict[str, Any], key: str, default: float = 0.0) -> float:
    """Read a numeric field that some providers send as a string."""
    value = payload.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _require(payload: Any, key: str, platform: str) -> Any:
    if not isinstance(payload, dict) or payload.get(key) is None:
        raise DataUnavailableError(
            f"{platform} payload missing '{key}'",
            platform=platform,
        )
    return payload[key]


def normalize_twitter(raw: Dict[str, Any], now: datetime) -> PlatformMetrics:
    """Twitter/X API v2 `users/by/username` response."""
    user = _require(raw, "data", "twitter")
    metrics = _require(user, "public_metrics", "twitter")

    followers = _number(metrics, "followers_count")
    interactions = (
        _number(metrics, "retweet_count")
        + _number(metrics, "reply_count")
        + _number(metrics, "like_count")
    )

    return PlatformMetrics(
        followers=followers,
        engagement=engagement_rate(interactions, followers),
        content_quality=NEUTRAL_PLACEHOLDER,
        consistency=NEUTRAL_PLACEHOLDER,
        longevity_days=account_age_days(user.get("created_at"), now),
        influence_score=influence_from_audience(followers),
        raw_data=raw,
    )


def _instagram_interactions(raw: Dict[str, Any]) -> Optional[float]:
    """Likes plus comments from account totals or recent media, None when unreported."""
    if "like_count" in raw or "comments_count" in raw:
        return _number(raw, "like_count") + _number(raw, "comments_count")

    media = raw.get("media")
    items = media.get("data") if isinstance(media, dict) else None
    if not isinstance(items, list):
        return None
    counted = [m for m in items if isinstance(m, dict) and ("like_count" in m or "comments_count" in m)]
    if not counted:
        return None
    return sum(_number(m, "like_count") + _number(m, "comments_count") for m in counted)


def normalize_instagram(raw: Dict[str, Any], now: datetime) -> PlatformMetrics:
    """Instagram Graph API user node (followers_count, media, like/comment totals)."""
    if not isinstance(raw, dict) or "followers_count" not in raw:
        raise DataUnavailableError("instagram payload missing 'followers_count'", platform="instagram")

    followers = _number(raw, "followers_count")
    interactions = _instagram_interactions(raw)

    return PlatformMetrics(
        followers=followers,
        engagement=engagement_rate(interactions, followers) if interactions is not None else None,
        content_quality=NEUTRAL_PLACEHOLDER,
        consistency=NEUTRAL_PLACEHOLDER,
        longevity_days=account_age_days(raw.get("created_at"), now),
        influence_score=influence_from_audience(followers),
        raw_data=raw,
    )


def normalize_github(raw: Dict[str, Any], now: datetime) -> PlatformMetrics:
    """GitHub `users/{handle}` response.

    GitHub exposes no per-account interaction counts, so engagement is left
    unset and the platform drops out of the engagement average.
    """
    if not isinstance(raw, dict) or "followers" not in raw:
        raise DataUnavailableError("github payload missing 'followers'", platform="github")

    followers = _number(raw, "followers")

    return PlatformMetrics(
        followers=followers,
        engagement=None,
        content_quality=NEUTRAL_PLACEHOLDER,
        consistency=NEUTRAL_PLACEHOLDER,
        longevity_days=account_age_days(raw.get("created_at"), now),
        influence_score=influence_from_audience(followers),
        raw_data=raw,
    )


def normalize_youtube(raw: Dict[str, Any], now: datetime) -> PlatformMetrics:
    """YouTube Data API `channels` item (snippet + statistics).

    Engagement is average views per video relative to subscribers.
    """
    statistics = _require(raw, "statistics", "youtube")
    snippet = raw.get("snippet") or {}

    subscribers = _number(statistics, "subscriberCount")
    views = _number(statistics, "viewCount")
    videos = _number(statistics, "videoCount")
    views_per_video = views / videos if videos else 0.0

    return PlatformMetrics(
        followers=subscribers,
        engagement=engagement_rate(views_per_video, subscribers),
        content_quality=NEUTRAL_PLACEHOLDER,
        consistency=NEUTRAL_PLACEHOLDER,
        longevity_days=account_age_days(snippet.get("publishedAt"), now),
        influence_score=influence_from_audience(subscribers),
        raw_data=raw,
    )


def extract_verified(raw: Any) -> Optional[bool]:
    """
    Provider-reported verification status, if the payload carries one.

    Twitter nests it under `data`; other providers put it at the top level.
    """
    if not isinstance(raw, dict):
        return None
    if isinstance(raw.get("verified"), bool):
        return raw["verified"]
    nested = raw.get("data")
    if isinstance(nested, dict) and isinstance(nested.get("verified"), bool):
        return nested["verified"]
    return None


__all__ = [
    "account_age_days",
    "engagement_rate",
    "extract_verified",
    "influence_from_audience",
    "normalize_github",
    "normalize_instagram",
    "normalize_twitter",
    "normalize_youtube",
    "parse_timestamp",
]
