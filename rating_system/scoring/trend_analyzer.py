"""Trend analysis: blend short-term interest and news sentiment into scores.

Signals (each degrades independently to a neutral value on source failure):
- trending_score = clamp(50 + mean(last 3 interest) - mean(3 before), 0, 100)
- sentiment_score = clamp(50 + (pos - neg) / (pos + neg) * 50, 0, 100), 50 without hits
- recent_events = top 5 articles by relevance score if any carry one, else by recency
- contextual_relevance = 0.5 * min(100, articles * 5)
                       + 0.3 * mean(last 3 interest values)
                       + 0.2 * min(100, related queries * 10)

Adjustment order matters and is fixed: engagement is scaled by the trending
factor, credibility by the sentiment factor, then overall is recomputed from
scratch with the canonical formula. The relevance bump to overall is recorded
for audit but discarded by that recompute.
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from loguru import logger

from rating_system.config.scoring import (
    ARTICLE_VOLUME_POINTS,
    MAX_RECENT_EVENTS,
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
    RELATED_QUERY_POINTS,
    RELEVANCE_DIVISOR,
    RELEVANCE_WEIGHTS,
    SENTIMENT_DIVISOR,
    TREND_WINDOW,
    TRENDING_DIVISOR,
)
from rating_system.data_management.schemas import (
    Figure,
    InterestPoint,
    NewsArticle,
    RecentEvent,
    TrendSignal,
)
from rating_system.sources.trends import TrendSignalSource
from rating_system.utils.stats import clamp, clamp_score, compute_overall, mean


NEUTRAL_SCORE = 50.0
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class TrendAnalyzer:
    """
    Computes a TrendSignal for a figure and applies it to the figure's scores.

    Usage:
        analyzer = TrendAnalyzer(source=NewsAPITrendSource(api_key=...))
        signal = await analyzer.analyze(figure)
        figure = analyzer.adjust(figure, signal)

    Attributes:
        source: TrendSignalSource; None means every signal is neutral
        clock: Time source for the cached analysis date
    """

    def __init__(
        self,
        source: Optional[TrendSignalSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger.bind(component="TrendAnalyzer")

    async def analyze(self, figure: Figure) -> TrendSignal:
        """
        Fetch the trend inputs for a figure and compute its signal.

        Source failures never propagate: the affected component falls back
        to its neutral value and is listed in TrendSignal.degraded_signals.
        """
        degraded: List[str] = []

        series = await self._fetch("interest", figure, degraded, "interest_series")
        related = await self._fetch("related_queries", figure, degraded, "related_queries")
        articles = await self._fetch("news", figure, degraded, "news_articles")

        signal = self.compute_signal(
            series=series,
            related=related,
            articles=articles,
            degraded=degraded,
        )

        self.logger.debug(
            f"Trend signal for {figure.id}",
            trending=signal.trending_score,
            sentiment=signal.sentiment_score,
            relevance=round(signal.contextual_relevance, 2),
            degraded=degraded,
        )
        return signal

    async def _fetch(
        self,
        signal_name: str,
        figure: Figure,
        degraded: List[str],
        method: str,
    ) -> Optional[List[Any]]:
        if self.source is None:
            degraded.append(signal_name)
            return None

        fetch: Callable[[str], Awaitable[List[Any]]] = getattr(self.source, method)
        try:
            return list(await fetch(figure.name))
        except Exception as e:
            self.logger.warning(
                "Trend signal '{}' unavailable for {}: {}",
                signal_name,
                figure.id,
                e,
                signal=signal_name,
            )
            degraded.append(signal_name)
            return None

    def compute_signal(
        self,
        series: Optional[Sequence[InterestPoint]],
        related: Optional[Sequence[str]],
        articles: Optional[Sequence[NewsArticle]],
        degraded: Optional[List[str]] = None,
    ) -> TrendSignal:
        """Pure signal computation from already-fetched inputs (None = unavailable)."""
        values = [p.value for p in series] if series is not None else None
        article_list = list(articles) if articles is not None else []

        return TrendSignal(
            trending_score=self.calculate_trending_score(values),
            sentiment_score=self.calculate_sentiment_score(article_list),
            contextual_relevance=self.calculate_contextual_relevance(
                article_count=len(article_list),
                interest_values=values,
                related_count=len(related) if related is not None else 0,
            ),
            recent_events=self.extract_recent_events(article_list),
            degraded_signals=list(degraded or []),
        )

    @staticmethod
    def calculate_trending_score(values: Optional[Sequence[float]]) -> float:
        """
        50 is neutral, above 50 means rising interest.

        Compares the mean of the last TREND_WINDOW periods with the mean of
        the TREND_WINDOW periods before them; neutral when either is empty.
        """
        if not values:
            return NEUTRAL_SCORE

        recent = list(values[-TREND_WINDOW:])
        older = list(values[-2 * TREND_WINDOW:-TREND_WINDOW])
        if not recent or not older:
            return NEUTRAL_SCORE

        return clamp_score(NEUTRAL_SCORE + mean(recent) - mean(older))

    @staticmethod
    def calculate_sentiment_score(articles: Sequence[NewsArticle]) -> float:
        positive = 0
        negative = 0

        for article in articles:
            text = f"{article.title} {article.description or ''}".lower()
            positive += sum(1 for keyword in POSITIVE_KEYWORDS if keyword in text)
            negative += sum(1 for keyword in NEGATIVE_KEYWORDS if keyword in text)

        total = positive + negative
        if total == 0:
            return NEUTRAL_SCORE

        return clamp_score(NEUTRAL_SCORE + (positive - negative) / total * 50)

    @staticmethod
    def extract_recent_events(articles: Sequence[NewsArticle]) -> List[RecentEvent]:
        if any(a.relevance_score is not None for a in articles):
            ordered = sorted(articles, key=lambda a: a.relevance_score or 0.0, reverse=True)
        else:
            ordered = sorted(articles, key=lambda a: a.published_at or _EPOCH, reverse=True)

        return [
            RecentEvent(
                title=article.title,
                source=article.source,
                url=article.url,
                published_at=article.published_at,
                summary=article.description,
            )
            for article in ordered[:MAX_RECENT_EVENTS]
        ]

    @staticmethod
    def calculate_contextual_relevance(
        article_count: int,
        interest_values: Optional[Sequence[float]],
        related_count: int,
    ) -> float:
        news_score = min(100.0, article_count * ARTICLE_VOLUME_POINTS)
        if interest_values:
            interest_score = mean(list(interest_values[-TREND_WINDOW:]))
        else:
            interest_score = NEUTRAL_SCORE
        query_score = min(100.0, related_count * RELATED_QUERY_POINTS)

        return clamp_score(
            news_score * RELEVANCE_WEIGHTS["news"]
            + interest_score * RELEVANCE_WEIGHTS["interest"]
            + query_score * RELEVANCE_WEIGHTS["queries"]
        )

    @staticmethod
    def trending_factor(trending_score: float) -> float:
        """Engagement multiplier in [0.75, 1.25]."""
        return clamp(1 + (trending_score - 50) / TRENDING_DIVISOR, 0.75, 1.25)

    @staticmethod
    def sentiment_factor(sentiment_score: float) -> float:
        """Credibility multiplier in [0.875, 1.125]."""
        return 1 + (sentiment_score - 50) / SENTIMENT_DIVISOR

    def adjust(self, figure: Figure, signal: TrendSignal) -> Figure:
        """
        Apply the trend signal to a figure's scores.

        Returns:
            New Figure with scaled engagement/credibility, canonical overall,
            every dimension clamped, and the signal cached at
            metadata["trend_analysis"]
        """
        score = figure.score
        engagement = clamp_score(score.engagement * self.trending_factor(signal.trending_score))
        credibility = clamp_score(score.credibility * self.sentiment_factor(signal.sentiment_score))

        relevance_boost = signal.contextual_relevance / RELEVANCE_DIVISOR
        boosted_overall = min(100.0, score.overall * (1 + relevance_boost))

        # Canonical recompute supersedes the relevance bump
        overall = compute_overall(credibility, score.longevity, engagement)

        adjusted = score.with_dimensions(
            credibility=credibility,
            engagement=engagement,
            overall=overall,
        )

        trend_analysis = {
            "date": self.clock().isoformat(),
            "trending_score": signal.trending_score,
            "sentiment_score": signal.sentiment_score,
            "contextual_relevance": signal.contextual_relevance,
            "relevance_boosted_overall": boosted_overall,
            "recent_events": [event.title for event in signal.recent_events],
            "degraded_signals": list(signal.degraded_signals),
        }
        return figure.with_score(adjusted).with_metadata(trend_analysis=trend_analysis)


__all__ = ["TrendAnalyzer"]
