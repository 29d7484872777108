"""External signal sources consumed by the rating engine."""

from rating_system.sources.trends import (
    InterestProvider,
    NewsAPITrendSource,
    StaticTrendSource,
    TrendSignalSource,
)

__all__ = [
    "InterestProvider",
    "NewsAPITrendSource",
    "StaticTrendSource",
    "TrendSignalSource",
]
