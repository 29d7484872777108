"""Trend signal sources consumed by the TrendAnalyzer.

The analyzer needs three externally fetched signals per figure:
- interest_series(query): ordered search-interest points {period, value}
- related_queries(query): related search queries (only the count is used)
- news_articles(query): recent articles {title, description, publishedAt, source, url}

NewsAPITrendSource is the production adapter: articles come from the
NewsAPI.org `everything` endpoint, interest data from an optional
InterestProvider (search-interest services have no stable public API, so the
provider is pluggable). StaticTrendSource serves pre-fetched data.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import httpx
from loguru import logger

from rating_system.data_management.schemas import InterestPoint, NewsArticle
from rating_system.exceptions import SignalDegradedError
from rating_system.platforms.rules import parse_timestamp


@runtime_checkable
class TrendSignalSource(Protocol):
    """Port for pre-fetched trend signals."""

    async def interest_series(self, query: str) -> List[InterestPoint]: ...

    async def related_queries(self, query: str) -> List[str]: ...

    async def news_articles(self, query: str) -> List[NewsArticle]: ...


@runtime_checkable
class InterestProvider(Protocol):
    """Search-interest backend plugged into NewsAPITrendSource."""

    async def interest_series(self, query: str) -> List[InterestPoint]: ...

    async def related_queries(self, query: str) -> List[str]: ...


def article_from_newsapi(item: Dict[str, Any]) -> NewsArticle:
    """Map a NewsAPI article dict onto NewsArticle."""
    source = item.get("source") or {}
    source_name = source.get("name") if isinstance(source, dict) else str(source)
    return NewsArticle(
        title=item.get("title") or "",
        description=item.get("description"),
        published_at=parse_timestamp(item.get("publishedAt")),
        source=source_name or "unknown",
        url=item.get("url") or "",
        relevance_score=item.get("relevanceScore"),
    )


class NewsAPITrendSource:
    """
    Production trend source backed by NewsAPI.org.

    Usage:
        async with NewsAPITrendSource(api_key="...") as source:
            articles = await source.news_articles("Ada Lovelace")

    Attributes:
        api_key: NewsAPI key (injected, never read from the environment)
        interest_provider: Optional search-interest backend
        page_size: Articles requested per query
    """

    BASE_URL = "https://newsapi.org/v2/everything"

    def __init__(
        self,
        api_key: Optional[str] = None,
        interest_provider: Optional[InterestProvider] = None,
        page_size: int = 20,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.interest_provider = interest_provider
        self.page_size = page_size
        self.timeout = timeout
        self.http_client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None
        self.logger = logger.bind(component="NewsAPITrendSource")

        if not self.api_key:
            self.logger.debug("NewsAPITrendSource initialized without API key; news signal will degrade")

    async def __aenter__(self):
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.http_client and self._owns_client:
            await self.http_client.aclose()
            self.http_client = None

    async def news_articles(self, query: str) -> List[NewsArticle]:
        """
        Search recent English-language articles mentioning the query.

        Raises:
            SignalDegradedError: No API key, transport failure or API error status
        """
        if not self.api_key:
            raise SignalDegradedError("NewsAPI key not configured", signal="news")
        if self.http_client is None:
            await self.__aenter__()

        try:
            response = await self.http_client.get(
                self.BASE_URL,
                params={
                    "q": query,
                    "sortBy": "publishedAt",
                    "language": "en",
                    "pageSize": self.page_size,
                },
                headers={"X-Api-Key": self.api_key},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SignalDegradedError(
                f"NewsAPI request failed for '{query}'",
                signal="news",
                original_error=e,
            ) from e

        if payload.get("status") != "ok":
            raise SignalDegradedError(
                f"NewsAPI error: {payload.get('message', 'unknown')}",
                signal="news",
            )

        articles = [article_from_newsapi(item) for item in payload.get("articles", [])]
        self.logger.debug(f"Fetched {len(articles)} articles for '{query}'")
        return articles

    async def interest_series(self, query: str) -> List[InterestPoint]:
        if self.interest_provider is None:
            raise SignalDegradedError("No search-interest provider configured", signal="interest")
        try:
            return await self.interest_provider.interest_series(query)
        except SignalDegradedError:
            raise
        except Exception as e:
            raise SignalDegradedError(
                f"Interest provider failed for '{query}'",
                signal="interest",
                original_error=e,
            ) from e

    async def related_queries(self, query: str) -> List[str]:
        if self.interest_provider is None:
            raise SignalDegradedError("No search-interest provider configured", signal="related_queries")
        try:
            return await self.interest_provider.related_queries(query)
        except SignalDegradedError:
            raise
        except Exception as e:
            raise SignalDegradedError(
                f"Related-query lookup failed for '{query}'",
                signal="related_queries",
                original_error=e,
            ) from e


class StaticTrendSource:
    """Trend source serving already-fetched signals (offline runs, replays)."""

    def __init__(
        self,
        interest: Optional[Sequence[InterestPoint]] = None,
        related: Optional[Sequence[str]] = None,
        articles: Optional[Sequence[NewsArticle]] = None,
    ):
        self._interest = list(interest or [])
        self._related = list(related or [])
        self._articles = list(articles or [])

    async def interest_series(self, query: str) -> List[InterestPoint]:
        return list(self._interest)

    async def related_queries(self, query: str) -> List[str]:
        return list(self._related)

    async def news_articles(self, query: str) -> List[NewsArticle]:
        return list(self._articles)


__all__ = [
    "InterestProvider",
    "NewsAPITrendSource",
    "StaticTrendSource",
    "TrendSignalSource",
    "article_from_newsapi",
]
