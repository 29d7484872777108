"""Async HTTP clients for the platform APIs that feed the rating engine.

One client object covers every supported provider; credentials are injected
at construction (see Settings for the environment variable names) and never
read from the environment here.

Failures (transport errors, non-2xx responses, empty results) surface as
DataUnavailableError so the pipeline can keep the platform's stale metrics.
The client performs no retries.
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from rating_system.exceptions import DataUnavailableError


class PlatformAPIClient:
    """
    Async client for Twitter/X, Instagram, GitHub and YouTube account data.

    Usage:
        async with PlatformAPIClient(twitter_bearer_token="...") as client:
            raw = await client.fetch_twitter("nasa")

    Attributes:
        http_client: httpx AsyncClient for HTTP operations
        timeout: Request timeout in seconds
        request_count: Requests made (for monitoring)
    """

    TWITTER_URL = "https://api.twitter.com/2/users/by/username/{handle}"
    INSTAGRAM_URL = "https://graph.instagram.com/me"
    GITHUB_URL = "https://api.github.com/users/{handle}"
    YOUTUBE_URL = "https://www.googleapis.com/youtube/v3/channels"

    def __init__(
        self,
        twitter_bearer_token: Optional[str] = None,
        instagram_access_token: Optional[str] = None,
        github_token: Optional[str] = None,
        youtube_api_key: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize platform client.

        Args:
            twitter_bearer_token: Bearer token for the Twitter API v2
            instagram_access_token: Instagram Graph API token (token-owner account)
            github_token: Optional GitHub token; anonymous access is rate limited
            youtube_api_key: YouTube Data API key
            timeout: Request timeout in seconds
            http_client: Pre-built AsyncClient (tests inject a MockTransport client)
        """
        self.twitter_bearer_token = twitter_bearer_token
        self.instagram_access_token = instagram_access_token
        self.github_token = github_token
        self.youtube_api_key = youtube_api_key
        self.timeout = timeout

        self.http_client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None
        self.request_count = 0

        self.logger = logger.bind(component="PlatformAPIClient")

    async def __aenter__(self):
        """Async context manager entry - initialize HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": "influence-rating-engine/0.1"},
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - close HTTP client if we created it."""
        if self.http_client and self._owns_client:
            await self.http_client.aclose()
            self.http_client = None

    async def _get_json(
        self,
        platform: str,
        handle: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if self.http_client is None:
            await self.__aenter__()

        self.request_count += 1
        try:
            response = await self.http_client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise DataUnavailableError(
                f"{platform} returned HTTP {e.response.status_code} for {handle}",
                platform=platform,
                handle=handle,
                original_error=e,
                context={"status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise DataUnavailableError(
                f"{platform} request failed for {handle}",
                platform=platform,
                handle=handle,
                original_error=e,
            ) from e

    def _require_credential(self, platform: str, handle: str, credential: Optional[str]) -> str:
        if not credential:
            raise DataUnavailableError(
                f"No {platform} credential configured",
                platform=platform,
                handle=handle,
            )
        return credential

    async def fetch_twitter(self, handle: str) -> Dict[str, Any]:
        """Fetch a user with public metrics, creation date and verification flag."""
        token = self._require_credential("twitter", handle, self.twitter_bearer_token)
        return await self._get_json(
            "twitter",
            handle,
            self.TWITTER_URL.format(handle=handle),
            params={"user.fields": "public_metrics,created_at,verified,description"},
            headers={"Authorization": f"Bearer {token}"},
        )

    async def fetch_instagram(self, handle: str) -> Dict[str, Any]:
        """
        Fetch the token owner's account node with recent media interactions.

        The Graph API has no public lookup by handle, so the token only serves
        the presence whose handle matches the token owner's username.
        """
        token = self._require_credential("instagram", handle, self.instagram_access_token)
        data = await self._get_json(
            "instagram",
            handle,
            self.INSTAGRAM_URL,
            params={
                "fields": (
                    "id,username,account_type,media_count,followers_count,"
                    "media.limit(25){like_count,comments_count}"
                ),
                "access_token": token,
            },
        )

        owner = str(data.get("username") or "") if isinstance(data, dict) else ""
        if owner.lower() != handle.lstrip("@").lower():
            raise DataUnavailableError(
                f"instagram token belongs to '{owner}', not {handle}",
                platform="instagram",
                handle=handle,
                context={"token_owner": owner},
            )
        return data

    async def fetch_github(self, handle: str) -> Dict[str, Any]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"
        return await self._get_json(
            "github",
            handle,
            self.GITHUB_URL.format(handle=handle),
            headers=headers,
        )

    async def fetch_youtube(self, handle: str) -> Dict[str, Any]:
        """Fetch channel snippet and statistics; handle is the channel id."""
        key = self._require_credential("youtube", handle, self.youtube_api_key)
        data = await self._get_json(
            "youtube",
            handle,
            self.YOUTUBE_URL,
            params={"part": "snippet,statistics", "id": handle, "key": key},
        )
        items = data.get("items") or []
        if not items:
            raise DataUnavailableError(
                f"youtube channel {handle} not found",
                platform="youtube",
                handle=handle,
            )
        return items[0]


__all__ = ["PlatformAPIClient"]
