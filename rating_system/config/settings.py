"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Credentials are only read here and handed to clients at construction
    time; no engine component reads the environment on its own.

    Attributes:
        twitter_bearer_token: Twitter/X API v2 bearer token
        instagram_access_token: Instagram Graph API access token
        github_token: GitHub personal access token (optional, raises rate limit)
        youtube_api_key: YouTube Data API v3 key
        news_api_key: NewsAPI.org API key for the article feed
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        http_timeout_seconds: Timeout applied by the HTTP clients
        fetch_timeout_seconds: Upper bound on a single platform fetch inside an evaluation
        max_concurrent_fetches: Maximum platform fetches in flight per evaluation
        log_component_levels: Per-component log levels keyed by bound component name
        store_path: JSON file used by the file-backed figure store
    """

    twitter_bearer_token: str | None = Field(
        default=None,
        description="Twitter/X API v2 bearer token"
    )
    instagram_access_token: str | None = Field(
        default=None,
        description="Instagram Graph API access token"
    )
    github_token: str | None = Field(
        default=None,
        description="GitHub token (anonymous access works with a lower rate limit)"
    )
    youtube_api_key: str | None = Field(
        default=None,
        description="YouTube Data API v3 key"
    )
    news_api_key: str | None = Field(
        default=None,
        description="NewsAPI.org API key for news fetching"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for outbound HTTP requests"
    )
    fetch_timeout_seconds: float = Field(
        default=45.0,
        description="Per-platform fetch bound before the platform counts as unavailable"
    )
    max_concurrent_fetches: int = Field(
        default=8,
        description="Maximum concurrent platform fetches per evaluation"
    )
    log_component_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-component log levels, e.g. {\"PlatformAPIClient\": \"WARNING\"}"
    )
    store_path: str = Field(
        default="data/figures.json",
        description="Path of the JSON figure store"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance - import this in wiring code (CLI, service factories)
settings = Settings()
