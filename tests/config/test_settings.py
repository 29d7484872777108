"""Tests for settings and logging configuration."""

from loguru import logger

from rating_system.config.logging import configure_logging, get_logger
from rating_system.config.settings import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        """Credentials are optional and limits have defaults."""
        for name in ("TWITTER_BEARER_TOKEN", "NEWS_API_KEY", "MAX_CONCURRENT_FETCHES", "LOG_COMPONENT_LEVELS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.twitter_bearer_token is None
        assert settings.news_api_key is None
        assert settings.max_concurrent_fetches == 8
        assert settings.fetch_timeout_seconds == 45.0
        assert settings.log_component_levels == {}

    def test_environment_overrides(self, monkeypatch):
        """Environment variables are read case-insensitively."""
        monkeypatch.setenv("TWITTER_BEARER_TOKEN", "tok")
        monkeypatch.setenv("max_concurrent_fetches", "3")
        monkeypatch.setenv("LOG_COMPONENT_LEVELS", '{"PlatformAPIClient": "WARNING"}')

        settings = Settings(_env_file=None)

        assert settings.twitter_bearer_token == "tok"
        assert settings.max_concurrent_fetches == 3
        assert settings.log_component_levels == {"PlatformAPIClient": "WARNING"}


class TestLogging:
    """Tests for the loguru configuration."""

    def test_json_sink_serializes(self, capsys):
        """Non-TTY output is one JSON record per line with the bound component."""
        configure_logging(level="INFO", log_format="json")

        get_logger("test.component").info("hello")
        logger.complete()

        line = capsys.readouterr().out.strip().splitlines()[-1]
        assert '"component": "test.component"' in line
        assert '"message": "hello"' in line

        configure_logging()

    def test_component_levels(self, capsys):
        """A component's own level overrides the global one in both directions."""
        configure_logging(
            level="INFO",
            log_format="json",
            component_levels={"PlatformAPIClient": "WARNING", "RatingPipeline": "DEBUG"},
        )

        get_logger("PlatformAPIClient").info("client-info")
        get_logger("PlatformAPIClient").warning("client-warning")
        get_logger("RatingPipeline").debug("pipeline-debug")
        get_logger("cli").debug("cli-debug")
        logger.complete()

        out = capsys.readouterr().out
        assert "client-info" not in out
        assert "client-warning" in out
        assert "pipeline-debug" in out
        assert "cli-debug" not in out

        configure_logging()
