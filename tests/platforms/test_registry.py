"""Tests for the platform capability table and the metrics normalizer."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from rating_system.data_management.schemas import PlatformKind, PlatformMetrics
from rating_system.exceptions import DataUnavailableError, UnsupportedPlatformError
from rating_system.platforms import PlatformCapability, PlatformRegistry, build_default_registry
from rating_system.platforms.rules import normalize_github
from rating_system.scoring import MetricsNormalizer

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


class TestPlatformRegistry:
    """Tests for PlatformRegistry."""

    def test_default_registry_kinds(self):
        """The production table covers the four implemented providers."""
        registry = build_default_registry()
        assert set(registry.supported_kinds) == {
            PlatformKind.TWITTER,
            PlatformKind.INSTAGRAM,
            PlatformKind.GITHUB,
            PlatformKind.YOUTUBE,
        }
        assert not registry.supports(PlatformKind.SPOTIFY)

    def test_unknown_kind_raises(self):
        """Looking up an unregistered kind raises UnsupportedPlatformError."""
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            PlatformRegistry().capability(PlatformKind.TWITCH)
        assert exc_info.value.platform == "twitch"

    @pytest.mark.asyncio
    async def test_fetch_without_fetcher_raises(self):
        """A normalize-only capability cannot fetch."""
        registry = build_default_registry()
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            await registry.fetch_raw(PlatformKind.GITHUB, "octocat")
        assert exc_info.value.operation == "fetch"

    @pytest.mark.asyncio
    async def test_fetch_dispatches_to_client(self):
        """Fetchers from the client are wired per kind."""
        client = MagicMock()
        client.fetch_github = AsyncMock(return_value={"followers": 3})
        client.fetch_twitter = AsyncMock()
        client.fetch_instagram = AsyncMock()
        client.fetch_youtube = AsyncMock()

        registry = build_default_registry(client)
        raw = await registry.fetch_raw(PlatformKind.GITHUB, "octocat")

        assert raw == {"followers": 3}
        client.fetch_github.assert_awaited_once_with("octocat")
        client.fetch_twitter.assert_not_awaited()

    def test_register_new_kind(self):
        """One registration adds a platform."""
        registry = PlatformRegistry()
        capability = PlatformCapability(normalize=lambda raw, now: PlatformMetrics(followers=raw["n"]))
        registry.register(PlatformKind.SPOTIFY, capability)

        assert registry.supports(PlatformKind.SPOTIFY)
        assert registry.capability(PlatformKind.SPOTIFY) is capability


class TestMetricsNormalizer:
    """Tests for MetricsNormalizer."""

    def test_dispatches_with_clock(self):
        """The injected clock drives account age."""
        normalizer = MetricsNormalizer(clock=lambda: NOW)
        metrics = normalizer.normalize(
            PlatformKind.GITHUB,
            {"followers": 10, "created_at": "2024-05-01T00:00:00Z"},
        )
        assert metrics.longevity_days == 31.0

    def test_unsupported_kind(self):
        """Kinds without a rule raise UnsupportedPlatformError."""
        with pytest.raises(UnsupportedPlatformError):
            MetricsNormalizer().normalize(PlatformKind.KICK, {})

    def test_malformed_payload_wrapped(self):
        """Rule errors on odd payloads surface as DataUnavailableError."""
        registry = PlatformRegistry({
            PlatformKind.REDDIT: PlatformCapability(normalize=lambda raw, now: PlatformMetrics(followers=raw["karma"])),
        })
        with pytest.raises(DataUnavailableError) as exc_info:
            MetricsNormalizer(registry).normalize(PlatformKind.REDDIT, {})
        assert exc_info.value.platform == "reddit"
        assert isinstance(exc_info.value.original_error, KeyError)

    def test_invalid_values_wrapped(self):
        """Validation failures surface as DataUnavailableError."""
        registry = PlatformRegistry({
            PlatformKind.GITHUB: PlatformCapability(normalize=normalize_github),
        })
        with pytest.raises(DataUnavailableError):
            MetricsNormalizer(registry, clock=lambda: NOW).normalize(
                PlatformKind.GITHUB, {"followers": -5}
            )
