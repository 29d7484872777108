"""Metrics normalization: raw provider payload -> PlatformMetrics.

Stateless apart from the clock used for account-age computation. Dispatch
goes through the PlatformRegistry capability table, so the normalizer and the
fetch path can never disagree about which platforms are supported.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from loguru import logger

from rating_system.data_management.schemas import PlatformKind, PlatformMetrics
from rating_system.exceptions import DataUnavailableError
from rating_system.platforms.registry import PlatformRegistry, build_default_registry


class MetricsNormalizer:
    """
    Converts raw per-platform payloads into the normalized metrics shape.

    Usage:
        normalizer = MetricsNormalizer()
        metrics = normalizer.normalize(PlatformKind.TWITTER, raw_payload)

    Raises (from normalize):
        UnsupportedPlatformError: No extraction rule registered for the kind
        DataUnavailableError: Payload is missing fields the rule depends on
    """

    def __init__(
        self,
        registry: Optional[PlatformRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize normalizer.

        Args:
            registry: Capability table (defaults to the normalize-only production table)
            clock: Returns the evaluation time; injectable for deterministic ages
        """
        self.registry = registry or build_default_registry()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger.bind(component="MetricsNormalizer")

    def normalize(self, kind: PlatformKind, raw: Dict[str, Any]) -> PlatformMetrics:
        capability = self.registry.capability(kind)

        try:
            metrics = capability.normalize(raw, self.clock())
        except DataUnavailableError:
            raise
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            raise DataUnavailableError(
                f"Malformed {kind.value} payload",
                platform=kind.value,
                original_error=e,
            ) from e

        self.logger.debug(
            f"Normalized {kind.value} metrics",
            followers=metrics.followers,
            engagement=metrics.engagement,
            longevity_days=metrics.longevity_days,
        )
        return metrics


__all__ = ["MetricsNormalizer"]
