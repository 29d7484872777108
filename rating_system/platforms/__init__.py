"""Platform layer: provider clients, extraction rules and the capability table.

- PlatformAPIClient: httpx clients for Twitter/X, Instagram, GitHub, YouTube
- rules: pure per-provider extraction rules (raw payload -> PlatformMetrics)
- PlatformRegistry: single {fetch, normalize} table keyed by PlatformKind
"""

from rating_system.platforms.clients import PlatformAPIClient
from rating_system.platforms.registry import (
    PlatformCapability,
    PlatformRegistry,
    build_default_registry,
)

__all__ = [
    "PlatformAPIClient",
    "PlatformCapability",
    "PlatformRegistry",
    "build_default_registry",
]
