"""Platform capability table: the single dispatch point per platform kind.

Every supported platform kind maps to one PlatformCapability bundling how to
fetch its raw payload and how to normalize it. Both the metrics source
(fetch_raw) and the MetricsNormalizer dispatch through this table, so adding
a platform means registering exactly one entry.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Mapping, Optional

from loguru import logger

from rating_system.data_management.schemas import PlatformKind, PlatformMetrics
from rating_system.exceptions import UnsupportedPlatformError
from rating_system.platforms import rules

if TYPE_CHECKING:
    from rating_system.platforms.clients import PlatformAPIClient

FetchFn = Callable[[str], Awaitable[Dict[str, Any]]]
NormalizeFn = Callable[[Dict[str, Any], datetime], PlatformMetrics]


@dataclass(frozen=True)
class PlatformCapability:
    """Fetch and normalize functions for one platform kind.

    Attributes:
        normalize: Pure extraction rule (raw payload, now) -> PlatformMetrics
        fetch: Async fetcher handle -> raw payload. None when the kind can be
            normalized from payloads supplied by the caller but not fetched.
    """

    normalize: NormalizeFn
    fetch: Optional[FetchFn] = None


class PlatformRegistry:
    """
    Capability table keyed by PlatformKind.

    Usage:
        registry = PlatformRegistry()
        registry.register(PlatformKind.GITHUB, PlatformCapability(
            normalize=rules.normalize_github, fetch=client.fetch_github,
        ))
        raw = await registry.fetch_raw(PlatformKind.GITHUB, "octocat")
        metrics = registry.capability(PlatformKind.GITHUB).normalize(raw, now)
    """

    def __init__(self, capabilities: Optional[Mapping[PlatformKind, PlatformCapability]] = None):
        self._capabilities: Dict[PlatformKind, PlatformCapability] = dict(capabilities or {})
        self.logger = logger.bind(component="PlatformRegistry")

    def register(self, kind: PlatformKind, capability: PlatformCapability) -> None:
        if kind in self._capabilities:
            self.logger.debug(f"Replacing capability for {kind.value}")
        self._capabilities[kind] = capability

    def capability(self, kind: PlatformKind) -> PlatformCapability:
        """
        Look up the capability for a platform kind.

        Raises:
            UnsupportedPlatformError: If nothing is registered for the kind
        """
        try:
            return self._capabilities[kind]
        except KeyError:
            raise UnsupportedPlatformError(getattr(kind, "value", str(kind))) from None

    def supports(self, kind: PlatformKind) -> bool:
        return kind in self._capabilities

    @property
    def supported_kinds(self) -> list[PlatformKind]:
        return list(self._capabilities)

    async def fetch_raw(self, kind: PlatformKind, handle: str) -> Dict[str, Any]:
        """
        Fetch the raw provider payload for a handle.

        Raises:
            UnsupportedPlatformError: No capability, or the capability cannot fetch
            DataUnavailableError: The fetch itself failed
        """
        capability = self.capability(kind)
        if capability.fetch is None:
            raise UnsupportedPlatformError(kind.value, operation="fetch")
        return await capability.fetch(handle)


DEFAULT_RULES: Dict[PlatformKind, NormalizeFn] = {
    PlatformKind.TWITTER: rules.normalize_twitter,
    PlatformKind.INSTAGRAM: rules.normalize_instagram,
    PlatformKind.GITHUB: rules.normalize_github,
    PlatformKind.YOUTUBE: rules.normalize_youtube,
}


def build_default_registry(client: Optional["PlatformAPIClient"] = None) -> PlatformRegistry:
    """
    Build the production capability table.

    Args:
        client: PlatformAPIClient supplying fetchers. Without one the
            registry can only normalize caller-supplied payloads.

    Returns:
        PlatformRegistry with twitter, instagram, github and youtube entries
    """
    fetchers: Dict[PlatformKind, Optional[FetchFn]] = {kind: None for kind in DEFAULT_RULES}
    if client is not None:
        fetchers.update({
            PlatformKind.TWITTER: client.fetch_twitter,
            PlatformKind.INSTAGRAM: client.fetch_instagram,
            PlatformKind.GITHUB: client.fetch_github,
            PlatformKind.YOUTUBE: client.fetch_youtube,
        })

    return PlatformRegistry({
        kind: PlatformCapability(normalize=normalize, fetch=fetchers[kind])
        for kind, normalize in DEFAULT_RULES.items()
    })


__all__ = [
    "DEFAULT_RULES",
    "FetchFn",
    "NormalizeFn",
    "PlatformCapability",
    "PlatformRegistry",
    "build_default_registry",
]
