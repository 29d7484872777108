"""Exception hierarchy for the influence rating engine.

Recoverable inside an evaluation:
- DataUnavailableError: one platform's fetch or payload failed
- UnsupportedPlatformError: no fetch/normalize capability for a platform kind
- SignalDegradedError: a trend signal source was unreachable

Propagated to the caller:
- PersistenceError: figure write-back failed (no retries)
- FigureNotFoundError: figure id absent from the store
- PipelineStateError: stage executed out of order (programming error)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RatingEngineError(Exception):
    """Base exception for all rating engine errors."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class DataUnavailableError(RatingEngineError):
    """Platform data could not be fetched or the payload is unusable."""

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        handle: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, original_error, context)
        self.platform = platform
        self.handle = handle

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"platform": self.platform, "handle": self.handle})
        return data


class UnsupportedPlatformError(RatingEngineError):
    """No capability registered for the platform kind."""

    def __init__(self, platform: str, operation: str = "normalize") -> None:
        super().__init__(
            f"No {operation} capability registered for platform '{platform}'",
            context={"operation": operation},
        )
        self.platform = platform
        self.operation = operation


class SignalDegradedError(RatingEngineError):
    """A trend signal source failed; callers fall back to neutral values."""

    def __init__(
        self,
        message: str,
        signal: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, original_error, context={"signal": signal})
        self.signal = signal


class PersistenceError(RatingEngineError):
    """Writing or reading figure state failed."""


class FigureNotFoundError(RatingEngineError):
    """Requested figure does not exist in the store."""

    def __init__(self, figure_id: str) -> None:
        super().__init__(f"Figure '{figure_id}' not found", context={"figure_id": figure_id})
        self.figure_id = figure_id


class PipelineStateError(RatingEngineError):
    """A pipeline stage was entered out of order."""


__all__ = [
    "RatingEngineError",
    "DataUnavailableError",
    "UnsupportedPlatformError",
    "SignalDegradedError",
    "PersistenceError",
    "FigureNotFoundError",
    "PipelineStateError",
]
