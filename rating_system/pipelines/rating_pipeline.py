"""Rating pipeline sequencing the scoring components into one evaluation.

Stages (linear, no cycles, one fresh run per evaluation):
    CREATED -> METRICS_FETCHED -> BASE_SCORED -> MANIPULATION_CHECKED
            -> TREND_ADJUSTED -> LONGEVITY_REFINED -> FINALIZED

1. Keep the incoming figure as `previous` (immutable, safe to compare later)
2. Fetch and normalize every platform concurrently; a failed platform keeps
   its existing metrics and logs a warning
3. Base scores + one history snapshot
4. Manipulation detection against `previous`, conditional dampening
5. Trend adjustment (recomputes overall canonically)
6. Longevity refinement (overwrites longevity)
7. Final canonical overall recompute
8. Stamp updated_at

The pipeline holds no per-evaluation state, so several figures can be
evaluated concurrently with one instance.
"""

import asyncio
import functools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import aiometer
from loguru import logger

from rating_system.data_management.schemas import (
    Figure,
    LongevityAssessment,
    ManipulationAssessment,
    PlatformPresence,
    ScoreSnapshot,
    TrendSignal,
)
from rating_system.exceptions import (
    DataUnavailableError,
    PipelineStateError,
    UnsupportedPlatformError,
)
from rating_system.platforms.registry import PlatformRegistry, build_default_registry
from rating_system.platforms.rules import extract_verified
from rating_system.scoring import (
    AntiManipulationDetector,
    LongevityAnalyzer,
    MetricsNormalizer,
    ScoreCalculator,
    TrendAnalyzer,
)
from rating_system.utils.stats import compute_overall


class PipelineStage(str, Enum):
    """Evaluation states, in the only order they may be entered."""

    CREATED = "created"
    METRICS_FETCHED = "metrics_fetched"
    BASE_SCORED = "base_scored"
    MANIPULATION_CHECKED = "manipulation_checked"
    TREND_ADJUSTED = "trend_adjusted"
    LONGEVITY_REFINED = "longevity_refined"
    FINALIZED = "finalized"


STAGE_ORDER: List[PipelineStage] = list(PipelineStage)


@dataclass
class PlatformFetchOutcome:
    """Result of refreshing one platform's metrics."""

    platform: str
    handle: str
    status: str  # updated, unavailable, unsupported, timeout
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "updated"


@dataclass
class EvaluationReport:
    """Audit trail for a single evaluation."""

    figure_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    stages: List[PipelineStage] = field(default_factory=lambda: [PipelineStage.CREATED])
    fetch_outcomes: List[PlatformFetchOutcome] = field(default_factory=list)
    manipulation: Optional[ManipulationAssessment] = None
    trend: Optional[TrendSignal] = None
    longevity: Optional[LongevityAssessment] = None

    @property
    def stage(self) -> PipelineStage:
        return self.stages[-1]

    def advance(self, stage: PipelineStage) -> None:
        """
        Move to the next stage.

        Raises:
            PipelineStateError: If stage is not the immediate successor
        """
        current_index = STAGE_ORDER.index(self.stage)
        if current_index + 1 >= len(STAGE_ORDER) or STAGE_ORDER[current_index + 1] != stage:
            raise PipelineStateError(
                f"Cannot move from {self.stage.value} to {stage.value}",
                context={"figure_id": self.figure_id},
            )
        self.stages.append(stage)

    @property
    def platforms_failed(self) -> int:
        return sum(1 for outcome in self.fetch_outcomes if not outcome.succeeded)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary."""
        duration = None
        if self.finished_at:
            duration = round((self.finished_at - self.started_at).total_seconds(), 3)
        return {
            "figure_id": self.figure_id,
            "stage": self.stage.value,
            "platforms_updated": len(self.fetch_outcomes) - self.platforms_failed,
            "platforms_failed": self.platforms_failed,
            "is_manipulated": self.manipulation.is_manipulated if self.manipulation else None,
            "manipulation_confidence": self.manipulation.confidence_score if self.manipulation else None,
            "degraded_signals": list(self.trend.degraded_signals) if self.trend else [],
            "duration_seconds": duration,
        }


@dataclass
class EvaluationResult:
    """Finalized figure plus everything needed to persist and audit it."""

    figure: Figure
    previous: Figure
    report: EvaluationReport

    @property
    def snapshot(self) -> ScoreSnapshot:
        """The one history entry this evaluation appended."""
        return self.figure.score.history[-1]


class RatingPipeline:
    """
    Orchestrates one evaluation of a figure.

    Usage:
        pipeline = RatingPipeline(registry=build_default_registry(client),
                                  trend_analyzer=TrendAnalyzer(source))
        figure = await pipeline.evaluate_figure(figure)

    Or with the audit report:
        result = await pipeline.evaluate(figure)
        print(result.report.to_dict())

    Attributes:
        registry: Platform capability table used for fetching
        normalizer: MetricsNormalizer dispatching through the same registry
        fetch_timeout: Seconds before a hung platform fetch counts as unavailable
        max_concurrent_fetches: Fan-out bound per evaluation
    """

    DEFAULT_FETCH_TIMEOUT = 45.0
    DEFAULT_MAX_CONCURRENT_FETCHES = 8

    def __init__(
        self,
        registry: Optional[PlatformRegistry] = None,
        normalizer: Optional[MetricsNormalizer] = None,
        calculator: Optional[ScoreCalculator] = None,
        detector: Optional[AntiManipulationDetector] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        longevity_analyzer: Optional[LongevityAnalyzer] = None,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        max_concurrent_fetches: int = DEFAULT_MAX_CONCURRENT_FETCHES,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize rating pipeline.

        Args:
            registry: Capability table. Defaults to normalize-only production rules.
            normalizer: Auto-created over the same registry if None.
            calculator: ScoreCalculator. Auto-created if None.
            detector: AntiManipulationDetector. Auto-created if None.
            trend_analyzer: TrendAnalyzer. Auto-created without a source
                (neutral trend signal) if None.
            longevity_analyzer: LongevityAnalyzer. Auto-created if None.
            fetch_timeout: Per-platform fetch bound in seconds.
            max_concurrent_fetches: Maximum platform fetches in flight.
            clock: Time source shared by every stage.
        """
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.registry = registry or build_default_registry()
        self.normalizer = normalizer or MetricsNormalizer(self.registry, clock=self.clock)
        self.calculator = calculator or ScoreCalculator(clock=self.clock)
        self.detector = detector or AntiManipulationDetector()
        self.trend_analyzer = trend_analyzer or TrendAnalyzer(clock=self.clock)
        self.longevity_analyzer = longevity_analyzer or LongevityAnalyzer()
        self.fetch_timeout = fetch_timeout
        self.max_concurrent_fetches = max_concurrent_fetches

        self.logger = logger.bind(component="RatingPipeline")
        self.logger.info(
            "RatingPipeline initialized",
            supported_platforms=[k.value for k in self.registry.supported_kinds],
            fetch_timeout=fetch_timeout,
            max_concurrent_fetches=max_concurrent_fetches,
        )

    async def evaluate_figure(self, figure: Figure) -> Figure:
        """Evaluate a figure and return the finalized copy."""
        result = await self.evaluate(figure)
        return result.figure

    async def evaluate(self, figure: Figure) -> EvaluationResult:
        """
        Run every stage for one figure.

        Args:
            figure: Current figure state; never modified

        Returns:
            EvaluationResult with the finalized figure, the untouched
            previous figure and the audit report
        """
        previous = figure
        report = EvaluationReport(figure_id=figure.id, started_at=self.clock())

        self.logger.info(
            f"Evaluating figure {figure.id}",
            name=figure.name,
            platforms=len(figure.platforms),
        )

        current = await self._fetch_metrics(figure, report)
        report.advance(PipelineStage.METRICS_FETCHED)

        current = current.with_score(self.calculator.calculate_scores(current))
        report.advance(PipelineStage.BASE_SCORED)

        report.manipulation = self.detector.detect(current, previous)
        current = self.detector.adjust(current, report.manipulation)
        report.advance(PipelineStage.MANIPULATION_CHECKED)

        report.trend = await self.trend_analyzer.analyze(current)
        current = self.trend_analyzer.adjust(current, report.trend)
        report.advance(PipelineStage.TREND_ADJUSTED)

        report.longevity = self.longevity_analyzer.analyze(current)
        current = self.longevity_analyzer.apply(current, report.longevity)
        report.advance(PipelineStage.LONGEVITY_REFINED)

        current = self.finalize(current)
        report.advance(PipelineStage.FINALIZED)
        report.finished_at = self.clock()

        self.logger.info(
            f"Evaluation complete for {figure.id}",
            overall=round(current.score.overall, 2),
            **report.to_dict(),
        )
        return EvaluationResult(figure=current, previous=previous, report=report)

    def finalize(self, figure: Figure) -> Figure:
        """Canonical overall recompute and updated_at stamp."""
        score = figure.score
        overall = compute_overall(score.credibility, score.longevity, score.engagement)
        return figure.model_copy(
            update={
                "score": score.with_dimensions(overall=overall),
                "updated_at": self.clock(),
            }
        )

    async def _fetch_metrics(self, figure: Figure, report: EvaluationReport) -> Figure:
        """
        Refresh every platform concurrently and fan the results back in.

        Output order matches figure.platforms, so the platform list keeps
        its shape whatever the completion order.
        """
        if not figure.platforms:
            return figure

        jobs = [functools.partial(self._refresh_platform, presence) for presence in figure.platforms]
        results = await aiometer.run_all(jobs, max_at_once=self.max_concurrent_fetches)

        platforms: List[PlatformPresence] = []
        for presence, outcome in results:
            platforms.append(presence)
            report.fetch_outcomes.append(outcome)

        if report.platforms_failed:
            self.logger.warning(
                f"{report.platforms_failed}/{len(results)} platforms kept stale metrics for {figure.id}"
            )

        return figure.model_copy(update={"platforms": platforms})

    async def _refresh_platform(
        self,
        presence: PlatformPresence,
    ) -> tuple[PlatformPresence, PlatformFetchOutcome]:
        """
        Fetch and normalize one platform with error handling wrapper.

        Returns:
            (presence, outcome): the refreshed presence on success, the
            original presence unchanged on any failure
        """
        kind = presence.platform

        def outcome(status: str, error: Optional[str] = None) -> PlatformFetchOutcome:
            return PlatformFetchOutcome(
                platform=kind.value,
                handle=presence.handle,
                status=status,
                error=error,
            )

        try:
            raw = await asyncio.wait_for(
                self.registry.fetch_raw(kind, presence.handle),
                timeout=self.fetch_timeout,
            )
            metrics = self.normalizer.normalize(kind, raw)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Fetch timed out for {kind.value}/{presence.handle} after {self.fetch_timeout}s"
            )
            return presence, outcome("timeout", f"timed out after {self.fetch_timeout}s")
        except UnsupportedPlatformError as e:
            self.logger.warning(f"Skipping {kind.value}/{presence.handle}: {e}")
            return presence, outcome("unsupported", str(e))
        except DataUnavailableError as e:
            self.logger.warning(f"Data unavailable for {kind.value}/{presence.handle}: {e}")
            return presence, outcome("unavailable", str(e))
        except Exception as e:
            # Collaborator bugs count as unavailable data for this platform only
            self.logger.warning(
                f"Unexpected fetch failure for {kind.value}/{presence.handle}: {e!r}"
            )
            return presence, outcome("unavailable", repr(e))

        update: Dict[str, Any] = {"metrics": metrics, "last_updated": self.clock()}
        verified = extract_verified(raw)
        if verified is not None:
            update["verified"] = verified

        return presence.model_copy(update=update), outcome("updated")


__all__ = [
    "EvaluationReport",
    "EvaluationResult",
    "PipelineStage",
    "PlatformFetchOutcome",
    "RatingPipeline",
    "STAGE_ORDER",
]
