"""Pipeline modules for orchestrating multi-component data flows.

Pipelines handle:
- Component initialization and wiring
- Concurrent platform refresh with per-platform failure isolation
- Stage sequencing and audit reporting
- Graceful degradation on collaborator failures
"""

from rating_system.pipelines.rating_pipeline import (
    EvaluationReport,
    EvaluationResult,
    PipelineStage,
    RatingPipeline,
)

__all__ = [
    "EvaluationReport",
    "EvaluationResult",
    "PipelineStage",
    "RatingPipeline",
]
