"""Rating service: the pipeline wired to a figure store.

Write path:
    load (FigureNotFoundError) -> evaluate -> save_figure -> append_snapshot

Storage failures propagate as PersistenceError. Nothing is retried.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Union

from loguru import logger

from rating_system.data_management.figure_store import FigureStore
from rating_system.data_management.schemas import Figure, PlatformKind, PlatformPresence
from rating_system.exceptions import FigureNotFoundError
from rating_system.pipelines.rating_pipeline import EvaluationResult, RatingPipeline


PlatformInput = Union[PlatformPresence, Dict[str, str]]


class RatingService:
    """
    Create, re-evaluate and query rated figures.

    Usage:
        service = RatingService(pipeline, JsonFigureStore("data/figures.json"))
        figure = await service.create_figure(
            "Ada Lovelace",
            ["mathematician"],
            [{"platform": "github", "handle": "ada"}],
        )
        figure = await service.evaluate_by_id(figure.id)
    """

    def __init__(self, pipeline: RatingPipeline, store: FigureStore):
        self.pipeline = pipeline
        self.store = store
        self.logger = logger.bind(component="RatingService")

    async def create_figure(
        self,
        name: str,
        professions: Iterable[str],
        platforms: Sequence[PlatformInput],
    ) -> Figure:
        """
        Build a figure with neutral scores and empty metrics, evaluate and store it.

        Args:
            name: Display name
            professions: Profession labels
            platforms: PlatformPresence objects or {platform, handle, url} dicts

        Returns:
            The evaluated, persisted figure
        """
        presences = [
            p if isinstance(p, PlatformPresence) else PlatformPresence.model_validate(p)
            for p in platforms
        ]
        figure = Figure(name=name, professions=set(professions), platforms=presences)

        self.logger.info(f"Creating figure {figure.id}", name=name, platforms=len(presences))
        result = await self.evaluate_and_store(figure)
        return result.figure

    async def evaluate_by_id(self, figure_id: str) -> Figure:
        """
        Re-evaluate a stored figure and write the result back.

        Raises:
            FigureNotFoundError: figure_id is not in the store
            PersistenceError: write-back failed
        """
        figure = await self.store.get_figure(figure_id)
        if figure is None:
            raise FigureNotFoundError(figure_id)

        result = await self.evaluate_and_store(figure)
        return result.figure

    async def evaluate_and_store(self, figure: Figure) -> EvaluationResult:
        """Evaluate a figure, upsert it and append the new snapshot to its log."""
        result = await self.pipeline.evaluate(figure)
        await self.store.save_figure(result.figure)
        await self.store.append_snapshot(result.figure.id, result.snapshot)
        return result

    async def top_rated(
        self,
        profession: Optional[str] = None,
        limit: int = 10,
        sort_by: str = "overall",
    ) -> List[Figure]:
        """Highest-scoring figures, optionally within one profession."""
        return await self.store.list_figures(
            profession=profession,
            sort_by=sort_by,
            descending=True,
            limit=limit,
        )

    async def search(
        self,
        query: str,
        profession: Optional[str] = None,
        min_score: Optional[float] = None,
        platform: Optional[PlatformKind] = None,
    ) -> List[Figure]:
        return await self.store.search_figures(
            query,
            profession=profession,
            min_score=min_score,
            platform=platform,
        )


__all__ = ["RatingService"]
