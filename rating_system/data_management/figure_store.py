"""Figure storage with O(1) id lookup and an append-only score history log.

Two adapters share one port:
- InMemoryFigureStore: dict-backed, used by tests and short-lived runs
- JsonFigureStore: same structure, persisted to a single JSON document

Data structure:
{
    "figures": {
        "fig_...": Figure dict (mode="json"),
        ...
    },
    "snapshots": {
        "fig_...": [ScoreSnapshot dict, ...],
        ...
    }
}

Snapshots are stored separately from the figure document so the audit log
survives figure overwrites.
"""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError

from rating_system.data_management.schemas import Figure, PlatformKind, ScoreSnapshot
from rating_system.exceptions import FigureNotFoundError, PersistenceError


SCORE_FIELDS = ("overall", "credibility", "longevity", "engagement")


class FigureStore(ABC):
    """Persistence port for figures and their score history."""

    @abstractmethod
    async def get_figure(self, figure_id: str) -> Optional[Figure]:
        """Return the stored figure, or None if unknown."""

    @abstractmethod
    async def save_figure(self, figure: Figure) -> Dict[str, Any]:
        """Upsert a figure. Returns {action, figure_id}."""

    @abstractmethod
    async def append_snapshot(self, figure_id: str, snapshot: ScoreSnapshot) -> int:
        """Append to a stored figure's history log. Returns the new log length."""

    @abstractmethod
    async def get_snapshots(self, figure_id: str) -> List[ScoreSnapshot]:
        """Oldest-first snapshot log for a figure."""

    @abstractmethod
    async def list_figures(
        self,
        profession: Optional[str] = None,
        platform: Optional[PlatformKind] = None,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        sort_by: str = "overall",
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Figure]:
        """Filtered, sorted page of figures."""

    @abstractmethod
    async def search_figures(
        self,
        query: str,
        profession: Optional[str] = None,
        min_score: Optional[float] = None,
        platform: Optional[PlatformKind] = None,
        limit: Optional[int] = None,
    ) -> List[Figure]:
        """Case-insensitive text search over names, professions and handles."""

    @abstractmethod
    async def delete_figure(self, figure_id: str) -> bool:
        """Delete a figure and its snapshot log. Returns False if unknown."""


def _matches(
    figure: Figure,
    profession: Optional[str],
    platform: Optional[PlatformKind],
    min_score: Optional[float],
    max_score: Optional[float],
) -> bool:
    if profession and profession.lower() not in {p.lower() for p in figure.professions}:
        return False
    if platform is not None and figure.get_platform(PlatformKind(platform)) is None:
        return False
    if min_score is not None and figure.score.overall < min_score:
        return False
    if max_score is not None and figure.score.overall > max_score:
        return False
    return True


def _search_text(figure: Figure) -> str:
    parts = [figure.name, *figure.professions, *(p.handle for p in figure.platforms)]
    return " ".join(parts).lower()


class InMemoryFigureStore(FigureStore):
    """
    Dict-backed figure store.

    Usage:
        store = InMemoryFigureStore()
        await store.save_figure(figure)
        await store.append_snapshot(figure.id, figure.score.history[-1])
        top = await store.list_figures(profession="musician", limit=10)
    """

    def __init__(self):
        self._figures: Dict[str, Dict[str, Any]] = {}
        self._snapshots: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component=type(self).__name__)

    def _persist(self, figures: Dict[str, Dict[str, Any]], snapshots: Dict[str, List[Dict[str, Any]]]) -> None:
        """Hook for durable adapters; in-memory storage has nothing to flush."""

    def _commit(self, figures: Dict[str, Dict[str, Any]], snapshots: Dict[str, List[Dict[str, Any]]]) -> None:
        """Persist the next state, then make it current. A failed write changes nothing."""
        self._persist(figures, snapshots)
        self._figures = figures
        self._snapshots = snapshots

    def _decode(self, figure_id: str) -> Figure:
        try:
            return Figure.model_validate(self._figures[figure_id])
        except ValidationError as e:
            raise PersistenceError(
                f"Stored figure {figure_id} is corrupt",
                original_error=e,
                context={"figure_id": figure_id},
            )

    async def get_figure(self, figure_id: str) -> Optional[Figure]:
        async with self._lock:
            if figure_id not in self._figures:
                return None
            return self._decode(figure_id)

    async def save_figure(self, figure: Figure) -> Dict[str, Any]:
        async with self._lock:
            is_update = figure.id in self._figures
            figures = {**self._figures, figure.id: figure.model_dump(mode="json")}
            snapshots = {figure.id: [], **self._snapshots}
            self._commit(figures, snapshots)

        action = "updated" if is_update else "created"
        self.logger.debug(f"Figure {action}: {figure.id}")
        return {"action": action, "figure_id": figure.id}

    async def append_snapshot(self, figure_id: str, snapshot: ScoreSnapshot) -> int:
        async with self._lock:
            if figure_id not in self._figures:
                raise FigureNotFoundError(figure_id)
            log = [*self._snapshots.get(figure_id, []), snapshot.model_dump(mode="json")]
            self._commit(self._figures, {**self._snapshots, figure_id: log})
            return len(log)

    async def get_snapshots(self, figure_id: str) -> List[ScoreSnapshot]:
        async with self._lock:
            if figure_id not in self._figures:
                raise FigureNotFoundError(figure_id)
            return [ScoreSnapshot.model_validate(s) for s in self._snapshots.get(figure_id, [])]

    async def list_figures(
        self,
        profession: Optional[str] = None,
        platform: Optional[PlatformKind] = None,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        sort_by: str = "overall",
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Figure]:
        if sort_by not in SCORE_FIELDS:
            raise ValueError(f"sort_by must be one of {SCORE_FIELDS}, got {sort_by!r}")

        async with self._lock:
            figures = [self._decode(figure_id) for figure_id in self._figures]

        selected = [
            f for f in figures
            if _matches(f, profession, platform, min_score, max_score)
        ]
        selected.sort(key=lambda f: getattr(f.score, sort_by), reverse=descending)

        end = offset + limit if limit is not None else None
        return selected[offset:end]

    async def search_figures(
        self,
        query: str,
        profession: Optional[str] = None,
        min_score: Optional[float] = None,
        platform: Optional[PlatformKind] = None,
        limit: Optional[int] = None,
    ) -> List[Figure]:
        needle = query.strip().lower()

        async with self._lock:
            figures = [self._decode(figure_id) for figure_id in self._figures]

        results = [
            f for f in figures
            if needle in _search_text(f)
            and _matches(f, profession, platform, min_score, None)
        ]
        results.sort(key=lambda f: f.score.overall, reverse=True)
        return results[:limit] if limit is not None else results

    async def delete_figure(self, figure_id: str) -> bool:
        async with self._lock:
            if figure_id not in self._figures:
                return False
            figures = {k: v for k, v in self._figures.items() if k != figure_id}
            snapshots = {k: v for k, v in self._snapshots.items() if k != figure_id}
            self._commit(figures, snapshots)

        self.logger.info(f"Deleted figure: {figure_id}")
        return True


class JsonFigureStore(InMemoryFigureStore):
    """
    Figure store persisted to a single JSON file.

    Every mutation rewrites the file (write to a temp file, then replace).
    Read or write failures raise PersistenceError; nothing is retried.

    Usage:
        store = JsonFigureStore("data/figures.json")
        await store.save_figure(figure)
    """

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)

        if self.path.exists():
            self._load_from_file()

        self.logger.info(
            "JsonFigureStore initialized",
            path=str(self.path),
            figures=len(self._figures),
        )

    def _persist(self, figures: Dict[str, Dict[str, Any]], snapshots: Dict[str, List[Dict[str, Any]]]) -> None:
        self._save_to_file({"figures": figures, "snapshots": snapshots})

    def _save_to_file(self, document: Dict[str, Any]) -> None:
        """Write a storage document to the JSON file (synchronous)."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(document, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            self.logger.error(f"Failed to persist to {self.path}: {e}")
            raise PersistenceError(
                f"Failed to write figure store {self.path}",
                original_error=e,
                context={"path": str(self.path)},
            )

        self.logger.debug(f"Persisted to {self.path}")

    def _load_from_file(self) -> None:
        """Load storage from JSON file (synchronous)."""
        try:
            with open(self.path, "r") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to load {self.path}: {e}")
            raise PersistenceError(
                f"Failed to read figure store {self.path}",
                original_error=e,
                context={"path": str(self.path)},
            )

        self._figures = document.get("figures", {})
        self._snapshots = document.get("snapshots", {})
        self.logger.info(f"Loaded from {self.path}", figures=len(self._figures))


__all__ = [
    "FigureStore",
    "InMemoryFigureStore",
    "JsonFigureStore",
    "SCORE_FIELDS",
]
