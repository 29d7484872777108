"""Data management package for the rating engine.

Provides storage adapters and schemas for:
- Figures (Figure) - immutable rated aggregate
- Score history (ScoreSnapshot) - append-only audit log per figure

Storage adapters:
- FigureStore: persistence port
- InMemoryFigureStore: dict-backed adapter for tests and one-off runs
- JsonFigureStore: JSON file adapter
"""

from rating_system.data_management.figure_store import (
    FigureStore,
    InMemoryFigureStore,
    JsonFigureStore,
)

__all__ = [
    "FigureStore",
    "InMemoryFigureStore",
    "JsonFigureStore",
]
