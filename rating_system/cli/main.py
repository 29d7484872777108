"""Command-line interface for the influence rating engine using Typer and Rich."""

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rating_system.config.logging import get_logger
from rating_system.config.settings import settings
from rating_system.data_management import InMemoryFigureStore, JsonFigureStore
from rating_system.data_management.schemas import Figure
from rating_system.exceptions import RatingEngineError
from rating_system.pipelines.rating_pipeline import EvaluationResult, RatingPipeline
from rating_system.platforms import PlatformAPIClient, build_default_registry
from rating_system.scoring import TrendAnalyzer
from rating_system.service import RatingService
from rating_system.sources import NewsAPITrendSource, StaticTrendSource

# Initialize CLI app
app = typer.Typer(
    help="Influence Rating Engine - score public figures across platforms",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")


def _configured(value: Optional[str]) -> str:
    return "✓ Configured" if value else "⚠ Not Configured"


@app.command()
def status() -> None:
    """
    Display engine configuration.

    Shows which platform credentials are present, fetch limits and storage.
    """
    logger.info("Displaying engine status")

    table = Table(title="Rating Engine Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=18)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)

    table.add_row("Twitter/X", _configured(settings.twitter_bearer_token), "API v2 user lookup")
    table.add_row("Instagram", _configured(settings.instagram_access_token), "Graph API (token owner)")
    table.add_row("GitHub", _configured(settings.github_token), "Anonymous access is rate limited")
    table.add_row("YouTube", _configured(settings.youtube_api_key), "Data API v3 channels")
    table.add_row("NewsAPI", _configured(settings.news_api_key), "Trend news signal")

    fetch_details = (
        f"Timeout: {settings.fetch_timeout_seconds}s, "
        f"Concurrency: {settings.max_concurrent_fetches}"
    )
    table.add_row("Fetching", "✓ Active", fetch_details)

    table.add_row("Storage", "✓ Active", settings.store_path)

    log_details = f"Level: {settings.log_level}, Format: {settings.log_format}"
    table.add_row("Logging", "✓ Active", log_details)

    console.print(table)


def _load_figure(path: Path) -> Figure:
    try:
        return Figure.model_validate_json(path.read_text())
    except OSError as e:
        console.print(f"[red]✗[/red] Cannot read {path}: {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        console.print(f"[red]✗[/red] {path} is not a valid figure document:\n{e}")
        raise typer.Exit(1)


async def _evaluate(figure: Figure, offline: bool, save: bool) -> EvaluationResult:
    store = JsonFigureStore(settings.store_path) if save else InMemoryFigureStore()

    if offline:
        pipeline = RatingPipeline(
            trend_analyzer=TrendAnalyzer(StaticTrendSource()),
            fetch_timeout=settings.fetch_timeout_seconds,
            max_concurrent_fetches=settings.max_concurrent_fetches,
        )
        return await RatingService(pipeline, store).evaluate_and_store(figure)

    async with PlatformAPIClient(
        twitter_bearer_token=settings.twitter_bearer_token,
        instagram_access_token=settings.instagram_access_token,
        github_token=settings.github_token,
        youtube_api_key=settings.youtube_api_key,
        timeout=settings.http_timeout_seconds,
    ) as client, NewsAPITrendSource(
        api_key=settings.news_api_key,
        timeout=settings.http_timeout_seconds,
    ) as source:
        pipeline = RatingPipeline(
            registry=build_default_registry(client),
            trend_analyzer=TrendAnalyzer(source),
            fetch_timeout=settings.fetch_timeout_seconds,
            max_concurrent_fetches=settings.max_concurrent_fetches,
        )
        return await RatingService(pipeline, store).evaluate_and_store(figure)


def _print_result(result: EvaluationResult) -> None:
    figure = result.figure
    score = figure.score

    table = Table(title=f"{figure.name} ({figure.id})", show_header=True, header_style="bold magenta")
    table.add_column("Dimension", style="cyan")
    table.add_column("Before", justify="right")
    table.add_column("After", style="green", justify="right")
    for dimension in ("credibility", "longevity", "engagement", "overall"):
        table.add_row(
            dimension.capitalize(),
            f"{getattr(result.previous.score, dimension):.1f}",
            f"{getattr(score, dimension):.1f}",
        )
    console.print(table)

    platforms = Table(title="Platforms", show_header=True, header_style="bold magenta")
    platforms.add_column("Platform", style="cyan")
    platforms.add_column("Handle")
    platforms.add_column("Fetch", style="yellow")
    for outcome in result.report.fetch_outcomes:
        style = "green" if outcome.succeeded else "red"
        platforms.add_row(outcome.platform, outcome.handle, f"[{style}]{outcome.status}[/{style}]")
    console.print(platforms)

    manipulation = result.report.manipulation
    trend = result.report.trend
    lines: List[str] = []
    if manipulation is not None:
        verdict = "[red]manipulated[/red]" if manipulation.is_manipulated else "[green]clean[/green]"
        lines.append(f"Manipulation: {verdict} (confidence {manipulation.confidence_score:.0f})")
        lines.extend(f"  • {flag}" for flag in manipulation.flags)
    if trend is not None:
        lines.append(
            f"Trend: trending {trend.trending_score:.1f}, sentiment {trend.sentiment_score:.1f}, "
            f"relevance {trend.contextual_relevance:.1f}"
        )
        if trend.degraded_signals:
            lines.append(f"  Degraded signals: {', '.join(trend.degraded_signals)}")
        lines.extend(f"  • {event.title}" for event in trend.recent_events)

    console.print(Panel("\n".join(lines) or "No audit data", title="Audit", border_style="blue"))


@app.command()
def evaluate(
    file: Path = typer.Argument(..., help="Figure JSON document"),
    save: bool = typer.Option(False, "--save", help="Persist the result to the JSON figure store"),
    offline: bool = typer.Option(False, "--offline", help="Use the metrics in the document without fetching"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the evaluated figure projection here"),
) -> None:
    """
    Evaluate a figure document and print its scores.

    Args:
        file: Path to a JSON-encoded Figure
        save: Upsert the figure and append its snapshot to the store
        offline: Skip platform fetches and trend lookups
        output: Optional path for the projected result
    """
    figure = _load_figure(file)
    logger.info(f"Evaluate command invoked for {figure.id}", offline=offline, save=save)

    try:
        result = asyncio.run(_evaluate(figure, offline=offline, save=save))
    except RatingEngineError as e:
        console.print(f"\n[red]✗[/red] Error: {e}")
        logger.error("Evaluation failed: {}", e, error_type=type(e).__name__)
        raise typer.Exit(1)

    _print_result(result)

    if output is not None:
        output.write_text(json.dumps(result.figure.to_projection(), indent=2, default=str))
        console.print(f"[dim]Projection written to {output}[/dim]")

    if save:
        console.print(f"\n[green]✓[/green] Saved to {settings.store_path}")


@app.command()
def top(
    profession: Optional[str] = typer.Option(None, "--profession", "-p"),
    limit: int = typer.Option(10, "--limit", "-n"),
    sort_by: str = typer.Option("overall", "--sort-by"),
) -> None:
    """List the highest-rated stored figures."""
    store = JsonFigureStore(settings.store_path)
    service = RatingService(RatingPipeline(), store)

    try:
        figures = asyncio.run(service.top_rated(profession=profession, limit=limit, sort_by=sort_by))
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Top Rated", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Professions")
    table.add_column(sort_by.capitalize(), style="green", justify="right")
    for rank, figure in enumerate(figures, start=1):
        table.add_row(
            str(rank),
            figure.name,
            ", ".join(sorted(figure.professions)),
            f"{getattr(figure.score, sort_by):.1f}",
        )
    console.print(table)


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]Influence Rating Engine[/bold]")
    console.print("Version: 0.1.0")


if __name__ == "__main__":
    app()
