"""Match command for reconciling two catalogs."""

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from catalog_match.analysis.matching import DescriptionMatcher, MatchProgress
from catalog_match.analysis.report import (
    QualityBand,
    display_quality_table,
    display_results_table,
    export_results_csv,
    filter_results,
)
from catalog_match.core.config import Config, MatchConfig
from catalog_match.core.loader import load_records
from catalog_match.error.cmd import handle_command_errors

console = Console()


def build_match_config(base: MatchConfig, unfiltered: bool, **overrides) -> MatchConfig:
    """Apply command line overrides on top of the configured settings.

    ``None`` overrides keep the configured value. ``unfiltered`` switches to
    the direct sweep: no candidate filter, no per-row break, no early exit.
    """
    settings = base.model_dump()
    settings.update({key: value for key, value in overrides.items() if value is not None})
    if unfiltered:
        settings.update(filtering="none", near_perfect_score=None, early_exit_multiplier=None)
    return MatchConfig(**settings)


@click.command()
@click.argument("left", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("right", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--left-field", help="Description column of the LEFT catalog")
@click.option("--right-field", help="Description column of the RIGHT catalog")
@click.option(
    "--threshold",
    "-t",
    type=click.FloatRange(0.0, 100.0),
    help="Minimum match percentage (0-100, default: 0)",
)
@click.option(
    "--max-results",
    "-n",
    type=click.IntRange(0),
    help="Maximum number of ranked matches (default: 1000)",
)
@click.option(
    "--batch-size",
    type=click.IntRange(1),
    help="Left rows processed per batch (default: 200)",
)
@click.option(
    "--unfiltered",
    is_flag=True,
    help="Score every pair without pre-filtering or early exits (slow, exhaustive)",
)
@click.option(
    "--workers",
    type=click.IntRange(1),
    default=None,
    help="Score batches in this many worker processes",
)
@click.option("--search", "-s", help="Only show matches whose descriptions contain this text")
@click.option(
    "--quality",
    "-q",
    type=click.Choice([band.value for band in QualityBand]),
    help="Only show matches in this quality band",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Export the (filtered) matches to this CSV file (relative to the output directory)",
)
@click.option(
    "--left-column",
    "left_columns",
    multiple=True,
    help="LEFT column copied into the export (repeatable)",
)
@click.option(
    "--right-column",
    "right_columns",
    multiple=True,
    help="RIGHT column copied into the export (repeatable)",
)
@click.option("--limit", type=click.IntRange(0), help="Rows shown in the results table")
@click.pass_context
@handle_command_errors
def match(
    ctx,
    left: Path,
    right: Path,
    left_field: str | None,
    right_field: str | None,
    threshold: float | None,
    max_results: int | None,
    batch_size: int | None,
    unfiltered: bool,
    workers: int | None,
    search: str | None,
    quality: str | None,
    output: Path | None,
    left_columns: tuple[str, ...],
    right_columns: tuple[str, ...],
    limit: int | None,
) -> None:
    """Match descriptions of the LEFT catalog against the RIGHT catalog.

    LEFT and RIGHT are CSV or Excel files.
    """
    config: Config = (ctx.obj or {}).get("config") or Config.get_default()
    match_config = build_match_config(
        config.matching,
        unfiltered,
        left_field=left_field,
        right_field=right_field,
        min_threshold=threshold,
        max_results=max_results,
        batch_size=batch_size,
    )

    left_records = load_records(left, match_config.left_field)
    right_records = load_records(right, match_config.right_field)
    console.print(
        f"[bold blue]Matching[/bold blue] {len(left_records)} rows of {left.name} "
        f"against {len(right_records)} rows of {right.name}"
    )

    matcher = DescriptionMatcher(match_config)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Matching...", total=100)

        def on_progress(event: MatchProgress) -> None:
            progress.update(
                task,
                completed=event.percent,
                description=f"Matching... {event.matches_found} found",
            )

        if workers is not None:
            results = matcher.match_parallel(
                left_records, right_records, max_workers=workers, on_progress=on_progress
            )
        else:
            results = asyncio.run(matcher.match_async(left_records, right_records, on_progress))

    console.print(f"[green]Found:[/green] {len(results)} matches")
    if not results:
        return

    display_quality_table(results, console)

    shown = filter_results(results, search=search, quality=quality)
    if search or quality:
        console.print(f"[bold]Filtered:[/bold] {len(shown)} of {len(results)} matches")

    display_limit = config.output.display_limit if limit is None else limit
    if shown and display_limit > 0:
        display_results_table(shown, console, limit=display_limit)

    if output is not None:
        if not output.is_absolute():
            output = config.output.output_dir / output
        file_path = export_results_csv(shown, output, left_columns, right_columns)
        console.print(f"[green]Results saved to:[/green] {file_path}")
