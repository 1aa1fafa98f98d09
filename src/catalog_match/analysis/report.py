"""Presentation layer for match results.

This module handles grouping, filtering, display and export of match
results, separating presentation logic from command orchestration.
"""

from collections.abc import Iterable, Sequence
from enum import Enum
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from catalog_match.analysis.matching.match_types import MatchResult

DIFFERENCE_SEPARATOR = " | "


class QualityBand(str, Enum):
    """Review quality band of a match score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


# Lower score bound of each band, checked from the top
_BAND_FLOORS = [
    (QualityBand.EXCELLENT, 90.0),
    (QualityBand.GOOD, 70.0),
    (QualityBand.FAIR, 50.0),
]

_BAND_STYLES = {
    QualityBand.EXCELLENT: "green",
    QualityBand.GOOD: "blue",
    QualityBand.FAIR: "yellow",
    QualityBand.POOR: "red",
}


def quality_band(score: float) -> QualityBand:
    """Classify a score (0-100) into its quality band."""
    for band, floor in _BAND_FLOORS:
        if score >= floor:
            return band
    return QualityBand.POOR


def summarize_quality(results: Iterable[MatchResult]) -> dict[QualityBand, int]:
    """Count results per quality band.

    Returns:
        Mapping with every band present, in descending quality order.
    """
    counts = {band: 0 for band in QualityBand}
    for result in results:
        counts[quality_band(result.score)] += 1
    return counts


def filter_results(
    results: Iterable[MatchResult],
    search: str | None = None,
    quality: QualityBand | str | None = None,
) -> list[MatchResult]:
    """Filter results by search term and quality band.

    Args:
        results: Ranked match results
        search: Case-insensitive substring looked up in both descriptions
        quality: Keep only results in this band

    Returns:
        Matching results, in their original order.
    """
    filtered = list(results)

    if search:
        term = search.lower()
        filtered = [
            result
            for result in filtered
            if term in result.left_description.lower() or term in result.right_description.lower()
        ]

    if quality is not None:
        band = QualityBand(quality)
        filtered = [result for result in filtered if quality_band(result.score) == band]

    return filtered


def results_to_dataframe(
    results: Sequence[MatchResult],
    left_columns: Sequence[str] = (),
    right_columns: Sequence[str] = (),
    include_differences: bool = True,
) -> pd.DataFrame:
    """Convert match results to a flat DataFrame.

    Args:
        results: Match results
        left_columns: Pass-through columns of the left record, prefixed "left_"
        right_columns: Pass-through columns of the right record, prefixed "right_"
        include_differences: Add common/unique word columns

    Returns:
        One row per result, in result order.
    """
    rows = []
    for result in results:
        row = {
            "match_percentage": result.score,
            "quality": quality_band(result.score).value,
            "left_description": result.left_description,
            "right_description": result.right_description,
        }
        for column in left_columns:
            row[f"left_{column}"] = result.left_record.get(column)
        for column in right_columns:
            row[f"right_{column}"] = result.right_record.get(column)

        if include_differences:
            differences = result.differences
            row["common_words_count"] = len(differences.common_words)
            row["common_words"] = DIFFERENCE_SEPARATOR.join(differences.common_words)
            row["only_in_left_count"] = len(differences.only_in_left)
            row["only_in_left"] = DIFFERENCE_SEPARATOR.join(differences.only_in_left)
            row["only_in_right_count"] = len(differences.only_in_right)
            row["only_in_right"] = DIFFERENCE_SEPARATOR.join(differences.only_in_right)
        rows.append(row)

    columns = ["match_percentage", "quality", "left_description", "right_description"]
    columns += [f"left_{column}" for column in left_columns]
    columns += [f"right_{column}" for column in right_columns]
    if include_differences:
        columns += [
            "common_words_count",
            "common_words",
            "only_in_left_count",
            "only_in_left",
            "only_in_right_count",
            "only_in_right",
        ]
    return pd.DataFrame(rows, columns=columns)


def export_results_csv(
    results: Sequence[MatchResult],
    output_path: Path,
    left_columns: Sequence[str] = (),
    right_columns: Sequence[str] = (),
) -> Path:
    """Export match results to a CSV file.

    Returns:
        Path of the written file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = results_to_dataframe(results, left_columns, right_columns)
    df.to_csv(output_path, index=False)
    return output_path


def display_quality_table(results: Sequence[MatchResult], console: Console) -> None:
    """Display the per-band result counts as a Rich table."""
    table = Table(title="Match Quality")
    table.add_column("Band", style="cyan")
    table.add_column("Range")
    table.add_column("Matches", style="green", justify="right")

    ranges = {
        QualityBand.EXCELLENT: ">= 90%",
        QualityBand.GOOD: "70-90%",
        QualityBand.FAIR: "50-70%",
        QualityBand.POOR: "< 50%",
    }
    for band, count in summarize_quality(results).items():
        table.add_row(band.value.capitalize(), ranges[band], str(count))

    console.print(table)


def display_results_table(
    results: Sequence[MatchResult], console: Console, limit: int = 20
) -> None:
    """Display the best results as a Rich table.

    Args:
        results: Ranked match results
        console: Rich console for output
        limit: Maximum number of rows shown
    """
    shown = results[:limit]
    table = Table(title=f"Top {len(shown)} of {len(results)} Matches")
    table.add_column("Match %", justify="right")
    table.add_column("Left Description", style="cyan")
    table.add_column("Right Description", style="magenta")
    table.add_column("Common Words", justify="right")

    for result in shown:
        style = _BAND_STYLES[quality_band(result.score)]
        table.add_row(
            f"[{style}]{result.score:.2f}[/{style}]",
            result.left_description,
            result.right_description,
            str(len(result.differences.common_words)),
        )

    console.print(table)
