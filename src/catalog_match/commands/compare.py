"""Compare command for scoring two descriptions."""

import click
from rich.console import Console
from rich.table import Table

from catalog_match.analysis.matching import describe_differences
from catalog_match.analysis.normalize import normalize_description
from catalog_match.analysis.report import quality_band
from catalog_match.analysis.similarity import calculate_similarity

console = Console()


@click.command()
@click.argument("first")
@click.argument("second")
def compare(first: str, second: str) -> None:
    """Show the similarity of two descriptions.

    FIRST and SECOND are free-text descriptions.
    """
    score = calculate_similarity(first, second)
    differences = describe_differences(first, second)

    table = Table(title="Description Comparison")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("First (normalized)", normalize_description(first))
    table.add_row("Second (normalized)", normalize_description(second))
    table.add_row("Match %", f"{score:.2f}")
    table.add_row("Quality", quality_band(score).value)
    table.add_row("Common words", ", ".join(differences.common_words) or "-")
    table.add_row("Only in first", ", ".join(differences.only_in_left) or "-")
    table.add_row("Only in second", ", ".join(differences.only_in_right) or "-")
    table.add_row("Word accuracy", f"{differences.word_accuracy:.2f}%")

    console.print(table)
