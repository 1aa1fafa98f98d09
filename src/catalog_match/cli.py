"""CLI entry point for catalog-match tool."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from catalog_match.commands import compare, match
from catalog_match.core.config import load_config

console = Console()


@click.group()
@click.version_option(version="0.1.0", prog_name="catalog-match")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON configuration file (default: ~/.config/catalog-match/config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path: Path | None, verbose: bool):
    """Catalog Description Matching Tool.

    Reconciles two item catalogs by scoring the similarity of their
    descriptions and listing the best candidate matches for review.
    """
    ctx.ensure_object(dict)
    config = load_config(config_path)
    verbose = verbose or config.output.verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


# Register commands
main.add_command(match.match)
main.add_command(compare.compare)


if __name__ == "__main__":
    main()
