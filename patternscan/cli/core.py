"""Shared CLI application context and setup helpers."""

from __future__ import annotations

from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from patternscan import __logo__, __version__

app = typer.Typer(
    name="patternscan",
    help=f"{__logo__} patternscan - regex signature scanner for source trees",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_CATALOG_ERROR = 2
EXIT_DEGRADED = 3


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} patternscan v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
) -> None:
    """patternscan - regex signature scanner for source trees."""


def set_quiet(quiet: bool) -> None:
    if quiet:
        logger.disable("patternscan")
    else:
        logger.enable("patternscan")


def make_catalog(catalog_path: Path | None):
    """Load the catalog or exit with every validation problem printed."""
    from patternscan.catalog.catalog import CatalogError
    from patternscan.catalog.loader import load_catalog

    try:
        return load_catalog(catalog_path)
    except CatalogError as e:
        err_console.print(
            f"[red]Catalog failed to load, scan aborted, see {len(e.problems)} error(s) below:[/red]"
        )
        for problem in e.problems:
            err_console.print(f"  - {problem}", markup=False, highlight=False)
        raise typer.Exit(EXIT_CATALOG_ERROR)
