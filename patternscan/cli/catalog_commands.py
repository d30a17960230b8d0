"""Catalog CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from .core import EXIT_CATALOG_ERROR, app, console, err_console, make_catalog

catalog_app = typer.Typer(help="Inspect and validate signature catalogs")
app.add_typer(catalog_app, name="catalog")

_SEVERITY_STYLE = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "dim"}


@catalog_app.command("list")
def catalog_list(
    catalog_path: Path | None = typer.Option(None, "--catalog", "-c", help="Catalog JSON (default: built-in)"),
    category: str | None = typer.Option(None, "--category", help="Only this category"),
    severity: str | None = typer.Option(None, "--severity", "-s", help="Only this severity"),
) -> None:
    """List catalog signatures."""
    catalog = make_catalog(catalog_path)
    signatures = catalog.all()
    if category:
        signatures = tuple(sig for sig in signatures if sig in catalog.by_category(category))
    if severity:
        signatures = tuple(sig for sig in signatures if sig in catalog.by_severity(severity))

    table = Table(title=f"Signatures ({len(signatures)}/{len(catalog)})")
    table.add_column("ID", style="cyan")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Name")
    table.add_column("Source", style="dim")
    for sig in signatures:
        style = _SEVERITY_STYLE.get(sig.severity, "")
        table.add_row(sig.id, f"[{style}]{sig.severity}[/{style}]", sig.category, sig.name, sig.source)
    console.print(table)


@catalog_app.command("validate")
def catalog_validate(
    path: Path = typer.Argument(..., help="Catalog JSON file"),
) -> None:
    """Validate a catalog file and print every problem."""
    from patternscan.catalog.catalog import CatalogError
    from patternscan.catalog.loader import load_catalog

    try:
        catalog = load_catalog(path)
    except CatalogError as e:
        err_console.print(f"[red]✗[/red] {path}: {len(e.problems)} problem(s)")
        for problem in e.problems:
            err_console.print(f"  - {problem}", markup=False, highlight=False)
        raise typer.Exit(EXIT_CATALOG_ERROR)
    console.print(f"[green]✓[/green] {path}: {len(catalog)} signature(s), {len(catalog.categories)} categories")


@catalog_app.command("export")
def catalog_export(
    path: Path = typer.Argument(..., help="Destination JSON file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the built-in catalog to a JSON file for editing."""
    from patternscan.catalog.loader import export_catalog

    if path.exists() and not force:
        err_console.print(f"[yellow]{path} already exists (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)
    export_catalog(path)
    console.print(f"[green]✓[/green] Exported built-in catalog to {path}")
