"""CLI commands for patternscan."""

import asyncio
from pathlib import Path

import typer
from rich.table import Table

from .core import (
    EXIT_DEGRADED,
    EXIT_FINDINGS,
    app,
    console,
    err_console,
    make_catalog,
    set_quiet,
)

# ============================================================================
# Scan
# ============================================================================


@app.command()
def scan(
    paths: list[Path] = typer.Argument(..., help="Files or directories to scan"),
    catalog_path: Path | None = typer.Option(None, "--catalog", "-c", help="Catalog JSON (default: built-in)"),
    output_format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    fail_on: str | None = typer.Option(None, "--fail-on", help="critical|high|medium|low|none"),
    concurrency: int | None = typer.Option(None, "--concurrency", "-j", min=1, help="Parallel targets"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Silence log output"),
) -> None:
    """Scan source files against the signature catalog."""
    from patternscan.config.loader import load_config
    from patternscan.report.render import to_json, to_text
    from patternscan.scanner.matcher import Matcher
    from patternscan.telemetry.inmemory import InMemoryTelemetry
    from patternscan.walker import walker_from_config

    set_quiet(quiet)
    if output_format not in {"text", "json"}:
        err_console.print(f"[red]Unknown format {output_format!r} (use text or json)[/red]")
        raise typer.Exit(2)

    config = load_config()
    updates: dict[str, object] = {}
    if fail_on is not None:
        updates["fail_on"] = fail_on
    if concurrency is not None:
        updates["concurrency"] = concurrency
    if updates:
        try:
            config = config.model_validate({**config.model_dump(), **updates})
        except ValueError as e:
            err_console.print(f"[red]Invalid option:[/red] {e}")
            raise typer.Exit(2)

    catalog = make_catalog(catalog_path or config.catalog_file)
    walker = walker_from_config(config)
    targets = walker.collect(paths, base=Path.cwd())

    telemetry = InMemoryTelemetry()
    matcher = Matcher.from_config(config, telemetry=telemetry)
    report = asyncio.run(matcher.scan_async(catalog, targets))

    rendered = to_json(report) if output_format == "json" else to_text(report, guidelines=catalog.guidelines)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        err_console.print(f"[green]✓[/green] Report written to {output}")
    else:
        console.print(rendered.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)

    skipped = sum(walker.stats.skipped.values())
    errors = len(report.signature_errors)
    err_console.print(
        f"Scan completed, {report.total_findings} finding(s) in {report.targets_scanned} file(s), "
        f"{errors} signature(s) skipped due to runtime errors, {skipped} file(s) skipped.",
        markup=False,
        highlight=False,
    )
    err_console.print(f"[dim]{telemetry.total_time('scan.duration'):.2f}s[/dim]")

    if config.fail_on != "none" and report.at_or_above(config.fail_on):
        raise typer.Exit(EXIT_FINDINGS)
    if report.outcome == "degraded":
        raise typer.Exit(EXIT_DEGRADED)


# ============================================================================
# Diff
# ============================================================================


@app.command()
def diff(
    previous: Path = typer.Argument(..., help="Earlier JSON report"),
    current: Path = typer.Argument(..., help="Later JSON report"),
    show: bool = typer.Option(False, "--show", help="List new and resolved findings"),
) -> None:
    """Compare two JSON reports."""
    from patternscan.report.diff import diff_reports
    from patternscan.report.render import ReportFormatError, read_report

    try:
        before = read_report(previous)
        after = read_report(current)
    except (OSError, ReportFormatError) as e:
        err_console.print(f"[red]Cannot read report:[/red] {e}")
        raise typer.Exit(2)

    result = diff_reports(before, after)
    console.print(
        f"[red]+{len(result.new)} new[/red]  [green]-{len(result.resolved)} resolved[/green]  "
        f"{len(result.persisting)} persisting"
    )

    table = Table(title="Trends")
    table.add_column("Metric", style="cyan")
    table.add_column("Previous", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Trend")
    colors = {"improving": "green", "stable": "dim", "degrading": "red"}
    for trend in result.trends:
        table.add_row(
            trend.metric,
            str(trend.previous_value),
            str(trend.value),
            f"{trend.change_percent:+.1f}%",
            f"[{colors[trend.direction]}]{trend.direction}[/{colors[trend.direction]}]",
        )
    console.print(table)

    if show:
        for label, findings in (("new", result.new), ("resolved", result.resolved)):
            for finding in findings:
                console.print(
                    f"  {label:<8} {finding.severity:<8} {finding.finding_id}",
                    markup=False,
                    highlight=False,
                )


from . import catalog_commands as _catalog_commands  # noqa: E402,F401
from . import config_commands as _config_commands  # noqa: E402,F401
