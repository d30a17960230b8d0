"""Config CLI commands."""

from __future__ import annotations

import typer

from .core import app, console

config_app = typer.Typer(help="Manage scanner configuration")
app.add_typer(config_app, name="config")


@config_app.command("path")
def config_path_cmd() -> None:
    """Show config file location."""
    from patternscan.config.loader import get_config_path

    console.print(get_config_path())


@config_app.command("init")
def config_init() -> None:
    """Create a config file with default values."""
    from patternscan.config.loader import get_config_path, save_config
    from patternscan.config.schema import ScannerConfig

    config_path = get_config_path()
    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()
    save_config(ScannerConfig(), config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")
