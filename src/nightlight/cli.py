# src/nightlight/cli.py: Command-Line Interface (CLI) entry point.
# Implemented using Typer, this module provides the 'nightlight' command. By
# default it launches the service as a detached background process; --svc
# runs it in the foreground, --stop signals a running instance and --init
# writes an empty configuration file.

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import __version__
from .config import write_empty_config
from .service import run_service, spawn_service, stop_service
from .util.errors import NightlightError
from .util.log import setup_logging
from .util.paths import get_default_config_path

app = typer.Typer(
    name="nightlight",
    help="Switch between a day and a night desktop theme at sunrise and sunset.",
    add_completion=False,
)
console = Console(stderr=True)


def version_callback(value: bool):
    """Print the version and exit."""
    if value:
        print(f"nightlight version: {__version__}")
        raise typer.Exit()


@app.command()
def main(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the nightlight.yaml configuration file. Defaults to the user config directory.",
        resolve_path=True,
    ),
    svc: bool = typer.Option(False, "--svc", help="Run the service in the foreground."),
    stop: bool = typer.Option(False, "--stop", help="Stop a running service."),
    init: bool = typer.Option(False, "--init", help="Write an empty configuration file and exit."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """
    Nightlight theme switcher.
    """
    setup_logging()
    config_path = config_path or get_default_config_path()

    try:
        if stop:
            pid = stop_service()
            if pid is None:
                console.print("No running nightlight service.")
            else:
                console.print(f"Stopping nightlight service (pid {pid}).")
            return

        if init:
            path = write_empty_config(config_path)
            console.print(f"Wrote empty configuration to [bold]{path}[/bold]. Fill in the blanks and start the service.")
            return

        if svc:
            run_service(config_path)
            return

        pid = spawn_service(config_path)
        console.print(f"Started nightlight service (pid {pid}).")
    except NightlightError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", highlight=False)
        raise typer.Exit(code=e.exit_code)


def run_cli():
    """Main entry point for the CLI application."""
    try:
        app()
    except NightlightError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", highlight=False)
        sys.exit(e.exit_code)


if __name__ == "__main__":
    run_cli()
