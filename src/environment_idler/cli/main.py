"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from environment_idler import __version__
from environment_idler.cli.commands import run, selectors
from environment_idler.logging.config import configure_logging

app = typer.Typer(
    name="idler",
    help="Scale idle Lagoon environments down to zero.",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"idler version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
) -> None:
    """Environment idler - idle CLI and service workloads nobody is using."""
    ctx.obj = {"verbose": verbose, "debug": debug}
    configure_logging(verbose=verbose, debug=debug)


# Register subcommands
app.command(name="run")(run.run)
app.command(name="selectors")(selectors.selectors)


if __name__ == "__main__":
    app()
