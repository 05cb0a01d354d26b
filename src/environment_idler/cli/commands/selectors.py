"""Selectors command for showing the rendered label selectors."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from environment_idler.cli.output import Table
from environment_idler.services.idler.config import load_config, render_selector
from environment_idler.services.idler.exceptions import IdlerConfigError

console = Console()


def selectors(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the idler YAML configuration.",
    ),
) -> None:
    """Print the label selectors an idling pass will use."""
    try:
        config = load_config(config_path)
    except IdlerConfigError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        if e.details:
            console.print(e.details, style="dim")
        raise typer.Exit(code=1) from None

    cli = config.selectors.cli
    service = config.selectors.service
    rows = [
        ("namespaces", "-", config.namespace_selector),
        ("cli", "builds", cli.builds),
        ("cli", "deployments", cli.deployments),
        ("cli", "pods", cli.pods),
        ("service", "builds", service.builds),
        ("service", "deployments", service.deployments),
        ("service", "pods", service.pods),
        ("service", "ingress", service.ingress),
    ]

    table = Table(title="Label selectors")
    table.add_column("Path", style="cyan", no_wrap=True)
    table.add_column("Resource", no_wrap=True)
    table.add_column("Selector")
    for path, resource, requirements in rows:
        table.add_row(path, resource, render_selector(requirements) or "[dim](all)[/dim]")
    console.print(table)

    console.print(
        f"\nService pods are additionally matched on "
        f"[bold]{config.selectors.service_name_label}=<deployment>[/bold]"
    )
