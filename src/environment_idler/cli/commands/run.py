"""Run command: one idling pass over the selected environments."""

from __future__ import annotations

from pathlib import Path

import structlog
import typer
from rich.console import Console

from environment_idler.cli.output import Table, outcome_status
from environment_idler.integrations.kubernetes.exceptions import KubernetesError
from environment_idler.logging.config import configure_logging
from environment_idler.services.idler.config import IdlerConfig, load_config
from environment_idler.services.idler.exceptions import IdlerConfigError
from environment_idler.services.idler.handler import IdlingHandler
from environment_idler.services.idler.models import EnvironmentReport

console = Console()
logger = structlog.get_logger()


def apply_overrides(
    config: IdlerConfig,
    *,
    dry_run: bool = False,
    skip_hit_check: bool = False,
    skip_ingress_patch: bool = False,
    cli_enabled: bool = True,
    service_enabled: bool = True,
) -> IdlerConfig:
    """Return a copy of ``config`` with command line flags applied.

    Flags only ever switch behaviour on; a flag left at its default keeps
    whatever the configuration file says.
    """
    service = config.selectors.service.model_copy(
        update={
            "skip_hit_check": config.selectors.service.skip_hit_check or skip_hit_check,
            "skip_ingress_patch": config.selectors.service.skip_ingress_patch
            or skip_ingress_patch,
        }
    )
    return config.model_copy(
        update={
            "dry_run": config.dry_run or dry_run,
            "cli_enabled": config.cli_enabled and cli_enabled,
            "service_enabled": config.service_enabled and service_enabled,
            "selectors": config.selectors.model_copy(update={"service": service}),
        }
    )


def run(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the idler YAML configuration.",
    ),
    namespaces: list[str] | None = typer.Option(
        None,
        "--namespace",
        "-n",
        help="Only process this namespace (repeatable). Bypasses the namespace selector.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Log what would be patched without changing anything.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as JSON lines.",
    ),
    skip_hit_check: bool = typer.Option(
        False,
        "--skip-hit-check",
        help="Idle services without checking ingress traffic.",
    ),
    skip_ingress_patch: bool = typer.Option(
        False,
        "--skip-ingress-patch",
        help="Scale services without annotating their ingresses.",
    ),
    cli_enabled: bool = typer.Option(
        True,
        "--cli/--no-cli",
        help="Evaluate CLI workloads.",
    ),
    service_enabled: bool = typer.Option(
        True,
        "--services/--no-services",
        help="Evaluate service workloads.",
    ),
) -> None:
    """Run a single idling pass and print a summary."""
    try:
        config = apply_overrides(
            load_config(config_path),
            dry_run=dry_run,
            skip_hit_check=skip_hit_check,
            skip_ingress_patch=skip_ingress_patch,
            cli_enabled=cli_enabled,
            service_enabled=service_enabled,
        )
    except IdlerConfigError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        if e.details:
            console.print(e.details, style="dim")
        raise typer.Exit(code=1) from None

    # The root callback already configured logging from the global flags.
    options = ctx.obj or {}
    cli_debug = options.get("debug", False)
    if json_logs or (config.debug and not cli_debug):
        configure_logging(
            verbose=options.get("verbose", False),
            debug=cli_debug or config.debug,
            json_output=json_logs,
        )

    logger.info("idling_pass_started", dry_run=config.dry_run, namespaces=namespaces or "all")

    try:
        with IdlingHandler.from_config(config) as handler:
            environments = handler.resolve(namespaces) if namespaces else handler.discover()
            reports = handler.run(environments)
    except KubernetesError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    logger.info("idling_pass_finished", environments=len(reports))
    print_reports(reports, dry_run=config.dry_run)


def print_reports(reports: list[EnvironmentReport], *, dry_run: bool = False) -> None:
    """Print one row per environment and one per attempted mutation."""
    if not reports:
        console.print("[yellow]No environments matched.[/yellow]")
        return

    title = "Idling pass (dry run)" if dry_run else "Idling pass"
    table = Table(title=title)
    table.add_column("Environment", style="cyan")
    table.add_column("CLI")
    table.add_column("Services")
    table.add_column("Resource")
    table.add_column("Status")

    for report in reports:
        cli = report.cli_decision.reason if report.cli_decision else "-"
        service = report.service_decision.reason if report.service_decision else "-"
        if report.error:
            table.add_row(report.environment, cli, service, "-", f"[red]error[/red] {report.error}")
            continue
        if not report.outcomes:
            table.add_row(report.environment, cli, service, "-", "[dim]unchanged[/dim]")
            continue
        for index, outcome in enumerate(report.outcomes):
            first = index == 0
            table.add_row(
                report.environment if first else "",
                cli if first else "",
                service if first else "",
                f"{outcome.kind}/{outcome.name}",
                outcome_status(outcome),
            )

    console.print(table)
