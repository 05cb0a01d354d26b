"""Centralized CLI output utilities.

Usage:
    from environment_idler.cli.output import Table

    table = Table(title="Idling pass")
    table.add_column("Environment", style="cyan")
    table.add_row("project-main")
    console.print(table)
"""

from environment_idler.cli.output.table import Table, outcome_status

__all__ = ["Table", "outcome_status"]
