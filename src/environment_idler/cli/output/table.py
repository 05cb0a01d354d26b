"""Table output for CLI commands.

Environment and resource names can be long; columns wrap instead of
truncating so a name is never shown partially.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from rich.table import Table as RichTable

if TYPE_CHECKING:
    from environment_idler.services.idler.models import ActuationOutcome

OverflowMethod = Literal["fold", "crop", "ellipsis", "ignore"]


class Table(RichTable):
    """Rich Table whose columns fold long text by default.

    Usage:
        table = Table(title="Selectors")
        table.add_column("Selector")  # wraps long text
        table.add_column("Path", no_wrap=True)  # override to disable wrapping
    """

    def add_column(
        self,
        *args: Any,
        overflow: OverflowMethod = "fold",
        **kwargs: Any,
    ) -> None:
        """Add a column with overflow="fold" unless told otherwise."""
        super().add_column(*args, overflow=overflow, **kwargs)


def outcome_status(outcome: ActuationOutcome) -> str:
    """Render an actuation outcome as a styled status cell."""
    if outcome.dry_run:
        return "[yellow]dry-run[/yellow]"
    if outcome.success:
        return "[green]done[/green]"
    return f"[red]failed[/red] {outcome.error or ''}".rstrip()
