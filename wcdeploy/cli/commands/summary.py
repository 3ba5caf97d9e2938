"""Summary command - render the shared status file once."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from wcdeploy.core.config import DEFAULT_STATUS_FILE
from wcdeploy.core.errors import ErrorCode
from wcdeploy.output.console import RichConsole
from wcdeploy.services.monitor.summary import (
    EntryView,
    format_duration,
    progress_bar,
    read_entries,
    totals,
)

_console = Console()

_STATUS_COLORS = {
    "success": "green",
    "failed": "red",
    "error": "red",
    "timeout": "yellow",
    "warning": "yellow",
}


def _table(views: list[EntryView]) -> Table:
    table = Table(title="Deployment Status", show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Product")
    table.add_column("Status")
    table.add_column("Progress")
    table.add_column("Duration", justify="right")
    for view in views:
        color = _STATUS_COLORS.get(view.status, "cyan")
        duration = format_duration(view.duration_ms) if view.duration_ms is not None else "N/A"
        table.add_row(
            view.product_id,
            f"{view.slug.removeprefix('woocommerce-')} v{view.version}",
            f"[{color}]{view.status.upper()}[/{color}]",
            progress_bar(view.progress),
            duration,
        )
    return table


def summary(
    status_file: Path = typer.Option(
        DEFAULT_STATUS_FILE, "--status-file", help="Shared status file written by monitors"
    ),
) -> None:
    """Show where every monitored deployment stands."""
    console = RichConsole()
    path = status_file.expanduser()
    views = read_entries(path)
    if not views:
        console.info(f"No deployments recorded in {path}")
        raise typer.Exit(code=0)

    _console.print(_table(views))

    t = totals(views)
    line = f"{t.succeeded} complete | {t.failed} failed | {t.in_progress} in progress"
    if t.failed:
        console.error(line)
    elif t.all_finished:
        console.success(line)
    else:
        console.info(line)

    for view in views:
        if view.error and view.status == "error":
            console.print(f"  {view.slug}: {view.error}")

    if t.failed:
        raise typer.Exit(code=int(ErrorCode.FAILURE))
