"""Status command - one-shot deployment status check for an extension."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from wcdeploy.cli.context import require_credentials, require_product
from wcdeploy.core.errors import ErrorCode
from wcdeploy.core.result import Err
from wcdeploy.output.console import RichConsole
from wcdeploy.services.monitor.client import StatusClient
from wcdeploy.services.monitor.http import RealHttpClient
from wcdeploy.services.monitor.interpreter import calculate_progress, classify
from wcdeploy.services.monitor.snapshot import Snapshot

_console = Console()


def _runs_table(snapshot: Snapshot) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Test")
    table.add_column("Status")
    table.add_column("Result", overflow="fold")
    colors = {"success": "green", "failed": "red", "error": "red"}
    for run in snapshot.test_runs or ():
        color = colors.get(run.status, "yellow")
        table.add_row(run.test_type, f"[{color}]{run.status}[/{color}]", run.result_url or "")
    return table


def status(
    path: Path = typer.Argument(Path("."), help="Extension directory"),
) -> None:
    """Check the latest deployment status once."""
    console = RichConsole()
    product = require_product(path, console)
    credentials = require_credentials(console)

    console.header(f"Deployment Status: {product.slug} v{product.version}")
    client = StatusClient(RealHttpClient(), console=console)
    result = client.check_status(credentials, product.product_id)
    if isinstance(result, Err):
        console.error(f"Failed to check status: {result.error.message}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    snapshot = result.value
    console.print(f"Status: {snapshot.status} ({calculate_progress(snapshot)}%, {classify(snapshot)})")
    if snapshot.test_runs:
        _console.print(_runs_table(snapshot))
    else:
        console.print("No test runs yet")
