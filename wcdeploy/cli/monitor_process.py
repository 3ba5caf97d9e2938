"""Monitor process entry point.

Launched by `wc-deploy monitor` as:

    python -m wcdeploy.cli.monitor_process <base64 JSON MonitorConfig>

The exit code encodes the outcome: 0 success, 1 failure, 2 timeout.
"""

from __future__ import annotations

import typer

from wcdeploy.core.config import MonitorConfig
from wcdeploy.core.errors import ErrorCode
from wcdeploy.core.result import Err
from wcdeploy.output.console import ConsoleProtocol, RichConsole
from wcdeploy.services.monitor.client import StatusClient
from wcdeploy.services.monitor.http import HttpClient, RealHttpClient
from wcdeploy.services.monitor.loop import DeployMonitor
from wcdeploy.services.monitor.notifier import Notifier, SystemNotifier
from wcdeploy.services.monitor.store import StatusStore

app = typer.Typer(add_completion=False, no_args_is_help=False)


def build_monitor(
    config: MonitorConfig,
    *,
    console: ConsoleProtocol,
    http: HttpClient | None = None,
    notifier: Notifier | None = None,
) -> DeployMonitor:
    cwd = config.working_dir if config.working_dir.is_dir() else None
    return DeployMonitor(
        config,
        client=StatusClient(http or RealHttpClient(), console=console),
        store=StatusStore(config.status_file, console=console),
        notifier=notifier or SystemNotifier(console=console, cwd=cwd),
        console=console,
    )


@app.command()
def monitor_process(
    payload: str | None = typer.Argument(None, help="Base64-encoded JSON monitor config"),
) -> None:
    console = RichConsole()
    if not payload:
        typer.echo("error: missing config argument", err=True)
        typer.echo("usage: python -m wcdeploy.cli.monitor_process <config-json-base64>", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    decoded = MonitorConfig.from_payload(payload)
    if isinstance(decoded, Err):
        typer.echo(f"error: {decoded.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    try:
        outcome = build_monitor(decoded.value, console=console).run()
    except KeyboardInterrupt:
        console.newline()
        console.warning("Monitoring interrupted; the deployment is no longer tracked")
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    except Exception as e:
        console.error(f"Monitor crashed: {e}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    raise typer.Exit(code=int(outcome.exit_code))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
