from __future__ import annotations

import typer

from wcdeploy import __version__
from wcdeploy.cli.commands.monitor_cmd import monitor
from wcdeploy.cli.commands.status import status
from wcdeploy.cli.commands.summary import summary

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command()(monitor)
app.command()(status)
app.command()(summary)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()
