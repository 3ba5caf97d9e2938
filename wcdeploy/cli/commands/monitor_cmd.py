"""Monitor command - watch deployments until the remote tests finish."""

from __future__ import annotations

from pathlib import Path

import typer

from wcdeploy.cli.context import print_config_error, require_credentials, require_product
from wcdeploy.core.config import (
    DEFAULT_EXTENSIONS_CONFIG,
    DEFAULT_STATUS_FILE,
    ProductConfig,
    load_extensions_list,
    load_product_config,
)
from wcdeploy.core.errors import ErrorCode
from wcdeploy.core.result import Err
from wcdeploy.output.console import ConsoleProtocol, RichConsole, Style
from wcdeploy.services.monitor.launcher import build_monitor_config, launch_batch, run_foreground


def _resolve_paths(
    paths: list[Path] | None,
    all_extensions: bool,
    config: Path | None,
    console: ConsoleProtocol,
) -> list[Path]:
    if all_extensions:
        config_path = config or DEFAULT_EXTENSIONS_CONFIG
        result = load_extensions_list(config_path)
        if isinstance(result, Err):
            print_config_error(result.error, console)
            console.print(f"Create {config_path} or use --config to specify a config file", Style.DIM)
            raise typer.Exit(code=int(ErrorCode.FAILURE))
        return result.value
    if paths:
        return paths
    return [Path.cwd()]


def _load_products(paths: list[Path], console: ConsoleProtocol) -> list[ProductConfig]:
    products: list[ProductConfig] = []
    for path in paths:
        result = load_product_config(path.expanduser().resolve())
        if isinstance(result, Err):
            console.warning(f"Could not load {path}: {result.error.message}")
            continue
        products.append(result.value)
    return products


def monitor(
    paths: list[Path] | None = typer.Argument(None, help="Extension directories (default: cwd)"),
    all_extensions: bool = typer.Option(
        False, "--all", help="Monitor every extension listed in the extensions config"
    ),
    config: Path | None = typer.Option(None, "--config", help="Extensions config file"),
    status_file: Path | None = typer.Option(
        None, "--status-file", help="Shared status file for batch monitoring"
    ),
) -> None:
    """Watch deployment status with notifications."""
    console = RichConsole()
    console.header("Deployment Monitor")

    extension_paths = _resolve_paths(paths, all_extensions, config, console)
    credentials = require_credentials(console)

    if len(extension_paths) == 1 and not all_extensions:
        product = require_product(extension_paths[0], console)
        console.info("Starting deployment monitor...")
        code = run_foreground(build_monitor_config(product, credentials))
        raise typer.Exit(code=code)

    console.info(f"Monitoring {len(extension_paths)} extensions...")
    products = _load_products(extension_paths, console)
    if not products:
        console.error("No valid extensions found")
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    shared = (status_file or DEFAULT_STATUS_FILE).expanduser()
    launched = launch_batch(products, credentials, status_file=shared)
    if isinstance(launched, Err):
        console.error(launched.error)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    batch = launched.value
    for product, pid in batch.started:
        console.success(f"Started monitor for {product.slug} v{product.version} (PID: {pid})")
    for product, error in batch.failed:
        console.error(f"Failed to start monitor for {product.path}: {error.stderr or error}")

    if not batch.started:
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    console.newline()
    console.print(f"Status file: {shared}", Style.DIM)
    console.print(f"Check progress: wc-deploy summary --status-file {shared}", Style.BOLD)
    console.newline()
    console.info("For each successful deployment, tag and push:")
    for product, _pid in batch.started:
        console.print(
            f"  cd {product.path} && git tag {product.version} && git push && git push --tags",
            Style.DIM,
        )
