from __future__ import annotations

import os
from pathlib import Path

import typer

from wcdeploy.core.config import (
    ConfigError,
    Credentials,
    ProductConfig,
    load_credentials,
    load_product_config,
)
from wcdeploy.core.errors import ErrorCode
from wcdeploy.core.result import Err
from wcdeploy.output.console import ConsoleProtocol, Style


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def require_credentials(console: ConsoleProtocol) -> Credentials:
    result = load_credentials(os.environ)
    if isinstance(result, Err):
        print_config_error(result.error, console)
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    return result.value


def require_product(path: Path, console: ConsoleProtocol) -> ProductConfig:
    result = load_product_config(path.expanduser().resolve())
    if isinstance(result, Err):
        print_config_error(result.error, console)
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    return result.value
