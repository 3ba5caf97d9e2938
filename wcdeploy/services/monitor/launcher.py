"""Starting monitor processes.

One extension runs its monitor in the foreground with inherited stdio. A
batch seeds the shared status file and starts one detached monitor per
extension; each of them then only touches its own entry.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from wcdeploy.core.config import Credentials, MonitorConfig, ProductConfig
from wcdeploy.core.errors import ErrorCode
from wcdeploy.core.result import Err, Ok, Result
from wcdeploy.platform.files import atomic_write_text
from wcdeploy.platform.process import ProcessError, run_silent, spawn_detached
from wcdeploy.services.monitor.store import now_ms

__all__ = [
    "MONITOR_MODULE",
    "BatchLaunch",
    "build_monitor_config",
    "monitor_command",
    "run_foreground",
    "spawn_background",
    "seed_status_file",
    "launch_batch",
]

MONITOR_MODULE = "wcdeploy.cli.monitor_process"


def build_monitor_config(
    product: ProductConfig,
    credentials: Credentials,
    *,
    commit_message: str | None = None,
    status_file: Path | None = None,
    batch_index: int = 0,
    batch_total: int = 1,
) -> MonitorConfig:
    return MonitorConfig(
        product_id=product.product_id,
        version=product.version,
        slug=product.slug,
        credentials=credentials,
        working_dir=product.path,
        commit_message=commit_message or f"Deploy version {product.version}",
        status_file=status_file,
        is_batch_deploy=batch_total > 1,
        batch_index=batch_index,
        batch_total=batch_total,
    )


def monitor_command(config: MonitorConfig) -> list[str]:
    return [sys.executable, "-m", MONITOR_MODULE, config.to_payload()]


def run_foreground(config: MonitorConfig) -> int:
    """Run a monitor attached to the terminal and return its exit code."""
    result = run_silent(monitor_command(config), cwd=config.working_dir)
    if isinstance(result, Ok):
        return int(ErrorCode.OK)
    code = result.error.returncode
    # -1: the interpreter could not be started at all.
    return code if code > 0 else int(ErrorCode.FAILURE)


def spawn_background(config: MonitorConfig) -> Result[int, ProcessError]:
    """Start a detached monitor; returns its PID."""
    return spawn_detached(monitor_command(config), cwd=config.working_dir)


def seed_status_file(path: Path, products: Sequence[ProductConfig]) -> Result[None, str]:
    """Replace the status file with one `initializing` entry per product."""
    started = now_ms()
    entries = [
        {
            "productId": product.product_id,
            "slug": product.slug,
            "version": product.version,
            "status": "initializing",
            "progress": 0,
            "startTime": started,
        }
        for product in products
    ]
    try:
        atomic_write_text(path, json.dumps(entries, indent=2) + "\n")
    except OSError as e:
        return Err(f"failed to write status file {path}: {e}")
    return Ok(None)


@dataclass(frozen=True, slots=True)
class BatchLaunch:
    started: list[tuple[ProductConfig, int]]
    failed: list[tuple[ProductConfig, ProcessError]]


def launch_batch(
    products: Sequence[ProductConfig],
    credentials: Credentials,
    *,
    status_file: Path,
) -> Result[BatchLaunch, str]:
    """Seed the status file, then start one detached monitor per product."""
    seeded = seed_status_file(status_file, products)
    if isinstance(seeded, Err):
        return seeded

    started: list[tuple[ProductConfig, int]] = []
    failed: list[tuple[ProductConfig, ProcessError]] = []
    total = len(products)
    for index, product in enumerate(products):
        config = build_monitor_config(
            product,
            credentials,
            status_file=status_file,
            batch_index=index,
            batch_total=total,
        )
        result = spawn_background(config)
        if isinstance(result, Err):
            failed.append((product, result.error))
        else:
            started.append((product, result.value))

    return Ok(BatchLaunch(started=started, failed=failed))
