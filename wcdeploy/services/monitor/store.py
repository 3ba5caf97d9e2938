"""Shared status file read by the dashboard and written by every monitor.

The file is a JSON array with one entry per productId:

    [
      {
        "productId": "18734",
        "slug": "woocommerce-product-bundles",
        "version": "8.1.0",
        "status": "processing",
        "progress": 50,
        "startTime": 1760000000000,
        "lastUpdate": 1760000030000,
        "testRuns": {...}
      }
    ]

Each monitor only merges into its own entry. The whole read-modify-write runs
under an advisory lock on `<file>.lock`, and the array is replaced atomically.
Store failures never reach the monitor: losing the dashboard view is better
than losing deployment tracking.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from wcdeploy.core.structured import StrDict, as_obj_list, as_str_dict, get_id
from wcdeploy.output.console import ConsoleProtocol
from wcdeploy.platform.files import FileLock, atomic_write_text

__all__ = ["EntryIdentity", "StatusStore", "load_entries", "now_ms"]

TERMINAL_STATUSES = frozenset({"success", "failed", "error", "timeout", "warning"})


def now_ms() -> int:
    """Current time as epoch milliseconds (the file's timestamp unit)."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class EntryIdentity:
    """Fields that seed a new entry."""

    product_id: str
    slug: str
    version: str


def load_entries(path: Path) -> list[object]:
    """Read the status array; missing, empty or corrupt files read as []."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    if not content.strip():
        return []
    try:
        obj: object = json.loads(content)
    except json.JSONDecodeError:
        return []
    return as_obj_list(obj) or []


def _find_entry(entries: list[object], product_id: str) -> StrDict | None:
    for item in entries:
        entry = as_str_dict(item)
        if entry is not None and get_id(entry, "productId") == product_id:
            return entry
    return None


class StatusStore:
    """Insert-or-merge access to the shared status file.

    A store without a path is a no-op, so a monitor can run standalone.
    """

    def __init__(self, path: Path | None, *, console: ConsoleProtocol | None = None) -> None:
        self.path = path
        self._console = console

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def update(self, identity: EntryIdentity, fields: Mapping[str, object]) -> bool:
        """Merge `fields` into the entry for `identity.product_id`.

        Returns:
            True if the file was written, False if disabled or on I/O failure.
        """
        path = self.path
        if path is None:
            return False

        try:
            with FileLock(path.with_name(f"{path.name}.lock")):
                entries = load_entries(path)
                self._merge(entries, identity, fields)
                atomic_write_text(path, json.dumps(entries, indent=2) + "\n")
        except (OSError, TypeError, ValueError) as e:
            if self._console is not None:
                self._console.warning(f"Status file update failed: {e}")
            return False
        return True

    def entry(self, product_id: str) -> StrDict | None:
        if self.path is None:
            return None
        return _find_entry(load_entries(self.path), product_id)

    @staticmethod
    def _merge(entries: list[object], identity: EntryIdentity, fields: Mapping[str, object]) -> None:
        existing = _find_entry(entries, identity.product_id)
        if existing is not None:
            existing.update(fields)
            existing["lastUpdate"] = now_ms()
            return

        entry: StrDict = {
            "productId": identity.product_id,
            "slug": identity.slug,
            "version": identity.version,
            "startTime": now_ms(),
        }
        entry.update(fields)
        entries.append(entry)
