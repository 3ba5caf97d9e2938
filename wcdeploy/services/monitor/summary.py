"""Read-only summary of the shared status file.

This is the one-shot counterpart of the live dashboard: it reads the file
once and reports where each deployment stands.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from wcdeploy.core.structured import as_str_dict, get_id, get_int, get_str
from wcdeploy.services.monitor.store import TERMINAL_STATUSES, load_entries, now_ms

ACTIVE_STATUSES = frozenset({"initializing", "deploying", "queued", "processing"})
FAILED_ENTRY_STATUSES = frozenset({"failed", "error", "timeout"})

# Active first, then successes, then failures.
_SORT_PRIORITY = {
    "initializing": 1,
    "deploying": 1,
    "queued": 1,
    "processing": 1,
    "success": 2,
    "warning": 2,
    "failed": 3,
    "error": 3,
    "timeout": 3,
}


@dataclass(frozen=True, slots=True)
class EntryView:
    product_id: str
    slug: str
    version: str
    status: str
    progress: int
    duration_ms: int | None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True, slots=True)
class Totals:
    succeeded: int
    failed: int
    in_progress: int
    total: int

    @property
    def all_finished(self) -> bool:
        return self.total > 0 and self.in_progress == 0


def format_duration(ms: int) -> str:
    seconds = max(0, ms) // 1000
    minutes, rest = divmod(seconds, 60)
    if minutes:
        return f"{minutes}m {rest}s"
    return f"{seconds}s"


def progress_bar(progress: int, width: int = 10) -> str:
    clamped = min(100, max(0, progress))
    filled = clamped * width // 100
    return f"{'█' * filled}{'░' * (width - filled)} {clamped}%"


def read_entries(path: Path, *, now: int | None = None) -> list[EntryView]:
    """Parse the status file into display rows, sorted by status priority."""
    current = now if now is not None else now_ms()
    views: list[EntryView] = []
    for item in load_entries(path):
        entry = as_str_dict(item)
        if entry is None:
            continue
        product_id = get_id(entry, "productId")
        if product_id is None:
            continue

        status = get_str(entry, "status") or "unknown"
        start = get_int(entry, "startTime")
        end = get_int(entry, "lastUpdate") if status in TERMINAL_STATUSES else None
        duration = (end or current) - start if start is not None else None

        views.append(
            EntryView(
                product_id=product_id,
                slug=get_str(entry, "slug") or "?",
                version=get_str(entry, "version") or "?",
                status=status,
                progress=get_int(entry, "progress") or 0,
                duration_ms=duration,
                error=get_str(entry, "error"),
            )
        )

    return sorted(views, key=lambda v: _SORT_PRIORITY.get(v.status, 4))


def totals(views: list[EntryView]) -> Totals:
    return Totals(
        succeeded=sum(1 for v in views if v.status == "success"),
        failed=sum(1 for v in views if v.status in FAILED_ENTRY_STATUSES),
        in_progress=sum(1 for v in views if not v.is_terminal),
        total=len(views),
    )
