"""Watch mode: re-convert source documents when they change."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ebookconv.errors import EbookConvError

logger = logging.getLogger("ebookconv.watcher")

SOURCE_SUFFIXES = frozenset({".txt", ".text", ".md", ".markdown"})


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of converting one batch of changed files."""

    written: tuple[Path, ...]
    errors: tuple[tuple[Path, str], ...]
    duration_s: float
    changed_paths: frozenset[Path]

    @property
    def ok(self) -> bool:
        return not self.errors


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install ebookconv[watch]"
        ) from None


def filter_source_files(
    changed_paths: frozenset[Path],
    *,
    roots: list[Path],
) -> frozenset[Path]:
    """Keep convertible source files under `roots` that still exist."""
    kept: set[Path] = set()
    for p in changed_paths:
        if p.suffix.lower() not in SOURCE_SUFFIXES:
            continue
        if p.name.startswith("."):
            continue
        if not p.is_file():
            continue
        if any(p.is_relative_to(r) for r in roots):
            kept.add(p)
    return frozenset(kept)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    roots: list[Path],
) -> None:
    """Consume changes_iter, filter to source files and convert each batch."""
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_source_files(paths, roots=roots)
        if not relevant:
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")

        try:
            result = run_cycle(event)
        except Exception as exc:
            logger.warning("Watch cycle failed: %s", exc)
            on_error(exc)
            continue

        on_event(f"[watch] converted {len(result.written)} file(s) ({result.duration_s:.2f}s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": result.ok,
        "written": [str(p) for p in result.written],
        "errors": [{"path": str(p), "error": msg} for p, msg in result.errors],
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
    }


def build_cycle_runner(
    convert_file: Callable[[Path], Path],
) -> Callable[[WatchEvent], WatchCycleResult]:
    """Create a cycle runner that converts every changed file independently.

    `convert_file` converts one input and returns the path it wrote. A
    failure on one file is recorded and does not stop the others.
    """

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        written: list[Path] = []
        errors: list[tuple[Path, str]] = []
        for path in sorted(event.changed_paths):
            try:
                written.append(convert_file(path))
            except (EbookConvError, OSError, UnicodeDecodeError) as exc:
                errors.append((path, str(exc) or type(exc).__name__))

        return WatchCycleResult(
            written=tuple(written),
            errors=tuple(errors),
            duration_s=time.monotonic() - t0,
            changed_paths=event.changed_paths,
        )

    return runner


def make_watchfiles_iter(
    watch_paths: list[Path],
    *,
    debounce_ms: int = 200,
) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=debounce_ms)
