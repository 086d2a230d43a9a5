"""Tests for ebookconv.watcher module."""

from __future__ import annotations

import asyncio
import sys
import types
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from ebookconv.errors import InvalidInputError
from ebookconv.watcher import (
    WatchCycleResult,
    WatchEvent,
    build_cycle_runner,
    filter_source_files,
    format_watch_cycle_json,
    run_watch_loop,
)


def _touch(path: Path, text: str = "Chapter 1\nbody\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


async def _fake_changes(
    batches: list[set[tuple[Any, str]]],
) -> AsyncIterator[set[tuple[Any, str]]]:
    for batch in batches:
        yield batch


def _ok_result(event: WatchEvent) -> WatchCycleResult:
    return WatchCycleResult(
        written=(), errors=(), duration_s=0.1, changed_paths=event.changed_paths
    )


# ---------------------------------------------------------------------------
# Optional dependency check
# ---------------------------------------------------------------------------


def test_check_watchfiles_available_raises_when_missing(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "watchfiles", None)

    from ebookconv.watcher import check_watchfiles_available

    with pytest.raises(ImportError, match="pip install ebookconv\\[watch\\]"):
        check_watchfiles_available()


def test_check_watchfiles_available_succeeds_when_installed(monkeypatch) -> None:
    fake = types.ModuleType("watchfiles")
    monkeypatch.setitem(sys.modules, "watchfiles", fake)

    from ebookconv.watcher import check_watchfiles_available

    check_watchfiles_available()  # no exception


# ---------------------------------------------------------------------------
# File filtering
# ---------------------------------------------------------------------------


def test_filter_keeps_source_documents_under_roots(tmp_path: Path) -> None:
    txt = _touch(tmp_path / "books" / "a.txt")
    md = _touch(tmp_path / "books" / "b.MD")
    markdown = _touch(tmp_path / "books" / "nested" / "c.markdown")

    result = filter_source_files(frozenset({txt, md, markdown}), roots=[tmp_path / "books"])
    assert result == frozenset({txt, md, markdown})


def test_filter_drops_outputs_hidden_missing_and_outside(tmp_path: Path) -> None:
    root = tmp_path / "books"
    changed = frozenset(
        {
            _touch(root / "a.html"),  # output format
            _touch(root / "a.json"),  # output format
            _touch(root / ".draft.txt"),  # hidden
            root / "deleted.txt",  # no longer exists
            _touch(tmp_path / "elsewhere" / "x.txt"),  # outside roots
        }
    )
    assert filter_source_files(changed, roots=[root]) == frozenset()


# ---------------------------------------------------------------------------
# Watch loop orchestration
# ---------------------------------------------------------------------------


def test_watch_loop_calls_run_cycle_on_change(tmp_path: Path) -> None:
    src = _touch(tmp_path / "a.txt")
    cycles: list[WatchEvent] = []
    results: list[WatchCycleResult] = []

    def fake_run_cycle(event: WatchEvent) -> WatchCycleResult:
        cycles.append(event)
        return _ok_result(event)

    asyncio.run(
        run_watch_loop(
            changes_iter=_fake_changes([{(1, str(src))}]),
            run_cycle=fake_run_cycle,
            on_event=lambda msg: None,
            on_cycle_result=results.append,
            on_error=lambda e: None,
            roots=[tmp_path],
        )
    )
    assert len(cycles) == 1
    assert src in cycles[0].changed_paths
    assert len(results) == 1


def test_watch_loop_skips_irrelevant_changes(tmp_path: Path) -> None:
    out = _touch(tmp_path / "a.html")
    cycles: list[WatchEvent] = []

    def fake_run_cycle(event: WatchEvent) -> WatchCycleResult:
        cycles.append(event)
        return _ok_result(event)

    asyncio.run(
        run_watch_loop(
            changes_iter=_fake_changes([{(1, str(out))}]),
            run_cycle=fake_run_cycle,
            on_event=lambda msg: None,
            on_cycle_result=lambda r: None,
            on_error=lambda e: None,
            roots=[tmp_path],
        )
    )
    assert cycles == []


def test_watch_loop_emits_messages(tmp_path: Path) -> None:
    src = _touch(tmp_path / "story.md")
    messages: list[str] = []

    asyncio.run(
        run_watch_loop(
            changes_iter=_fake_changes([{(1, str(src))}]),
            run_cycle=_ok_result,
            on_event=messages.append,
            on_cycle_result=lambda r: None,
            on_error=lambda e: None,
            roots=[tmp_path],
        )
    )
    assert any("change detected" in m and "story.md" in m for m in messages)
    assert any("converted 0 file(s)" in m for m in messages)


def test_watch_loop_reports_errors_and_continues(tmp_path: Path) -> None:
    first = _touch(tmp_path / "a.txt")
    second = _touch(tmp_path / "b.txt")
    errors: list[BaseException] = []
    seen: list[WatchEvent] = []

    def flaky(event: WatchEvent) -> WatchCycleResult:
        seen.append(event)
        if len(seen) == 1:
            raise RuntimeError("boom")
        return _ok_result(event)

    asyncio.run(
        run_watch_loop(
            changes_iter=_fake_changes([{(1, str(first))}, {(1, str(second))}]),
            run_cycle=flaky,
            on_event=lambda msg: None,
            on_cycle_result=lambda r: None,
            on_error=errors.append,
            roots=[tmp_path],
        )
    )
    assert len(seen) == 2
    assert [str(e) for e in errors] == ["boom"]


# ---------------------------------------------------------------------------
# Cycle runner and JSON formatting
# ---------------------------------------------------------------------------


def test_cycle_runner_converts_each_file_and_collects_errors(tmp_path: Path) -> None:
    good = _touch(tmp_path / "good.txt")
    bad = _touch(tmp_path / "bad.txt", "")

    def convert_file(path: Path) -> Path:
        if path == bad:
            raise InvalidInputError("Content cannot be empty and must be text.")
        return path.with_suffix(".html")

    runner = build_cycle_runner(convert_file)
    result = runner(WatchEvent(changed_paths=frozenset({good, bad}), timestamp=0.0))

    assert result.written == (tmp_path / "good.html",)
    assert result.errors == ((bad, "Content cannot be empty and must be text."),)
    assert result.ok is False
    assert result.duration_s >= 0


def test_cycle_runner_does_not_swallow_unexpected_errors(tmp_path: Path) -> None:
    src = _touch(tmp_path / "a.txt")

    def convert_file(path: Path) -> Path:
        raise RuntimeError("bug")

    runner = build_cycle_runner(convert_file)
    with pytest.raises(RuntimeError):
        runner(WatchEvent(changed_paths=frozenset({src}), timestamp=0.0))


def test_format_watch_cycle_json() -> None:
    result = WatchCycleResult(
        written=(Path("/b/a.html"),),
        errors=((Path("/b/c.txt"), "empty"),),
        duration_s=1.2345,
        changed_paths=frozenset({Path("/b/c.txt"), Path("/b/a.txt")}),
    )
    assert format_watch_cycle_json(result) == {
        "command": "watch",
        "ok": False,
        "written": ["/b/a.html"],
        "errors": [{"path": "/b/c.txt", "error": "empty"}],
        "duration_s": 1.23,
        "changed_paths": ["/b/a.txt", "/b/c.txt"],
    }
