"""Single-line terminal progress for batch conversions."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from shutil import get_terminal_size
from typing import TextIO


@dataclass(slots=True)
class ConversionProgress:
    total: int
    stream: TextIO = sys.stderr
    enabled: bool = True
    width: int = 24
    min_interval_s: float = 0.05
    converted: int = field(default=0, init=False)
    failed: int = field(default=0, init=False)
    _last_draw: float = field(default=0.0, init=False)
    _closed: bool = field(default=False, init=False)

    @property
    def done(self) -> int:
        return self.converted + self.failed

    def record(self, path: str, *, ok: bool) -> None:
        """Count one finished input and redraw."""

        if self._closed:
            return
        if ok:
            self.converted += 1
        else:
            self.failed += 1
        self._draw(path, force=self.done >= self.total)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._draw("", force=True)
        self._emit("\n")

    def line(self, path: str) -> str:
        total = max(0, self.total)
        done = min(self.done, total) if total else self.done
        filled = self.width if not total else round(self.width * done / total)
        bar = "=" * filled + " " * (self.width - filled)
        text = f"convert [{bar}] {done}/{total} ok={self.converted} failed={self.failed}"
        if path:
            text += f"  {path}"
        cols = get_terminal_size(fallback=(80, 20)).columns
        return text[: max(0, cols - 1)]

    def _draw(self, path: str, *, force: bool = False) -> None:
        if not self.enabled:
            return
        now = time.monotonic()
        if not force and now - self._last_draw < self.min_interval_s:
            return
        self._last_draw = now
        self._emit("\r" + self.line(path))

    def _emit(self, s: str) -> None:
        if not self.enabled:
            return
        try:
            self.stream.write(s)
            self.stream.flush()
        except (OSError, ValueError):
            # A closed or broken stream disables drawing; conversion carries on.
            self.enabled = False
