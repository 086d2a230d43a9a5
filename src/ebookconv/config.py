"""Project configuration loading for ebookconv.

This module only reads `ebookconv.toml` and performs light validation. A
missing file is not an error: every setting has a built-in default.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ebookconv.errors import EbookConvConfigError
from ebookconv.metadata import Metadata

CONFIG_FILENAME = "ebookconv.toml"


@dataclass(frozen=True)
class ConvertConfig:
    to: str
    output_dir: str


@dataclass(frozen=True)
class WatchConfig:
    paths: list[str]
    debounce_ms: int


@dataclass(frozen=True)
class EbookConvConfig:
    version: int
    root: Path
    metadata: Metadata
    convert: ConvertConfig
    watch: WatchConfig


def default_config(root: Path | None = None) -> EbookConvConfig:
    return EbookConvConfig(
        version=1,
        root=root if root is not None else Path.cwd(),
        metadata=Metadata(),
        convert=ConvertConfig(to="html", output_dir=""),
        watch=WatchConfig(paths=["."], debounce_ms=200),
    )


def find_config_file(start: Path) -> Path | None:
    """Walk upward from `start` (file or directory) looking for `ebookconv.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        candidate = cur / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if cur.parent == cur:
            return None
        cur = cur.parent


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise EbookConvConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise EbookConvConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise EbookConvConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise EbookConvConfigError(f"Expected {name} to be a string.")
    return value


def _optional_str(table: dict[str, Any], key: str, *, name: str) -> str | None:
    if key not in table:
        return None
    return _as_str(table[key], name=name)


def load_config(*, config_path: Path | None = None, start: Path | None = None) -> EbookConvConfig:
    """Load and validate `ebookconv.toml`.

    With no `config_path`, the file is searched for upward from `start` (or
    the current working directory); if none is found, defaults are returned.
    An explicit `config_path` must exist.
    """

    if config_path is None:
        config_path = find_config_file(start if start is not None else Path.cwd())
        if config_path is None:
            return default_config()
    root = config_path.resolve().parent

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise EbookConvConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise EbookConvConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise EbookConvConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise EbookConvConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise EbookConvConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise EbookConvConfigError(f"Unsupported config version: {version_i} (expected 1).")

    meta_tbl = _as_table(data.get("metadata"), name="metadata")
    convert_tbl = _as_table(data.get("convert"), name="convert")
    watch_tbl = _as_table(data.get("watch"), name="watch")
    defaults = default_config(root)

    metadata = Metadata(
        title=_optional_str(meta_tbl, "title", name="metadata.title"),
        author=_optional_str(meta_tbl, "author", name="metadata.author"),
        language=_optional_str(meta_tbl, "language", name="metadata.language"),
    )

    if "to" in convert_tbl:
        to = _as_str(convert_tbl["to"], name="convert.to").lower()
    else:
        to = defaults.convert.to

    if "output_dir" in convert_tbl:
        output_dir = _as_str(convert_tbl["output_dir"], name="convert.output_dir")
    else:
        output_dir = defaults.convert.output_dir

    if "paths" in watch_tbl:
        watch_paths = _as_str_list(watch_tbl["paths"], name="watch.paths")
    else:
        watch_paths = defaults.watch.paths

    if "debounce_ms" in watch_tbl:
        debounce_ms = _as_int(watch_tbl["debounce_ms"], name="watch.debounce_ms")
    else:
        debounce_ms = defaults.watch.debounce_ms

    # Validation
    if to not in ("json", "html"):
        raise EbookConvConfigError(
            f"Invalid config: convert.to must be 'json' or 'html', got {to!r}."
        )

    if not watch_paths:
        raise EbookConvConfigError("Invalid config: watch.paths must not be empty.")

    if debounce_ms < 0:
        raise EbookConvConfigError("Invalid config: watch.debounce_ms must be >= 0.")

    return EbookConvConfig(
        version=version_i,
        root=root,
        metadata=metadata,
        convert=ConvertConfig(to=to, output_dir=output_dir),
        watch=WatchConfig(paths=watch_paths, debounce_ms=debounce_ms),
    )
