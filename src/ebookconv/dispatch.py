"""Pick a converter for a (source, target) format pair and run it."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ebookconv.errors import InvalidInputError, UnsupportedConversionError
from ebookconv.markup import markup_to_hypertext
from ebookconv.metadata import Metadata
from ebookconv.record import to_structured_record
from ebookconv.render import to_hypertext

logger = logging.getLogger("ebookconv.dispatch")

Converter = Callable[..., str]


class SourceFormat(StrEnum):
    TXT = "txt"
    MD = "md"
    MARKDOWN = "markdown"


class TargetFormat(StrEnum):
    JSON = "json"
    HTML = "html"


CONVERTERS: Mapping[tuple[SourceFormat, TargetFormat], Converter] = MappingProxyType(
    {
        (SourceFormat.TXT, TargetFormat.JSON): to_structured_record,
        (SourceFormat.TXT, TargetFormat.HTML): to_hypertext,
        (SourceFormat.MD, TargetFormat.HTML): markup_to_hypertext,
        (SourceFormat.MARKDOWN, TargetFormat.HTML): markup_to_hypertext,
    }
)

_SUFFIX_FORMATS = {
    ".txt": SourceFormat.TXT,
    ".text": SourceFormat.TXT,
    ".md": SourceFormat.MD,
    ".markdown": SourceFormat.MARKDOWN,
}


def supported_conversions() -> list[str]:
    return sorted(f"{src}-{dst}" for src, dst in CONVERTERS)


def resolve_converter(source_format: str, target_format: str) -> Converter:
    """Look up the converter for a pair of format tags (case-insensitive)."""

    try:
        key = (SourceFormat(source_format.lower()), TargetFormat(target_format.lower()))
        return CONVERTERS[key]
    except (ValueError, KeyError):
        raise UnsupportedConversionError(source_format, target_format) from None


def format_for_path(path: Path) -> str | None:
    """Infer a source format tag from a file suffix, or None if unknown."""

    fmt = _SUFFIX_FORMATS.get(path.suffix.lower())
    return fmt.value if fmt is not None else None


def convert(
    content: Any,
    source_format: str,
    target_format: str,
    metadata: Metadata | Mapping[str, Any] | None = None,
) -> str:
    """Convert `content` from `source_format` to `target_format`.

    Raises InvalidInputError for empty or non-str content and
    UnsupportedConversionError for an unknown format pair.
    """

    if not isinstance(content, str) or not content:
        raise InvalidInputError("Content cannot be empty and must be text.")

    converter = resolve_converter(source_format, target_format)
    logger.debug(
        "Converting %d chars %s -> %s with %s",
        len(content),
        source_format,
        target_format,
        getattr(converter, "__name__", repr(converter)),
    )
    return converter(content, metadata)
