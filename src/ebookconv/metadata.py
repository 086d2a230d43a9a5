"""Document metadata supplied by callers, with per-field defaults."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

DEFAULT_TITLE = "Untitled"
DEFAULT_BOOK_TITLE = "Untitled Book"
DEFAULT_DOCUMENT_TITLE = "Document"
DEFAULT_AUTHOR = "Anonymous"
DEFAULT_LANGUAGE = "zh-CN"


@dataclass(frozen=True, slots=True)
class Metadata:
    """Sparse metadata: a field left as None or "" means "use the default"."""

    title: str | None = None
    author: str | None = None
    language: str | None = None

    @classmethod
    def coerce(cls, value: Metadata | Mapping[str, Any] | None) -> Metadata:
        """Accept a Metadata, a plain mapping (unknown keys ignored) or None."""

        if value is None:
            return cls()
        if isinstance(value, Metadata):
            return value
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in value.items() if k in known})

    def merged_over(self, base: Metadata) -> Metadata:
        """Return metadata taking each field from self, else from base."""

        return Metadata(
            title=self.title or base.title,
            author=self.author or base.author,
            language=self.language or base.language,
        )


@dataclass(frozen=True, slots=True)
class ResolvedMetadata:
    title: str
    author: str
    language: str


def resolve_metadata(
    value: Metadata | Mapping[str, Any] | None,
    *,
    default_title: str = DEFAULT_TITLE,
) -> ResolvedMetadata:
    meta = Metadata.coerce(value)
    return ResolvedMetadata(
        title=meta.title or default_title,
        author=meta.author or DEFAULT_AUTHOR,
        language=meta.language or DEFAULT_LANGUAGE,
    )
