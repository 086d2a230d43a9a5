"""Plain text -> structured JSON document record.

The JSON layout is a data contract consumed by other tools:

    {
      "metadata": {"title", "author", "language", "created", "format"},
      "chapters": [{"title": str, "content": [str, ...]}, ...]
    }
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from ebookconv.metadata import DEFAULT_TITLE, Metadata, resolve_metadata
from ebookconv.segmenter import Section, segment, split_lines

DEFAULT_CHAPTER_TITLE = "Body"
RECORD_FORMAT = "json"


def _iso_timestamp(moment: datetime) -> str:
    # Millisecond precision with a "Z" suffix, e.g. 2024-05-01T12:00:00.000Z.
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_record(
    text: str,
    metadata: Metadata | Mapping[str, Any] | None = None,
    *,
    created: datetime | None = None,
) -> dict[str, Any]:
    """Build the record as plain dicts/lists, ready for JSON serialization.

    When no chapter heading is found, all non-blank lines go into a single
    chapter titled "Body".
    """

    meta = resolve_metadata(metadata, default_title=DEFAULT_TITLE)
    sections = segment(text)
    if not sections:
        sections = [Section(title=DEFAULT_CHAPTER_TITLE, content=split_lines(text))]

    return {
        "metadata": {
            "title": meta.title,
            "author": meta.author,
            "language": meta.language,
            "created": _iso_timestamp(created or datetime.now(timezone.utc)),
            "format": RECORD_FORMAT,
        },
        "chapters": [s.to_dict() for s in sections],
    }


def to_structured_record(
    text: str,
    metadata: Metadata | Mapping[str, Any] | None = None,
    *,
    created: datetime | None = None,
) -> str:
    record = build_record(text, metadata, created=created)
    return json.dumps(record, indent=2, ensure_ascii=False)
