"""Plain text -> styled HTML page.

Every piece of caller text (body lines, title, author) is escaped before it
is placed in the page.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ebookconv.metadata import DEFAULT_BOOK_TITLE, Metadata, resolve_metadata
from ebookconv.page import BOOK_CSS, render_page
from ebookconv.sanitize import sanitize
from ebookconv.segmenter import is_chapter_heading, trim

AUTHOR_LABEL = "Author"


def render_line(line: str) -> str:
    trimmed = trim(line)
    if not trimmed:
        return "<br>"
    if is_chapter_heading(trimmed):
        return f"<h2>{sanitize(trimmed)}</h2>"
    return f"<p>{sanitize(trimmed)}</p>"


def to_hypertext(text: str, metadata: Metadata | Mapping[str, Any] | None = None) -> str:
    """Render `text` line by line; blank lines become ``<br>``."""

    meta = resolve_metadata(metadata, default_title=DEFAULT_BOOK_TITLE)
    content = "\n".join(render_line(line) for line in text.split("\n"))

    body = "\n".join(
        [
            f"<h1>{sanitize(meta.title)}</h1>",
            f'<p class="author">{AUTHOR_LABEL}: {sanitize(meta.author)}</p>',
            content,
        ]
    )
    return render_page(title=meta.title, body=body, language=meta.language, css=BOOK_CSS)
