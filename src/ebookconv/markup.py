"""Markdown subset -> styled HTML page.

Supported: ``#``/``##``/``###`` headings, ``**bold**``, ``*italic*`` and
``[label](url)`` links. Rewrites run as an ordered pipeline over the whole
text; bold must run before italic so single-asterisk matching never splits a
``**…**`` pair.

Only the link target and the page title are escaped. Other literal text in
the markup is emitted as is.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ebookconv.metadata import DEFAULT_DOCUMENT_TITLE, Metadata, resolve_metadata
from ebookconv.page import DOCUMENT_CSS, render_page
from ebookconv.sanitize import sanitize


@dataclass(frozen=True, slots=True)
class RewriteStage:
    name: str
    pattern: re.Pattern[str]
    replacement: str | Callable[[re.Match[str]], str]

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _link(m: re.Match[str]) -> str:
    label, url = m.group(1), m.group(2)
    return f'<a href="{sanitize(url)}">{label}</a>'


REWRITE_STAGES: tuple[RewriteStage, ...] = (
    # Heading text stops before "\r", so CRLF input keeps it outside the tag.
    RewriteStage("h3", re.compile(r"^### ([^\r\n]*)", re.MULTILINE), r"<h3>\1</h3>"),
    RewriteStage("h2", re.compile(r"^## ([^\r\n]*)", re.MULTILINE), r"<h2>\1</h2>"),
    RewriteStage("h1", re.compile(r"^# ([^\r\n]*)", re.MULTILINE), r"<h1>\1</h1>"),
    # \*\*(.*?)\*\*  - shortest run between two "**" on one line
    RewriteStage("bold", re.compile(r"\*\*(.*?)\*\*"), r"<strong>\1</strong>"),
    RewriteStage("italic", re.compile(r"\*(.*?)\*"), r"<em>\1</em>"),
    # \[([^\]]+)\]   - [label]
    # \(([^)]+)\)    - (url)
    RewriteStage("link", re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), _link),
)

_HEADING_BLOCK_RE = re.compile(r"<h[1-3]>")


def rewrite_inline(markup: str) -> str:
    """Run every rewrite stage, in order, over the whole text."""

    text = markup
    for stage in REWRITE_STAGES:
        text = stage.apply(text)
    return text


def wrap_paragraphs(text: str) -> str:
    blocks: list[str] = []
    for block in text.split("\n\n"):
        stripped = block.strip()
        if not stripped or _HEADING_BLOCK_RE.match(stripped):
            blocks.append(block)
            continue
        blocks.append("<p>" + block.replace("\n", "<br>") + "</p>")
    return "\n".join(blocks)


def markup_to_hypertext(markup: str, metadata: Metadata | Mapping[str, Any] | None = None) -> str:
    meta = resolve_metadata(metadata, default_title=DEFAULT_DOCUMENT_TITLE)
    body = wrap_paragraphs(rewrite_inline(markup))
    return render_page(title=meta.title, body=body, language=meta.language, css=DOCUMENT_CSS)
