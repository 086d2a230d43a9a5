"""Split plain text into chapters.

A chapter starts at a heading line such as ``第十二章 …`` or ``Chapter 3 …``
and runs until the next heading. Lines before the first heading belong to no
chapter.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger("ebookconv.segmenter")

# ^(?:第[…0-9]+章|Chapter\s+[0-9]+)
#   第[一二…千0-9]+章  - "第", Chinese numerals or ASCII digits, then "章"
#   Chapter\s+[0-9]+   - "Chapter", whitespace, ASCII digits (any case)
CHAPTER_HEADING_RE = re.compile(
    r"^(?:第[一二三四五六七八九十百千0-9]+章|Chapter\s+[0-9]+)",
    re.IGNORECASE,
)

BOM = "\ufeff"


@dataclass(slots=True)
class Section:
    title: str
    content: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"title": self.title, "content": list(self.content)}


def trim(line: str) -> str:
    """Strip surrounding whitespace and byte-order marks."""

    return line.strip().strip(BOM).strip()


def is_chapter_heading(line: str) -> bool:
    return CHAPTER_HEADING_RE.match(line) is not None


def split_lines(text: str) -> list[str]:
    """Split on newlines and drop blank lines.

    Kept lines are not trimmed, apart from a leading byte-order mark.
    """

    return [line.lstrip(BOM) for line in text.split("\n") if trim(line)]


def segment(text: str) -> list[Section]:
    """Return the chapters found in `text`, in order (possibly none)."""

    sections: list[Section] = []
    current: Section | None = None

    for line in split_lines(text):
        if is_chapter_heading(line):
            if current is not None:
                sections.append(current)
            current = Section(title=trim(line))
        elif current is not None:
            current.content.append(line)

    if current is not None:
        sections.append(current)

    logger.debug("Segmented text into %d chapter(s)", len(sections))
    return sections
