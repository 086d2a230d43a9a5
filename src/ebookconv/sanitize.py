"""HTML escaping for text embedded in rendered pages."""

from __future__ import annotations

_ENTITIES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#039;",
    }
)


def sanitize(text: str) -> str:
    """Replace the five HTML-sensitive characters with entity references.

    Not idempotent: escaping already-escaped text encodes the ``&`` of each
    entity again (``&lt;`` becomes ``&amp;lt;``).
    """

    return text.translate(_ENTITIES)
