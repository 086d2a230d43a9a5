"""Fixed HTML page shell shared by both HTML renderers."""

from __future__ import annotations

from ebookconv.sanitize import sanitize

BOOK_CSS = """
body {
    max-width: 800px;
    margin: 0 auto;
    padding: 20px;
    font-family: "Microsoft YaHei", Arial, sans-serif;
    line-height: 1.8;
}
h1 { text-align: center; color: #333; }
h2 { color: #666; margin-top: 2em; }
p { text-indent: 2em; margin: 1em 0; }
.author { text-align: center; color: #999; margin-bottom: 2em; }
""".strip()

DOCUMENT_CSS = """
body {
    max-width: 800px;
    margin: 0 auto;
    padding: 20px;
    font-family: "Microsoft YaHei", Arial, sans-serif;
    line-height: 1.6;
}
h1, h2, h3 { color: #333; }
p { margin: 1em 0; }
a { color: #0066cc; text-decoration: none; }
a:hover { text-decoration: underline; }
""".strip()


def render_page(*, title: str, body: str, language: str, css: str) -> str:
    """Wrap an already-rendered `body` in the page shell.

    `title` and `language` are raw caller text and get escaped here; `body`
    is inserted as is.
    """

    return f"""<!DOCTYPE html>
<html lang="{sanitize(language)}">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{sanitize(title)}</title>
    <style>
{css}
    </style>
</head>
<body>
{body}
</body>
</html>
"""
