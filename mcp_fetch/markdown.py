"""Markdown rendering of extracted article HTML."""

from __future__ import annotations

import re

from markdownify import ATX, markdownify

_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


def render_markdown(content_html: str) -> str:
    """Convert article HTML to Markdown with ATX headings and fenced code."""
    markdown = markdownify(
        content_html,
        heading_style=ATX,
        bullets="-",
        code_language="",
        escape_underscores=False,
    )
    return _EXCESS_BLANK_LINES.sub("\n\n", markdown).strip()
