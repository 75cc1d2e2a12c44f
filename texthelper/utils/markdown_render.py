"""Markdown to HTML rendering for AI responses.

Only a small subset is recognised: headings, bold-only heading lines,
ordered and unordered lists, paragraphs, and inline code/bold/italic.
Anything else is rendered as a plain paragraph.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

_HEADING_RE = re.compile(r"^(#{1,3})\s+(.+)$")
_BOLD_HEADING_RE = re.compile(r"^\*\*(.+?)\*\*\s*$")
_ORDERED_ITEM_RE = re.compile(r"^\s*[0-9]+[.)]\s+(.+)$")
_UNORDERED_ITEM_RE = re.compile(r"^\s*[-*•]\s+(.+)$")

_CODE_SPAN_RE = re.compile(r"`([^`]+)`")
# Escaped text never contains "<", so "<N>" cannot collide with input.
_PLACEHOLDER_RE = re.compile(r"<(\d+)>")
# Bold before italic, otherwise "**x**" becomes two italic runs.
_EMPHASIS_RULES = (
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"\*(.+?)\*"), r"<em>\1</em>"),
)


class LineKind(Enum):
    HEADING = "heading"
    BOLD_HEADING = "bold_heading"
    ORDERED_ITEM = "ordered_item"
    UNORDERED_ITEM = "unordered_item"
    BLANK = "blank"
    PLAIN = "plain"


class ListKind(Enum):
    NONE = ""
    ORDERED = "ol"
    UNORDERED = "ul"


@dataclass(frozen=True)
class Line:
    """A classified source line."""

    kind: LineKind
    text: str = ""
    level: int = 0


def escape_html(text: str) -> str:
    """Escape the characters that can open markup. Quotes are left alone."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def format_inline(text: str) -> str:
    """Apply inline code, bold and italic formatting to already escaped text.

    Code spans are taken out first so their contents never get emphasis.
    """
    code_spans: List[str] = []

    def stash(match: re.Match) -> str:
        code_spans.append(match.group(1))
        return f"<{len(code_spans) - 1}>"

    text = _CODE_SPAN_RE.sub(stash, text)
    for pattern, replacement in _EMPHASIS_RULES:
        text = pattern.sub(replacement, text)
    return _PLACEHOLDER_RE.sub(
        lambda match: f"<code>{code_spans[int(match.group(1))]}</code>", text
    )


def classify_line(line: str) -> Line:
    """Classify a single escaped line. The first matching rule wins."""
    match = _HEADING_RE.match(line)
    if match:
        # h1 is reserved for page titles, so "#" maps to h2.
        return Line(LineKind.HEADING, match.group(2), len(match.group(1)) + 1)

    match = _BOLD_HEADING_RE.match(line.strip())
    if match:
        return Line(LineKind.BOLD_HEADING, match.group(1), 3)

    match = _ORDERED_ITEM_RE.match(line)
    if match:
        return Line(LineKind.ORDERED_ITEM, match.group(1))

    match = _UNORDERED_ITEM_RE.match(line)
    if match:
        return Line(LineKind.UNORDERED_ITEM, match.group(1))

    if not line.strip():
        return Line(LineKind.BLANK)

    return Line(LineKind.PLAIN, line)


def render_markdown_to_html(text: Optional[str]) -> str:
    """Render AI-generated Markdown into an HTML fragment safe to inject as-is.

    Args:
        text: Raw, untrusted text. ``None`` is treated as empty.

    Returns:
        HTML built only from h2-h4, p, ol, ul, li, strong, em and code tags.
    """
    if not text:
        return ""

    output: List[str] = []
    open_list = ListKind.NONE

    def close_list() -> None:
        nonlocal open_list
        if open_list is not ListKind.NONE:
            output.append(f"</{open_list.value}>")
            open_list = ListKind.NONE

    def open_list_of(kind: ListKind) -> None:
        nonlocal open_list
        if open_list is not kind:
            close_list()
            output.append(f"<{kind.value}>")
            open_list = kind

    for raw_line in escape_html(text).split("\n"):
        line = classify_line(raw_line)

        if line.kind in (LineKind.HEADING, LineKind.BOLD_HEADING):
            close_list()
            output.append(f"<h{line.level}>{format_inline(line.text)}</h{line.level}>")
        elif line.kind is LineKind.ORDERED_ITEM:
            open_list_of(ListKind.ORDERED)
            output.append(f"<li>{format_inline(line.text)}</li>")
        elif line.kind is LineKind.UNORDERED_ITEM:
            open_list_of(ListKind.UNORDERED)
            output.append(f"<li>{format_inline(line.text)}</li>")
        elif line.kind is LineKind.BLANK:
            # Blank lines separate paragraphs but keep an open list going.
            continue
        else:
            close_list()
            output.append(f"<p>{format_inline(line.text)}</p>")

    close_list()
    return "".join(output)
