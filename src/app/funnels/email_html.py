"""Markdown-to-HTML conversion for CRM email bodies.

Transforms:
- **text** -> <strong>text</strong>
- *text* -> <em>text</em>
- [label](url) -> styled <a>
- lines starting with - or • -> <ul><li>, lines starting with 1. / 1) -> <ol><li>
- blank-line separated blocks -> <p>, single newlines -> <br>

Output is wrapped in a styled <div> container, so it is always detected as
HTML by is_already_html() and never converted twice.
"""

from __future__ import annotations

import re
from html import escape

_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC_RE = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")
_BULLET_RE = re.compile(r"^\s*[-•]\s+(.+)$")
_NUMBERED_RE = re.compile(r"^\s*(\d+)[.)]\s+(.+)$")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")

_HTML_PATTERNS = (
    re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE),
    re.compile(r"<p>", re.IGNORECASE),
    re.compile(r"<br\s*/?>", re.IGNORECASE),
    re.compile(r"<strong>", re.IGNORECASE),
    re.compile(r"<div>", re.IGNORECASE),
)

LINK_STYLE = "color: #0891b2; text-decoration: underline;"
LIST_STYLE = "margin: 10px 0; padding-left: 20px;"
ITEM_STYLE = "margin: 5px 0;"
PARAGRAPH_STYLE = "margin: 0 0 15px 0;"


def _convert_list(html: str, pattern: re.Pattern[str], tag: str, group: int) -> str:
    result: list[str] = []
    in_list = False
    for line in html.split("\n"):
        match = pattern.match(line)
        if match:
            if not in_list:
                result.append(f'<{tag} style="{LIST_STYLE}">')
                in_list = True
            result.append(f'<li style="{ITEM_STYLE}">{match.group(group)}</li>')
        else:
            if in_list:
                result.append(f"</{tag}>")
                in_list = False
            result.append(line)
    if in_list:
        result.append(f"</{tag}>")
    return "\n".join(result)


def _convert_paragraphs(html: str) -> str:
    paragraphs = []
    for block in _PARAGRAPH_SPLIT_RE.split(html):
        trimmed = block.strip()
        if not trimmed:
            continue
        if trimmed.startswith(("<ul", "<ol", "<div")):
            paragraphs.append(trimmed)
            continue
        with_breaks = trimmed.replace("\n", "<br>")
        paragraphs.append(f'<p style="{PARAGRAPH_STYLE}">{with_breaks}</p>')
    return "\n".join(paragraphs)


def convert_email_to_html(
    body: str,
    *,
    wrap_in_container: bool = True,
    font_family: str = "Arial, sans-serif",
    font_size: str = "16px",
    line_height: str = "1.6",
    text_color: str = "#333333",
) -> str:
    """Convert a markdown-formatted email body to inline-styled HTML.

    Args:
        body: Plain text body with light markdown.
        wrap_in_container: Wrap the result in a styled <div>.

    Returns:
        HTML string, or "" for empty/non-string input.
    """
    if not body or not isinstance(body, str):
        return ""

    html = escape(body.replace("\r\n", "\n"), quote=False)
    html = _LINK_RE.sub(rf'<a href="\2" style="{LINK_STYLE}">\1</a>', html)
    html = _BOLD_RE.sub(r"<strong>\1</strong>", html)
    html = _ITALIC_RE.sub(r"<em>\1</em>", html)
    html = _convert_list(html, _BULLET_RE, "ul", 1)
    html = _convert_list(html, _NUMBERED_RE, "ol", 2)
    html = _convert_paragraphs(html)

    if wrap_in_container:
        html = (
            f'<div style="font-family: {font_family}; font-size: {font_size}; '
            f'line-height: {line_height}; color: {text_color};">{html}</div>'
        )
    return html


def is_already_html(content: object) -> bool:
    """Heuristic tag detection for content that should not be converted again."""
    if not content or not isinstance(content, str):
        return False
    return any(pattern.search(content) for pattern in _HTML_PATTERNS)


def ensure_html(body: str) -> str:
    """Convert plain text to HTML, leaving already-HTML content untouched."""
    if not body:
        return ""
    return body if is_already_html(body) else convert_email_to_html(body)
