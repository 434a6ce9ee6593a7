"""HTML text utilities for documentation pages.

Regex-based helpers that turn semi-structured documentation HTML into plain
text, code snippets, headings and links. These are best-effort converters,
not standards-compliant HTML processing: callers get readable text with paragraph
breaks and nothing stronger.
"""

from __future__ import annotations

import re

# An unclosed block runs to the end of the input.
_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?(?:</script\s*>|\Z)", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?(?:</style\s*>|\Z)", re.IGNORECASE | re.DOTALL)
_BLOCK_CLOSE_RE = re.compile(r"</(?:p|div|section|article|li|h[1-6]|br|pre)\s*>", re.IGNORECASE)
_LINE_BREAK_RE = re.compile(r"<(?:br|hr)\b[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_RUN_RE = re.compile(r"\n{3,}")

_ENTITIES = {
    "nbsp": " ",
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#39": "'",
}

_PRE_CODE_RE = re.compile(
    r"<pre\b[^>]*>\s*<code\b[^>]*>(.*?)</code>\s*</pre>",
    re.IGNORECASE | re.DOTALL,
)
_CODE_RE = re.compile(r"<code\b[^>]*>(.*?)</code>", re.IGNORECASE | re.DOTALL)
_HEADING_RE = re.compile(r"<(h[1-3])\b[^>]*>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_LINK_RE = re.compile(
    r"""<a\b[^>]*href=["']([^"']+)["'][^>]*>(.*?)</a>""",
    re.IGNORECASE | re.DOTALL,
)

# A snippet needs more than this many non-blank lines to count as an example.
MIN_CODE_BLOCK_LINES = 2


def to_plain_text(html: str) -> str:
    """Convert an HTML fragment to readable plain text.

    Script and style blocks are dropped with their content before anything
    else happens. Block-level closing tags, ``<br>`` and ``<hr>`` become
    newlines, and remaining tags are stripped. Only the six common entities
    are decoded, one after another in a fixed order, so a double-encoded
    ``&amp;lt;`` ends up as ``<``. Anything else stays verbatim. Runs of
    three or more newlines collapse to a single blank line.
    """
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _BLOCK_CLOSE_RE.sub("\n", text)
    text = _LINE_BREAK_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    for entity, char in _ENTITIES.items():
        text = text.replace(f"&{entity};", char)
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()


def _is_example(code: str) -> bool:
    lines = [line for line in code.split("\n") if line.strip()]
    if len(lines) == 1 and "import" in lines[0]:
        return False
    return len(lines) > MIN_CODE_BLOCK_LINES


def extract_code_blocks(html: str) -> list[str]:
    """Return the plain-text content of code blocks worth showing as examples.

    ``<pre><code>`` blocks come first in document order, followed by bare
    ``<code>`` elements outside any ``<pre>`` block, also in document order.
    Single-line import snippets and anything with two or fewer non-blank
    lines are dropped.
    """
    blocks: list[str] = []

    for match in _PRE_CODE_RE.finditer(html):
        code = to_plain_text(match.group(1))
        if _is_example(code):
            blocks.append(code)

    outside_pre = _PRE_CODE_RE.sub("", html)
    for match in _CODE_RE.finditer(outside_pre):
        code = to_plain_text(match.group(1))
        if _is_example(code):
            blocks.append(code)

    return blocks


def extract_headings(html: str) -> list[str]:
    """Return the text of every h1–h3 heading in document order."""
    return [to_plain_text(match.group(2)) for match in _HEADING_RE.finditer(html)]


def extract_links(html: str) -> list[dict[str, str]]:
    """Return ``{"href", "text"}`` for every anchor with an href, in document order."""
    return [
        {"href": match.group(1), "text": to_plain_text(match.group(2))}
        for match in _LINK_RE.finditer(html)
    ]
