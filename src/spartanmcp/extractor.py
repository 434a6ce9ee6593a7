"""Structured API extraction for Spartan component pages.

Component pages document two tiers of primitives: the unstyled Brain API
(``Brn*``) and the styled Helm API (``Hlm*``). Each tier lives under its own
heading, and every primitive inside it gets a heading followed by an optional
``Selector:`` line and Inputs/Outputs tables.

Extraction is scoped to those sections so navigation, footers and embedded
JSON never leak into the result. Missing structure is not an error: a page
without a Brain API heading simply yields an empty ``brain_api`` list.

The boundary heuristics are small named functions (``iter_headings``,
``find_section``, ``split_components``, ``parse_table``) so each can be
tested, and swapped, on its own when the site's markup drifts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from spartanmcp.models.api import (
    CodeExample,
    ComponentAPIRecord,
    ExtractedAPIInfo,
    InputProp,
    OutputProp,
)
from spartanmcp.parser import extract_code_blocks, to_plain_text

log = structlog.get_logger()

BRAIN_API_HEADING = "Brain API"
HELM_API_HEADING = "Helm API"
PAGE_TOC_HEADING = "On this page"

MAX_EXAMPLES = 10

_HEADING_RE = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1\s*>", re.IGNORECASE | re.DOTALL)
_COMPONENT_NAME_RE = re.compile(r"^(?:Brn|Hlm)[A-Z]\w*")
_SELECTOR_RE = re.compile(r"Selector:\s*([^\n]+)", re.IGNORECASE)
_TABLE_RE = re.compile(r"<table\b[^>]*>(.*?)</table\s*>", re.IGNORECASE | re.DOTALL)
_ROW_RE = re.compile(r"<tr\b[^>]*>(.*?)</tr\s*>", re.IGNORECASE | re.DOTALL)
_CELL_RE = re.compile(r"<(td|th)\b([^>]*)>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_SPAN_ATTR_RE = re.compile(r"\b(?:colspan|rowspan)\s*=", re.IGNORECASE)


@dataclass(frozen=True)
class Heading:
    """A heading element located in a page: its span and plain-text title."""

    start: int
    end: int
    level: int
    text: str


def iter_headings(html: str) -> list[Heading]:
    """Return every h1–h6 heading in document order."""
    return [
        Heading(
            start=match.start(),
            end=match.end(),
            level=int(match.group(1)),
            text=to_plain_text(match.group(2)),
        )
        for match in _HEADING_RE.finditer(html)
    ]


def find_section(html: str, title: str, end_titles: frozenset[str]) -> str | None:
    """Return the HTML between the heading named ``title`` and the next end heading.

    The section stops just before the first later heading whose text is in
    ``end_titles``, or at the end of the document. Returns ``None`` when no
    heading with exactly that text exists.
    """
    headings = iter_headings(html)
    for index, heading in enumerate(headings):
        if heading.text != title:
            continue
        end = len(html)
        for later in headings[index + 1 :]:
            if later.text in end_titles:
                end = later.start
                break
        return html[heading.end : end]
    return None


def find_subsection(html: str, title: str) -> str | None:
    """Return the HTML after the heading named ``title`` up to the next heading of any kind."""
    headings = iter_headings(html)
    for index, heading in enumerate(headings):
        if heading.text == title:
            end = headings[index + 1].start if index + 1 < len(headings) else len(html)
            return html[heading.end : end]
    return None


def split_components(section: str) -> list[tuple[str, str]]:
    """Split an API section into ``(component_name, body_html)`` pairs.

    A component starts at each heading whose text begins with a ``Brn`` or
    ``Hlm`` identifier and runs until the next such heading or the end of the
    section. Other headings (Inputs, Outputs, ...) stay inside the body.
    """
    starts: list[tuple[str, Heading]] = []
    for heading in iter_headings(section):
        match = _COMPONENT_NAME_RE.match(heading.text)
        if match:
            starts.append((match.group(0), heading))

    components: list[tuple[str, str]] = []
    for index, (name, heading) in enumerate(starts):
        end = starts[index + 1][1].start if index + 1 < len(starts) else len(section)
        components.append((name, section[heading.end : end]))
    return components


def parse_table(html: str) -> list[list[str]]:
    """Return the plain-text cells of each data row of the first table in ``html``.

    The first row is treated as the header and skipped. Rows using
    ``colspan``/``rowspan`` cannot be mapped to columns reliably and are
    skipped as well.
    """
    table = _TABLE_RE.search(html)
    if table is None:
        return []

    rows: list[list[str]] = []
    for row in _ROW_RE.findall(table.group(1))[1:]:
        cells = _CELL_RE.findall(row)
        if any(_SPAN_ATTR_RE.search(attrs) for _tag, attrs, _content in cells):
            continue
        rows.append([to_plain_text(content) for _tag, _attrs, content in cells])
    return rows


def _parse_inputs(component_html: str) -> list[InputProp]:
    section = find_subsection(component_html, "Inputs")
    if section is None:
        return []
    inputs: list[InputProp] = []
    for cells in parse_table(section):
        if len(cells) < 3 or not cells[0]:
            continue
        inputs.append(
            InputProp(
                prop=cells[0],
                type=cells[1],
                default=cells[2],
                description=cells[3] if len(cells) > 3 else "",
            )
        )
    return inputs


def _parse_outputs(component_html: str) -> list[OutputProp]:
    section = find_subsection(component_html, "Outputs")
    if section is None:
        return []
    outputs: list[OutputProp] = []
    for cells in parse_table(section):
        if len(cells) < 2 or not cells[0]:
            continue
        outputs.append(
            OutputProp(
                prop=cells[0],
                type=cells[1],
                description=cells[2] if len(cells) > 2 else "",
            )
        )
    return outputs


def parse_component(name: str, body: str) -> ComponentAPIRecord:
    selector_match = _SELECTOR_RE.search(to_plain_text(body))
    return ComponentAPIRecord(
        name=name,
        selector=selector_match.group(1).strip() if selector_match else "",
        inputs=_parse_inputs(body),
        outputs=_parse_outputs(body),
    )


def parse_api_section(html: str, title: str, other_title: str) -> list[ComponentAPIRecord]:
    """Parse every component record under the ``title`` section of a page."""
    section = find_section(html, title, frozenset({other_title, PAGE_TOC_HEADING}))
    if section is None:
        return []
    return [parse_component(name, body) for name, body in split_components(section)]


def guess_language(code: str) -> str:
    """Guess a snippet's language from a few substrings. Defaults to typescript."""
    if "import" in code and "Component" in code:
        return "typescript"
    if "import" in code and "from" in code:
        return "javascript"
    if "<" in code and ">" in code and "hlm" in code.lower():
        return "html"
    if "npm" in code or "npx" in code or "ng " in code:
        return "bash"
    return "typescript"


def extract_examples(html: str) -> list[CodeExample]:
    blocks = extract_code_blocks(html)[:MAX_EXAMPLES]
    return [
        CodeExample(title=f"Example {index}", code=code, language=guess_language(code))
        for index, code in enumerate(blocks, start=1)
    ]


def extract_api_info(html: str) -> ExtractedAPIInfo:
    """Extract Brain API, Helm API and code examples from a component page.

    Never raises. An unexpected failure inside the heuristics is logged and
    yields an empty ``ExtractedAPIInfo``.
    """
    try:
        return ExtractedAPIInfo(
            brain_api=parse_api_section(html, BRAIN_API_HEADING, HELM_API_HEADING),
            helm_api=parse_api_section(html, HELM_API_HEADING, BRAIN_API_HEADING),
            examples=extract_examples(html),
        )
    except Exception:
        log.error("api_extraction_failed", html_length=len(html), exc_info=True)
        return ExtractedAPIInfo()
