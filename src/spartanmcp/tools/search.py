"""Tool handlers for search, components_search and examples_get.

All three read pages through the disk cache (fetching on a miss), so a
warmed cache answers without touching the network. A page that cannot be
loaded is logged and left out of the results.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from spartanmcp.catalog import (
    DOCUMENTATION_TOPICS,
    KNOWN_COMPONENTS,
    component_url,
    docs_url,
    suggest_components,
)
from spartanmcp.errors import ErrorCode, SpartanError
from spartanmcp.models.tools import (
    CategorisedExample,
    ExamplesGetInput,
    ExamplesGetOutput,
    FeatureMatch,
    FeatureSearchInput,
    FeatureSearchOutput,
    SearchHit,
    SearchInput,
    SearchOutput,
)
from spartanmcp.parser import to_plain_text
from spartanmcp.tools.components import load_component
from spartanmcp.tools.docs import load_docs

if TYPE_CHECKING:
    from spartanmcp.state import AppState

# Feature categories and the components that usually serve them. A keyword
# selects a category when it is a substring of the category name.
FEATURE_MAP: dict[str, tuple[str, ...]] = {
    "multi-selection": ("calendar", "select", "combobox", "checkbox"),
    "form": ("input", "textarea", "select", "checkbox", "radio-group", "form-field"),
    "overlay": ("dialog", "popover", "tooltip", "sheet", "dropdown-menu"),
    "navigation": ("breadcrumb", "menubar", "tabs", "pagination"),
    "data-display": ("table", "data-table", "card", "avatar", "badge"),
    "feedback": ("alert", "alert-dialog", "progress", "spinner", "sonner"),
    "layout": ("separator", "aspect-ratio", "scroll-area", "sheet"),
    "interaction": ("button", "toggle", "toggle-group", "switch", "slider"),
}

MAX_SNIPPETS = 3
MAX_FEATURE_EXAMPLES = 2
MIN_TERM_LENGTH = 3

log = structlog.get_logger()

_SENTENCE_END_RE = re.compile(r"[.!?]+")


def relevance_score(text: str, terms: list[str]) -> int:
    """Occurrences of each term, weighted by term length."""
    lowered = text.lower()
    return sum(lowered.count(term) * len(term) for term in terms if term)


def matching_snippets(text: str, terms: list[str]) -> list[str]:
    """First few sentences that mention any of ``terms``."""
    snippets: list[str] = []
    for sentence in _SENTENCE_END_RE.split(text):
        sentence = sentence.strip()
        if sentence and any(term in sentence.lower() for term in terms):
            snippets.append(sentence)
            if len(snippets) >= MAX_SNIPPETS:
                break
    return snippets


def page_description(text: str) -> str:
    """The second non-blank line of a page (the first is usually its title)."""
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if len(lines) > 1:
        return lines[1]
    return lines[0] if lines else ""


def categorise_example(title: str, code: str) -> str:
    lowered_title = title.lower()
    if "basic" in lowered_title or "simple" in lowered_title:
        return "basic"
    if "advanced" in lowered_title or "complex" in lowered_title:
        return "advanced"
    if "form" in lowered_title or "integration" in lowered_title:
        return "integration"
    if "accessibility" in lowered_title or "aria" in code.lower():
        return "accessibility"
    return "basic"


async def _component_pages(state: AppState) -> list[tuple[str, dict, str]]:
    """``(name, payload, plain_text)`` for every component that could be loaded."""
    pages: list[tuple[str, dict, str]] = []
    for name in KNOWN_COMPONENTS:
        try:
            payload = await load_component(state, name)
        except SpartanError as exc:
            log.warning("search_page_skipped", kind="component", name=name, code=exc.code)
            continue
        pages.append((name, payload, to_plain_text(payload["html"])))
    return pages


async def _docs_pages(state: AppState) -> list[tuple[str, str]]:
    pages: list[tuple[str, str]] = []
    for topic in DOCUMENTATION_TOPICS:
        try:
            html = await load_docs(state, topic)
        except SpartanError as exc:
            log.warning("search_page_skipped", kind="docs", name=topic, code=exc.code)
            continue
        pages.append((topic, to_plain_text(html)))
    return pages


async def handle_search(query: str, scope: str, limit: int, state: AppState) -> dict:
    """Handle a search tool call: rank component and docs pages by term frequency."""
    log = structlog.get_logger().bind(tool="search", query=query)
    log.info("handler_called")

    try:
        validated = SearchInput(query=query, scope=scope, limit=limit)
    except ValidationError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty query, scope all/components/docs and a limit from 1 to 20.",
            recoverable=False,
        ) from exc

    terms = [term for term in validated.query.split() if len(term) >= MIN_TERM_LENGTH]
    hits: list[SearchHit] = []
    if terms:
        fetcher_settings = state.settings.fetcher

        if validated.scope in ("all", "components"):
            for name, _payload, text in await _component_pages(state):
                score = relevance_score(text, terms)
                if score > 0:
                    hits.append(
                        SearchHit(
                            type="component",
                            name=name,
                            url=component_url(name, fetcher_settings.components_base_url),
                            score=score,
                            matches=matching_snippets(text, terms),
                            description=page_description(text),
                        )
                    )

        if validated.scope in ("all", "docs"):
            for topic, text in await _docs_pages(state):
                score = relevance_score(text, terms)
                if score > 0:
                    hits.append(
                        SearchHit(
                            type="documentation",
                            name=topic,
                            url=docs_url(topic, fetcher_settings.docs_base_url),
                            score=score,
                            matches=matching_snippets(text, terms),
                            description=page_description(text),
                        )
                    )

    hits.sort(key=lambda hit: hit.score, reverse=True)
    results = hits[: validated.limit]
    output = SearchOutput(
        query=validated.query,
        scope=validated.scope,
        result_count=len(results),
        results=results,
    )
    return output.model_dump(mode="json")


async def handle_components_search(
    feature: str,
    include_examples: bool,
    include_api: bool,
    state: AppState,
) -> dict:
    """Handle a components_search tool call.

    A component matches when a keyword selects one of its feature
    categories, appears in its page text or appears in its name.
    """
    log = structlog.get_logger().bind(tool="components_search", feature=feature)
    log.info("handler_called")

    try:
        validated = FeatureSearchInput(
            feature=feature,
            include_examples=include_examples,
            include_api=include_api,
        )
    except ValidationError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Describe a feature or use case, e.g. 'overlay' or 'form input'.",
            recoverable=False,
        ) from exc

    keywords = validated.feature.split()
    categories_by_component: dict[str, list[str]] = {}
    for category, names in FEATURE_MAP.items():
        if any(keyword in category for keyword in keywords):
            for name in names:
                categories_by_component.setdefault(name, []).append(category)

    matches: list[FeatureMatch] = []
    for name, payload, text in await _component_pages(state):
        lowered = text.lower()
        in_category = name in categories_by_component
        if not in_category and not any(kw in lowered or kw in name for kw in keywords):
            continue

        api: dict[str, Any] = payload["api"]
        match = FeatureMatch(
            name=name,
            url=component_url(name, state.settings.fetcher.components_base_url),
            relevance_score=relevance_score(text, keywords),
            description=page_description(text),
            categories=categories_by_component.get(name, []),
        )
        if validated.include_examples:
            match.examples = api.get("examples", [])[:MAX_FEATURE_EXAMPLES]
        if validated.include_api:
            match.api = {"brainAPI": api["brainAPI"], "helmAPI": api["helmAPI"]}
        matches.append(match)

    matches.sort(key=lambda match: match.relevance_score, reverse=True)
    output = FeatureSearchOutput(
        feature=validated.feature,
        match_count=len(matches),
        components=matches,
    )
    return output.model_dump(mode="json")


async def handle_examples_get(
    name: str,
    example_type: str,
    include_code: bool,
    state: AppState,
) -> dict:
    """Handle an examples_get tool call."""
    log = structlog.get_logger().bind(tool="examples_get", name=name)
    log.info("handler_called")

    try:
        validated = ExamplesGetInput(name=name, example_type=example_type, include_code=include_code)
    except ValidationError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Use example_type all, basic, advanced, integration or accessibility.",
            recoverable=False,
        ) from exc

    if validated.name not in KNOWN_COMPONENTS:
        suggestions = suggest_components(validated.name)
        hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
        raise SpartanError(
            code=ErrorCode.COMPONENT_NOT_FOUND,
            message=f"Unknown component: {validated.name!r}",
            suggestion="Call components_list to see available components." + hint,
            recoverable=False,
        )

    payload = await load_component(state, validated.name)

    examples: list[CategorisedExample] = []
    for example in payload["api"].get("examples", []):
        kind = categorise_example(example["title"], example["code"])
        if validated.example_type not in ("all", kind):
            continue
        item = CategorisedExample(title=example["title"], type=kind)
        if validated.include_code:
            item.code = example["code"]
            item.language = example["language"]
        examples.append(item)

    output = ExamplesGetOutput(
        component=validated.name,
        url=component_url(validated.name, state.settings.fetcher.components_base_url),
        example_type=validated.example_type,
        example_count=len(examples),
        examples=examples,
    )
    return output.model_dump(mode="json")
