"""Tool handlers for components_list and components_get.

Receive AppState, orchestrate disk cache lookup / network fetch / extraction,
and return structured dicts. No MCP or FastMCP imports: server.py handles
the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from spartanmcp.catalog import KNOWN_COMPONENTS, component_url, suggest_components
from spartanmcp.errors import ErrorCode, SpartanError
from spartanmcp.extractor import extract_api_info
from spartanmcp.models.tools import (
    ComponentListItem,
    ComponentsGetInput,
    ComponentsListOutput,
    PageOutput,
)
from spartanmcp.parser import extract_code_blocks, extract_headings, extract_links, to_plain_text
from spartanmcp.warmer import build_component_payload

if TYPE_CHECKING:
    from spartanmcp.models.tools import CacheStatus
    from spartanmcp.state import AppState


async def handle_list(state: AppState) -> dict:
    """Handle a components_list tool call."""
    base_url = state.settings.fetcher.components_base_url
    output = ComponentsListOutput(
        components=[
            ComponentListItem(name=name, url=component_url(name, base_url))
            for name in KNOWN_COMPONENTS
        ],
        count=len(KNOWN_COMPONENTS),
    )
    return output.model_dump(mode="json")


async def handle_get(
    name: str,
    fmt: str,
    extract: str,
    no_cache: bool,
    version: str | None,
    state: AppState,
) -> dict:
    """Handle a components_get tool call."""
    log = structlog.get_logger().bind(tool="components_get", name=name)
    log.info("handler_called")

    try:
        validated = ComponentsGetInput(
            name=name,
            format=fmt,
            extract=extract,
            no_cache=no_cache,
            version=version,
        )
    except ValueError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=(
                "Provide a kebab-case component name (e.g. 'accordion'), format 'html' or "
                "'text', and extract one of none/code/headings/links/api."
            ),
            recoverable=False,
        ) from exc

    active_version = await state.cache.initialize(
        validated.version or state.settings.cache.default_version
    )
    url = component_url(validated.name, state.settings.fetcher.components_base_url)

    cache_status: CacheStatus
    cached_at: str | None = None

    if validated.no_cache:
        html = await fetch_component(state, validated.name, url)
        cache_status = "bypassed"
    else:
        lookup = await state.cache.get_component(validated.name, "html")
        if lookup.cached and not lookup.stale and isinstance(lookup.data, str):
            log.info("cache_hit", stale=False)
            html = lookup.data
            cache_status = "hit"
            cached_at = lookup.cached_at
        else:
            cache_status = "refreshed" if lookup.cached else "new"
            log.info("cache_miss_fetching", url=url, stale=lookup.stale)
            html = await fetch_component(state, validated.name, url)
            await state.cache.set_component(validated.name, build_component_payload(html, url))

    data, count = render_page(html, validated.format, validated.extract)
    output = PageOutput(
        name=validated.name,
        url=url,
        version=active_version,
        cache_status=cache_status,
        cached_at=cached_at,
        format=validated.format,
        extract=validated.extract,
        count=count,
        data=data,
    )
    return output.model_dump(mode="json")


async def fetch_component(state: AppState, name: str, url: str) -> str:
    """Fetch a component page live, turning a 404 into COMPONENT_NOT_FOUND."""
    try:
        return await state.fetcher.fetch_content(url, "html", bypass_cache=True)
    except SpartanError as exc:
        # Translate a page 404 into a component-level error with suggestions
        if exc.code == ErrorCode.PAGE_NOT_FOUND:
            suggestions = suggest_components(name)
            hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
            raise SpartanError(
                code=ErrorCode.COMPONENT_NOT_FOUND,
                message=f"Component '{name}' not found at {url}.",
                suggestion="Call components_list to see available components." + hint,
                recoverable=False,
            ) from exc
        raise


async def load_component(state: AppState, name: str) -> dict[str, Any]:
    """Return the cached payload for a component in the active version.

    A miss, a stale hit or an entry written without extracted data is
    fetched again and re-cached. With no active version yet, the configured
    default is initialised first.
    """
    if state.cache.current_version is None:
        await state.cache.initialize(state.settings.cache.default_version)
    lookup = await state.cache.get_component(name)
    if (
        lookup.cached
        and not lookup.stale
        and isinstance(lookup.data, dict)
        and isinstance(lookup.data.get("api"), dict)
    ):
        return lookup.data

    url = component_url(name, state.settings.fetcher.components_base_url)
    html = await fetch_component(state, name, url)
    payload = build_component_payload(html, url)
    await state.cache.set_component(name, payload)
    return payload


def render_page(html: str, fmt: str, extract: str) -> tuple[Any, int | None]:
    """Return the response ``data`` for a page and, for extractions, its item count."""
    if extract == "none":
        return (to_plain_text(html) if fmt == "text" else html), None
    if extract == "code":
        blocks = extract_code_blocks(html)
        return blocks, len(blocks)
    if extract == "headings":
        headings = extract_headings(html)
        return headings, len(headings)
    if extract == "links":
        links = extract_links(html)
        return links, len(links)
    api = extract_api_info(html)
    return api.to_dict(), len(api.brain_api) + len(api.helm_api)
