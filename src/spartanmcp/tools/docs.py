"""Tool handler for docs_get.

Same cache flow as components_get, one level up: documentation topics are
cached as raw HTML and rendered per request. Topics hosted outside spartan.ng
are fetched through the short-lived fetch cache only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from spartanmcp.catalog import DOCUMENTATION_TOPICS, EXTERNAL_TOPICS, docs_url
from spartanmcp.errors import ErrorCode, SpartanError
from spartanmcp.models.tools import DocsGetInput, PageOutput
from spartanmcp.tools.components import render_page

if TYPE_CHECKING:
    from spartanmcp.models.tools import CacheStatus
    from spartanmcp.state import AppState


async def handle_get(
    topic: str,
    fmt: str,
    extract: str,
    no_cache: bool,
    version: str | None,
    state: AppState,
) -> dict:
    """Handle a docs_get tool call."""
    log = structlog.get_logger().bind(tool="docs_get", topic=topic)
    log.info("handler_called")

    try:
        validated = DocsGetInput(
            topic=topic,
            format=fmt,
            extract=extract,
            no_cache=no_cache,
            version=version,
        )
    except ValidationError as exc:
        if any(error["loc"][:1] == ("topic",) for error in exc.errors()):
            topics = ", ".join([*DOCUMENTATION_TOPICS, *EXTERNAL_TOPICS])
            raise SpartanError(
                code=ErrorCode.TOPIC_NOT_FOUND,
                message=f"Unknown documentation topic: {topic!r}",
                suggestion=f"Use one of: {topics}.",
                recoverable=False,
            ) from exc
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Use format html or text, and extract one of none/code/headings/links.",
            recoverable=False,
        ) from exc

    url = docs_url(validated.topic, state.settings.fetcher.docs_base_url)
    cache_status: CacheStatus
    cached_at: str | None = None
    active_version: str | None = None

    if validated.topic in EXTERNAL_TOPICS:
        html = await state.fetcher.fetch_content(url, "html", bypass_cache=validated.no_cache)
        cache_status = "bypassed" if validated.no_cache else "live"
    elif validated.no_cache:
        active_version = await state.cache.initialize(
            validated.version or state.settings.cache.default_version
        )
        html = await state.fetcher.fetch_content(url, "html", bypass_cache=True)
        cache_status = "bypassed"
    else:
        active_version = await state.cache.initialize(
            validated.version or state.settings.cache.default_version
        )
        lookup = await state.cache.get_docs(validated.topic)
        if lookup.cached and not lookup.stale and isinstance(lookup.data, str):
            log.info("cache_hit", stale=False)
            html = lookup.data
            cache_status = "hit"
            cached_at = lookup.cached_at
        else:
            cache_status = "refreshed" if lookup.cached else "new"
            log.info("cache_miss_fetching", url=url, stale=lookup.stale)
            html = await state.fetcher.fetch_content(url, "html", bypass_cache=True)
            await state.cache.set_docs(validated.topic, html)

    data, count = render_page(html, validated.format, validated.extract)
    output = PageOutput(
        name=validated.topic,
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


async def load_docs(state: AppState, topic: str) -> str:
    """Return a site topic's HTML from the active version, fetching it on a miss or stale hit."""
    if state.cache.current_version is None:
        await state.cache.initialize(state.settings.cache.default_version)
    lookup = await state.cache.get_docs(topic)
    if lookup.cached and not lookup.stale and isinstance(lookup.data, str):
        return lookup.data
    html = await state.fetcher.fetch_content(
        docs_url(topic, state.settings.fetcher.docs_base_url), "html", bypass_cache=True
    )
    await state.cache.set_docs(topic, html)
    return html
