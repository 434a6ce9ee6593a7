"""Cache warmer: pre-populate the disk cache for known components and docs.

Items are processed strictly one at a time with a fixed delay between
requests. A failure on one item is recorded and the batch continues; only a
setup failure (the cache partition cannot be created) propagates.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from spartanmcp.catalog import DOCUMENTATION_TOPICS, KNOWN_COMPONENTS, component_url, docs_url
from spartanmcp.extractor import extract_api_info
from spartanmcp.models.cache import BatchSummary, WarmResult
from spartanmcp.parser import extract_code_blocks

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from spartanmcp.state import AppState

log = structlog.get_logger()


def build_component_payload(html: str, url: str) -> dict:
    """Assemble the cached payload for a freshly fetched component page."""
    api = extract_api_info(html).to_dict()
    examples = extract_code_blocks(html)
    return {
        "html": html,
        "api": api,
        "examples": examples,
        "full": {
            "html": html,
            "api": api,
            "examples": examples,
            "url": url,
        },
    }


async def warm_component(state: AppState, name: str) -> None:
    url = component_url(name, state.settings.fetcher.components_base_url)
    html = await state.fetcher.fetch_content(url, "html", bypass_cache=True)
    await state.cache.set_component(name, build_component_payload(html, url))


async def warm_docs(state: AppState, topic: str) -> None:
    url = docs_url(topic, state.settings.fetcher.docs_base_url)
    html = await state.fetcher.fetch_content(url, "html", bypass_cache=True)
    await state.cache.set_docs(topic, html)


async def warm_cache(
    state: AppState,
    *,
    components: Sequence[str] | None = None,
    include_docs: bool = True,
    on_progress: Callable[[int, int], None] | None = None,
) -> WarmResult:
    """Fetch, extract and cache every requested component (and docs topic).

    ``on_progress(done, total)`` is called after each component, whether it
    succeeded or failed.
    """
    if state.cache.current_version is None:
        await state.cache.initialize(state.settings.cache.default_version)
    version = state.cache.current_version or state.settings.cache.default_version

    targets = list(components) if components is not None else list(KNOWN_COMPONENTS)
    topics = list(DOCUMENTATION_TOPICS) if include_docs else []
    delay_seconds = state.settings.warmup.delay_ms / 1000

    result = WarmResult(
        version=version,
        components=BatchSummary(total=len(targets)),
        docs=BatchSummary(total=len(topics)),
    )
    warm_log = log.bind(version=version)
    warm_log.info("cache_warm_started", components=len(targets), docs=len(topics))
    started = time.monotonic()

    for index, name in enumerate(targets, start=1):
        try:
            await warm_component(state, name)
            result.components.success += 1
        except Exception as exc:
            warm_log.warning("warm_item_failed", component=name, error=str(exc))
            result.components.failed += 1
            result.components.errors.append({"component": name, "error": str(exc)})

        if on_progress is not None:
            on_progress(index, len(targets))

        if index < len(targets) or topics:
            await asyncio.sleep(delay_seconds)

    for index, topic in enumerate(topics, start=1):
        try:
            await warm_docs(state, topic)
            result.docs.success += 1
        except Exception as exc:
            warm_log.warning("warm_item_failed", topic=topic, error=str(exc))
            result.docs.failed += 1
            result.docs.errors.append({"topic": topic, "error": str(exc)})

        if index < len(topics):
            await asyncio.sleep(delay_seconds)

    result.duration_ms = int((time.monotonic() - started) * 1000)
    warm_log.info(
        "cache_warm_complete",
        duration_ms=result.duration_ms,
        components_success=result.components.success,
        components_failed=result.components.failed,
        docs_success=result.docs.success,
        docs_failed=result.docs.failed,
    )
    return result
