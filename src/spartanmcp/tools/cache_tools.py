"""Tool handlers for disk cache management.

cache_status, cache_clear, cache_rebuild, cache_switch_version and
cache_list_versions. No MCP or FastMCP imports: server.py handles the MCP
wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from spartanmcp.catalog import KNOWN_COMPONENTS
from spartanmcp.errors import ErrorCode, SpartanError
from spartanmcp.models.tools import CacheRebuildInput, SwitchVersionInput
from spartanmcp.warmer import warm_cache

if TYPE_CHECKING:
    from spartanmcp.state import AppState

# Log rebuild progress every N components.
PROGRESS_LOG_INTERVAL = 5


async def handle_status(state: AppState) -> dict:
    stats = await state.cache.get_stats()
    return {
        **stats.model_dump(mode="json"),
        "total_known_components": len(KNOWN_COMPONENTS),
    }


async def handle_clear(all_versions: bool, state: AppState) -> dict:
    log = structlog.get_logger().bind(tool="cache_clear", all_versions=all_versions)
    log.info("handler_called")
    if all_versions:
        return await state.cache.clear_all()
    return await state.cache.clear_version()


async def handle_rebuild(
    components: list[str] | None,
    include_docs: bool,
    state: AppState,
) -> dict:
    """Clear the active version, then warm it again from the live site."""
    log = structlog.get_logger().bind(tool="cache_rebuild")
    log.info("handler_called")

    try:
        validated = CacheRebuildInput(components=components, include_docs=include_docs)
    except ValueError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a list of component names, or omit it to rebuild all.",
            recoverable=False,
        ) from exc

    cleared = await state.cache.clear_version()
    if not cleared["success"]:
        raise SpartanError(
            code=ErrorCode.CACHE_IO_FAILED,
            message=cleared["message"],
            suggestion="Check that the cache directory is writable and has free space.",
            recoverable=True,
        )

    def _on_progress(current: int, total: int) -> None:
        if current % PROGRESS_LOG_INTERVAL == 0 or current == total:
            log.info("cache_rebuild_progress", current=current, total=total)

    result = await warm_cache(
        state,
        components=validated.components,
        include_docs=validated.include_docs,
        on_progress=_on_progress,
    )
    return {
        "success": not result.has_failures,
        **result.model_dump(mode="json"),
        "duration_seconds": round(result.duration_ms / 1000, 2),
    }


async def handle_switch_version(version: str, state: AppState) -> dict:
    log = structlog.get_logger().bind(tool="cache_switch_version", version=version)
    log.info("handler_called")
    try:
        validated = SwitchVersionInput(version=version)
    except ValueError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Use a version like '1.2.3' or 'latest' (letters, digits, '.', '_', '-').",
            recoverable=False,
        ) from exc
    return await state.cache.switch_version(validated.version)


async def handle_list_versions(state: AppState) -> dict:
    versions = await state.cache.list_versions()
    return {
        "current_version": state.cache.current_version,
        "versions": [info.model_dump(mode="json") for info in versions],
    }
