"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools and resources
- Start the stdio transport, or run a one-shot cache warm-up
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import spartanmcp.tools.cache_tools as t_cache
import spartanmcp.tools.components as t_components
import spartanmcp.tools.docs as t_docs
import spartanmcp.tools.health as t_health
import spartanmcp.tools.meta as t_meta
import spartanmcp.tools.resources as t_resources
import spartanmcp.tools.search as t_search
from spartanmcp import __version__
from spartanmcp.cache import DiskCache
from spartanmcp.config import Settings
from spartanmcp.errors import SpartanError
from spartanmcp.fetcher import Fetcher, ResponseCache, build_http_client
from spartanmcp.state import AppState
from spartanmcp.warmer import warm_cache

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


async def build_state(settings: Settings) -> AppState:
    """Create the HTTP client, fetcher and disk cache, and activate the default version."""
    http_client = build_http_client(settings.fetcher)
    fetcher = Fetcher(http_client, ResponseCache(settings.fetcher.cache_ttl_ms))
    cache = DiskCache(settings.cache.cache_dir, settings.cache.ttl_hours)
    try:
        await cache.initialize(settings.cache.default_version)
    except Exception:
        await http_client.aclose()
        raise
    return AppState(
        settings=settings,
        cache=cache,
        fetcher=fetcher,
        http_client=http_client,
    )


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info("server_starting", version=__version__)
    state = await build_state(settings)
    log.info(
        "server_started",
        version=__version__,
        cache_dir=settings.cache.cache_dir,
        cache_version=state.cache.current_version,
    )

    try:
        yield state
    finally:
        if state.http_client is not None:
            await state.http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("spartanmcp", lifespan=lifespan)
# FastMCP has no version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: SpartanError) -> CallToolResult:
    """Convert a SpartanError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


async def _run_tool(tool: str, call: Awaitable[dict]) -> object:
    try:
        return await call
    except SpartanError as exc:
        log.warning(
            "tool_error",
            tool=tool,
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool=tool, exc_info=True)
        raise


@mcp.tool()
async def components_list(ctx: Context) -> object:
    """List every known Spartan UI component with its documentation URL."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("components_list", t_components.handle_list(state))


@mcp.tool()
async def components_get(
    name: str,
    ctx: Context,
    format: str = "html",
    extract: str = "code",
    no_cache: bool = False,
    version: str | None = None,
) -> object:
    """Fetch a Spartan UI component page.

    ``extract`` selects what is returned: the whole page (``none``), code
    examples (``code``), section headings, links, or the parsed Brain/Helm
    API tables (``api``). Pages are served from the disk cache when fresh;
    set ``no_cache`` to force a live fetch.
    """
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "components_get",
        t_components.handle_get(name, format, extract, no_cache, version, state),
    )


@mcp.tool()
async def docs_get(
    topic: str,
    ctx: Context,
    format: str = "html",
    extract: str = "none",
    no_cache: bool = False,
    version: str | None = None,
) -> object:
    """Fetch a Spartan UI documentation page (installation, theming, dark-mode, ...)."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "docs_get",
        t_docs.handle_get(topic, format, extract, no_cache, version, state),
    )


@mcp.tool()
async def cache_status(ctx: Context) -> object:
    """Report cached versions and entry counts."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("cache_status", t_cache.handle_status(state))


@mcp.tool()
async def cache_clear(ctx: Context, all_versions: bool = False) -> object:
    """Clear the active cache version, or every version with ``all_versions``."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("cache_clear", t_cache.handle_clear(all_versions, state))


@mcp.tool()
async def cache_rebuild(
    ctx: Context,
    components: list[str] | None = None,
    include_docs: bool = True,
) -> object:
    """Clear the active cache version and re-fetch components (and docs) into it."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "cache_rebuild",
        t_cache.handle_rebuild(components, include_docs, state),
    )


@mcp.tool()
async def cache_switch_version(version: str, ctx: Context) -> object:
    """Make another cache version the active one, creating it if needed."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "cache_switch_version",
        t_cache.handle_switch_version(version, state),
    )


@mcp.tool()
async def cache_list_versions(ctx: Context) -> object:
    """List the cache versions present on disk."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("cache_list_versions", t_cache.handle_list_versions(state))


@mcp.tool()
async def health_check(
    ctx: Context,
    topics: list[str] | None = None,
    components: list[str] | None = None,
) -> object:
    """Check that spartan.ng documentation and component pages are reachable."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("health_check", t_health.handle(topics, components, state))


@mcp.tool()
async def spartan_meta(ctx: Context) -> object:
    """Return documentation topics, components and tool names for client autocomplete."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("spartan_meta", t_meta.handle(state))


@mcp.tool()
async def search(
    query: str,
    ctx: Context,
    scope: str = "all",
    limit: int = 10,
) -> object:
    """Full-text search across component and documentation pages.

    ``scope`` is ``all``, ``components`` or ``docs``. Results are ranked by
    how often the query words (three letters or more) appear on each page.
    """
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool("search", t_search.handle_search(query, scope, limit, state))


@mcp.tool()
async def components_search(
    feature: str,
    ctx: Context,
    include_examples: bool = True,
    include_api: bool = False,
) -> object:
    """Find components for a feature or use case (e.g. 'overlay', 'form input')."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "components_search",
        t_search.handle_components_search(feature, include_examples, include_api, state),
    )


@mcp.tool()
async def examples_get(
    name: str,
    ctx: Context,
    example_type: str = "all",
    include_code: bool = True,
) -> object:
    """Return a component's code examples, optionally filtered by category."""
    state: AppState = ctx.request_context.lifespan_context
    return await _run_tool(
        "examples_get",
        t_search.handle_examples_get(name, example_type, include_code, state),
    )


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


async def _read_resource(uri: str, call: Awaitable[dict]) -> str:
    try:
        result = await call
    except SpartanError as exc:
        log.warning("resource_error", uri=uri, code=exc.code, message=exc.message)
        raise
    return json.dumps(result, indent=2)


def _lifespan_state() -> AppState:
    return mcp.get_context().request_context.lifespan_context


@mcp.resource(
    "spartan://components/list",
    name="Spartan UI Components List",
    description="Every Spartan UI component with its page URL and resource URIs.",
    mime_type="application/json",
)
async def components_list_resource() -> str:
    return await _read_resource(
        "spartan://components/list",
        t_resources.handle_list(_lifespan_state()),
    )


@mcp.resource(
    "spartan://component/{name}/api",
    name="Component API Documentation",
    description="Brain API and Helm API tables for one component.",
    mime_type="application/json",
)
async def component_api_resource(name: str) -> str:
    return await _read_resource(
        f"spartan://component/{name}/api",
        t_resources.handle_component(name, "api", _lifespan_state()),
    )


@mcp.resource(
    "spartan://component/{name}/examples",
    name="Component Code Examples",
    description="Code examples from one component page.",
    mime_type="application/json",
)
async def component_examples_resource(name: str) -> str:
    return await _read_resource(
        f"spartan://component/{name}/examples",
        t_resources.handle_component(name, "examples", _lifespan_state()),
    )


@mcp.resource(
    "spartan://component/{name}/full",
    name="Component Full Documentation",
    description="API tables and code examples for one component.",
    mime_type="application/json",
)
async def component_full_resource(name: str) -> str:
    return await _read_resource(
        f"spartan://component/{name}/full",
        t_resources.handle_component(name, "full", _lifespan_state()),
    )


# ---------------------------------------------------------------------------
# Cache warm-up
# ---------------------------------------------------------------------------


async def _warmup(settings: Settings) -> bool:
    """Warm every component and docs topic. Returns True when nothing failed."""
    state = await build_state(settings)
    try:

        def _on_progress(current: int, total: int) -> None:
            log.info("warmup_progress", current=current, total=total)

        result = await warm_cache(state, on_progress=_on_progress)
    finally:
        if state.http_client is not None:
            await state.http_client.aclose()

    for error in [*result.components.errors, *result.docs.errors]:
        log.warning("warmup_item_failed", **error)
    return not result.has_failures


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def main() -> None:
    mcp.run()


def warmup() -> None:
    """Pre-populate the disk cache, exiting non-zero when any item failed."""
    settings = Settings()
    _setup_logging(settings)
    ok = asyncio.run(_warmup(settings))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
