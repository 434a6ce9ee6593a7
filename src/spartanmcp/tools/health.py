"""Tool handler for health_check: availability of spartan.ng pages.

Every URL is checked sequentially; failures are reported per URL and never
raised.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import httpx
import structlog

from spartanmcp.catalog import DOCUMENTATION_TOPICS, component_url, docs_url
from spartanmcp.errors import ErrorCode, SpartanError
from spartanmcp.models.tools import HealthCheckInput, HealthCheckOutput, UrlCheck

if TYPE_CHECKING:
    from spartanmcp.state import AppState

DEFAULT_HEALTH_COMPONENTS = ("accordion", "button", "table", "form-field")


async def handle(
    topics: list[str] | None,
    components: list[str] | None,
    state: AppState,
) -> dict:
    """Handle a health_check tool call."""
    log = structlog.get_logger().bind(tool="health_check")
    log.info("handler_called")

    try:
        validated = HealthCheckInput(topics=topics, components=components)
    except ValueError as exc:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion=f"Topics must be among: {', '.join(DOCUMENTATION_TOPICS)}.",
            recoverable=False,
        ) from exc

    if state.http_client is None:
        raise RuntimeError("HTTP client not initialized")

    fetcher_settings = state.settings.fetcher
    targets = [
        (f"doc:{topic}", docs_url(topic, fetcher_settings.docs_base_url))
        for topic in (validated.topics or DOCUMENTATION_TOPICS)
    ] + [
        (f"component:{name}", component_url(name, fetcher_settings.components_base_url))
        for name in (validated.components or DEFAULT_HEALTH_COMPONENTS)
    ]

    checks = [await _check_url(state.http_client, label, url) for label, url in targets]
    ok_count = sum(1 for check in checks if check.ok)
    log.info("health_check_complete", total=len(checks), ok=ok_count)

    output = HealthCheckOutput(
        timestamp=datetime.now(UTC).isoformat(),
        total=len(checks),
        ok=ok_count,
        failed=len(checks) - ok_count,
        checks=checks,
    )
    return output.model_dump(mode="json")


async def _check_url(client: httpx.AsyncClient, label: str, url: str) -> UrlCheck:
    started = time.monotonic()
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        return UrlCheck(
            label=label,
            url=url,
            ok=False,
            status=0,
            ms=int((time.monotonic() - started) * 1000),
            error=str(exc),
        )
    return UrlCheck(
        label=label,
        url=url,
        ok=response.is_success,
        status=response.status_code,
        ms=int((time.monotonic() - started) * 1000),
    )
