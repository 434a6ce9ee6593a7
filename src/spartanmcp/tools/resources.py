"""Handlers behind the spartan:// MCP resources.

``spartan://components/list`` lists the catalog with the per-component
resource URIs. ``spartan://component/{name}/api|examples|full`` read the
extracted payload from the disk cache, fetching and caching it on a miss.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from spartanmcp.catalog import KNOWN_COMPONENTS, component_url, suggest_components
from spartanmcp.errors import ErrorCode, SpartanError
from spartanmcp.extractor import guess_language
from spartanmcp.models.tools import (
    ComponentResourceItem,
    ComponentResourceOutput,
    ResourceExample,
    ResourceListOutput,
)
from spartanmcp.tools.components import load_component

if TYPE_CHECKING:
    from spartanmcp.state import AppState

RESOURCE_KINDS = ("api", "examples", "full")
DOCUMENTATION_HOME = "https://www.spartan.ng/documentation"


def resource_uri(name: str, kind: str) -> str:
    return f"spartan://component/{name}/{kind}"


async def handle_list(state: AppState) -> dict:
    base_url = state.settings.fetcher.components_base_url
    output = ResourceListOutput(
        components=[
            ComponentResourceItem(
                name=name,
                url=component_url(name, base_url),
                api_resource=resource_uri(name, "api"),
                examples_resource=resource_uri(name, "examples"),
                full_resource=resource_uri(name, "full"),
            )
            for name in KNOWN_COMPONENTS
        ],
        total_components=len(KNOWN_COMPONENTS),
        base_url=base_url,
        documentation=DOCUMENTATION_HOME,
    )
    return output.model_dump(mode="json")


async def handle_component(name: str, kind: str, state: AppState) -> dict:
    """Read one component resource view (``api``, ``examples`` or ``full``)."""
    log = structlog.get_logger().bind(resource=kind, name=name)
    log.info("resource_read")

    if kind not in RESOURCE_KINDS:
        raise SpartanError(
            code=ErrorCode.INVALID_INPUT,
            message=f"Unknown resource view: {kind!r}",
            suggestion="Use one of: api, examples, full.",
            recoverable=False,
        )
    if name not in KNOWN_COMPONENTS:
        suggestions = suggest_components(name)
        hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
        raise SpartanError(
            code=ErrorCode.COMPONENT_NOT_FOUND,
            message=f"Unknown component: {name!r}",
            suggestion="Read spartan://components/list for available components." + hint,
            recoverable=False,
        )

    payload = await load_component(state, name)
    api = payload["api"]
    output = ComponentResourceOutput(
        component=name,
        url=component_url(name, state.settings.fetcher.components_base_url),
        kind=kind,
    )

    if kind in ("api", "full"):
        output.api = {"brainAPI": api["brainAPI"], "helmAPI": api["helmAPI"]}
        output.brain_api_count = len(api["brainAPI"])
        output.helm_api_count = len(api["helmAPI"])

    if kind in ("examples", "full"):
        # Titles come from the extracted examples when the page has them
        titles = [example["title"] for example in api.get("examples", [])]
        output.examples = [
            ResourceExample(
                id=index,
                title=titles[index - 1] if index <= len(titles) else f"Example {index}",
                code=code,
                language=guess_language(code),
            )
            for index, code in enumerate(payload.get("examples", []), start=1)
        ]
        output.total_examples = len(output.examples)

    return output.model_dump(mode="json")
