"""Tool handler for spartan_meta: topics, components and tool names for autocomplete."""

from __future__ import annotations

from typing import TYPE_CHECKING

from spartanmcp.catalog import (
    DOCUMENTATION_TOPICS,
    EXTERNAL_TOPICS,
    KNOWN_COMPONENTS,
    component_url,
    docs_url,
)
from spartanmcp.models.tools import ComponentListItem, MetaOutput, TopicItem

if TYPE_CHECKING:
    from spartanmcp.state import AppState

TOOL_USAGE: dict[str, str] = {
    "docs_get": "Fetch a documentation topic",
    "components_get": "Fetch a component page; extract='api' returns structured Brain/Helm API data",
    "components_list": "List all available components",
    "search": "Full-text search across component and documentation pages",
    "components_search": "Find components for a feature or use case",
    "examples_get": "Get categorised code examples for one component",
}


async def handle(state: AppState) -> dict:
    fetcher_settings = state.settings.fetcher
    output = MetaOutput(
        topics=[
            TopicItem(topic=topic, url=docs_url(topic, fetcher_settings.docs_base_url))
            for topic in (*DOCUMENTATION_TOPICS, *EXTERNAL_TOPICS)
        ],
        components=[
            ComponentListItem(name=name, url=component_url(name, fetcher_settings.components_base_url))
            for name in KNOWN_COMPONENTS
        ],
        tools=TOOL_USAGE,
    )
    return output.model_dump(mode="json")
