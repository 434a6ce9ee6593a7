from __future__ import annotations

from spartanmcp.models.api import (
    CodeExample,
    ComponentAPIRecord,
    ExtractedAPIInfo,
    InputProp,
    OutputProp,
)
from spartanmcp.models.cache import (
    BatchSummary,
    CacheLookup,
    CacheStats,
    MetadataEntry,
    VersionInfo,
    VersionMetadata,
    VersionStats,
    WarmResult,
)
from spartanmcp.models.tools import (
    CacheRebuildInput,
    CategorisedExample,
    ComponentListItem,
    ComponentResourceItem,
    ComponentResourceOutput,
    ComponentsGetInput,
    ComponentsListOutput,
    DocsGetInput,
    ExamplesGetInput,
    ExamplesGetOutput,
    FeatureMatch,
    FeatureSearchInput,
    FeatureSearchOutput,
    HealthCheckInput,
    HealthCheckOutput,
    MetaOutput,
    PageOutput,
    ResourceExample,
    ResourceListOutput,
    SearchHit,
    SearchInput,
    SearchOutput,
    SwitchVersionInput,
    TopicItem,
    UrlCheck,
)

__all__ = [
    # api
    "InputProp",
    "OutputProp",
    "ComponentAPIRecord",
    "CodeExample",
    "ExtractedAPIInfo",
    # cache
    "CacheLookup",
    "MetadataEntry",
    "VersionMetadata",
    "VersionStats",
    "CacheStats",
    "VersionInfo",
    "BatchSummary",
    "WarmResult",
    # tools
    "ComponentsGetInput",
    "DocsGetInput",
    "CacheRebuildInput",
    "SwitchVersionInput",
    "HealthCheckInput",
    "ComponentListItem",
    "ComponentsListOutput",
    "PageOutput",
    "UrlCheck",
    "HealthCheckOutput",
    "ComponentResourceItem",
    "ResourceListOutput",
    "ResourceExample",
    "ComponentResourceOutput",
    "TopicItem",
    "MetaOutput",
    "SearchInput",
    "FeatureSearchInput",
    "ExamplesGetInput",
    "SearchHit",
    "SearchOutput",
    "FeatureMatch",
    "FeatureSearchOutput",
    "CategorisedExample",
    "ExamplesGetOutput",
]
