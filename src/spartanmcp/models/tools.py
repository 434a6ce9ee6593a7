from __future__ import annotations

import re
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field, field_validator

from spartanmcp.catalog import DOCUMENTATION_TOPICS, EXTERNAL_TOPICS, normalise_component_name

PageFormat = Literal["html", "text"]
ComponentExtract = Literal["none", "code", "headings", "links", "api"]
DocsExtract = Literal["none", "code", "headings", "links"]

_VERSION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,63}$")


def _validate_version(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    # Versions become directory names; keep them to a safe character set.
    if not _VERSION_RE.match(v):
        raise ValueError(f"Invalid version: {v!r}")
    return v


OptionalVersion = Annotated[str | None, AfterValidator(_validate_version)]


class ComponentsGetInput(BaseModel):
    name: str
    format: PageFormat = "html"
    extract: ComponentExtract = "code"
    no_cache: bool = False
    version: OptionalVersion = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = normalise_component_name(v)
        if not v:
            raise ValueError("name must not be empty")
        if not re.match(r"^[a-z0-9][a-z0-9-]*$", v):
            raise ValueError(f"Invalid component name: {v!r}")
        return v


class DocsGetInput(BaseModel):
    topic: str
    format: PageFormat = "html"
    extract: DocsExtract = "none"
    no_cache: bool = False
    version: OptionalVersion = None

    @field_validator("topic")
    @classmethod
    def validate_topic(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in DOCUMENTATION_TOPICS and v not in EXTERNAL_TOPICS:
            raise ValueError(f"Unknown documentation topic: {v!r}")
        return v


class CacheRebuildInput(BaseModel):
    components: list[str] | None = None
    include_docs: bool = True

    @field_validator("components")
    @classmethod
    def validate_components(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        names = [normalise_component_name(name) for name in v]
        return [name for name in names if name]


class SwitchVersionInput(BaseModel):
    version: str

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        checked = _validate_version(v)
        if checked is None:
            raise ValueError("version must not be empty")
        return checked


class HealthCheckInput(BaseModel):
    topics: list[str] | None = None
    components: list[str] | None = None

    @field_validator("topics")
    @classmethod
    def validate_topics(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        unknown = [topic for topic in v if topic not in DOCUMENTATION_TOPICS]
        if unknown:
            raise ValueError(f"Unknown documentation topics: {unknown}")
        return v


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

CacheStatus = Literal["hit", "refreshed", "new", "bypassed", "live"]


class ComponentListItem(BaseModel):
    name: str
    url: str


class ComponentsListOutput(BaseModel):
    components: list[ComponentListItem]
    count: int


class PageOutput(BaseModel):
    """Result of components_get / docs_get.

    ``data`` is the page itself (HTML or plain text) when ``extract`` is
    ``"none"``; otherwise it holds the extraction result.
    """

    name: str
    url: str
    version: str | None
    cache_status: CacheStatus
    cached_at: str | None = None
    format: PageFormat
    extract: str
    count: int | None = None
    data: Any


class UrlCheck(BaseModel):
    label: str
    url: str
    ok: bool
    status: int
    ms: int
    error: str | None = None


class HealthCheckOutput(BaseModel):
    timestamp: str
    total: int
    ok: int
    failed: int
    checks: list[UrlCheck]


# ---------------------------------------------------------------------------
# Resources and metadata
# ---------------------------------------------------------------------------

ResourceKind = Literal["api", "examples", "full"]


class ComponentResourceItem(BaseModel):
    name: str
    url: str
    api_resource: str
    examples_resource: str
    full_resource: str


class ResourceListOutput(BaseModel):
    components: list[ComponentResourceItem]
    total_components: int
    base_url: str
    documentation: str


class ResourceExample(BaseModel):
    id: int
    title: str
    code: str
    language: str


class ComponentResourceOutput(BaseModel):
    """Body of a ``spartan://component/{name}/...`` resource.

    ``api`` is set for the api and full views, ``examples`` for the examples
    and full views.
    """

    component: str
    url: str
    kind: ResourceKind
    api: dict | None = None
    examples: list[ResourceExample] | None = None
    brain_api_count: int | None = None
    helm_api_count: int | None = None
    total_examples: int | None = None


class TopicItem(BaseModel):
    topic: str
    url: str


class MetaOutput(BaseModel):
    topics: list[TopicItem]
    components: list[ComponentListItem]
    tools: dict[str, str]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

SearchScope = Literal["all", "components", "docs"]
ExampleType = Literal["all", "basic", "advanced", "integration", "accessibility"]


class SearchInput(BaseModel):
    query: str
    scope: SearchScope = "all"
    limit: int = Field(default=10, ge=1, le=20)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("query must not be empty")
        return v


class FeatureSearchInput(BaseModel):
    feature: str
    include_examples: bool = True
    include_api: bool = False

    @field_validator("feature")
    @classmethod
    def validate_feature(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("feature must not be empty")
        return v


class ExamplesGetInput(BaseModel):
    name: str
    example_type: ExampleType = "all"
    include_code: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return normalise_component_name(v)


class SearchHit(BaseModel):
    type: Literal["component", "documentation"]
    name: str
    url: str
    score: int
    matches: list[str]
    description: str


class SearchOutput(BaseModel):
    query: str
    scope: SearchScope
    result_count: int
    results: list[SearchHit]


class FeatureMatch(BaseModel):
    name: str
    url: str
    relevance_score: int
    description: str
    categories: list[str]
    examples: list[dict] | None = None
    api: dict | None = None


class FeatureSearchOutput(BaseModel):
    feature: str
    match_count: int
    components: list[FeatureMatch]


class CategorisedExample(BaseModel):
    title: str
    type: str
    code: str | None = None
    language: str | None = None


class ExamplesGetOutput(BaseModel):
    component: str
    url: str
    example_type: ExampleType
    example_count: int
    examples: list[CategorisedExample]
