from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheLookup(BaseModel):
    """Result of a disk cache read.

    ``stale`` is advisory: stale hits still carry ``data`` and the caller
    decides whether to refresh.
    """

    data: Any = None
    cached: bool = False
    stale: bool = False
    cached_at: str | None = None
    version: str


class MetadataEntry(BaseModel):
    cached_at: str = Field(alias="cachedAt")
    size: int

    model_config = ConfigDict(populate_by_name=True)


class VersionMetadata(BaseModel):
    """Per-partition index of cached entries, persisted as metadata.json."""

    version: str
    created_at: str = Field(alias="createdAt")
    last_updated: str = Field(alias="lastUpdated")
    components: dict[str, MetadataEntry] = Field(default_factory=dict)
    docs: dict[str, MetadataEntry] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class VersionStats(BaseModel):
    version: str
    component_count: int
    docs_count: int
    created_at: str | None
    last_updated: str | None
    is_current: bool


class CacheStats(BaseModel):
    current_version: str | None
    total_versions: int
    versions: list[VersionStats] = []
    error: str | None = None


class VersionInfo(BaseModel):
    version: str
    path: str
    is_current: bool


class BatchSummary(BaseModel):
    """Outcome of one warm-up batch (components or docs)."""

    total: int
    success: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = []


class WarmResult(BaseModel):
    version: str
    components: BatchSummary
    docs: BatchSummary
    duration_ms: int = 0

    @property
    def has_failures(self) -> bool:
        return self.components.failed > 0 or self.docs.failed > 0
