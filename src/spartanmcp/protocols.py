"""Protocol interfaces for swappable components.

Tool handlers, the cache warmer and AppState reference these protocols, not
the concrete implementations, so tests can substitute lightweight fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Protocol

if TYPE_CHECKING:
    from spartanmcp.models.cache import CacheLookup, CacheStats, VersionInfo


class CacheProtocol(Protocol):
    """Interface for the version-partitioned documentation cache."""

    current_version: str | None

    async def initialize(self, version: str | None = None) -> str: ...

    async def switch_version(self, version: str) -> dict[str, Any]: ...

    async def get_component(self, key: str, field: str | None = None) -> CacheLookup: ...

    async def set_component(self, key: str, payload: dict[str, Any]) -> None: ...

    async def get_docs(self, topic: str) -> CacheLookup: ...

    async def set_docs(self, topic: str, content: str) -> None: ...

    async def clear_version(self) -> dict[str, Any]: ...

    async def clear_all(self) -> dict[str, Any]: ...

    async def get_stats(self) -> CacheStats: ...

    async def list_versions(self) -> list[VersionInfo]: ...


class FetcherProtocol(Protocol):
    """Interface for the HTTP documentation fetcher."""

    async def fetch(self, url: str) -> str: ...

    async def fetch_content(
        self,
        url: str,
        fmt: Literal["html", "text"] = "html",
        bypass_cache: bool = False,
    ) -> str: ...
