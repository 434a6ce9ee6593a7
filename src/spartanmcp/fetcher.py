"""HTTP documentation fetcher with a short-lived in-memory response cache.

All network I/O for documentation pages goes through a single Fetcher
instance shared across tool calls. The Fetcher receives an httpx.AsyncClient
via constructor injection (the lifespan owns the client lifecycle) and owns
its ResponseCache, so there is no module-level cache state.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import httpx
import structlog

from spartanmcp.errors import FetchError
from spartanmcp.parser import to_plain_text

if TYPE_CHECKING:
    from collections.abc import Callable

    from spartanmcp.config import FetcherSettings

log = structlog.get_logger()

DEFAULT_FETCH_CACHE_TTL_MS = 5 * 60 * 1000

ContentFormat = Literal["html", "text"]


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(30.0),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def _now_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class _ResponseCacheEntry:
    content: str
    timestamp_ms: float


class ResponseCache:
    """Process-local response cache keyed by ``url::format``.

    Entries older than ``ttl_ms`` are treated as absent on lookup but are not
    purged; the next successful fetch overwrites them.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_FETCH_CACHE_TTL_MS,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: dict[str, _ResponseCacheEntry] = {}

    @staticmethod
    def key(url: str, fmt: ContentFormat) -> str:
        return f"{url}::{fmt}"

    def get(self, url: str, fmt: ContentFormat) -> str | None:
        entry = self._entries.get(self.key(url, fmt))
        if entry is None:
            return None
        if self._clock() - entry.timestamp_ms >= self.ttl_ms:
            return None
        return entry.content

    def set(self, url: str, fmt: ContentFormat, content: str) -> None:
        self._entries[self.key(url, fmt)] = _ResponseCacheEntry(
            content=content,
            timestamp_ms=self._clock(),
        )

    def __len__(self) -> int:
        return len(self._entries)


class Fetcher:
    """Fetches documentation pages as raw HTML or plain text."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        response_cache: ResponseCache | None = None,
    ) -> None:
        self._client = client
        self.response_cache = response_cache if response_cache is not None else ResponseCache()

    async def fetch(self, url: str) -> str:
        """GET a URL and return the response body.

        Raises FetchError on network errors and non-2xx responses. Never
        consults or populates the response cache.
        """
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise FetchError(
                url=url,
                status_code=None,
                message=f"Network error fetching {url}: {exc}",
            ) from exc

        if not response.is_success:
            raise FetchError(
                url=url,
                status_code=response.status_code,
                message=f"HTTP {response.status_code} fetching {url}",
            )

        log.info(
            "fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(response.text),
        )
        return response.text

    async def fetch_content(
        self,
        url: str,
        fmt: ContentFormat = "html",
        bypass_cache: bool = False,
    ) -> str:
        """Return a page as ``html`` or ``text``, serving recent responses from memory.

        With ``bypass_cache`` the response cache is neither read nor written.
        """
        if not bypass_cache:
            cached = self.response_cache.get(url, fmt)
            if cached is not None:
                log.debug("fetch_cache_hit", url=url, format=fmt)
                return cached

        html = await self.fetch(url)
        content = to_plain_text(html) if fmt == "text" else html

        if not bypass_cache:
            self.response_cache.set(url, fmt, content)
        return content
