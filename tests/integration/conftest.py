"""Integration test fixtures.

Provides a fully wired AppState with a temp-dir DiskCache and a real httpx
client (mocked per test with respx). Page fixtures come from
tests/conftest.py (accordion_page, plain_page, settings).
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest

from spartanmcp.cache import DiskCache
from spartanmcp.fetcher import Fetcher, ResponseCache
from spartanmcp.state import AppState

if TYPE_CHECKING:
    from pathlib import Path

    from spartanmcp.config import Settings


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Points the disk cache at an isolated tmp directory and forces JSON logs
    at WARNING so stderr stays quiet.
    """
    env = os.environ.copy()
    env["SPARTANMCP__CACHE__CACHE_DIR"] = str(tmp_path / "cache")
    env["SPARTANMCP__CACHE__DEFAULT_VERSION"] = "latest"
    env["SPARTANMCP__LOGGING__LEVEL"] = "WARNING"
    env["SPARTANMCP__FETCHER__COMPONENTS_BASE_URL"] = "http://127.0.0.1:1/components"
    env["SPARTANMCP__FETCHER__DOCS_BASE_URL"] = "http://127.0.0.1:1/documentation"
    return env


@pytest.fixture()
async def app_state(settings: Settings) -> AppState:
    """Full AppState wired for handler integration tests."""
    cache = DiskCache(settings.cache.cache_dir, settings.cache.ttl_hours)
    await cache.initialize(settings.cache.default_version)

    async with httpx.AsyncClient() as client:
        fetcher = Fetcher(client, ResponseCache(settings.fetcher.cache_ttl_ms))
        state = AppState(
            settings=settings,
            cache=cache,
            fetcher=fetcher,
            http_client=client,
        )
        yield state
