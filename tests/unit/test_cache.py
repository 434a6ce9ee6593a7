"""Unit tests for spartanmcp.cache."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

import spartanmcp.cache as cache_module
from spartanmcp.cache import DiskCache
from spartanmcp.errors import CacheIOError, ErrorCode

if TYPE_CHECKING:
    from pathlib import Path

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class _FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> _FakeClock:
    return _FakeClock()


@pytest.fixture()
async def timed_cache(tmp_path: Path, clock: _FakeClock) -> DiskCache:
    cache = DiskCache(tmp_path / "cache", ttl_hours=24, clock=clock)
    await cache.initialize("v1")
    return cache


# ---------------------------------------------------------------------------
# Partition setup
# ---------------------------------------------------------------------------


class TestInitialize:
    async def test_creates_partition_layout(self, tmp_path: Path) -> None:
        cache = DiskCache(tmp_path / "cache")
        version = await cache.initialize()
        assert version == "latest"
        root = tmp_path / "cache" / "latest"
        assert (root / "components").is_dir()
        assert (root / "docs").is_dir()
        metadata = json.loads((root / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["version"] == "latest"
        assert metadata["components"] == {}
        assert metadata["docs"] == {}
        assert "createdAt" in metadata
        assert "lastUpdated" in metadata

    async def test_empty_version_means_latest(self, tmp_path: Path) -> None:
        cache = DiskCache(tmp_path / "cache")
        assert await cache.initialize("") == "latest"

    async def test_rejects_path_like_version(self, tmp_path: Path) -> None:
        cache = DiskCache(tmp_path / "cache")
        with pytest.raises(ValueError):
            await cache.initialize("../escape")

    async def test_existing_metadata_kept(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "<h1>X</h1>"})
        await timed_cache.initialize("v1")
        stats = await timed_cache.get_stats()
        assert stats.versions[0].component_count == 1

    async def test_corrupt_metadata_recreated(self, tmp_path: Path) -> None:
        root = tmp_path / "cache" / "v1"
        root.mkdir(parents=True)
        (root / "metadata.json").write_text("{not json", encoding="utf-8")

        cache = DiskCache(tmp_path / "cache")
        await cache.initialize("v1")

        metadata = json.loads((root / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["version"] == "v1"
        assert metadata["components"] == {}

    async def test_use_before_initialize_raises(self, tmp_path: Path) -> None:
        cache = DiskCache(tmp_path / "cache")
        with pytest.raises(RuntimeError):
            await cache.get_component("button")


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class TestComponents:
    async def test_round_trip(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "<h1>X</h1>"})
        lookup = await timed_cache.get_component("button", "html")
        assert lookup.cached is True
        assert lookup.stale is False
        assert lookup.data == "<h1>X</h1>"
        assert lookup.version == "v1"
        assert lookup.cached_at == "2025-01-01T12:00:00Z"

    async def test_whole_entry_without_field(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "<h1>X</h1>"})
        lookup = await timed_cache.get_component("button")
        assert lookup.data == {
            "html": "<h1>X</h1>",
            "componentName": "button",
            "version": "v1",
            "cachedAt": "2025-01-01T12:00:00Z",
        }

    async def test_absent_field_falls_back_to_entry(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "<h1>X</h1>"})
        lookup = await timed_cache.get_component("button", "api")
        assert lookup.data["componentName"] == "button"

    async def test_miss(self, timed_cache: DiskCache) -> None:
        lookup = await timed_cache.get_component("dialog")
        assert lookup.cached is False
        assert lookup.stale is False
        assert lookup.data is None
        assert lookup.version == "v1"

    async def test_keys_case_normalised(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("Button", {"html": "x"})
        lookup = await timed_cache.get_component("BUTTON", "html")
        assert lookup.data == "x"

    async def test_invalid_key_read_is_miss(self, timed_cache: DiskCache) -> None:
        lookup = await timed_cache.get_component("../metadata")
        assert lookup.cached is False

    async def test_invalid_key_write_rejected(self, timed_cache: DiskCache) -> None:
        with pytest.raises(ValueError):
            await timed_cache.set_component("../escape", {"html": "x"})

    async def test_overwrite_replaces_entry(self, timed_cache: DiskCache, clock: _FakeClock) -> None:
        await timed_cache.set_component("button", {"html": "old"})
        clock.now = T0 + timedelta(hours=1)
        await timed_cache.set_component("button", {"html": "new"})
        lookup = await timed_cache.get_component("button", "html")
        assert lookup.data == "new"
        assert lookup.cached_at == "2025-01-01T13:00:00Z"


class TestStaleness:
    async def test_stale_just_past_ttl(self, timed_cache: DiskCache, clock: _FakeClock) -> None:
        await timed_cache.set_component("button", {"html": "x"})
        clock.now = T0 + timedelta(hours=24, seconds=1)
        lookup = await timed_cache.get_component("button", "html")
        assert lookup.stale is True
        # Stale hits still carry data
        assert lookup.cached is True
        assert lookup.data == "x"

    async def test_fresh_just_inside_ttl(self, timed_cache: DiskCache, clock: _FakeClock) -> None:
        await timed_cache.set_component("button", {"html": "x"})
        clock.now = T0 + timedelta(hours=24, seconds=-1)
        lookup = await timed_cache.get_component("button", "html")
        assert lookup.stale is False

    async def test_docs_staleness(self, timed_cache: DiskCache, clock: _FakeClock) -> None:
        await timed_cache.set_docs("theming", "<h1>Theming</h1>")
        clock.now = T0 + timedelta(hours=25)
        lookup = await timed_cache.get_docs("theming")
        assert lookup.stale is True
        assert lookup.data == "<h1>Theming</h1>"


class TestCorruptEntries:
    async def test_corrupt_json_is_miss(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        path = tmp_path / "cache" / "v1" / "components" / "button.json"
        path.write_text("{broken", encoding="utf-8")
        lookup = await timed_cache.get_component("button")
        assert lookup.cached is False

    async def test_missing_cached_at_is_miss(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        path = tmp_path / "cache" / "v1" / "components" / "button.json"
        path.write_text(json.dumps({"html": "x"}), encoding="utf-8")
        lookup = await timed_cache.get_component("button")
        assert lookup.cached is False

    async def test_naive_timestamp_is_miss(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        path = tmp_path / "cache" / "v1" / "docs" / "theming.json"
        path.write_text(
            json.dumps({"content": "x", "cachedAt": "2025-01-01T12:00:00"}),
            encoding="utf-8",
        )
        lookup = await timed_cache.get_docs("theming")
        assert lookup.cached is False

    async def test_non_object_entry_is_miss(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        path = tmp_path / "cache" / "v1" / "components" / "button.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        lookup = await timed_cache.get_component("button")
        assert lookup.cached is False


# ---------------------------------------------------------------------------
# Docs
# ---------------------------------------------------------------------------


class TestDocs:
    async def test_round_trip(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        await timed_cache.set_docs("installation", "<h1>Install</h1>")
        lookup = await timed_cache.get_docs("installation")
        assert lookup.cached is True
        assert lookup.data == "<h1>Install</h1>"

        entry = json.loads(
            (tmp_path / "cache" / "v1" / "docs" / "installation.json").read_text(encoding="utf-8")
        )
        assert entry == {
            "topic": "installation",
            "content": "<h1>Install</h1>",
            "version": "v1",
            "cachedAt": "2025-01-01T12:00:00Z",
        }

    async def test_metadata_records_size(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        await timed_cache.set_docs("theming", "abc")
        metadata = json.loads(
            (tmp_path / "cache" / "v1" / "metadata.json").read_text(encoding="utf-8")
        )
        assert metadata["docs"]["theming"]["cachedAt"] == "2025-01-01T12:00:00Z"
        assert metadata["docs"]["theming"]["size"] > 0


# ---------------------------------------------------------------------------
# Write failures
# ---------------------------------------------------------------------------


class TestWriteFailures:
    async def test_entry_write_failure_raises(
        self, timed_cache: DiskCache, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _fail(_path: Path, _data: dict) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(cache_module, "_write_json_atomic", _fail)
        with pytest.raises(CacheIOError) as exc_info:
            await timed_cache.set_component("button", {"html": "x"})
        assert exc_info.value.code == ErrorCode.CACHE_IO_FAILED
        assert exc_info.value.key == "components:button"
        assert "disk full" in exc_info.value.message

    async def test_unserialisable_payload_raises(self, timed_cache: DiskCache) -> None:
        with pytest.raises(CacheIOError):
            await timed_cache.set_component("button", {"html": object()})


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


class TestClearVersion:
    async def test_clear_removes_entries(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "x"})
        result = await timed_cache.clear_version()
        assert result["success"] is True
        assert result["version"] == "v1"
        assert (await timed_cache.get_component("button")).cached is False

    async def test_clear_is_idempotent(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        await timed_cache.set_component("button", {"html": "x"})
        first = await timed_cache.clear_version()
        second = await timed_cache.clear_version()
        assert first["success"] is True
        assert second["success"] is True

        root = tmp_path / "cache" / "v1"
        assert (root / "components").is_dir()
        assert list((root / "components").iterdir()) == []
        metadata = json.loads((root / "metadata.json").read_text(encoding="utf-8"))
        assert metadata["components"] == {}

    async def test_other_versions_untouched(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "v1"})
        await timed_cache.switch_version("v2")
        await timed_cache.clear_version()
        await timed_cache.switch_version("v1")
        assert (await timed_cache.get_component("button", "html")).data == "v1"


class TestClearAll:
    async def test_removes_every_partition(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "x"})
        await timed_cache.switch_version("v2")
        result = await timed_cache.clear_all()
        assert result["success"] is True
        assert sorted(result["versions"]) == ["v1", "v2"]

        versions = await timed_cache.list_versions()
        # Only the active partition is recreated
        assert [info.version for info in versions] == ["v2"]


class TestStats:
    async def test_component_counted_for_version(self, tmp_path: Path) -> None:
        cache = DiskCache(tmp_path / "cache")
        await cache.initialize("v1")
        await cache.set_component("button", {"html": "<h1>X</h1>"})

        stats = await cache.get_stats()
        assert stats.current_version == "v1"
        assert stats.total_versions == 1
        (entry,) = stats.versions
        assert entry.version == "v1"
        assert entry.component_count == 1
        assert entry.docs_count == 0
        assert entry.is_current is True

    async def test_invalid_metadata_skipped(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        broken = tmp_path / "cache" / "broken"
        broken.mkdir()
        (broken / "metadata.json").write_text("nope", encoding="utf-8")

        stats = await timed_cache.get_stats()
        assert [v.version for v in stats.versions] == ["v1"]

    async def test_missing_root_reports_no_versions(self, tmp_path: Path) -> None:
        cache = DiskCache(tmp_path / "never-created")
        stats = await cache.get_stats()
        assert stats.current_version is None
        assert stats.total_versions == 0
        assert stats.versions == []


class TestVersions:
    async def test_switch_version(self, timed_cache: DiskCache) -> None:
        result = await timed_cache.switch_version("1.2.0")
        assert result == {
            "success": True,
            "version": "1.2.0",
            "message": "Switched to version 1.2.0",
        }
        assert timed_cache.current_version == "1.2.0"

    async def test_partitions_isolated(self, timed_cache: DiskCache) -> None:
        await timed_cache.set_component("button", {"html": "x"})
        await timed_cache.switch_version("v2")
        assert (await timed_cache.get_component("button")).cached is False

    async def test_list_versions(self, timed_cache: DiskCache, tmp_path: Path) -> None:
        await timed_cache.switch_version("v2")
        versions = await timed_cache.list_versions()
        assert [(v.version, v.is_current) for v in versions] == [("v1", False), ("v2", True)]
        assert versions[0].path == str(tmp_path / "cache" / "v1")
