"""Version-partitioned JSON file cache for component and documentation data.

Layout under ``cache_dir``::

    {version}/metadata.json
    {version}/components/{component}.json
    {version}/docs/{topic}.json

Each version directory is an isolated partition; switching versions only
moves the active pointer. Entry files are the source of truth for presence,
``metadata.json`` is an index kept in step by rewriting it after every entry
write.

Read paths degrade gracefully: a missing or corrupt entry is a cache miss
(logged with ``exc_info=True`` when corrupt). Write paths raise CacheIOError,
since a failed write must not be reported as success.
"""

from __future__ import annotations

import json
import os
import re
import shutil
from contextlib import suppress
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from spartanmcp.errors import CacheIOError
from spartanmcp.models.cache import (
    CacheLookup,
    CacheStats,
    MetadataEntry,
    VersionInfo,
    VersionMetadata,
    VersionStats,
)

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()

DEFAULT_VERSION = "latest"
METADATA_FILE = "metadata.json"
COMPONENTS_DIR = "components"
DOCS_DIR = "docs"

_KEY_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*$")
_VERSION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _isoformat(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def _normalise_key(key: str) -> str:
    normalised = key.strip().lower()
    if not _KEY_RE.match(normalised):
        raise ValueError(f"Invalid cache key: {key!r}")
    return normalised


def _write_json_atomic(path: Path, data: dict) -> None:
    """Write JSON to ``path`` via a temp file and ``os.replace``."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as file_obj:
            json.dump(data, file_obj, indent=2)
            file_obj.flush()
            os.fsync(file_obj.fileno())
        os.replace(tmp_path, path)
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)


def _serialised_size(entry: dict) -> int:
    return len(json.dumps(entry, separators=(",", ":")))


class DiskCache:
    """File-backed documentation cache implementing CacheProtocol."""

    def __init__(
        self,
        cache_dir: str | Path,
        ttl_hours: float = 24,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cache_dir = Path(cache_dir).expanduser()
        self.ttl_hours = ttl_hours
        self.current_version: str | None = None
        self._clock = clock
        self._metadata: VersionMetadata | None = None

    # ------------------------------------------------------------------
    # Partition setup
    # ------------------------------------------------------------------

    async def initialize(self, version: str | None = None) -> str:
        """Activate a version partition, creating its directories and metadata.

        ``version`` is an opaque partition key; ``None`` or empty selects
        ``"latest"``. Raises CacheIOError when the partition cannot be created.
        """
        self.current_version = self._check_version(version or DEFAULT_VERSION)
        self._ensure_dirs()
        self._load_metadata()
        return self.current_version

    async def switch_version(self, version: str) -> dict[str, Any]:
        """Point the cache at another partition without touching any other partition."""
        await self.initialize(version)
        log.info("cache_version_switched", version=self.current_version)
        return {
            "success": True,
            "version": self.current_version,
            "message": f"Switched to version {self.current_version}",
        }

    @staticmethod
    def _check_version(version: str) -> str:
        # Versions are directory names; refuse anything that could escape cache_dir.
        if not _VERSION_RE.match(version):
            raise ValueError(f"Invalid cache version: {version!r}")
        return version

    def _active_version(self) -> str:
        if self.current_version is None:
            raise RuntimeError("DiskCache.initialize() must be called before use")
        return self.current_version

    def _version_dir(self) -> Path:
        return self.cache_dir / self._active_version()

    def _entry_path(self, kind: str, key: str) -> Path:
        return self._version_dir() / kind / f"{key}.json"

    def _ensure_dirs(self) -> None:
        version_dir = self._version_dir()
        try:
            (version_dir / COMPONENTS_DIR).mkdir(parents=True, exist_ok=True)
            (version_dir / DOCS_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheIOError(
                key=str(version_dir),
                message=f"Failed to create cache directory {version_dir}: {exc}",
            ) from exc

    def _load_metadata(self) -> None:
        """Load metadata.json, recreating it empty when missing or corrupt."""
        version = self._active_version()
        metadata_path = self._version_dir() / METADATA_FILE
        try:
            raw = json.loads(metadata_path.read_text(encoding="utf-8"))
            self._metadata = VersionMetadata.model_validate(raw)
            return
        except FileNotFoundError:
            pass
        except (OSError, ValueError, ValidationError):
            log.warning("cache_metadata_invalid", version=version, exc_info=True)

        now = _isoformat(self._clock())
        self._metadata = VersionMetadata(
            version=version,
            created_at=now,
            last_updated=now,
        )
        self._save_metadata()

    def _save_metadata(self) -> None:
        if self._metadata is None:
            raise RuntimeError("DiskCache.initialize() must be called before use")
        metadata_path = self._version_dir() / METADATA_FILE
        try:
            _write_json_atomic(metadata_path, self._metadata.model_dump(by_alias=True))
        except OSError as exc:
            raise CacheIOError(
                key=METADATA_FILE,
                message=f"Failed to write cache metadata {metadata_path}: {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Entry reads
    # ------------------------------------------------------------------

    def _read_entry(self, kind: str, key: str) -> dict[str, Any] | None:
        """Read an entry file. Returns ``None`` on miss or unreadable content."""
        try:
            path = self._entry_path(kind, _normalise_key(key))
        except ValueError:
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(entry, dict):
                raise ValueError("cache entry is not a JSON object")
            if datetime.fromisoformat(entry["cachedAt"]).tzinfo is None:
                raise ValueError("cachedAt has no timezone")
            return entry
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError):
            log.warning("cache_read_error", key=f"{kind}:{key}", exc_info=True)
            return None

    def _is_stale(self, cached_at: str) -> bool:
        age = self._clock() - datetime.fromisoformat(cached_at)
        return age > timedelta(hours=self.ttl_hours)

    def _miss(self) -> CacheLookup:
        return CacheLookup(version=self._active_version())

    async def get_component(self, key: str, field: str | None = None) -> CacheLookup:
        """Read a component entry, projecting ``field`` when present in it."""
        entry = self._read_entry(COMPONENTS_DIR, key)
        if entry is None:
            return self._miss()

        data = entry[field] if field is not None and entry.get(field) is not None else entry
        return CacheLookup(
            data=data,
            cached=True,
            stale=self._is_stale(entry["cachedAt"]),
            cached_at=entry["cachedAt"],
            version=self._active_version(),
        )

    async def get_docs(self, topic: str) -> CacheLookup:
        entry = self._read_entry(DOCS_DIR, topic)
        if entry is None:
            return self._miss()
        return CacheLookup(
            data=entry.get("content"),
            cached=True,
            stale=self._is_stale(entry["cachedAt"]),
            cached_at=entry["cachedAt"],
            version=self._active_version(),
        )

    # ------------------------------------------------------------------
    # Entry writes
    # ------------------------------------------------------------------

    def _write_entry(self, kind: str, key: str, entry: dict[str, Any]) -> MetadataEntry:
        path = self._entry_path(kind, key)
        try:
            size = _serialised_size(entry)
            _write_json_atomic(path, entry)
        except (OSError, TypeError, ValueError) as exc:
            raise CacheIOError(
                key=f"{kind}:{key}",
                message=f"Failed to write cache entry {path}: {exc}",
            ) from exc
        log.debug("cache_write", key=f"{kind}:{key}", version=entry["version"], size=size)
        return MetadataEntry(cached_at=entry["cachedAt"], size=size)

    def _touch_metadata(self) -> VersionMetadata:
        if self._metadata is None:
            raise RuntimeError("DiskCache.initialize() must be called before use")
        self._metadata.last_updated = _isoformat(self._clock())
        return self._metadata

    async def set_component(self, key: str, payload: dict[str, Any]) -> None:
        """Write a component entry and record it in the partition metadata."""
        key = _normalise_key(key)
        version = self._active_version()
        entry = {
            **payload,
            "componentName": key,
            "version": version,
            "cachedAt": _isoformat(self._clock()),
        }
        metadata_entry = self._write_entry(COMPONENTS_DIR, key, entry)
        metadata = self._touch_metadata()
        metadata.components[key] = metadata_entry
        self._save_metadata()

    async def set_docs(self, topic: str, content: str) -> None:
        """Write a docs entry and record it in the partition metadata."""
        topic = _normalise_key(topic)
        version = self._active_version()
        entry = {
            "topic": topic,
            "content": content,
            "version": version,
            "cachedAt": _isoformat(self._clock()),
        }
        metadata_entry = self._write_entry(DOCS_DIR, topic, entry)
        metadata = self._touch_metadata()
        metadata.docs[topic] = metadata_entry
        self._save_metadata()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def _version_dirs(self) -> list[Path]:
        if not self.cache_dir.is_dir():
            return []
        return sorted(path for path in self.cache_dir.iterdir() if path.is_dir())

    async def clear_version(self) -> dict[str, Any]:
        """Delete the active partition and recreate it empty. Never raises."""
        version = self._active_version()
        try:
            shutil.rmtree(self._version_dir())
        except FileNotFoundError:
            pass
        except OSError as exc:
            log.warning("cache_clear_failed", version=version, exc_info=True)
            return {
                "success": False,
                "message": f"Failed to clear cache: {exc}",
                "version": version,
            }

        try:
            self._ensure_dirs()
            self._load_metadata()
        except CacheIOError as exc:
            log.warning("cache_clear_failed", version=version, exc_info=True)
            return {
                "success": False,
                "message": f"Failed to clear cache: {exc.message}",
                "version": version,
            }

        log.info("cache_version_cleared", version=version)
        return {
            "success": True,
            "message": f"Cleared cache for version {version}",
            "version": version,
        }

    async def clear_all(self) -> dict[str, Any]:
        """Delete every partition, then recreate the active one. Never raises."""
        cleared: list[str] = []
        try:
            for path in self._version_dirs():
                shutil.rmtree(path)
                cleared.append(path.name)
            self._ensure_dirs()
            self._load_metadata()
        except (OSError, CacheIOError) as exc:
            log.warning("cache_clear_all_failed", cleared=cleared, exc_info=True)
            return {
                "success": False,
                "message": f"Failed to clear all cache: {exc}",
                "versions": [],
            }

        log.info("cache_all_cleared", versions=cleared)
        return {
            "success": True,
            "message": f"Cleared cache for {len(cleared)} version(s)",
            "versions": cleared,
        }

    async def get_stats(self) -> CacheStats:
        """Summarise every partition with a readable metadata file."""
        try:
            version_dirs = self._version_dirs()
        except OSError as exc:
            log.warning("cache_stats_failed", exc_info=True)
            return CacheStats(
                current_version=self.current_version,
                total_versions=0,
                error=str(exc),
            )

        versions: list[VersionStats] = []
        for path in version_dirs:
            try:
                raw = json.loads((path / METADATA_FILE).read_text(encoding="utf-8"))
                metadata = VersionMetadata.model_validate(raw)
            except (OSError, ValueError, ValidationError):
                log.debug("cache_stats_skipped", version=path.name)
                continue
            versions.append(
                VersionStats(
                    version=path.name,
                    component_count=len(metadata.components),
                    docs_count=len(metadata.docs),
                    created_at=metadata.created_at,
                    last_updated=metadata.last_updated,
                    is_current=path.name == self.current_version,
                )
            )

        return CacheStats(
            current_version=self.current_version,
            total_versions=len(versions),
            versions=versions,
        )

    async def list_versions(self) -> list[VersionInfo]:
        """List partition directories on disk, whether or not their metadata is valid."""
        try:
            version_dirs = self._version_dirs()
        except OSError:
            log.warning("cache_list_versions_failed", exc_info=True)
            return []
        return [
            VersionInfo(
                version=path.name,
                path=str(path),
                is_current=path.name == self.current_version,
            )
            for path in version_dirs
        ]
