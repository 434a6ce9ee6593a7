"""Unit tests for configuration defaults and environment overrides."""

from __future__ import annotations

import platformdirs
import pytest

from spartanmcp.config import _DEFAULT_CACHE_DIR, CacheSettings, Settings


class TestPlatformDefaults:
    """Verify config defaults use platformdirs instead of hardcoded Unix paths."""

    def test_default_cache_dir_under_platform_cache(self) -> None:
        assert _DEFAULT_CACHE_DIR.startswith(platformdirs.user_cache_dir("spartanmcp"))
        assert _DEFAULT_CACHE_DIR.endswith("cache")

    def test_cache_settings_uses_platform_default(self) -> None:
        settings = CacheSettings()
        assert settings.cache_dir == _DEFAULT_CACHE_DIR
        assert settings.default_version == "latest"
        assert settings.ttl_hours == 24


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.fetcher.cache_ttl_ms == 300_000
        assert settings.fetcher.components_base_url == "https://www.spartan.ng/components"
        assert settings.warmup.delay_ms == 100

    def test_env_override_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPARTANMCP__CACHE__TTL_HOURS", "12")
        monkeypatch.setenv("SPARTANMCP__WARMUP__DELAY_MS", "0")
        settings = Settings()
        assert settings.cache.ttl_hours == 12
        assert settings.warmup.delay_ms == 0

    def test_invalid_log_level_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPARTANMCP__LOGGING__LEVEL", "LOUD")
        with pytest.raises(ValueError):
            Settings()
