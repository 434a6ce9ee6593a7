"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (SPARTANMCP__CACHE__TTL_HOURS=12)
  2. spartanmcp.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = str(Path(platformdirs.user_cache_dir("spartanmcp")) / "cache")


def _find_config_file() -> str | None:
    """Return the path of the first spartanmcp.yaml found, or None."""
    candidates = [
        Path("spartanmcp.yaml"),
        Path(platformdirs.user_config_dir("spartanmcp")) / "spartanmcp.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class FetcherSettings(BaseModel):
    cache_ttl_ms: int = 5 * 60 * 1000
    user_agent: str = "spartan-ui-mcp/1.0"
    components_base_url: str = "https://www.spartan.ng/components"
    docs_base_url: str = "https://www.spartan.ng/documentation"


class CacheSettings(BaseModel):
    ttl_hours: float = 24
    cache_dir: str = _DEFAULT_CACHE_DIR
    default_version: str = "latest"


class WarmupSettings(BaseModel):
    delay_ms: int = 100


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: SPARTANMCP__FETCHER__CACHE_TTL_MS=60000
        env_prefix="SPARTANMCP__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    fetcher: FetcherSettings = FetcherSettings()
    cache: CacheSettings = CacheSettings()
    warmup: WarmupSettings = WarmupSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            # dotenv and file secrets intentionally excluded
        )
