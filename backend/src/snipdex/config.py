# backend/src/snipdex/config.py
"""Configuration system for the snipdex backend.

This module handles loading settings from environment variables and INI files,
providing sensible defaults, and computing derived paths for the data
directory and the snippet sources.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from snipdex.constants.cache import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_WATCH_DEBOUNCE_SECONDS
from snipdex.constants.search import (
    DEFAULT_RESULT_LIMIT,
    DEFAULT_WEIGHTS,
)
from snipdex.constants.sources import (
    ARCHIVE_SEARCH_DIRS,
    DEFAULT_ADAPTER_TIMEOUT_SECONDS,
    DEFAULT_SNIPPETS_DB,
    DEFAULT_SNIPPETS_DIR,
)


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# =============================================================================
# CONFIG_SCHEMA
# =============================================================================

# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "cache": {
        "ttl_seconds": (float, DEFAULT_CACHE_TTL_SECONDS, 0.0, 86400.0, "Catalog time-to-live"),
    },
    "search": {
        "result_limit": (int, DEFAULT_RESULT_LIMIT, 1, 1000, "Default search results to return"),
        "keyword_exact": (int, DEFAULT_WEIGHTS["keyword_exact"], 0, 1000, "Keyword equals query"),
        "keyword_contains": (
            int,
            DEFAULT_WEIGHTS["keyword_contains"],
            0,
            1000,
            "Keyword contains query",
        ),
        "name_exact": (int, DEFAULT_WEIGHTS["name_exact"], 0, 1000, "Name equals query"),
        "name_prefix": (int, DEFAULT_WEIGHTS["name_prefix"], 0, 1000, "Name starts with query"),
        "name_contains": (int, DEFAULT_WEIGHTS["name_contains"], 0, 1000, "Name contains query"),
        "content_contains": (
            int,
            DEFAULT_WEIGHTS["content_contains"],
            0,
            1000,
            "Content contains query",
        ),
        "category_contains": (
            int,
            DEFAULT_WEIGHTS["category_contains"],
            0,
            1000,
            "Category contains query",
        ),
        "favorite_boost": (int, DEFAULT_WEIGHTS["favorite_boost"], 0, 1000, "Favorite boost"),
        "recent_hour_boost": (
            int,
            DEFAULT_WEIGHTS["recent_hour_boost"],
            0,
            1000,
            "Used within the last hour",
        ),
        "recent_day_boost": (
            int,
            DEFAULT_WEIGHTS["recent_day_boost"],
            0,
            1000,
            "Used within the last day",
        ),
        "recent_week_boost": (
            int,
            DEFAULT_WEIGHTS["recent_week_boost"],
            0,
            1000,
            "Used within the last week",
        ),
    },
    "sources": {
        "snippets_dir": (str, DEFAULT_SNIPPETS_DIR, None, None, "Directory of snippet collections"),
        "snippets_db": (str, DEFAULT_SNIPPETS_DB, None, None, "Read-only snippet database"),
        "archive_dirs": (
            str,
            ",".join(ARCHIVE_SEARCH_DIRS),
            None,
            None,
            "Comma-separated bundle search locations",
        ),
        "adapter_timeout_seconds": (
            float,
            DEFAULT_ADAPTER_TIMEOUT_SECONDS,
            0.1,
            600.0,
            "Upper bound on one adapter's I/O",
        ),
        "scan_archives": (bool, True, None, None, "Scan well-known locations for bundles"),
    },
    "watch": {
        "enabled": (bool, True, None, None, "Watch sources for changes"),
        "debounce_seconds": (
            float,
            DEFAULT_WATCH_DEBOUNCE_SECONDS,
            0.0,
            60.0,
            "Quiet period before a change is reported",
        ),
    },
}


# =============================================================================
# Section Dataclasses
# =============================================================================


@dataclass(frozen=True)
class CacheConfig:
    """Catalog cache configuration."""

    ttl_seconds: float


@dataclass(frozen=True)
class SearchConfig:
    """Search and relevance-weight configuration."""

    result_limit: int
    keyword_exact: int
    keyword_contains: int
    name_exact: int
    name_prefix: int
    name_contains: int
    content_contains: int
    category_contains: int
    favorite_boost: int
    recent_hour_boost: int
    recent_day_boost: int
    recent_week_boost: int


@dataclass(frozen=True)
class SourcesConfig:
    """Snippet source descriptors."""

    snippets_dir: str
    snippets_db: str
    archive_dirs: str
    adapter_timeout_seconds: float
    scan_archives: bool


@dataclass(frozen=True)
class WatchConfig:
    """Change-notification configuration."""

    enabled: bool
    debounce_seconds: float


def _section_defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


# =============================================================================
# Config Loader
# =============================================================================


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    value = raw_value.lower() in ("true", "1", "yes", "on")
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        # Validate range for numeric types
        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated and a default data_dir.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    return Config(
        cache=CacheConfig(**_load_section(parser, "cache", CONFIG_SCHEMA["cache"])),
        search=SearchConfig(**_load_section(parser, "search", CONFIG_SCHEMA["search"])),
        sources=SourcesConfig(**_load_section(parser, "sources", CONFIG_SCHEMA["sources"])),
        watch=WatchConfig(**_load_section(parser, "watch", CONFIG_SCHEMA["watch"])),
    )


# =============================================================================
# Config Dataclass with Computed Properties
# =============================================================================


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    data_dir: Path = None  # type: ignore[assignment]  # Set in __post_init__ if None

    cache: CacheConfig = None  # type: ignore[assignment]
    search: SearchConfig = None  # type: ignore[assignment]
    sources: SourcesConfig = None  # type: ignore[assignment]
    watch: WatchConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        # Since frozen=True, we need to use object.__setattr__
        if self.data_dir is None:
            object.__setattr__(self, "data_dir", Path.home() / ".snipdex")
        if self.cache is None:
            object.__setattr__(self, "cache", CacheConfig(**_section_defaults("cache")))
        if self.search is None:
            object.__setattr__(self, "search", SearchConfig(**_section_defaults("search")))
        if self.sources is None:
            object.__setattr__(self, "sources", SourcesConfig(**_section_defaults("sources")))
        if self.watch is None:
            object.__setattr__(self, "watch", WatchConfig(**_section_defaults("watch")))

    @property
    def snippets_dir(self) -> Path | None:
        """Root of the directory-of-collections source, or None if disabled."""
        if not self.sources.snippets_dir:
            return None
        return Path(self.sources.snippets_dir).expanduser()

    @property
    def snippets_db_path(self) -> Path | None:
        """Path to the read-only relational store, or None if not configured."""
        if not self.sources.snippets_db:
            return None
        return Path(self.sources.snippets_db).expanduser()

    @property
    def archive_dirs(self) -> list[Path]:
        """Locations scanned for snippet bundles."""
        if not self.sources.scan_archives:
            return []
        return [
            Path(part.strip()).expanduser()
            for part in self.sources.archive_dirs.split(",")
            if part.strip()
        ]

    @property
    def config_path(self) -> Path:
        """Default location of config.ini inside the data directory."""
        return self.data_dir / "config.ini"


# =============================================================================
# load_settings
# =============================================================================


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Environment variables override the matching config file keys:
    SNIPDEX_DATA_DIR, SNIPDEX_CONFIG, SNIPDEX_SNIPPETS_DIR, SNIPDEX_DB_PATH,
    SNIPDEX_ARCHIVE_DIRS, SNIPDEX_CACHE_TTL.

    Returns:
        Config object populated from environment variables and config file.

    Raises:
        ConfigError: If the config file or an override holds an invalid value.
    """
    data_dir_str = os.getenv("SNIPDEX_DATA_DIR")
    data_dir = Path(data_dir_str) if data_dir_str else Path.home() / ".snipdex"

    config_env = os.getenv("SNIPDEX_CONFIG")
    config_file = Path(config_env) if config_env else data_dir / "config.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    sources = base_config.sources
    sources = SourcesConfig(
        snippets_dir=os.getenv("SNIPDEX_SNIPPETS_DIR", sources.snippets_dir),
        snippets_db=os.getenv("SNIPDEX_DB_PATH", sources.snippets_db),
        archive_dirs=os.getenv("SNIPDEX_ARCHIVE_DIRS", sources.archive_dirs),
        adapter_timeout_seconds=sources.adapter_timeout_seconds,
        scan_archives=sources.scan_archives,
    )

    cache = base_config.cache
    ttl_env = os.getenv("SNIPDEX_CACHE_TTL")
    if ttl_env:
        try:
            ttl = float(ttl_env)
        except ValueError as e:
            raise ConfigError(f"Invalid SNIPDEX_CACHE_TTL: {ttl_env!r}") from e
        if ttl < 0:
            raise ConfigError(f"SNIPDEX_CACHE_TTL must not be negative, got {ttl}")
        cache = CacheConfig(ttl_seconds=ttl)

    return Config(
        data_dir=data_dir,
        cache=cache,
        search=base_config.search,
        sources=sources,
        watch=base_config.watch,
    )
