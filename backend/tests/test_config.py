# backend/tests/test_config.py
"""Configuration tests.

Tests verify behavior (types, ranges, loading) not specific values.
"""

from pathlib import Path

import pytest

from snipdex.config import (
    CONFIG_SCHEMA,
    Config,
    ConfigError,
    _load_config,
    load_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache before each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def write_config(directory: Path, content: str) -> Path:
    """Write a config.ini file and return the path."""
    config_path = directory / "config.ini"
    config_path.write_text(content)
    return config_path


# =============================================================================
# Type Validation Tests
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    config = _load_config(None)

    for section_name, keys in CONFIG_SCHEMA.items():
        section = getattr(config, section_name)
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_defaults_are_within_declared_ranges():
    for section_name, keys in CONFIG_SCHEMA.items():
        for key, (typ, default, min_val, max_val, _) in keys.items():
            if typ not in (int, float):
                continue
            if min_val is not None:
                assert default >= min_val, f"{section_name}.{key} below minimum"
            if max_val is not None:
                assert default <= max_val, f"{section_name}.{key} above maximum"


def test_every_setting_has_a_description():
    for keys in CONFIG_SCHEMA.values():
        for key, (*_, description) in keys.items():
            assert description, f"{key} has no description"


# =============================================================================
# File Loading Tests
# =============================================================================


def test_config_file_overrides_defaults(tmp_path: Path):
    path = write_config(
        tmp_path,
        "[cache]\nttl_seconds = 5\n\n[search]\nkeyword_exact = 250\n\n[watch]\nenabled = false\n",
    )
    config = _load_config(path)

    assert config.cache.ttl_seconds == 5.0
    assert config.search.keyword_exact == 250
    assert config.watch.enabled is False


def test_invalid_type_raises_config_error(tmp_path: Path):
    path = write_config(tmp_path, "[search]\nresult_limit = lots\n")
    with pytest.raises(ConfigError, match="result_limit"):
        _load_config(path)


def test_out_of_range_value_raises_config_error(tmp_path: Path):
    path = write_config(tmp_path, "[cache]\nttl_seconds = -1\n")
    with pytest.raises(ConfigError, match="minimum"):
        _load_config(path)


def test_missing_file_uses_defaults(tmp_path: Path):
    config = _load_config(tmp_path / "nope.ini")
    assert config == _load_config(None)


# =============================================================================
# Derived Paths
# =============================================================================


def test_archive_dirs_split_and_expanded(tmp_path: Path):
    path = write_config(tmp_path, f"[sources]\narchive_dirs = {tmp_path}/a, ~/b ,\n")
    config = _load_config(path)

    assert config.archive_dirs == [tmp_path / "a", Path("~/b").expanduser()]


def test_archive_scanning_can_be_disabled(tmp_path: Path):
    path = write_config(tmp_path, "[sources]\nscan_archives = no\n")
    assert _load_config(path).archive_dirs == []


def test_empty_db_path_means_not_configured(tmp_path: Path):
    path = write_config(tmp_path, "[sources]\nsnippets_db =\n")
    assert _load_config(path).snippets_db_path is None


def test_config_defaults_data_dir_to_home():
    config = Config()
    assert config.data_dir == Path.home() / ".snipdex"
    assert config.config_path == config.data_dir / "config.ini"


# =============================================================================
# load_settings
# =============================================================================


def test_load_settings_reads_environment(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SNIPDEX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SNIPDEX_SNIPPETS_DIR", str(tmp_path / "snips"))
    monkeypatch.setenv("SNIPDEX_DB_PATH", str(tmp_path / "store.db"))
    monkeypatch.setenv("SNIPDEX_ARCHIVE_DIRS", str(tmp_path / "dl"))
    monkeypatch.setenv("SNIPDEX_CACHE_TTL", "2.5")

    settings = load_settings()

    assert settings.data_dir == tmp_path
    assert settings.snippets_dir == tmp_path / "snips"
    assert settings.snippets_db_path == tmp_path / "store.db"
    assert settings.archive_dirs == [tmp_path / "dl"]
    assert settings.cache.ttl_seconds == 2.5


def test_load_settings_reads_config_in_data_dir(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SNIPDEX_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("SNIPDEX_CONFIG", raising=False)
    monkeypatch.delenv("SNIPDEX_CACHE_TTL", raising=False)
    write_config(tmp_path, "[cache]\nttl_seconds = 7\n")

    assert load_settings().cache.ttl_seconds == 7.0


def test_load_settings_honors_explicit_config_path(tmp_path: Path, monkeypatch):
    other = tmp_path / "elsewhere"
    other.mkdir()
    monkeypatch.setenv("SNIPDEX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SNIPDEX_CONFIG", str(write_config(other, "[search]\nresult_limit = 9\n")))

    assert load_settings().search.result_limit == 9


def test_load_settings_is_cached(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("SNIPDEX_DATA_DIR", str(tmp_path))
    assert load_settings() is load_settings()


@pytest.mark.parametrize("value", ["soon", "-3"])
def test_invalid_ttl_override_raises(tmp_path: Path, monkeypatch, value):
    monkeypatch.setenv("SNIPDEX_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SNIPDEX_CACHE_TTL", value)
    with pytest.raises(ConfigError):
        load_settings()
