"""Tests for snapp.core.settings module.

Covers:
- Defaults
- SNAPP_-prefixed environment overrides
- Field validation
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from snapp.core.settings import SnappSettings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("SNAPP_RESOURCES_DIR", "SNAPP_LOG_LEVEL", "SNAPP_PORT", "SNAPP_COMPRESSION"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_packaging_defaults(self, clean_env):
        s = SnappSettings(_env_file=None)
        assert s.short_name_fallback == "Snapp!"
        assert s.short_name_limit == 16
        assert s.compression == "deflated"
        assert s.read_chunk_size == 64 * 1024

    def test_network_defaults(self, clean_env):
        s = SnappSettings(_env_file=None)
        assert s.host == "0.0.0.0"
        assert s.port == 12010
        assert s.api_prefix == "/api/v1"

    def test_resources_dir_defaults_to_cwd(self, clean_env, tmp_path):
        clean_env.chdir(tmp_path)
        assert SnappSettings(_env_file=None).resources_dir == tmp_path / "resources"


class TestEnvOverride:
    def test_resources_dir_from_env(self, clean_env, tmp_path):
        clean_env.setenv("SNAPP_RESOURCES_DIR", str(tmp_path))
        assert SnappSettings(_env_file=None).resources_dir == tmp_path

    def test_port_from_env(self, clean_env):
        clean_env.setenv("SNAPP_PORT", "9000")
        assert SnappSettings(_env_file=None).port == 9000

    def test_kwargs_beat_env(self, clean_env):
        clean_env.setenv("SNAPP_LOG_LEVEL", "DEBUG")
        assert SnappSettings(_env_file=None, log_level="ERROR").log_level == "ERROR"


class TestValidation:
    def test_log_level_is_uppercased(self, clean_env):
        assert SnappSettings(_env_file=None, log_level="warning").log_level == "WARNING"

    def test_unknown_log_level_rejected(self, clean_env):
        with pytest.raises(ValidationError):
            SnappSettings(_env_file=None, log_level="chatty")

    def test_unknown_compression_rejected(self, clean_env):
        with pytest.raises(ValidationError):
            SnappSettings(_env_file=None, compression="lzma")

    def test_chunk_size_must_be_positive(self, clean_env):
        with pytest.raises(ValidationError):
            SnappSettings(_env_file=None, read_chunk_size=0)

    def test_resources_dir_expands_user(self, clean_env):
        s = SnappSettings(_env_file=None, resources_dir="~/snapp-resources")
        assert s.resources_dir == Path.home() / "snapp-resources"


def test_get_settings_is_cached(clean_env):
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
