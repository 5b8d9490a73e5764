# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

import pytest

from ofrenda.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_remote_defaults(self):
        s = Settings(_env_file=None)
        assert s.request_timeout_s == 35.0
        assert s.upload_path == "/api/upload-photo"
        assert s.generate_path == "/api/generate-altar"

    def test_retry_defaults(self):
        s = Settings(_env_file=None)
        assert s.retry_max_retries == 3
        assert s.retry_upload_multiplier == 1.0
        assert s.retry_generate_multiplier == 2.0

    def test_store_defaults(self):
        s = Settings(_env_file=None)
        assert s.store_backend == "json"
        assert s.store_max_records == 50
        assert s.store_key == "altar_app_altars"

    def test_urls_strip_trailing_slash(self):
        s = Settings(_env_file=None, api_base_url="https://api.example.com/")
        assert s.upload_url == "https://api.example.com/api/upload-photo"
        assert s.generate_url == "https://api.example.com/api/generate-altar"


class TestSettingsValidation:
    def test_zero_capacity(self):
        with pytest.raises(ConfigurationError, match="STORE_MAX_RECORDS"):
            Settings(_env_file=None, store_max_records=0)

    def test_description_bounds_inverted(self):
        with pytest.raises(ConfigurationError, match="DESCRIPTION_MIN_LENGTH"):
            Settings(_env_file=None, description_min_length=600)

    def test_negative_timeout(self):
        with pytest.raises(ValueError, match="request_timeout_s"):
            Settings(_env_file=None, request_timeout_s=-1)

    def test_non_positive_quota(self):
        with pytest.raises(ConfigurationError, match="STORE_QUOTA_BYTES"):
            Settings(_env_file=None, store_quota_bytes=0)


class TestEnvLoading:
    def test_prefixed_env_var(self, monkeypatch):
        monkeypatch.setenv("OFRENDA_STORE_MAX_RECORDS", "7")
        assert Settings(_env_file=None).store_max_records == 7

    def test_load_settings_overrides(self):
        s = load_settings(_env_file=None, store_backend="memory")
        assert s.store_backend == "memory"
