"""Tests for environment configuration."""

import pytest
from pydantic import ValidationError

from wallrot.config import DEFAULT_SEARCH_URL, load_settings


class TestLoadSettings:

    def test_defaults(self) -> None:
        settings = load_settings({})

        assert settings.search_url == DEFAULT_SEARCH_URL
        assert settings.api_key is None
        assert settings.rotation_cache_enabled is True
        assert settings.rotation_cache_max_entries == 0
        assert settings.upstream_timeout == 30.0
        assert settings.database_url is None

    def test_values_from_environment(self) -> None:
        settings = load_settings({
            "SEARCH_URL": "https://search.test/api/v1/search",
            "WALLHAVEN_API_KEY": "secret",
            "ROTATION_CACHE_ENABLED": "false",
            "ROTATION_CACHE_MAX_ENTRIES": "100",
            "UPSTREAM_TIMEOUT_SECONDS": "5",
            "DATABASE_URL": "sqlite://",
            "LOG_LEVEL": "debug",
        })

        assert settings.search_url == "https://search.test/api/v1/search"
        assert settings.api_key == "secret"
        assert settings.rotation_cache_enabled is False
        assert settings.rotation_cache_max_entries == 100
        assert settings.upstream_timeout == 5.0
        assert settings.database_url == "sqlite://"
        assert settings.log_level == "DEBUG"

    def test_legacy_api_key_name(self) -> None:
        assert load_settings({"IMG_APIKEY": "old"}).api_key == "old"

    def test_zero_timeout_disables_deadline(self) -> None:
        assert load_settings({"UPSTREAM_TIMEOUT_SECONDS": "0"}).upstream_timeout is None

    def test_invalid_number_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_settings({"ROTATION_CACHE_MAX_ENTRIES": "lots"})

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_settings({"LOG_LEVEL": "verbose"})
