"""Tests for runtime settings validation and loading."""

import pytest
from pydantic import ValidationError

from tenant_service.config import AppSettings, SettingsLoadError, config_load_database_url, config_load_settings


def test_config_settings_defaults_match_health_deadlines(monkeypatch, tmp_path) -> None:
    """Load defaults for probe deadlines, thresholds and invitation lifetime.

    Raises:
        AssertionError: Raised when defaults drift.
    """

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CACHE_BACKEND", raising=False)

    settings = config_load_settings()

    assert settings.health_database_timeout_seconds == 5.0
    assert settings.health_cache_timeout_seconds == 3.0
    assert settings.health_database_degraded_ms == 500.0
    assert settings.health_cache_degraded_ms == 100.0
    assert settings.invitation_ttl_days == 7
    assert settings.cache_backend == "none"


def test_config_settings_normalize_log_level_and_cache_backend() -> None:
    settings = AppSettings(_env_file=None, log_level=" debug ", cache_backend="MEMORY", redis_url="  ")

    assert settings.log_level == "DEBUG"
    assert settings.cache_backend == "memory"
    assert settings.redis_url is None


def test_config_settings_require_redis_url_for_redis_backend() -> None:
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, cache_backend="redis")

    settings = AppSettings(_env_file=None, cache_backend="redis", redis_url="redis://localhost:6379/0")
    assert settings.redis_url == "redis://localhost:6379/0"


@pytest.mark.parametrize(
    "overrides",
    [
        {"log_level": "verbose"},
        {"cache_backend": "memcached"},
        {"api_default_limit": 100, "api_max_limit": 10},
        {"application_port": 0},
    ],
)
def test_config_settings_reject_invalid_values(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, **overrides)


def test_config_load_settings_wraps_validation_errors(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CACHE_BACKEND", "redis")
    monkeypatch.delenv("REDIS_URL", raising=False)

    with pytest.raises(SettingsLoadError):
        config_load_settings()


def test_config_load_database_url_reads_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", " sqlite:///tenant.db ")

    assert config_load_database_url() == "sqlite:///tenant.db"

    monkeypatch.setenv("DATABASE_URL", "   ")
    with pytest.raises(SettingsLoadError):
        config_load_database_url()
