"""Tests for configuration module."""
import pytest
from decouple import UndefinedValueError

from guild_banner.config import (
    MIN_TOKEN_EXPIRY_SKEW_SECONDS,
    Config,
    Environment,
    get_config,
    init_config,
    is_config_initialized,
    reset_config,
)


def clear_all_env_vars(monkeypatch):
    """Helper to clear all environment variables that could affect config."""
    env_vars = [
        "FIREBOT_API_URL", "FIREBOT_API_EMAIL", "FIREBOT_API_PASSWORD",
        "ENVIRONMENT", "TIBIA_DATA_API", "TIBIA_DATA_TIMEOUT_SECONDS",
        "FIREBOT_TIMEOUT_SECONDS", "TOKEN_EXPIRY_SKEW_SECONDS",
        "SOURCE_TIMEOUT_SECONDS", "SPECIAL_EVENT_MARKER", "ASSET_BASE_PATHS",
        "ASSET_TIMEOUT_SECONDS", "BANNER_FOOTER_TEXT", "BANNER_TIMEZONE",
        "BANNER_CACHE_MAX_AGE_SECONDS", "FONT_PATHS", "HTTP_HOST", "HTTP_PORT",
        "LOG_LEVEL", "LOG_FORMAT", "OTEL_ENABLED", "OTEL_EXPORTER_TYPE",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


def set_required_vars(monkeypatch):
    monkeypatch.setenv("FIREBOT_API_URL", "https://firebot.test/")
    monkeypatch.setenv("FIREBOT_API_EMAIL", "banner@example.com")
    monkeypatch.setenv("FIREBOT_API_PASSWORD", "secret")


def test_config_from_env_with_required_vars(monkeypatch):
    """Test creating config from environment variables."""
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)

    config = Config.from_env()

    assert config.firebot_api_url == "https://firebot.test"
    assert config.firebot_api_email == "banner@example.com"
    assert config.tibia_data_api_url == "https://api.tibiadata.com"
    assert config.token_expiry_skew_seconds == MIN_TOKEN_EXPIRY_SKEW_SECONDS
    assert config.source_timeout_seconds == 15
    assert config.special_event_marker == "Double XP"
    assert config.banner_footer_text == "https://firebot.run"
    assert config.banner_cache_max_age_seconds == 0
    assert config.http_port == 3001
    assert config.environment == Environment.DEVELOPMENT
    assert config.asset_base_paths == [
        "src/assets/images",
        "dist/src/assets/images",
        "/app/src/assets/images",
        "/app/dist/src/assets/images",
    ]
    assert config.font_paths == []


def test_config_from_env_with_optional_vars(monkeypatch):
    """Test creating config with optional environment variables."""
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("TIBIA_DATA_API", "https://tibiadata.test/")
    monkeypatch.setenv("TOKEN_EXPIRY_SKEW_SECONDS", "600")
    monkeypatch.setenv("ASSET_BASE_PATHS", "/srv/a, /srv/b")
    monkeypatch.setenv("FONT_PATHS", "/fonts/Regular.ttf")
    monkeypatch.setenv("BANNER_CACHE_MAX_AGE_SECONDS", "120")
    monkeypatch.setenv("LOG_FORMAT", "text")

    config = Config.from_env()

    assert config.environment == Environment.PRODUCTION
    assert config.tibia_data_api_url == "https://tibiadata.test"
    assert config.token_expiry_skew_seconds == 600
    assert config.asset_base_paths == ["/srv/a", "/srv/b"]
    assert config.font_paths == ["/fonts/Regular.ttf"]
    assert config.banner_cache_max_age_seconds == 120
    assert config.log_format == "text"
    assert config.is_production()


def test_missing_credentials_raise(monkeypatch):
    """Test that required Firebot settings must be present."""
    clear_all_env_vars(monkeypatch)
    monkeypatch.setenv("FIREBOT_API_URL", "https://firebot.test")

    with pytest.raises(UndefinedValueError):
        Config.from_env()


def test_token_skew_below_minimum_rejected(monkeypatch):
    """Test that the refresh margin cannot drop below five minutes."""
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)
    monkeypatch.setenv("TOKEN_EXPIRY_SKEW_SECONDS", "60")

    with pytest.raises(ValueError, match="TOKEN_EXPIRY_SKEW_SECONDS"):
        Config.from_env()


def test_unknown_timezone_rejected(monkeypatch):
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)
    monkeypatch.setenv("BANNER_TIMEZONE", "Mars/Olympus_Mons")

    with pytest.raises(ValueError, match="BANNER_TIMEZONE"):
        Config.from_env()


def test_environment_validation(monkeypatch):
    """Test environment validation using Choices."""
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)
    monkeypatch.setenv("ENVIRONMENT", "staging")

    with pytest.raises(ValueError):
        Config.from_env()


def test_log_level_validation(monkeypatch):
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)
    monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

    with pytest.raises(ValueError):
        Config.from_env()


def test_timezone_property(monkeypatch):
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)
    monkeypatch.setenv("BANNER_TIMEZONE", "Europe/Berlin")

    config = Config.from_env()

    assert config.timezone.key == "Europe/Berlin"


def test_global_config_lifecycle(monkeypatch):
    """Test init_config, get_config and reset_config."""
    clear_all_env_vars(monkeypatch)
    set_required_vars(monkeypatch)

    assert not is_config_initialized()
    with pytest.raises(RuntimeError):
        get_config()

    config = init_config()

    assert is_config_initialized()
    assert get_config() is config

    reset_config()
    assert not is_config_initialized()
