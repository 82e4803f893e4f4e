"""Configuration management for the Guild Banner service."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from decouple import Choices, Csv
from decouple import config


MIN_TOKEN_EXPIRY_SKEW_SECONDS = 300

DEFAULT_ASSET_BASE_PATHS = (
    "src/assets/images,"
    "dist/src/assets/images,"
    "/app/src/assets/images,"
    "/app/dist/src/assets/images"
)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Environment(Enum):
    """Supported deployment environments."""

    DEVELOPMENT = "development"
    CI = "CI"
    PRODUCTION = "production"


@dataclass
class Config:
    """Configuration for the Guild Banner service."""

    # Required fields
    firebot_api_url: str
    firebot_api_email: str
    firebot_api_password: str

    # Environment configuration
    environment: Environment = Environment.DEVELOPMENT

    # Upstream data providers
    tibia_data_api_url: str = "https://api.tibiadata.com"
    tibia_data_timeout_seconds: int = 10
    firebot_timeout_seconds: int = 10
    token_expiry_skew_seconds: int = MIN_TOKEN_EXPIRY_SKEW_SECONDS

    # Aggregation
    source_timeout_seconds: int = 15
    special_event_marker: str = "Double XP"

    # Theme assets, tried in order
    asset_base_paths: list[str] = field(
        default_factory=lambda: DEFAULT_ASSET_BASE_PATHS.split(",")
    )
    asset_timeout_seconds: int = 5

    # Banner rendering
    banner_footer_text: str = "https://firebot.run"
    banner_timezone: str = "America/Sao_Paulo"
    banner_cache_max_age_seconds: int = 0
    font_paths: list[str] = field(default_factory=list)

    # HTTP server configuration
    http_host: str = "0.0.0.0"
    http_port: int = 3001

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"

    # OpenTelemetry configuration
    otel_enabled: bool = False
    otel_exporter_type: str = "console"
    otel_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "guild-banner"
    otel_export_interval_millis: int = 60000
    otel_export_timeout_millis: int = 30000

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables.

        Raises:
            UndefinedValueError: If a required variable is missing
            ValueError: If a variable holds an invalid value
        """
        # Helper function to simplify config calls
        def get_config(key: str, default=None, cast=None):
            if default is not None:
                if cast is not None:
                    return config(key, default=default, cast=cast)
                else:
                    return config(key, default=default)
            else:
                return config(key)

        env = Environment(
            get_config("ENVIRONMENT", "development", Choices(["development", "CI", "production"]))
        )

        instance = cls(
            # Required
            firebot_api_url=get_config("FIREBOT_API_URL").rstrip("/"),
            firebot_api_email=get_config("FIREBOT_API_EMAIL"),
            firebot_api_password=get_config("FIREBOT_API_PASSWORD"),
            # Environment
            environment=env,
            # Upstream providers
            tibia_data_api_url=get_config("TIBIA_DATA_API", "https://api.tibiadata.com").rstrip("/"),
            tibia_data_timeout_seconds=get_config("TIBIA_DATA_TIMEOUT_SECONDS", 10, int),
            firebot_timeout_seconds=get_config("FIREBOT_TIMEOUT_SECONDS", 10, int),
            token_expiry_skew_seconds=get_config(
                "TOKEN_EXPIRY_SKEW_SECONDS", MIN_TOKEN_EXPIRY_SKEW_SECONDS, int
            ),
            # Aggregation
            source_timeout_seconds=get_config("SOURCE_TIMEOUT_SECONDS", 15, int),
            special_event_marker=get_config("SPECIAL_EVENT_MARKER", "Double XP"),
            # Assets
            asset_base_paths=get_config("ASSET_BASE_PATHS", DEFAULT_ASSET_BASE_PATHS, Csv()),
            asset_timeout_seconds=get_config("ASSET_TIMEOUT_SECONDS", 5, int),
            # Rendering
            banner_footer_text=get_config("BANNER_FOOTER_TEXT", "https://firebot.run"),
            banner_timezone=get_config("BANNER_TIMEZONE", "America/Sao_Paulo"),
            banner_cache_max_age_seconds=get_config("BANNER_CACHE_MAX_AGE_SECONDS", 0, int),
            font_paths=get_config("FONT_PATHS", "", Csv()),
            # HTTP server
            http_host=get_config("HTTP_HOST", "0.0.0.0"),
            http_port=get_config("HTTP_PORT", 3001, int),
            # Logging
            log_level=get_config("LOG_LEVEL", "INFO", Choices(VALID_LOG_LEVELS)),
            log_format=get_config("LOG_FORMAT", "json", Choices(["json", "text"])),
            # OpenTelemetry
            otel_enabled=get_config("OTEL_ENABLED", False, bool),
            otel_exporter_type=get_config(
                "OTEL_EXPORTER_TYPE", "console", Choices(["console", "otlp", "none"])
            ),
            otel_otlp_endpoint=get_config("OTEL_OTLP_ENDPOINT", "http://localhost:4317"),
            otel_service_name=get_config("OTEL_SERVICE_NAME", "guild-banner"),
            otel_export_interval_millis=get_config("OTEL_EXPORT_INTERVAL_MILLIS", 60000, int),
            otel_export_timeout_millis=get_config("OTEL_EXPORT_TIMEOUT_MILLIS", 30000, int),
        )
        instance.validate()
        return instance

    def validate(self) -> None:
        """Reject values that would only fail later, at request time."""
        if not self.firebot_api_url:
            raise ValueError("FIREBOT_API_URL must not be empty")
        if not self.firebot_api_email or not self.firebot_api_password:
            raise ValueError("Firebot API credentials must not be empty")
        if not self.asset_base_paths:
            raise ValueError("ASSET_BASE_PATHS must list at least one location")
        if self.token_expiry_skew_seconds < MIN_TOKEN_EXPIRY_SKEW_SECONDS:
            raise ValueError(
                f"TOKEN_EXPIRY_SKEW_SECONDS must be at least {MIN_TOKEN_EXPIRY_SKEW_SECONDS}"
            )
        if self.banner_cache_max_age_seconds < 0:
            raise ValueError("BANNER_CACHE_MAX_AGE_SECONDS must not be negative")
        try:
            ZoneInfo(self.banner_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown BANNER_TIMEZONE: {self.banner_timezone}")

    @property
    def timezone(self) -> ZoneInfo:
        """Timezone used for the "generated at" stamp."""
        return ZoneInfo(self.banner_timezone)

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == Environment.CI

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION


_config: Optional[Config] = None


def init_config() -> Config:
    """Load configuration from the environment and keep it for the process."""
    global _config
    _config = Config.from_env()
    return _config


def get_config() -> Config:
    """Get the configuration loaded by init_config()."""
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call init_config() first.")
    return _config


def is_config_initialized() -> bool:
    """Check whether init_config() has run."""
    return _config is not None


def reset_config() -> None:
    """Forget the loaded configuration (used by tests)."""
    global _config
    _config = None
