"""
Settings Module for Uptime Monitor

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and runtime configuration.
Each section reads its own environment prefix.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from uptime_monitor.config.constants import Defaults, MessageTemplates
from uptime_monitor.exceptions import ConfigurationError


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class DatabaseSettings(BaseSettingsConfig):
    """
    Database Configuration Settings

    Supports PostgreSQL (production) and SQLite (development).
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore"
    )

    type: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Database type: postgresql or sqlite"
    )

    # PostgreSQL settings
    host: str = Field(
        default="localhost",
        description="Database host address"
    )
    port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="Database port number"
    )
    name: str = Field(
        default="uptime_monitor",
        min_length=1,
        max_length=64,
        description="Database name"
    )
    user: str = Field(
        default="postgres",
        min_length=1,
        max_length=64,
        description="Database username"
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password"
    )

    # SQLite settings
    sqlite_path: Path = Field(
        default=Path("data/uptime_monitor.db"),
        description="Path to SQLite database file"
    )

    # Connection pool settings
    pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Connection pool size"
    )
    max_overflow: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum overflow connections"
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Pool connection timeout in seconds"
    )
    pool_recycle: int = Field(
        default=1800,
        ge=60,
        le=7200,
        description="Connection recycle time in seconds"
    )

    echo: bool = Field(
        default=False,
        description="Echo SQL queries (debug mode)"
    )

    @property
    def url(self) -> str:
        """Generate database URL based on configuration."""
        if self.type == DatabaseType.SQLITE:
            self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{self.sqlite_path}"

        password = self.password.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.user}:{password}"
            f"@{self.host}:{self.port}/{self.name}"
        )


class MonitoringSettings(BaseSettingsConfig):
    """
    Monitoring Engine Configuration Settings

    Controls monitor defaults, probe behaviour and the process-wide
    slow-response threshold.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    default_interval: int = Field(
        default=Defaults.CHECK_INTERVAL,
        ge=1,
        le=86400,
        description="Default check interval in seconds"
    )
    default_timeout: int = Field(
        default=Defaults.CHECK_TIMEOUT,
        ge=1,
        le=300,
        description="Default probe timeout in seconds"
    )
    default_max_retries: int = Field(
        default=Defaults.MAX_RETRIES,
        ge=0,
        le=10,
        description="Default retry budget stored on new monitors"
    )

    # 0 disables slow-response events
    slow_response_threshold_ms: int = Field(
        default=Defaults.SLOW_RESPONSE_THRESHOLD_MS,
        ge=0,
        description="Latency above which an up check raises a slow event"
    )

    ping_count: int = Field(
        default=Defaults.PING_COUNT,
        ge=1,
        le=20,
        description="Echo requests sent per ping probe"
    )
    ping_interval: float = Field(
        default=Defaults.PING_INTERVAL,
        ge=0.0,
        le=10.0,
        description="Seconds between echo requests"
    )

    user_agent: str = Field(
        default=Defaults.USER_AGENT,
        description="User agent string for HTTP probes"
    )
    follow_redirects: bool = Field(
        default=True,
        description="Follow redirects in HTTP probes"
    )


class NotificationSettings(BaseSettingsConfig):
    """
    Notification Dispatcher Configuration Settings

    Bounds the worker pool so a stalled destination cannot accumulate
    unbounded concurrent work.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        extra="ignore"
    )

    workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Number of dispatcher worker tasks"
    )
    queue_size: int = Field(
        default=1000,
        ge=1,
        le=100_000,
        description="Maximum pending alerts before new ones are dropped"
    )
    send_timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Per-destination send timeout in seconds"
    )
    max_concurrent_sends: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum concurrent destination sends"
    )
    test_message: str = Field(
        default=MessageTemplates.TEST_MESSAGE,
        description="Body sent by channel test deliveries"
    )


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Minimum log level"
    )
    to_console: bool = Field(
        default=True,
        description="Log to stdout"
    )
    to_file: bool = Field(
        default=False,
        description="Log to a rotating file"
    )
    file_path: Path = Field(
        default=Path("logs/uptime_monitor.log"),
        description="Log file path"
    )
    rotation: str = Field(
        default="10 MB",
        description="Rotation policy for the log file"
    )
    retention: str = Field(
        default="7 days",
        description="Retention policy for rotated log files"
    )
    serialize: bool = Field(
        default=False,
        description="Write the log file as JSON lines"
    )
    colorize: bool = Field(
        default=True,
        description="Colorize console output"
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lower-case level names."""
        if isinstance(v, str):
            return v.upper()
        return v


class ServerSettings(BaseSettingsConfig):
    """
    Health Server Configuration Settings
    """

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_",
        env_file=".env",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Serve the health endpoint"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Health server bind address"
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Health server port"
    )


class Settings(BaseSettingsConfig):
    """
    Main Settings Class

    Aggregates all settings sections and provides the main
    configuration interface for the application.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    app_name: str = Field(
        default="Uptime Monitor",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    # Nested settings
    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings
    )
    monitoring: MonitoringSettings = Field(
        default_factory=MonitoringSettings
    )
    notifications: NotificationSettings = Field(
        default_factory=NotificationSettings
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings
    )
    server: ServerSettings = Field(
        default_factory=ServerSettings
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_production:
            self.debug = False
            self.database.echo = False
        elif self.debug and self.logging.level == LogLevel.INFO:
            self.logging.level = LogLevel.DEBUG
        return self

    def to_dict(self, *, exclude_secrets: bool = True) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = self.model_dump(mode="json")

        if exclude_secrets:
            def remove_secrets(obj: Any) -> Any:
                if isinstance(obj, dict):
                    return {
                        k: remove_secrets(v)
                        for k, v in obj.items()
                        if "password" not in k.lower()
                        and "secret" not in k.lower()
                        and "token" not in k.lower()
                    }
                if isinstance(obj, list):
                    return [remove_secrets(item) for item in obj]
                return obj

            data = remove_secrets(data)

        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    return Settings()



def load_settings() -> Settings:
    """
    Load the cached settings, turning validation failures into a
    ConfigurationError that names the offending fields.

    Raises:
        ConfigurationError: If any section fails validation
    """
    try:
        return get_settings()
    except ValidationError as e:
        fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            fields=fields,
            cause=e,
        ) from e
