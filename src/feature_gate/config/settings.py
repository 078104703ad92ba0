"""
Configuration management for the feature gate.

Environment-specific settings with validation, loaded from environment
variables and an optional ``.env`` file.
"""

import os
import sys
from enum import Enum

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from feature_gate.domain.models import KillswitchBackend
from feature_gate.observability.logging import LogFormat, LogLevel


class Environment(str, Enum):
    """Deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class KillswitchSettings(BaseSettings):
    """Killswitch source configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KILLSWITCH_", env_file=".env", extra="ignore"
    )

    backend: KillswitchBackend = KillswitchBackend.NONE

    # File backend
    path: str | None = None

    # Blob backend
    url: str = ""

    # Polling
    poll_interval: float = Field(default=30.0, gt=0)
    jitter: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_backend(self) -> "KillswitchSettings":
        if self.backend == KillswitchBackend.FILE and not self.path:
            raise ValueError("File killswitch requires a path")
        return self


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_", env_file=".env", extra="ignore"
    )

    # Logging settings
    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.JSON
    log_file: str | None = None

    # Metrics settings
    metrics_enabled: bool = True


class FeatureGateSettings(BaseSettings):
    """Main feature gate settings."""

    model_config = SettingsConfigDict(
        env_prefix="FEATURE_GATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Environment.DEVELOPMENT

    # Overrides applied to the base context
    override_prefix: str = ""
    overrides: str = ""
    global_override: bool | None = None

    # Component settings
    killswitch: KillswitchSettings = Field(default_factory=KillswitchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION


# Per-environment observability defaults; OBSERVABILITY_* variables still win
class DevelopmentObservabilitySettings(ObservabilitySettings):
    log_level: LogLevel = LogLevel.DEBUG
    log_format: LogFormat = LogFormat.CONSOLE


class TestingObservabilitySettings(ObservabilitySettings):
    log_level: LogLevel = LogLevel.WARNING
    log_format: LogFormat = LogFormat.CONSOLE
    metrics_enabled: bool = False


# Environment-specific configurations
class DevelopmentSettings(FeatureGateSettings):
    """Development environment settings."""

    environment: Environment = Environment.DEVELOPMENT

    observability: ObservabilitySettings = Field(
        default_factory=DevelopmentObservabilitySettings
    )


class TestingSettings(FeatureGateSettings):
    """Testing environment settings."""

    environment: Environment = Environment.TESTING

    observability: ObservabilitySettings = Field(
        default_factory=TestingObservabilitySettings
    )


class StagingSettings(FeatureGateSettings):
    """Staging environment settings."""

    environment: Environment = Environment.STAGING


class ProductionSettings(FeatureGateSettings):
    """Production environment settings."""

    environment: Environment = Environment.PRODUCTION


def get_settings() -> FeatureGateSettings:
    """Get settings based on environment."""
    environment = os.getenv("ENVIRONMENT", "development").lower()

    if environment == "development":
        return DevelopmentSettings()
    elif environment == "production":
        return ProductionSettings()
    elif environment == "staging":
        return StagingSettings()
    elif environment == "testing":
        return TestingSettings()
    else:
        return FeatureGateSettings()


class ConfigurationValidator:
    """Validates feature gate configuration."""

    @staticmethod
    def validate_settings(settings: FeatureGateSettings) -> list[str]:
        """Validate settings and return list of errors."""
        errors = []

        if settings.is_production:
            if settings.global_override is not None:
                errors.append("Global override must not be set in production")

            if settings.killswitch.backend == KillswitchBackend.NONE:
                errors.append("Production should configure a killswitch source")

        if (
            settings.killswitch.backend == KillswitchBackend.BLOB
            and not settings.killswitch.url
        ):
            errors.append("Blob killswitch requires a url")

        return errors

    @staticmethod
    def validate_or_exit(settings: FeatureGateSettings) -> None:
        """Validate settings or exit with error."""
        errors = ConfigurationValidator.validate_settings(settings)
        if errors:
            import structlog

            logger = structlog.get_logger()
            logger.error("Configuration validation failed", errors=errors)
            for error in errors:
                logger.error("Configuration error", error=error)
            sys.exit(1)
