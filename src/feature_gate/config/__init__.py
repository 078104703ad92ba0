"""Feature gate configuration."""

from .settings import (
    ConfigurationValidator,
    DevelopmentSettings,
    Environment,
    FeatureGateSettings,
    KillswitchSettings,
    ObservabilitySettings,
    ProductionSettings,
    StagingSettings,
    TestingSettings,
    get_settings,
)

__all__ = [
    "ConfigurationValidator",
    "DevelopmentSettings",
    "Environment",
    "FeatureGateSettings",
    "KillswitchSettings",
    "ObservabilitySettings",
    "ProductionSettings",
    "StagingSettings",
    "TestingSettings",
    "get_settings",
]
