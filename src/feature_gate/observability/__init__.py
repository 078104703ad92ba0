"""Observability infrastructure for logging and metrics."""

from .logging import LogFormat, LogLevel, get_logger, setup_logging
from .metrics import FeatureMetrics, get_feature_metrics, setup_metrics

__all__ = [
    "setup_logging",
    "get_logger",
    "LogLevel",
    "LogFormat",
    "FeatureMetrics",
    "get_feature_metrics",
    "setup_metrics",
]
