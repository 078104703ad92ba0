"""Metrics collection and exposition."""

from .collectors import FeatureMetrics, get_feature_metrics, setup_metrics

__all__ = [
    "FeatureMetrics",
    "get_feature_metrics",
    "setup_metrics",
]
