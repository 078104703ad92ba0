"""Prometheus metrics for feature evaluation and killswitch polling."""

import threading

from prometheus_client import Counter, Gauge
from prometheus_client.core import CollectorRegistry as PrometheusRegistry

from ..logging import get_logger

logger = get_logger(__name__)


class FeatureMetrics:
    """Counters and gauges recorded by features and killswitches.

    Every recording method is fire-and-forget: failures are logged and never
    propagate into feature evaluation.
    """

    def __init__(self, registry: PrometheusRegistry | None = None):
        self.registry = registry if registry is not None else PrometheusRegistry()
        self._info_lock = threading.Lock()
        self._info_fingerprints: dict[str, str] = {}

        self.feature_enabled_total = Counter(
            "feature_gate_feature_enabled",
            "Number of times a feature is enabled.",
            labelnames=["feature"],
            registry=self.registry,
        )
        self.feature_killswitch_total = Counter(
            "feature_gate_feature_killswitch",
            "Number of times a feature is disabled by a killswitch.",
            labelnames=["feature"],
            registry=self.registry,
        )
        self.killswitch_errors_total = Counter(
            "feature_gate_killswitch_errors",
            "Number of times getting killswitch state from its source has failed.",
            labelnames=["source"],
            registry=self.registry,
        )
        self.killswitch_info = Gauge(
            "feature_gate_killswitch_info",
            "Metadata related to the killswitch state.",
            labelnames=["source", "fingerprint"],
            registry=self.registry,
        )

    def record_enabled(self, feature: str) -> None:
        """Count a rule-driven enablement."""
        try:
            self.feature_enabled_total.labels(feature=feature).inc()
        except Exception as e:
            logger.warning("Failed to record feature metric", feature=feature, error=str(e))

    def record_killswitch(self, feature: str) -> None:
        """Count a killswitch-forced disablement."""
        try:
            self.feature_killswitch_total.labels(feature=feature).inc()
        except Exception as e:
            logger.warning("Failed to record feature metric", feature=feature, error=str(e))

    def record_killswitch_error(self, source: str) -> None:
        """Count a failed killswitch fetch."""
        try:
            self.killswitch_errors_total.labels(source=source).inc()
        except Exception as e:
            logger.warning("Failed to record killswitch metric", source=source, error=str(e))

    def set_killswitch_fingerprint(self, source: str, fingerprint: str) -> None:
        """Publish the fingerprint of the current killswitch state.

        Only one fingerprint label set is live per source.
        """
        try:
            with self._info_lock:
                previous = self._info_fingerprints.get(source)
                if previous is not None and previous != fingerprint:
                    self.killswitch_info.remove(source, previous)
                self.killswitch_info.labels(source=source, fingerprint=fingerprint).set(1)
                self._info_fingerprints[source] = fingerprint
        except Exception as e:
            logger.warning("Failed to record killswitch metric", source=source, error=str(e))


# Global metrics instance
_feature_metrics: FeatureMetrics | None = None
_feature_metrics_lock = threading.Lock()


def get_feature_metrics() -> FeatureMetrics:
    """Get global feature metrics instance."""
    global _feature_metrics
    with _feature_metrics_lock:
        if _feature_metrics is None:
            _feature_metrics = FeatureMetrics()
        return _feature_metrics


def setup_metrics(registry: PrometheusRegistry | None = None) -> FeatureMetrics:
    """Setup global feature metrics, e.g. on the default prometheus registry."""
    global _feature_metrics
    with _feature_metrics_lock:
        _feature_metrics = FeatureMetrics(registry)
        return _feature_metrics
