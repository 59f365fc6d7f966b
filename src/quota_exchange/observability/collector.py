# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector supporting both dict-based and Prometheus metrics.

Features:
    1. Thread-safe counter/gauge/histogram operations
    2. Automatic Prometheus metric registration when available
    3. Dict-based fallback for JSON export
    4. Label cardinality protection (max 1000 unique combinations per metric)

Usage:
    >>> from quota_exchange.observability import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('quota_exchange_exchanges_failed_total',
    ...                       labels={'host': 'api.example.com', 'reason': 'decode'})
    >>> metrics = collector.get_metrics()

Prometheus Integration:
    When prometheus_client is installed (the ``metrics`` extra), metrics are
    registered with the default Prometheus registry as they are first used.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from .constants import (
    BODY_SIZE_BUCKETS,
    EXCHANGES_COMPLETED_TOTAL,
    EXCHANGES_FAILED_TOTAL,
    EXCHANGES_STARTED_TOTAL,
    RATE_LIMIT_REMAINING,
    RATE_LIMITED_TOTAL,
    RESPONSE_BODY_BYTES,
)

logger = logging.getLogger(__name__)

# Type declarations for optional prometheus_client imports
if TYPE_CHECKING:
    from prometheus_client import (
        CollectorRegistry as CollectorRegistryType,
        Counter as CounterType,
        Gauge as GaugeType,
        Histogram as HistogramType,
    )
else:
    CounterType = object
    GaugeType = object
    HistogramType = object
    CollectorRegistryType = object

try:
    from prometheus_client import (
        REGISTRY as _REGISTRY,
        Counter as _Counter,
        Gauge as _Gauge,
        Histogram as _Histogram,
    )

    Counter: type[CounterType] | None = _Counter
    Gauge: type[GaugeType] | None = _Gauge
    Histogram: type[HistogramType] | None = _Histogram
    REGISTRY: CollectorRegistryType | None = _REGISTRY
    PROMETHEUS_AVAILABLE = True
except ImportError:
    Counter = None
    Gauge = None
    Histogram = None
    REGISTRY = None
    PROMETHEUS_AVAILABLE = False


@dataclass
class MetricDefinition:
    """Schema for a metric: type, description, labels and histogram buckets."""

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    EXCHANGES_STARTED_TOTAL: MetricDefinition(
        EXCHANGES_STARTED_TOTAL,
        "counter",
        "Total requests handed to the transport",
        ("host",),
    ),
    EXCHANGES_COMPLETED_TOTAL: MetricDefinition(
        EXCHANGES_COMPLETED_TOTAL,
        "counter",
        "Total exchanges completed successfully",
        ("host",),
    ),
    EXCHANGES_FAILED_TOTAL: MetricDefinition(
        EXCHANGES_FAILED_TOTAL,
        "counter",
        "Total exchanges failed",
        ("host", "reason"),
    ),
    RATE_LIMITED_TOTAL: MetricDefinition(
        RATE_LIMITED_TOTAL,
        "counter",
        "Total rate limit exceeded responses",
        ("host",),
    ),
    RESPONSE_BODY_BYTES: MetricDefinition(
        RESPONSE_BODY_BYTES,
        "histogram",
        "Size of buffered response bodies",
        ("host",),
        buckets=BODY_SIZE_BUCKETS,
    ),
    RATE_LIMIT_REMAINING: MetricDefinition(
        RATE_LIMIT_REMAINING,
        "gauge",
        "Calls remaining in the current rate limit window",
        ("host",),
    ),
}


class MetricsCollector:
    """
    Metrics collector supporting both dict-based and Prometheus metrics.

    Thread Safety:
        All operations use an RLock. Exchanges themselves are single-threaded,
        but several event loops in different threads may share the collector.

    Cardinality Protection:
        At most MAX_LABEL_COMBINATIONS unique label combinations are tracked
        per metric; further combinations are dropped with a warning.

    Example:
        >>> collector = MetricsCollector(enable_prometheus=False)
        >>> collector.inc_counter('quota_exchange_exchanges_started_total',
        ...                       labels={'host': 'api.example.com'})
        >>> metrics = collector.get_metrics()
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000
    MAX_HISTOGRAM_OBSERVATIONS: ClassVar[int] = 10000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: Any | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to enable Prometheus metrics (if available)
            registry: Optional Prometheus CollectorRegistry for testing
        """
        self._enable_prometheus = enable_prometheus and PROMETHEUS_AVAILABLE
        self._registry = (
            registry if registry else (REGISTRY if PROMETHEUS_AVAILABLE else None)
        )

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )

        self._lock = threading.RLock()
        self._prom_metrics: dict[str, Any] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)

        logger.debug(
            f"MetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """
        Check if adding this label combination would exceed cardinality limit.

        Returns:
            True if the label combination is allowed, False otherwise
        """
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom(self, name: str, metric_type: str) -> Any | None:
        """Get or lazily register the Prometheus metric for ``name``."""
        if not self._enable_prometheus:
            return None

        if name not in self._prom_metrics:
            factory = {"counter": Counter, "gauge": Gauge, "histogram": Histogram}[
                metric_type
            ]
            if factory is None:
                return None
            defn = METRIC_DEFINITIONS.get(name)
            description = defn.description if defn else f"Dynamic {metric_type}: {name}"
            label_names = list(defn.label_names) if defn else []
            kwargs: dict[str, Any] = {"registry": self._registry}
            if metric_type == "histogram" and defn and defn.buckets:
                kwargs["buckets"] = defn.buckets
            try:
                self._prom_metrics[name] = factory(
                    name, description, label_names, **kwargs
                )
            except Exception as e:
                logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
                return None

        return self._prom_metrics.get(name)

    def _apply_prom(
        self,
        name: str,
        metric_type: str,
        method: str,
        value: float,
        labels: dict[str, str] | None,
    ) -> None:
        metric = self._get_or_create_prom(name, metric_type)
        if metric is None:
            return
        try:
            target = metric.labels(**labels) if labels else metric
            getattr(target, method)(value)
        except Exception as e:
            logger.debug(f"Prometheus {metric_type} update failed for {name}: {e}")

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name (should follow Prometheus naming convention)
            value: Value to increment by (must be positive)
            labels: Optional labels dict

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        self._apply_prom(name, "counter", "inc", value, labels)

    # === Gauge Operations ===

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] = value

        self._apply_prom(name, "gauge", "set", value, labels)

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            observations = self._histograms[name][label_key]
            observations.append(value)
            # Keep only recent observations to prevent memory growth
            if len(observations) > self.MAX_HISTOGRAM_OBSERVATIONS:
                del observations[: -self.MAX_HISTOGRAM_OBSERVATIONS // 2]

        self._apply_prom(name, "histogram", "observe", value, labels)

    # === Snapshot Operations ===

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current value of one counter series (0 if never incremented)."""
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...},
            "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
        }
        """
        with self._lock:
            counters = {
                name: dict(label_values)
                for name, label_values in self._counters.items()
            }
            gauges = {
                name: dict(label_values) for name, label_values in self._gauges.items()
            }

            histograms: dict[str, dict[str, dict[str, Any]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {}
                for label_key, observations in label_values.items():
                    if observations:
                        histograms[name][label_key] = {
                            "count": len(observations),
                            "sum": sum(observations),
                            "avg": sum(observations) / len(observations),
                            "min": min(observations),
                            "max": max(observations),
                        }

        return {
            "counters": counters,
            "gauges": gauges,
            "histograms": histograms,
        }

    # === Lifecycle ===

    def reset(self) -> None:
        """Reset all dict-based metrics to zero."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

        logger.debug("Metrics collector reset")

    @property
    def prometheus_available(self) -> bool:
        """Check if Prometheus is available."""
        return PROMETHEUS_AVAILABLE

    @property
    def prometheus_enabled(self) -> bool:
        """Check if Prometheus metrics are enabled."""
        return self._enable_prometheus


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(enable_prometheus: bool = True) -> MetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)

    Returns:
        The MetricsCollector singleton
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = MetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def reset_metrics_collector() -> None:
    """
    Reset the global metrics collector singleton (mainly for testing).

    The next call to get_metrics_collector() creates a fresh instance.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "PROMETHEUS_AVAILABLE",
    "MetricDefinition",
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
