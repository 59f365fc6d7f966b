# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for Quota Exchange.

Classes:
    MetricsCollector: Metrics collector supporting dict and Prometheus.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.

Constants:
    PROMETHEUS_AVAILABLE: Whether prometheus_client is available.
    All metric name constants from constants module.
"""

from .collector import (
    METRIC_DEFINITIONS,
    PROMETHEUS_AVAILABLE,
    MetricDefinition,
    MetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    BODY_SIZE_BUCKETS,
    EXCHANGES_COMPLETED_TOTAL,
    EXCHANGES_FAILED_TOTAL,
    EXCHANGES_STARTED_TOTAL,
    METRIC_PREFIX,
    RATE_LIMIT_REMAINING,
    RATE_LIMITED_TOTAL,
    REASON_API_ERROR,
    REASON_DECODE,
    REASON_HTTP_STATUS,
    REASON_RATE_LIMITED,
    REASON_TRANSPORT,
    RESPONSE_BODY_BYTES,
)

__all__ = [
    "BODY_SIZE_BUCKETS",
    "EXCHANGES_COMPLETED_TOTAL",
    "EXCHANGES_FAILED_TOTAL",
    "EXCHANGES_STARTED_TOTAL",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    # Constants
    "PROMETHEUS_AVAILABLE",
    "RATE_LIMITED_TOTAL",
    "RATE_LIMIT_REMAINING",
    "REASON_API_ERROR",
    "REASON_DECODE",
    "REASON_HTTP_STATUS",
    "REASON_RATE_LIMITED",
    "REASON_TRANSPORT",
    "RESPONSE_BODY_BYTES",
    "MetricDefinition",
    # Collector
    "MetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
