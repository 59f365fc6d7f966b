# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `quota_exchange_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for sizes end with `_bytes`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Use only categorical labels:
    - `host` - API host the request was sent to
    - `reason` - Failure kind (transport, http_status, decode, api_error,
      rate_limited)

    NEVER use the request URL or query string as a label (unbounded!)
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "quota_exchange"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Exchange Metrics (exchange/raw.py)
# =============================================================================

EXCHANGES_STARTED_TOTAL = f"{METRIC_PREFIX}_exchanges_started_total"
"""Total requests handed to the transport."""

EXCHANGES_COMPLETED_TOTAL = f"{METRIC_PREFIX}_exchanges_completed_total"
"""Total exchanges that ended with a successful body."""

EXCHANGES_FAILED_TOTAL = f"{METRIC_PREFIX}_exchanges_failed_total"
"""Total exchanges that ended in an error, by failure kind."""

RATE_LIMITED_TOTAL = f"{METRIC_PREFIX}_rate_limited_total"
"""Total responses rejected with the rate limit exceeded error code."""

RESPONSE_BODY_BYTES = f"{METRIC_PREFIX}_response_body_bytes"
"""Size of buffered response bodies (histogram)."""

RATE_LIMIT_REMAINING = f"{METRIC_PREFIX}_rate_limit_remaining"
"""Calls remaining in the window, as last reported by the API."""


# =============================================================================
# Failure Reasons
# =============================================================================

REASON_TRANSPORT = "transport"
REASON_HTTP_STATUS = "http_status"
REASON_DECODE = "decode"
REASON_API_ERROR = "api_error"
REASON_RATE_LIMITED = "rate_limited"


# =============================================================================
# Histogram Buckets
# =============================================================================

BODY_SIZE_BUCKETS: list[float] = [
    256.0,
    1024.0,
    4096.0,
    16384.0,
    65536.0,
    262144.0,
    1048576.0,
    4194304.0,
]
"""Response body size buckets (in bytes, up to 4 MiB)."""


__all__ = [
    # Buckets
    "BODY_SIZE_BUCKETS",
    "EXCHANGES_COMPLETED_TOTAL",
    "EXCHANGES_FAILED_TOTAL",
    # Exchange
    "EXCHANGES_STARTED_TOTAL",
    # Prefix
    "METRIC_PREFIX",
    "RATE_LIMITED_TOTAL",
    "RATE_LIMIT_REMAINING",
    # Reasons
    "REASON_API_ERROR",
    "REASON_DECODE",
    "REASON_HTTP_STATUS",
    "REASON_RATE_LIMITED",
    "REASON_TRANSPORT",
    "RESPONSE_BODY_BYTES",
]
