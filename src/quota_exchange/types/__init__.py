# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .api_error import RATE_LIMIT_EXCEEDED_CODE, ApiErrorDetail, ApiErrorPayload
from .snapshot import UNKNOWN, RateLimitSnapshot

__all__ = [
    # Structured errors
    "RATE_LIMIT_EXCEEDED_CODE",
    "UNKNOWN",
    "ApiErrorDetail",
    "ApiErrorPayload",
    # Snapshots
    "RateLimitSnapshot",
]
