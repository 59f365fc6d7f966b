# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Exchange Configuration for Quota Exchange

This module provides the configuration class shared by the header extractor,
the raw exchange engine and the stock decoders.
"""

from dataclasses import dataclass

from .types.api_error import RATE_LIMIT_EXCEEDED_CODE


@dataclass(frozen=True)
class ExchangeConfig:
    """
    Configuration for request exchanges.

    The defaults match the API this library was written against; override
    them for an API that uses different header names or error codes.
    """

    # === Rate Limit Headers ===

    limit_header: str = "X-Rate-Limit-Limit"
    """Header carrying the rate limit ceiling for the window."""

    remaining_header: str = "X-Rate-Limit-Remaining"
    """Header carrying the number of calls left in the window."""

    reset_header: str = "X-Rate-Limit-Reset"
    """Header carrying the Unix timestamp at which the window resets."""

    # === Classification ===

    success_status: int = 200
    """The single HTTP status treated as success."""

    rate_limit_error_code: int = RATE_LIMIT_EXCEEDED_CODE
    """Structured error code meaning "rate limit exceeded"."""

    # === Metrics and Monitoring ===

    metrics_enabled: bool = True
    """Record exchange outcomes in the global metrics collector."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for name in ("limit_header", "remaining_header", "reset_header"):
            if not getattr(self, name).strip():
                raise ValueError(f"{name} must be a non-empty header name")
        headers = {
            self.limit_header.lower(),
            self.remaining_header.lower(),
            self.reset_header.lower(),
        }
        if len(headers) != 3:
            raise ValueError("rate limit header names must be distinct")
        if not 100 <= self.success_status <= 599:
            raise ValueError("success_status must be a valid HTTP status code")


DEFAULT_CONFIG = ExchangeConfig()
"""Configuration used when none is supplied."""


__all__ = ["DEFAULT_CONFIG", "ExchangeConfig"]
