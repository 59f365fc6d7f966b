# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rate limit header extraction.

This is the only place where response headers are read for rate limit
information. Extraction never fails: a header that is missing or does not
hold an integer is reported as the ``UNKNOWN`` sentinel.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

import httpx

from .config import DEFAULT_CONFIG, ExchangeConfig
from .types.snapshot import UNKNOWN, RateLimitSnapshot

if TYPE_CHECKING:
    from .envelope.envelope import Envelope

HeadersLike = httpx.Headers | Mapping[str, str]


def _lookup(headers: HeadersLike, name: str) -> str | None:
    if isinstance(headers, httpx.Headers):
        return headers.get(name)
    # Plain mappings are matched case-insensitively, like httpx.Headers
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def parse_header_int(headers: HeadersLike, name: str) -> int | None:
    """
    Read an integer-valued header.

    Args:
        headers: Response headers (``httpx.Headers`` or any string mapping)
        name: Header name, matched case-insensitively

    Returns:
        The parsed integer, or None if the header is absent or malformed
    """
    value = _lookup(headers, name)
    if value is None:
        return None
    try:
        return int(value.strip())
    except (ValueError, TypeError, AttributeError):
        return None


def extract_rate_limit(
    headers: HeadersLike, config: ExchangeConfig | None = None
) -> RateLimitSnapshot:
    """
    Build a rate limit snapshot from response headers.

    Args:
        headers: Response headers
        config: Supplies the header names; defaults to DEFAULT_CONFIG

    Returns:
        A snapshot holding the parsed value of each header, or -1 for each
        header that was absent or not an integer
    """
    cfg = config or DEFAULT_CONFIG
    ceiling = parse_header_int(headers, cfg.limit_header)
    remaining = parse_header_int(headers, cfg.remaining_header)
    reset = parse_header_int(headers, cfg.reset_header)
    return RateLimitSnapshot(
        ceiling=UNKNOWN if ceiling is None else ceiling,
        remaining=UNKNOWN if remaining is None else remaining,
        reset=UNKNOWN if reset is None else reset,
    )


def rate_limit_envelope(
    headers: HeadersLike, config: ExchangeConfig | None = None
) -> Envelope[None]:
    """
    Wrap the header snapshot in an envelope with no payload.

    Decoders use this as the starting point and ``map`` their decoded
    value into it.
    """
    from .envelope.envelope import Envelope

    return Envelope(extract_rate_limit(headers, config), None)


__all__ = [
    "HeadersLike",
    "extract_rate_limit",
    "parse_header_int",
    "rate_limit_envelope",
]
