# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Quota Exchange - Rate-limit aware request engine for HTTP+JSON APIs.

This library turns a prepared HTTP request into a decoded, typed value and
tags every successful result with the rate limit information the API
reported, so quota can be checked inline without a second call.

Key Features:
    - Non-blocking, poll-style exchange engine on asyncio and httpx
    - Clear error taxonomy: transport, HTTP status, decode, API errors and
      the dedicated "rate limit exceeded" condition
    - One-shot decoders with pydantic validation
    - Rate limit envelopes with map, per-element iteration and merge

Quick Start:
    >>> import httpx
    >>> from quota_exchange import make_parsed_request
    >>>
    >>> async with httpx.AsyncClient() as client:
    ...     request = client.build_request("GET", url, headers=signed_headers)
    ...     users = await make_parsed_request(client, request, list[User])
    ...     print(users.remaining, "calls left until", users.reset)
    ...     for user in users:
    ...         print(user.payload.screen_name)

Main Exports:
    - make_request, make_parsed_request, TypedRequest: Request execution
    - RawExchange: The underlying exchange state machine
    - Envelope, AccessMode, merge: Rate-limit envelopes and combinators
    - RateLimitSnapshot, extract_rate_limit: Snapshots and header parsing
    - ExchangeConfig: Configuration options

Note: Prometheus export of metrics requires the 'metrics' extra:
    pip install quota-exchange[metrics]

Version: 1.0.0
"""

__version__ = "1.0.0"

from . import decoders
from .config import DEFAULT_CONFIG, ExchangeConfig
from .decoders import OnceDecoder
from .envelope import (
    AccessMode,
    BorrowedEnvelope,
    ElementIterator,
    Envelope,
    ReversedElementIterator,
    SlotEnvelope,
    merge,
)
from .exceptions import (
    ApiError,
    DecodeError,
    HttpStatusError,
    QuotaExchangeError,
    RateLimitExceededError,
    ReuseError,
    TransportError,
)
from .exchange import (
    ExchangeState,
    RawExchange,
    RawResponse,
    RequestState,
    TypedRequest,
    make_parsed_request,
    make_request,
)
from .headers import extract_rate_limit, parse_header_int, rate_limit_envelope
from .protocols import DecoderProtocol
from .types import (
    RATE_LIMIT_EXCEEDED_CODE,
    UNKNOWN,
    ApiErrorDetail,
    ApiErrorPayload,
    RateLimitSnapshot,
)

__all__ = [
    "DEFAULT_CONFIG",
    "RATE_LIMIT_EXCEEDED_CODE",
    "UNKNOWN",
    # Envelopes
    "AccessMode",
    "ApiError",
    "ApiErrorDetail",
    "ApiErrorPayload",
    "BorrowedEnvelope",
    "DecodeError",
    # Protocols
    "DecoderProtocol",
    "ElementIterator",
    "Envelope",
    # Configuration
    "ExchangeConfig",
    # Exchange
    "ExchangeState",
    "HttpStatusError",
    "OnceDecoder",
    # Exceptions
    "QuotaExchangeError",
    "RateLimitExceededError",
    # Types
    "RateLimitSnapshot",
    "RawExchange",
    "RawResponse",
    "RequestState",
    "ReuseError",
    "ReversedElementIterator",
    "SlotEnvelope",
    "TransportError",
    "TypedRequest",
    # Decoders
    "decoders",
    # Headers
    "extract_rate_limit",
    "make_parsed_request",
    "make_request",
    "merge",
    "parse_header_int",
    "rate_limit_envelope",
]
