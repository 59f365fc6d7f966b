# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the quota exchange library.

This module defines the error taxonomy for a single request. Every failure
an exchange can end in is one of these classes, and all of them inherit from
QuotaExchangeError, so a caller can catch the whole family with a single
except clause. None of them are retried inside the library.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types.api_error import ApiErrorDetail


class QuotaExchangeError(Exception):
    """Base exception for all quota exchange errors.

    Example:
        try:
            envelope = await make_parsed_request(client, request, User)
        except QuotaExchangeError as e:
            logger.error(f"Request failed: {e}")
    """

    pass


class TransportError(QuotaExchangeError):
    """Raised when the connection fails before a full response is obtained.

    Covers refused or reset connections, DNS and TLS failures, and read
    errors while the body is streaming. The underlying httpx or OS error is
    chained as ``__cause__``.
    """

    pass


class HttpStatusError(QuotaExchangeError):
    """Raised for a non-success status whose body is not a structured error.

    Attributes:
        status_code: The raw HTTP status code of the response.
    """

    def __init__(self, status_code: int):
        super().__init__(f"Unexpected HTTP status: {status_code}")
        self.status_code = status_code


class DecodeError(QuotaExchangeError):
    """Raised when a response body cannot be turned into the expected value.

    This covers a body that is not valid UTF-8 as well as a body that does not
    match the shape the active decoder expects.

    Attributes:
        body: The offending body text, when it could be decoded at all.
    """

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class ApiError(QuotaExchangeError):
    """Raised when the API answered with its own structured error list.

    Attributes:
        errors: The ``(code, message)`` entries in the order the API sent them.

    Example:
        try:
            await request
        except ApiError as e:
            for err in e.errors:
                logger.warning(f"API error {err.code}: {err.message}")
    """

    def __init__(self, errors: list[ApiErrorDetail]):
        details = ", ".join(f"[{e.code}] {e.message}" for e in errors)
        super().__init__(f"API returned errors: {details}")
        self.errors = list(errors)

    @property
    def codes(self) -> list[int]:
        return [e.code for e in self.errors]


class RateLimitExceededError(QuotaExchangeError):
    """Raised when the API reports the rate limit as exhausted.

    The API signals this with the reserved error code 88 in its structured
    error list. The error is only raised when the response also carried the
    reset header, so that the caller always knows when the window reopens.

    Attributes:
        reset: Unix timestamp (seconds) at which the rate window resets.

    Example:
        try:
            await request
        except RateLimitExceededError as e:
            await asyncio.sleep(max(0, e.reset - time.time()))
    """

    def __init__(self, reset: int):
        super().__init__(f"Rate limit exceeded, window resets at {reset}")
        self.reset = reset


class ReuseError(QuotaExchangeError):
    """Raised when a decoder, exchange or request is resolved more than once.

    This is a programming error rather than a network condition: every one
    of these objects produces its result exactly once.
    """

    pass


__all__ = [
    "ApiError",
    "DecodeError",
    "HttpStatusError",
    "QuotaExchangeError",
    "RateLimitExceededError",
    "ReuseError",
    "TransportError",
]
