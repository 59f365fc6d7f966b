# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Final classification of a fully buffered response.

Runs once, when the body stream has ended. The checks are ordered: a body
that is not text is a decode failure before anything else, an embedded
rate limit error beats a generic API error, and an API error body beats a
bare status failure.
"""

from __future__ import annotations

import httpx

from ..config import DEFAULT_CONFIG, ExchangeConfig
from ..exceptions import ApiError, DecodeError, HttpStatusError, RateLimitExceededError
from ..headers import parse_header_int
from ..types.api_error import ApiErrorPayload


def classify_response(
    status_code: int,
    headers: httpx.Headers,
    body: bytes,
    config: ExchangeConfig | None = None,
) -> str:
    """
    Turn a complete response into body text or the matching error.

    Args:
        status_code: HTTP status of the response
        headers: Response headers, as received
        body: The complete response body
        config: Supplies the success status, reset header and error code

    Returns:
        The body decoded as UTF-8, for a successful response

    Raises:
        DecodeError: If the body is not valid UTF-8
        RateLimitExceededError: If the body is a structured error holding the
            rate limit code and the reset header is present
        ApiError: If the body is any other structured error
        HttpStatusError: If the status is not the success status
    """
    cfg = config or DEFAULT_CONFIG

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("stream did not contain valid UTF-8") from e

    payload = ApiErrorPayload.parse_text(text)
    if payload is not None:
        reset = parse_header_int(headers, cfg.reset_header)
        if payload.has_code(cfg.rate_limit_error_code) and reset is not None:
            raise RateLimitExceededError(reset)
        raise ApiError(payload.errors)

    if status_code != cfg.success_status:
        raise HttpStatusError(status_code)

    return text


__all__ = ["classify_response"]
