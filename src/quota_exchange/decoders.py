# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Stock decoders and the single-use decoder wrapper.

A decoder converts the buffered body and headers of a completed exchange
into a typed value. Most endpoints use ``parsed(model)``, which validates
the JSON body with pydantic and tags the result with the rate limit
snapshot from the headers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import ExchangeConfig
from .envelope.envelope import Envelope
from .exceptions import DecodeError, QuotaExchangeError, ReuseError
from .headers import rate_limit_envelope
from .protocols.decoder import DecoderProtocol
from .types.snapshot import RateLimitSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decoder = Callable[[str, httpx.Headers], T]


class OnceDecoder(Generic[T]):
    """
    Wrapper that lets a decoder run exactly once.

    The first call forwards to the wrapped decoder and drops the reference
    to it. Every later call raises ReuseError without running any decode
    logic or returning a stale value.

    Exceptions from the wrapped decoder that are not already part of the
    QuotaExchangeError taxonomy are re-raised as DecodeError carrying the
    body.
    """

    __slots__ = ("_decoder",)

    def __init__(self, decoder: DecoderProtocol[T] | Decoder[T]) -> None:
        self._decoder: DecoderProtocol[T] | Decoder[T] | None = decoder

    @property
    def consumed(self) -> bool:
        return self._decoder is None

    def __call__(self, text: str, headers: httpx.Headers) -> T:
        decoder = self._decoder
        if decoder is None:
            raise ReuseError("response has already been processed")
        self._decoder = None
        try:
            return decoder(text, headers)
        except QuotaExchangeError:
            raise
        except Exception as e:
            raise DecodeError(
                f"decoder failed: {type(e).__name__}: {e}", body=text
            ) from e


def _describe(model: Any) -> str:
    return getattr(model, "__name__", None) or repr(model)


def parsed(
    model: type[T] | Any, config: ExchangeConfig | None = None
) -> Decoder[Envelope[T]]:
    """
    Decoder that validates the JSON body into ``model``.

    Args:
        model: Any type pydantic can validate (a BaseModel, ``list[Model]``,
            ``dict[str, int]``, ...)
        config: Supplies the rate limit header names

    Returns:
        A decoder producing an Envelope of the validated value, with the
        snapshot extracted from the response headers
    """
    adapter: TypeAdapter[T] = TypeAdapter(model)
    name = _describe(model)

    def decode(body: str, headers: httpx.Headers) -> Envelope[T]:
        try:
            value = adapter.validate_json(body)
        except ValidationError as e:
            raise DecodeError(
                f"{name} received a response it could not parse "
                f"({e.error_count()} validation errors)",
                body=body,
            ) from e
        return rate_limit_envelope(headers, config).map(lambda _: value)

    return decode


def text(config: ExchangeConfig | None = None) -> Decoder[Envelope[str]]:
    """Decoder that returns the body text itself, tagged with the snapshot."""

    def decode(body: str, headers: httpx.Headers) -> Envelope[str]:
        return rate_limit_envelope(headers, config).map(lambda _: body)

    return decode


# =============================================================================
# Rate limit status documents
# =============================================================================


class RateLimitEntry(BaseModel):
    """One endpoint's entry in a rate limit status document."""

    limit: int
    remaining: int
    reset: int


class RateLimitStatusDocument(BaseModel):
    """Rate limit status for every endpoint, grouped by resource family."""

    resources: dict[str, dict[str, RateLimitEntry]]


def snapshot_from_json(obj: Any) -> Envelope[None]:
    """
    Read a ``{"limit", "remaining", "reset"}`` object into an empty envelope.

    Raises:
        DecodeError: If ``obj`` is not an object or lacks an integer field
    """
    if not isinstance(obj, dict):
        raise DecodeError(
            "rate limit entry received JSON that wasn't an object",
            body=json.dumps(obj, default=str),
        )
    try:
        entry = RateLimitEntry.model_validate(obj)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise DecodeError(
            f"rate limit entry is missing or has invalid fields: {', '.join(missing)}",
            body=json.dumps(obj, default=str),
        ) from e
    return Envelope(RateLimitSnapshot(entry.limit, entry.remaining, entry.reset), None)


def rate_limit_status(
    config: ExchangeConfig | None = None,
) -> Decoder[Envelope[dict[str, Envelope[None]]]]:
    """
    Decoder for the API's rate limit status document.

    The result maps each endpoint path (for example ``/search/tweets``) to
    an empty envelope carrying that endpoint's quota. The outer envelope
    carries the snapshot for the status call itself.
    """

    def decode(
        body: str, headers: httpx.Headers
    ) -> Envelope[dict[str, Envelope[None]]]:
        try:
            document = RateLimitStatusDocument.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(
                "rate limit status received a response it could not parse",
                body=body,
            ) from e

        endpoints: dict[str, Envelope[None]] = {}
        for family, entries in document.resources.items():
            for endpoint, entry in entries.items():
                endpoints[endpoint] = Envelope(
                    RateLimitSnapshot(entry.limit, entry.remaining, entry.reset), None
                )
            logger.debug(f"Read {len(entries)} rate limit entries for {family}")

        return rate_limit_envelope(headers, config).map(lambda _: endpoints)

    return decode


__all__ = [
    "Decoder",
    "OnceDecoder",
    "RateLimitEntry",
    "RateLimitStatusDocument",
    "parsed",
    "rate_limit_status",
    "snapshot_from_json",
    "text",
]
