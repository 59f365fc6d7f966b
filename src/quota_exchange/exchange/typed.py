# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Typed request engine.

TypedRequest pairs one RawExchange with one decoder. It advances the
exchange until the body is complete, then runs the decoder synchronously on
the final text and headers. The decoder's value (normally an Envelope) is
the request's result; any error from the exchange is passed through
untouched and the decoder never runs.

A TypedRequest can be awaited directly:

    envelope = await make_parsed_request(client, request, list[User])

or stepped by hand with ``advance()`` from any cooperative scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from enum import Enum
from typing import Any, Generic, TypeVar, cast

import httpx
from typing_extensions import Self

from ..config import ExchangeConfig
from ..decoders import Decoder, OnceDecoder, parsed
from ..envelope.envelope import Envelope
from ..exceptions import QuotaExchangeError, ReuseError
from ..protocols.decoder import DecoderProtocol
from .raw import RawExchange, RawResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestState(Enum):
    """Lifecycle of a TypedRequest."""

    PENDING = "pending"
    RESOLVED = "resolved"


class TypedRequest(Generic[T]):
    """
    A request that resolves to a decoded value exactly once.

    Usage:
        request = make_request(client, http_request, decoders.parsed(User))
        try:
            envelope = await request
        except RateLimitExceededError as e:
            ...

    Resolving the same instance a second time (awaiting it again, or calling
    ``advance()`` after it resolved) raises ReuseError, whether the first
    resolution succeeded or failed.
    """

    def __init__(
        self,
        exchange: RawExchange,
        decoder: DecoderProtocol[T] | Decoder[T],
    ) -> None:
        """
        Initialize a pending request.

        Args:
            exchange: An unsent exchange, owned by this request from now on
            decoder: Converts the completed body into the result
        """
        self._exchange = exchange
        self._decoder: OnceDecoder[T] = (
            decoder if isinstance(decoder, OnceDecoder) else OnceDecoder(decoder)
        )
        self._state = RequestState.PENDING
        self._value: T | None = None
        self._has_value = False

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def exchange(self) -> RawExchange:
        return self._exchange

    def advance(self) -> bool:
        """
        Advance the underlying exchange and decode once it completes.

        Returns:
            True once resolved successfully (fetch the value with
            ``result()``), False while the exchange is waiting on the network

        Raises:
            QuotaExchangeError: Any error from the exchange, as-is
            DecodeError: If the decoder rejects the body
            ReuseError: If the request has already resolved
        """
        if self._state is RequestState.RESOLVED:
            raise ReuseError("request has already been resolved")

        try:
            if not self._exchange.advance():
                return False
        except QuotaExchangeError:
            self._state = RequestState.RESOLVED
            raise

        self._state = RequestState.RESOLVED
        raw = cast(RawResponse, self._exchange.response)
        self._value = self._decoder(raw.text, raw.headers)
        self._has_value = True
        return True

    def result(self) -> T:
        """
        Take the resolved value. Can only be done once.

        Raises:
            RuntimeError: If the request has not resolved yet
            ReuseError: If the value was already taken, or resolution failed
        """
        if not self._has_value:
            if self._state is RequestState.PENDING:
                raise RuntimeError("request has not resolved yet")
            raise ReuseError("response has already been processed")
        value = cast(T, self._value)
        self._value = None
        self._has_value = False
        return value

    async def _drive(self) -> T:
        try:
            while not self.advance():
                await self._exchange.wait()
        finally:
            await self._exchange.aclose()
        return self.result()

    def __await__(self) -> Generator[Any, None, T]:
        return self._drive().__await__()

    async def aclose(self) -> None:
        """Abandon the request, releasing the exchange's transport resources."""
        await self._exchange.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"TypedRequest(state={self._state.value}, exchange={self._exchange!r})"


def make_request(
    client: httpx.AsyncClient,
    request: httpx.Request,
    decoder: DecoderProtocol[T] | Decoder[T],
    config: ExchangeConfig | None = None,
) -> TypedRequest[T]:
    """
    Create a request that processes its response through ``decoder``.

    Nothing is sent until the returned request is awaited or advanced.
    """
    return TypedRequest(RawExchange(client, request, config), decoder)


def make_parsed_request(
    client: httpx.AsyncClient,
    request: httpx.Request,
    model: type[T] | Any,
    config: ExchangeConfig | None = None,
) -> TypedRequest[Envelope[T]]:
    """
    Create a request that parses its JSON body into ``model``.

    The result is an Envelope of the parsed value carrying the rate limit
    snapshot from the response headers.
    """
    return make_request(client, request, parsed(model, config), config)


__all__ = [
    "RequestState",
    "TypedRequest",
    "make_parsed_request",
    "make_request",
]
