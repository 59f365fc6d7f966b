# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Raw exchange engine.

RawExchange drives one HTTP request to a fully buffered, classified
response. It is a poll-style state machine on top of asyncio: each call to
``advance()`` does whatever work is ready right now and returns without
blocking. Network operations run as asyncio tasks owned by the exchange;
``advance()`` only checks whether the current one has finished.

State flow:
    UNSENT -> SENDING -> HEADERS_RECEIVED -> STREAMING_BODY -> COMPLETE
    (any non-terminal state) -> FAILED

Key Design Decisions:
- The request is sent exactly once; the exchange drops its reference to it
  as soon as it is handed to the client.
- Body chunks are appended to a buffer owned by the exchange. A resumption
  that finds no chunk ready leaves the buffer untouched, so bytes are never
  discarded or requested twice.
- Classification happens once, at stream end (see classify.py).
- There is no timeout and no retry. Callers abandon an exchange with
  ``aclose()`` (or by cancelling the task awaiting it).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, cast

import httpx
from typing_extensions import Self

from ..config import DEFAULT_CONFIG, ExchangeConfig
from ..exceptions import (
    ApiError,
    DecodeError,
    HttpStatusError,
    QuotaExchangeError,
    RateLimitExceededError,
    ReuseError,
    TransportError,
)
from ..headers import parse_header_int
from ..observability.collector import get_metrics_collector
from ..observability.constants import (
    EXCHANGES_COMPLETED_TOTAL,
    EXCHANGES_FAILED_TOTAL,
    EXCHANGES_STARTED_TOTAL,
    RATE_LIMIT_REMAINING,
    RATE_LIMITED_TOTAL,
    REASON_API_ERROR,
    REASON_DECODE,
    REASON_HTTP_STATUS,
    REASON_RATE_LIMITED,
    REASON_TRANSPORT,
    RESPONSE_BODY_BYTES,
)
from .classify import classify_response

logger = logging.getLogger(__name__)

_FAILURE_REASONS: tuple[tuple[type[QuotaExchangeError], str], ...] = (
    (RateLimitExceededError, REASON_RATE_LIMITED),
    (ApiError, REASON_API_ERROR),
    (HttpStatusError, REASON_HTTP_STATUS),
    (DecodeError, REASON_DECODE),
    (TransportError, REASON_TRANSPORT),
)


def _failure_reason(error: QuotaExchangeError) -> str:
    """Metric label for a failure. Always one of the REASON_* constants."""
    for error_type, reason in _FAILURE_REASONS:
        if isinstance(error, error_type):
            return reason
    # Only taxonomy errors reach _fail; anything else came through _take
    return REASON_TRANSPORT


class ExchangeState(Enum):
    """Lifecycle states of a RawExchange. Transitions only move forward."""

    UNSENT = "unsent"
    SENDING = "sending"
    HEADERS_RECEIVED = "headers_received"
    STREAMING_BODY = "streaming_body"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExchangeState.COMPLETE, ExchangeState.FAILED)


@dataclass(frozen=True)
class RawResponse:
    """
    A successfully classified response.

    Attributes:
        status_code: HTTP status (always the configured success status)
        headers: Response headers as received
        text: The complete body decoded as UTF-8
    """

    status_code: int
    headers: httpx.Headers
    text: str


async def _read_chunk(stream: AsyncIterator[bytes]) -> bytes | None:
    """Read the next body chunk, or None at end of stream."""
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None


class RawExchange:
    """
    Drives a single request to a buffered body and a classified outcome.

    ``advance()`` must be called from inside a running event loop; the loop
    is the scheduler that actually performs the I/O. A driver that wants to
    wait rather than poll awaits ``wait()`` between calls.

    Usage:
        async with RawExchange(client, request) as exchange:
            while not exchange.advance():
                await exchange.wait()
            print(exchange.response.text)

    Note:
        Failures are raised from the ``advance()`` call that detects them,
        after which the exchange is terminal. Calling ``advance()`` on a
        terminal exchange raises ReuseError.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        config: ExchangeConfig | None = None,
    ) -> None:
        """
        Initialize an unsent exchange.

        Args:
            client: The client used to send the request
            request: A fully formed (and, where required, signed) request
            config: Classification and metrics settings
        """
        self._client = client
        self._request: httpx.Request | None = request
        self._config = config or DEFAULT_CONFIG
        self._host = request.url.host
        self._state = ExchangeState.UNSENT

        self._send_task: asyncio.Task[httpx.Response] | None = None
        self._chunk_task: asyncio.Task[bytes | None] | None = None
        self._http_response: httpx.Response | None = None
        self._stream: AsyncIterator[bytes] | None = None

        self._status_code: int | None = None
        self._headers: httpx.Headers | None = None
        self._body = bytearray()
        self._response: RawResponse | None = None
        self._closed = False

    # ===== INSPECTION =====

    @property
    def state(self) -> ExchangeState:
        return self._state

    @property
    def status_code(self) -> int | None:
        """The response status, once headers have been received."""
        return self._status_code

    @property
    def headers(self) -> httpx.Headers | None:
        """The response headers, once received."""
        return self._headers

    @property
    def body(self) -> bytes:
        """The body bytes buffered so far."""
        return bytes(self._body)

    @property
    def response(self) -> RawResponse | None:
        """The classified response, once the exchange is COMPLETE."""
        return self._response

    # ===== STEPPING =====

    def advance(self) -> bool:
        """
        Make as much progress as is possible without blocking.

        Returns:
            True once the exchange is COMPLETE, False if it is waiting on
            the transport

        Raises:
            TransportError: If the connection failed
            DecodeError, ApiError, RateLimitExceededError, HttpStatusError:
                From final classification of the response
            ReuseError: If the exchange is already terminal or was closed
        """
        if self._closed and not self._state.is_terminal:
            raise ReuseError("exchange has been closed")
        if self._state.is_terminal:
            raise ReuseError("exchange has already been resolved")

        try:
            return self._step()
        except QuotaExchangeError as e:
            self._fail(e)
            raise

    def _step(self) -> bool:
        if self._state is ExchangeState.UNSENT:
            self._send()

        if self._state is ExchangeState.SENDING:
            send_task = cast("asyncio.Task[httpx.Response]", self._send_task)
            if not send_task.done():
                return False
            self._receive_headers(self._take(send_task))

        if self._state is ExchangeState.HEADERS_RECEIVED:
            self._state = ExchangeState.STREAMING_BODY
            self._request_chunk()

        chunk_task = cast("asyncio.Task[bytes | None]", self._chunk_task)
        if not chunk_task.done():
            return False

        chunk = self._take(chunk_task)
        if chunk is not None:
            self._body.extend(chunk)
            self._request_chunk()
            return False

        self._chunk_task = None
        return self._finish()

    def _send(self) -> None:
        loop = asyncio.get_running_loop()
        request = cast(httpx.Request, self._request)
        self._request = None

        self._send_task = loop.create_task(self._client.send(request, stream=True))
        self._state = ExchangeState.SENDING

        logger.debug(f"Sent {request.method} {request.url}")
        self._record_counter(EXCHANGES_STARTED_TOTAL)

    def _receive_headers(self, response: httpx.Response) -> None:
        self._send_task = None
        self._http_response = response
        self._status_code = response.status_code
        self._headers = response.headers
        self._stream = response.aiter_bytes()
        self._state = ExchangeState.HEADERS_RECEIVED

        logger.debug(f"Received status {response.status_code} from {self._host}")

    def _request_chunk(self) -> None:
        stream = cast(AsyncIterator[bytes], self._stream)
        loop = asyncio.get_running_loop()
        self._chunk_task = loop.create_task(_read_chunk(stream))

    def _take(self, task: asyncio.Task[Any]) -> Any:
        """Result of a finished I/O task, with transport errors translated."""
        try:
            return task.result()
        except httpx.DecodingError as e:
            raise DecodeError(f"could not decode response content: {e}") from e
        except (httpx.RequestError, httpx.StreamError, OSError) as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e
        except Exception as e:
            # e.g. RuntimeError from a client that was closed before sending
            raise TransportError(
                f"could not obtain response: {type(e).__name__}: {e}"
            ) from e

    def _finish(self) -> bool:
        status_code = cast(int, self._status_code)
        headers = cast(httpx.Headers, self._headers)
        body = bytes(self._body)
        text = classify_response(status_code, headers, body, self._config)

        self._response = RawResponse(status_code, headers, text)
        self._state = ExchangeState.COMPLETE

        logger.debug(f"Exchange with {self._host} completed: {len(body)} bytes")
        self._record_counter(EXCHANGES_COMPLETED_TOTAL)
        self._record_body(len(body))
        return True

    def _fail(self, error: QuotaExchangeError) -> None:
        self._state = ExchangeState.FAILED
        reason = _failure_reason(error)

        if isinstance(error, TransportError):
            logger.warning(f"Transport failure talking to {self._host}: {error}")
        else:
            logger.debug(f"Exchange with {self._host} failed ({reason}): {error}")

        self._record_counter(EXCHANGES_FAILED_TOTAL, reason=reason)
        if isinstance(error, RateLimitExceededError):
            self._record_counter(RATE_LIMITED_TOTAL)
        if self._headers is not None:
            self._record_body(len(self._body))

    # ===== WAITING AND CLEANUP =====

    async def wait(self) -> None:
        """
        Suspend until the pending network operation is ready.

        Returns immediately if nothing is pending. Never consumes the
        operation's result; the next ``advance()`` call does that.
        """
        pending = self._send_task or self._chunk_task
        if pending is not None and not pending.done():
            await asyncio.wait({pending})

    async def aclose(self) -> None:
        """
        Abandon the exchange and release its transport resources.

        Pending network operations are cancelled and the streamed response
        is closed. Bytes already written to the wire are not retracted.
        This method is idempotent - multiple calls are safe.
        """
        if self._closed:
            return
        self._closed = True

        if not self._state.is_terminal:
            logger.debug(f"Exchange with {self._host} abandoned in {self._state.value}")

        for task in (self._send_task, self._chunk_task):
            if task is None:
                continue
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
            elif not task.cancelled() and task.exception() is None:
                result = task.result()
                # A response that arrived after abandonment still needs closing
                if isinstance(result, httpx.Response) and self._http_response is None:
                    self._http_response = result
        self._send_task = None
        self._chunk_task = None

        if self._http_response is not None:
            try:
                await self._http_response.aclose()
            except Exception as e:
                logger.debug(
                    f"Error closing response from {self._host}: "
                    f"{type(e).__name__}: {e}"
                )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ===== METRICS =====

    def _record_counter(self, name: str, reason: str | None = None) -> None:
        if not self._config.metrics_enabled:
            return
        labels = {"host": self._host}
        if reason is not None:
            labels["reason"] = reason
        get_metrics_collector().inc_counter(name, labels=labels)

    def _record_body(self, size: int) -> None:
        if not self._config.metrics_enabled:
            return
        collector = get_metrics_collector()
        labels = {"host": self._host}
        collector.observe_histogram(RESPONSE_BODY_BYTES, float(size), labels=labels)
        if self._headers is not None:
            remaining = parse_header_int(self._headers, self._config.remaining_header)
            if remaining is not None:
                collector.set_gauge(RATE_LIMIT_REMAINING, float(remaining), labels=labels)

    def __repr__(self) -> str:
        return (
            f"RawExchange(host={self._host!r}, state={self._state.value}, "
            f"buffered={len(self._body)})"
        )


__all__ = ["ExchangeState", "RawExchange", "RawResponse"]
