"""
Shared fixtures for the quota exchange test suite.

Exchanges are driven against ``httpx.MockTransport``. Bodies that must
arrive in controlled steps use ``QueueStream``: the test pushes chunks (or an
exception, or the end-of-stream marker) and the exchange only sees what has
been pushed so far.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

import httpx
import pytest

from quota_exchange.observability import (
    MetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)

API_URL = "https://api.example.com/1.1/users/lookup.json"

RATE_HEADERS = {
    "X-Rate-Limit-Limit": "900",
    "X-Rate-Limit-Remaining": "897",
    "X-Rate-Limit-Reset": "1700000000",
}


class QueueStream(httpx.AsyncByteStream):
    """Response body fed one item at a time by the test."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue[bytes | BaseException | None] = asyncio.Queue()
        self.closed = False

    def push(self, item: bytes | BaseException | None) -> None:
        self.queue.put_nowait(item)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            item = await self.queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def aclose(self) -> None:
        self.closed = True


# ============================================================================
# Metrics
# ============================================================================


@pytest.fixture(autouse=True)
def metrics() -> Iterator[MetricsCollector]:
    """Give every test a fresh, dict-only global metrics collector."""
    reset_metrics_collector()
    collector = get_metrics_collector(enable_prometheus=False)
    yield collector
    reset_metrics_collector()


# ============================================================================
# Transport Fixtures
# ============================================================================


@pytest.fixture
def api_request() -> httpx.Request:
    """A prepared GET request against the mock API."""
    return httpx.Request("GET", API_URL, params={"screen_name": "example"})


@pytest.fixture
def rate_headers() -> dict[str, str]:
    return dict(RATE_HEADERS)


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for clients whose transport calls ``handler``."""

    def factory(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def respond(
    make_client: Callable[..., httpx.AsyncClient],
) -> Callable[..., httpx.AsyncClient]:
    """Factory for clients that always answer with one canned response."""

    def factory(
        status_code: int = 200,
        content: bytes = b"",
        headers: dict[str, str] | None = None,
    ) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, headers=headers, content=content)

        return make_client(handler)

    return factory


@pytest.fixture
def body_stream() -> QueueStream:
    """A response body the test feeds by hand."""
    return QueueStream()


@pytest.fixture
def streaming_client(
    make_client: Callable[..., httpx.AsyncClient],
    body_stream: QueueStream,
    rate_headers: dict[str, str],
) -> httpx.AsyncClient:
    """Client answering 200 with the rate headers and ``body_stream`` as body."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers=rate_headers, stream=body_stream)

    return make_client(handler)
