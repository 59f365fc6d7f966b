# SPDX-License-Identifier: Apache-2.0
"""
End-to-end tests against a mock API.

A single httpx.MockTransport routes requests by path the way the real API
would answer them, so these tests exercise the whole path from a prepared
request to a decoded envelope, including concurrency, quota tracking across
several calls and the rate limit status endpoint.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

import httpx
import pytest
from pydantic import BaseModel

from quota_exchange import (
    AccessMode,
    ApiError,
    Envelope,
    HttpStatusError,
    RateLimitExceededError,
    RateLimitSnapshot,
    decoders,
    make_parsed_request,
    make_request,
    merge,
)
from quota_exchange.observability import (
    EXCHANGES_COMPLETED_TOTAL,
    EXCHANGES_FAILED_TOTAL,
    MetricsCollector,
)

BASE_URL = "https://api.example.com/1.1"
RESET = 1700000900


class User(BaseModel):
    id: int
    screen_name: str


class MockApi:
    """Answers user lookups from a fixed quota window."""

    def __init__(self, limit: int = 3) -> None:
        self.limit = limit
        self.remaining = limit

    def quota_headers(self) -> dict[str, str]:
        return {
            "X-Rate-Limit-Limit": str(self.limit),
            "X-Rate-Limit-Remaining": str(self.remaining),
            "X-Rate-Limit-Reset": str(RESET),
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/users/show.json"):
            return self.show_user(request)
        if path.endswith("/application/rate_limit_status.json"):
            body = {
                "resources": {
                    "users": {
                        "/users/show/:id": {
                            "limit": self.limit,
                            "remaining": self.remaining,
                            "reset": RESET,
                        }
                    }
                }
            }
            return httpx.Response(200, headers=self.quota_headers(), json=body)
        if path.endswith("/statuses/home_timeline.json"):
            return httpx.Response(502, text="<html>Bad Gateway</html>")
        return httpx.Response(
            404, json={"errors": [{"code": 34, "message": "Sorry, that page does not exist"}]}
        )

    def show_user(self, request: httpx.Request) -> httpx.Response:
        if self.remaining == 0:
            return httpx.Response(
                429,
                headers=self.quota_headers(),
                json={"errors": [{"code": 88, "message": "Rate limit exceeded"}]},
            )
        self.remaining -= 1
        user_id = int(request.url.params["user_id"])
        body = {"id": user_id, "screen_name": f"user{user_id}"}
        return httpx.Response(200, headers=self.quota_headers(), json=body)


def show(user_id: int) -> httpx.Request:
    return httpx.Request(
        "GET", f"{BASE_URL}/users/show.json", params={"user_id": str(user_id)}
    )


@pytest.fixture
def api() -> MockApi:
    return MockApi()


@pytest.fixture
def client_for(api: MockApi):
    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(api))

    return factory


class TestQuotaTracking:
    @pytest.mark.asyncio
    async def test_remaining_counts_down_then_rate_limited(self, client_for) -> None:
        async with client_for() as client:
            first = await make_parsed_request(client, show(1), User)
            second = await make_parsed_request(client, show(2), User)
            third = await make_parsed_request(client, show(3), User)

            with pytest.raises(RateLimitExceededError) as exc_info:
                await make_parsed_request(client, show(4), User)

        assert [e.remaining for e in (first, second, third)] == [2, 1, 0]
        assert first.payload == User(id=1, screen_name="user1")
        assert exc_info.value.reset == RESET

    @pytest.mark.asyncio
    async def test_merge_keeps_most_recent_quota(self, client_for) -> None:
        async with client_for() as client:
            results = await asyncio.gather(
                *(make_parsed_request(client, show(i), User) for i in (1, 2, 3))
            )

        merged = merge(results)

        assert sorted(u.id for u in merged.payload) == [1, 2, 3]
        assert merged.snapshot == RateLimitSnapshot(3, 0, RESET)

    @pytest.mark.asyncio
    async def test_rate_limit_status(self, client_for, api: MockApi) -> None:
        async with client_for() as client:
            await make_parsed_request(client, show(1), User)
            status = await make_request(
                client,
                httpx.Request("GET", f"{BASE_URL}/application/rate_limit_status.json"),
                decoders.rate_limit_status(),
            )

        assert status.payload["/users/show/:id"].snapshot == RateLimitSnapshot(
            3, 2, RESET
        )
        assert status.remaining == api.remaining


class TestCollections:
    @pytest.mark.asyncio
    async def test_lookup_list_and_edit_in_place(
        self, make_client, rate_headers: dict[str, str]
    ) -> None:
        users = [{"id": i, "screen_name": f"u{i}"} for i in range(3)]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers=rate_headers, json=users)

        async with make_client(handler) as client:
            envelope = await make_parsed_request(
                client, httpx.Request("GET", f"{BASE_URL}/users/lookup.json"), list[User]
            )

        assert len(envelope.elements()) == 3
        for element in envelope.elements(AccessMode.MUTABLE):
            assert element.snapshot == envelope.snapshot
            element.payload = element.payload.model_copy(
                update={"screen_name": element.payload.screen_name.upper()}
            )

        assert [u.screen_name for u in envelope.payload] == ["U0", "U1", "U2"]
        assert [e.payload.id for e in reversed(envelope.elements())] == [2, 1, 0]


class TestErrors:
    @pytest.mark.asyncio
    async def test_api_error(self, client_for) -> None:
        async with client_for() as client:
            with pytest.raises(ApiError) as exc_info:
                await make_parsed_request(
                    client, httpx.Request("GET", f"{BASE_URL}/missing.json"), User
                )
        assert exc_info.value.codes == [34]

    @pytest.mark.asyncio
    async def test_bad_gateway(self, client_for) -> None:
        async with client_for() as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await make_parsed_request(
                    client,
                    httpx.Request("GET", f"{BASE_URL}/statuses/home_timeline.json"),
                    list[User],
                )
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_metrics_across_outcomes(
        self, client_for, metrics: MetricsCollector
    ) -> None:
        async with client_for() as client:
            for i in range(4):
                try:
                    await make_parsed_request(client, show(i), User)
                except RateLimitExceededError:
                    pass

        host = {"host": "api.example.com"}
        assert metrics.get_counter(EXCHANGES_COMPLETED_TOTAL, host) == 3
        assert (
            metrics.get_counter(
                EXCHANGES_FAILED_TOTAL, {**host, "reason": "rate_limited"}
            )
            == 1
        )


class TestSlowBody:
    @pytest.mark.asyncio
    async def test_body_trickles_in(self, make_client) -> None:
        payload = json.dumps([{"id": i, "screen_name": f"u{i}"} for i in range(50)])

        class Trickle(httpx.AsyncByteStream):
            async def __aiter__(self) -> AsyncIterator[bytes]:
                data = payload.encode()
                for start in range(0, len(data), 16):
                    await asyncio.sleep(0)
                    yield data[start : start + 16]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=Trickle())

        async with make_client(handler) as client:
            envelope: Envelope[list[User]] = await make_parsed_request(
                client, httpx.Request("GET", f"{BASE_URL}/users/lookup.json"), list[User]
            )

        assert len(envelope.payload) == 50
        assert envelope.snapshot == RateLimitSnapshot.unknown()
