# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the stock decoders and OnceDecoder.

Tests cover:
- OnceDecoder: single use, no stale value on reuse, foreign errors wrapped
- parsed(): models, containers, validation failures
- text(): raw body with snapshot
- snapshot_from_json() and rate_limit_status()
- DecoderProtocol runtime check
"""

from __future__ import annotations

import json
from unittest.mock import Mock

import httpx
import pytest
from pydantic import BaseModel

from quota_exchange.config import ExchangeConfig
from quota_exchange.decoders import (
    OnceDecoder,
    parsed,
    rate_limit_status,
    snapshot_from_json,
    text,
)
from quota_exchange.envelope import Envelope
from quota_exchange.exceptions import DecodeError, ReuseError
from quota_exchange.protocols import DecoderProtocol
from quota_exchange.types import RateLimitSnapshot


class Tweet(BaseModel):
    id: int
    text: str


@pytest.fixture
def headers() -> httpx.Headers:
    return httpx.Headers(
        {
            "X-Rate-Limit-Limit": "180",
            "X-Rate-Limit-Remaining": "179",
            "X-Rate-Limit-Reset": "1700000900",
        }
    )


class TestOnceDecoder:
    def test_first_call_forwards(self, headers: httpx.Headers) -> None:
        inner = Mock(return_value=42)
        once = OnceDecoder(inner)

        assert once("body", headers) == 42
        inner.assert_called_once_with("body", headers)
        assert once.consumed

    def test_second_call_raises_without_decoding(self, headers: httpx.Headers) -> None:
        inner = Mock(return_value=42)
        once = OnceDecoder(inner)
        once("body", headers)

        for _ in range(2):
            with pytest.raises(ReuseError, match="already been processed"):
                once("body", headers)
        assert inner.call_count == 1

    def test_consumed_even_when_decoder_fails(self, headers: httpx.Headers) -> None:
        once = OnceDecoder(Mock(side_effect=DecodeError("bad")))

        with pytest.raises(DecodeError):
            once("body", headers)
        with pytest.raises(ReuseError):
            once("body", headers)

    def test_not_consumed_initially(self) -> None:
        assert not OnceDecoder(Mock()).consumed

    def test_foreign_exception_becomes_decode_error(
        self, headers: httpx.Headers
    ) -> None:
        once = OnceDecoder(lambda t, h: json.loads(t)["id"])

        with pytest.raises(DecodeError, match="TypeError") as exc_info:
            once("[1]", headers)

        assert exc_info.value.body == "[1]"
        assert isinstance(exc_info.value.__cause__, TypeError)
        assert once.consumed

    def test_taxonomy_errors_pass_through(self, headers: httpx.Headers) -> None:
        error = DecodeError("bad", body="raw")
        once = OnceDecoder(Mock(side_effect=error))

        with pytest.raises(DecodeError) as exc_info:
            once("body", headers)

        assert exc_info.value is error
        assert exc_info.value.__cause__ is None


class TestParsed:
    def test_model(self, headers: httpx.Headers) -> None:
        envelope = parsed(Tweet)('{"id": 7, "text": "hi"}', headers)

        assert envelope.payload == Tweet(id=7, text="hi")
        assert envelope.snapshot == RateLimitSnapshot(180, 179, 1700000900)

    def test_list_of_models(self, headers: httpx.Headers) -> None:
        body = '[{"id": 1, "text": "a"}, {"id": 2, "text": "b"}]'

        envelope = parsed(list[Tweet])(body, headers)

        assert [t.id for t in envelope.payload] == [1, 2]
        assert len(envelope.elements()) == 2

    def test_plain_types(self, headers: httpx.Headers) -> None:
        envelope = parsed(dict[str, int])('{"a": 1}', headers)
        assert envelope.payload == {"a": 1}

    def test_missing_headers_give_unknown_snapshot(self) -> None:
        envelope = parsed(Tweet)('{"id": 7, "text": "hi"}', httpx.Headers())
        assert envelope.snapshot == RateLimitSnapshot.unknown()

    def test_custom_header_names(self) -> None:
        config = ExchangeConfig(
            limit_header="L", remaining_header="R", reset_header="T"
        )
        headers = httpx.Headers({"L": "1", "R": "0", "T": "5"})

        envelope = parsed(Tweet, config)('{"id": 7, "text": "hi"}', headers)

        assert envelope.snapshot.as_tuple() == (1, 0, 5)

    @pytest.mark.parametrize(
        "body",
        ['{"id": "seven", "text": "hi"}', '{"id": 7}', "[]", "not json", ""],
    )
    def test_shape_mismatch(self, headers: httpx.Headers, body: str) -> None:
        with pytest.raises(DecodeError, match="Tweet") as exc_info:
            parsed(Tweet)(body, headers)
        assert exc_info.value.body == body

    def test_decoder_is_reusable_before_wrapping(self, headers: httpx.Headers) -> None:
        decode = parsed(Tweet)
        decode('{"id": 1, "text": "a"}', headers)
        assert decode('{"id": 2, "text": "b"}', headers).payload.id == 2


class TestText:
    def test_body_with_snapshot(self, headers: httpx.Headers) -> None:
        envelope = text()("plain body", headers)

        assert envelope.payload == "plain body"
        assert envelope.remaining == 179


class TestSnapshotFromJson:
    def test_reads_fields(self) -> None:
        envelope = snapshot_from_json({"limit": 15, "remaining": 3, "reset": 99})

        assert envelope.payload is None
        assert envelope.snapshot == RateLimitSnapshot(15, 3, 99)

    def test_extra_fields_ignored(self) -> None:
        envelope = snapshot_from_json(
            {"limit": 15, "remaining": 3, "reset": 99, "used": 12}
        )
        assert envelope.remaining == 3

    @pytest.mark.parametrize("value", [None, 15, "limit", [15, 3, 99]])
    def test_not_an_object(self, value: object) -> None:
        with pytest.raises(DecodeError, match="wasn't an object"):
            snapshot_from_json(value)

    def test_missing_field(self) -> None:
        with pytest.raises(DecodeError, match="reset") as exc_info:
            snapshot_from_json({"limit": 15, "remaining": 3})
        assert exc_info.value.body == '{"limit": 15, "remaining": 3}'

    def test_non_integer_field(self) -> None:
        with pytest.raises(DecodeError, match="remaining"):
            snapshot_from_json({"limit": 15, "remaining": "many", "reset": 99})


class TestRateLimitStatus:
    BODY = """
    {
        "rate_limit_context": {"access_token": "abc"},
        "resources": {
            "search": {
                "/search/tweets": {"limit": 180, "remaining": 175, "reset": 1700000900}
            },
            "users": {
                "/users/lookup": {"limit": 900, "remaining": 900, "reset": 1700000950},
                "/users/show/:id": {"limit": 900, "remaining": 12, "reset": 1700000999}
            }
        }
    }
    """

    def test_endpoints_keyed_by_path(self, headers: httpx.Headers) -> None:
        envelope = rate_limit_status()(self.BODY, headers)

        assert envelope.snapshot == RateLimitSnapshot(180, 179, 1700000900)
        assert set(envelope.payload) == {
            "/search/tweets",
            "/users/lookup",
            "/users/show/:id",
        }
        assert envelope.payload["/users/show/:id"] == Envelope(
            RateLimitSnapshot(900, 12, 1700000999), None
        )

    def test_empty_resources(self, headers: httpx.Headers) -> None:
        assert rate_limit_status()('{"resources": {}}', headers).payload == {}

    @pytest.mark.parametrize(
        "body",
        [
            "{}",
            '{"resources": {"search": {"/search/tweets": {"limit": 1}}}}',
            "nope",
        ],
    )
    def test_malformed_document(self, headers: httpx.Headers, body: str) -> None:
        with pytest.raises(DecodeError) as exc_info:
            rate_limit_status()(body, headers)
        assert exc_info.value.body == body


class TestDecoderProtocol:
    def test_stock_decoders_satisfy_protocol(self) -> None:
        assert isinstance(parsed(Tweet), DecoderProtocol)
        assert isinstance(text(), DecoderProtocol)
        assert isinstance(OnceDecoder(text()), DecoderProtocol)
