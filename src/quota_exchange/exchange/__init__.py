# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request execution: raw exchanges, classification and typed requests.

Exports:
- RawExchange, ExchangeState, RawResponse: One request to a classified body
- classify_response: Final classification of a buffered response
- TypedRequest, RequestState: An exchange composed with a one-shot decoder
- make_request, make_parsed_request: Convenience constructors
"""

from .classify import classify_response
from .raw import ExchangeState, RawExchange, RawResponse
from .typed import RequestState, TypedRequest, make_parsed_request, make_request

__all__ = [
    "ExchangeState",
    "RawExchange",
    "RawResponse",
    "RequestState",
    "TypedRequest",
    "classify_response",
    "make_parsed_request",
    "make_request",
]
