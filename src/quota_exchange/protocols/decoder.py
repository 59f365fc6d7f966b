# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for response decoders."""

from typing import Protocol, TypeVar, runtime_checkable

import httpx

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class DecoderProtocol(Protocol[T_co]):
    """
    Protocol for turning a buffered response into a typed value.

    A decoder is handed the final body text and the response headers once
    the exchange has completed successfully. It is invoked at most once per
    request; TypedRequest enforces this by wrapping it in an OnceDecoder.
    """

    def __call__(self, text: str, headers: httpx.Headers) -> T_co:
        """
        Decode a response.

        Args:
            text: The complete body, decoded as UTF-8
            headers: The response headers

        Returns:
            The decoded value

        Raises:
            DecodeError: If the body does not have the expected shape
        """
        ...
