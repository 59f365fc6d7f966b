# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Structured API error payload models.

The API reports its own failures as a JSON object holding a list of
``{"code": int, "message": str}`` entries under ``errors``. These models
are used to recognise such bodies during response classification.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

RATE_LIMIT_EXCEEDED_CODE = 88
"""Error code the API reserves for "rate limit exceeded"."""


class ApiErrorDetail(BaseModel):
    """
    A single ``(code, message)`` entry of a structured error body.

    Both fields are strict: a code sent as ``"88"`` or ``88.0`` does not
    make the body a structured error.
    """

    model_config = ConfigDict(frozen=True)

    code: StrictInt
    message: StrictStr


class ApiErrorPayload(BaseModel):
    """
    A structured error body.

    Unknown top-level fields are ignored; ``errors`` must be present and be
    a list of entries with an integer code and a string message.
    """

    errors: list[ApiErrorDetail]

    def has_code(self, code: int) -> bool:
        """Check whether any entry carries the given error code."""
        return any(e.code == code for e in self.errors)

    @classmethod
    def parse_text(cls, text: str) -> ApiErrorPayload | None:
        """
        Try to read a body as a structured error payload.

        Args:
            text: The decoded response body

        Returns:
            The parsed payload, or None if the body is not JSON or does not
            have the structured error shape
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError:
            return None


__all__ = [
    "RATE_LIMIT_EXCEEDED_CODE",
    "ApiErrorDetail",
    "ApiErrorPayload",
]
