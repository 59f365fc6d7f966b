# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rate limit snapshot type.

A snapshot is the quota state the API reported alongside one response:
the ceiling for the window, the calls left in it, and the time it resets.
"""

from __future__ import annotations

from dataclasses import dataclass

UNKNOWN = -1
"""Sentinel for a value the server did not report."""


@dataclass(frozen=True)
class RateLimitSnapshot:
    """
    Rate limit information reported with a single response.

    Every field is either the integer the server sent or ``UNKNOWN`` (-1)
    when the corresponding header was absent or unreadable. No other
    sentinel value is used.

    Attributes:
        ceiling: The rate limit ceiling for the endpoint's window
        remaining: The number of calls left in the current window
        reset: Unix timestamp (seconds) at which the window resets
    """

    ceiling: int = UNKNOWN
    remaining: int = UNKNOWN
    reset: int = UNKNOWN

    @classmethod
    def unknown(cls) -> RateLimitSnapshot:
        """Snapshot with every field set to the sentinel."""
        return cls(UNKNOWN, UNKNOWN, UNKNOWN)

    @property
    def is_known(self) -> bool:
        """True if the server reported at least one of the three values."""
        return (
            self.ceiling != UNKNOWN
            or self.remaining != UNKNOWN
            or self.reset != UNKNOWN
        )

    def supersedes(self, other: RateLimitSnapshot) -> bool:
        """
        Decide whether this snapshot should replace ``other`` when merging.

        A snapshot from a later window always wins. Within the same window
        the one with fewer calls remaining wins, as it was observed after
        more of the window had been spent.

        Args:
            other: The snapshot currently held

        Returns:
            True if this snapshot should be adopted in place of ``other``
        """
        if self.reset > other.reset:
            return True
        return self.reset == other.reset and self.remaining < other.remaining

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.ceiling, self.remaining, self.reset)


__all__ = ["UNKNOWN", "RateLimitSnapshot"]
