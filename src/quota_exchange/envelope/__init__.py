# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rate-limit envelope and its combinators.

Exports:
- Envelope: A decoded value paired with its response's rate limit snapshot
- BorrowedEnvelope, SlotEnvelope: Element envelopes yielded by iteration
- AccessMode, ElementIterator: Per-element iteration over a collection payload
- ReversedElementIterator: The same iteration, back to front
- merge: Collects single-element envelopes into one envelope of a list
"""

from .envelope import BorrowedEnvelope, Envelope, SlotEnvelope
from .iterator import AccessMode, ElementIterator, ReversedElementIterator
from .merge import merge

__all__ = [
    "AccessMode",
    "BorrowedEnvelope",
    "ElementIterator",
    "Envelope",
    "ReversedElementIterator",
    "SlotEnvelope",
    "merge",
]
