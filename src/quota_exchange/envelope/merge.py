# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Merging single-element envelopes into one envelope of a collection.

This is the inverse of element iteration: given envelopes that may come
from different responses, gather their payloads into one list and keep the
snapshot that best describes the current quota state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from ..types.snapshot import RateLimitSnapshot
from .envelope import Envelope

logger = logging.getLogger(__name__)

T = TypeVar("T")


def merge(envelopes: Iterable[Envelope[T]]) -> Envelope[list[T]]:
    """
    Collect several envelopes into one, keeping the latest snapshot.

    The input is processed in order, starting from the unknown snapshot.
    An item's snapshot replaces the running one when it supersedes it (see
    RateLimitSnapshot.supersedes): a later reset always wins, and on equal
    reset the smaller remaining count wins. Every payload is appended in
    input order whichever snapshot is kept.

    Args:
        envelopes: Envelopes to merge, consumed once

    Returns:
        An envelope around the list of payloads. An empty input gives the
        unknown snapshot and an empty list.
    """
    snapshot = RateLimitSnapshot.unknown()
    payloads: list[T] = []

    for item in envelopes:
        if item.snapshot.supersedes(snapshot):
            snapshot = item.snapshot
        payloads.append(item.payload)

    logger.debug(
        f"Merged {len(payloads)} envelopes, keeping snapshot "
        f"remaining={snapshot.remaining} reset={snapshot.reset}"
    )
    return Envelope(snapshot, payloads)


__all__ = ["merge"]
