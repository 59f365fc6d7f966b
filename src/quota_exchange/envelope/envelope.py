# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rate-limit envelope for decoded responses.

Every successful request resolves to an Envelope: the decoded value paired
with the rate limit snapshot of the response it came from. This lets a
caller check its remaining quota inline, without an extra call to the API's
rate limit status endpoint.

The snapshot and the payload are kept as visibly separate fields. The
payload is read and replaced through the ``payload`` property; the snapshot
is fixed at construction and can only be read.
"""

from __future__ import annotations

from collections.abc import Callable, MutableSequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..types.snapshot import RateLimitSnapshot

if TYPE_CHECKING:
    from .iterator import AccessMode, ElementIterator

T = TypeVar("T")
U = TypeVar("U")


class Envelope(Generic[T]):
    """
    A value tagged with the rate limit snapshot of its response.

    Usage:
        envelope = await make_parsed_request(client, request, list[Tweet])
        if envelope.remaining == 0:
            logger.info(f"Quota spent until {envelope.reset}")

        for tweet in envelope:
            # each element carries the same snapshot as its parent
            print(tweet.payload.text, tweet.remaining)
    """

    __slots__ = ("_payload", "_snapshot")

    def __init__(self, snapshot: RateLimitSnapshot, payload: T) -> None:
        self._snapshot = snapshot
        self._payload = payload

    @property
    def snapshot(self) -> RateLimitSnapshot:
        """The rate limit snapshot. Fixed for the lifetime of the envelope."""
        return self._snapshot

    @property
    def ceiling(self) -> int:
        return self._snapshot.ceiling

    @property
    def remaining(self) -> int:
        return self._snapshot.remaining

    @property
    def reset(self) -> int:
        return self._snapshot.reset

    @property
    def payload(self) -> T:
        """The decoded value."""
        return self._payload

    @payload.setter
    def payload(self, value: T) -> None:
        self._payload = value

    def map(self, fn: Callable[[T], U]) -> Envelope[U]:
        """
        Convert the payload, keeping the rate limit snapshot.

        Args:
            fn: Called exactly once with the current payload

        Returns:
            A new envelope holding ``fn(payload)`` and this envelope's snapshot
        """
        return Envelope(self._snapshot, fn(self.payload))

    def elements(self, mode: AccessMode | None = None) -> ElementIterator[Any]:
        """
        Iterate over a collection payload, one envelope per element.

        Each call returns a fresh iterator starting at the first element.
        Every yielded envelope carries a copy of this envelope's snapshot.

        Args:
            mode: How elements are handed out (defaults to AccessMode.BORROWED)

        Raises:
            TypeError: If the payload is not a sequence, or is not mutable
                and mode is AccessMode.MUTABLE
        """
        from .iterator import AccessMode, ElementIterator

        return ElementIterator(self, mode or AccessMode.BORROWED)

    def __iter__(self) -> ElementIterator[Any]:
        return self.elements()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Envelope):
            return NotImplemented
        return self.snapshot == other.snapshot and self.payload == other.payload

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        s = self._snapshot
        return (
            f"{type(self).__name__}(ceiling={s.ceiling}, remaining={s.remaining}, "
            f"reset={s.reset}, payload={self.payload!r})"
        )


class BorrowedEnvelope(Envelope[T]):
    """Envelope around an element that may be read but not replaced."""

    __slots__ = ()

    @property
    def payload(self) -> T:
        return self._payload

    @payload.setter
    def payload(self, value: T) -> None:
        raise TypeError(
            "borrowed element is read-only; iterate with AccessMode.MUTABLE "
            "to replace elements"
        )


class SlotEnvelope(Envelope[T]):
    """
    Envelope bound to one slot of its parent's collection.

    Reading the payload reads the slot; replacing the payload writes the new
    value back into the parent collection.
    """

    __slots__ = ("_container", "_index")

    def __init__(
        self,
        snapshot: RateLimitSnapshot,
        container: MutableSequence[T],
        index: int,
    ) -> None:
        super().__init__(snapshot, container[index])
        self._container = container
        self._index = index

    @property
    def payload(self) -> T:
        return self._container[self._index]

    @payload.setter
    def payload(self, value: T) -> None:
        self._container[self._index] = value

    @property
    def index(self) -> int:
        """Position of the bound element in the parent collection."""
        return self._index


__all__ = ["BorrowedEnvelope", "Envelope", "SlotEnvelope"]
