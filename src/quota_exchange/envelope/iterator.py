# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Per-element iteration over an envelope holding a collection.

A request that returns a list (a page of search results, a user lookup)
resolves to a single envelope around the whole list. ElementIterator walks
that list while copying the parent snapshot onto every element, so that
code handling one element at a time still sees the quota state of the call
that produced it.

One iterator class serves all three ways of handing out elements; the mode
only decides which envelope type wraps each element.
"""

from __future__ import annotations

from collections.abc import Iterator, MutableSequence, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from .envelope import BorrowedEnvelope, Envelope, SlotEnvelope

if TYPE_CHECKING:
    from ..types.snapshot import RateLimitSnapshot

T = TypeVar("T")


class AccessMode(Enum):
    """
    How ElementIterator hands out the elements of a collection.

    - BORROWED: Read-only view. Replacing an element's payload raises
      TypeError. This is what plain ``for item in envelope`` uses.
    - MUTABLE: Each envelope is bound to its slot in the parent collection;
      replacing the payload writes through to the parent.
    - OWNED: The iterator takes the elements over when it is created and
      yields independent envelopes. Later changes to the parent collection
      are not seen, and replacing a payload does not touch the parent.
    """

    BORROWED = "borrowed"
    MUTABLE = "mutable"
    OWNED = "owned"


class ElementIterator(Iterator[Envelope[T]], Generic[T]):
    """
    Double-ended, exact-size iterator over an envelope's collection.

    Elements come out in their original order from ``next()`` and in
    reverse order from ``next_back()`` (or ``reversed()``). Both ends
    consume the same remaining range, and ``len()`` always reports the exact
    number of elements not yet yielded.
    """

    __slots__ = ("_back", "_front", "_items", "_mode", "_snapshot")

    def __init__(self, parent: Envelope[Sequence[T]], mode: AccessMode) -> None:
        items = parent.payload
        if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
            raise TypeError(
                f"cannot iterate elements of a {type(items).__name__} payload"
            )
        if mode is AccessMode.MUTABLE and not isinstance(items, MutableSequence):
            raise TypeError(
                f"cannot mutably iterate a {type(items).__name__} payload"
            )
        if mode is AccessMode.OWNED:
            items = list(items)

        self._snapshot: RateLimitSnapshot = parent.snapshot
        self._items: Sequence[T] = items
        self._mode = mode
        self._front = 0
        self._back = len(items)

    @property
    def mode(self) -> AccessMode:
        return self._mode

    def _wrap(self, index: int) -> Envelope[T]:
        """Attach the parent snapshot to the element at ``index``."""
        if self._mode is AccessMode.MUTABLE:
            return SlotEnvelope(
                self._snapshot,
                self._items,  # type: ignore[arg-type]
                index,
            )
        if self._mode is AccessMode.BORROWED:
            return BorrowedEnvelope(self._snapshot, self._items[index])
        return Envelope(self._snapshot, self._items[index])

    def __next__(self) -> Envelope[T]:
        if self._front >= self._back:
            raise StopIteration
        index = self._front
        self._front += 1
        return self._wrap(index)

    def next_back(self) -> Envelope[T]:
        """
        Take the last remaining element.

        Raises:
            StopIteration: When no elements remain
        """
        if self._front >= self._back:
            raise StopIteration
        self._back -= 1
        return self._wrap(self._back)

    def __reversed__(self) -> ReversedElementIterator[T]:
        return ReversedElementIterator(self)

    def __iter__(self) -> ElementIterator[T]:
        return self

    def __len__(self) -> int:
        return self._back - self._front

    def __length_hint__(self) -> int:
        return len(self)


class ReversedElementIterator(Iterator[Envelope[T]], Generic[T]):
    """
    Back-to-front view of an ElementIterator.

    Shares the remaining range with the iterator it was made from, so taking
    an element from either side shrinks both. Reversing it again gives back
    the forward iterator.
    """

    __slots__ = ("_forward",)

    def __init__(self, forward: ElementIterator[T]) -> None:
        self._forward = forward

    @property
    def mode(self) -> AccessMode:
        return self._forward.mode

    def __next__(self) -> Envelope[T]:
        return self._forward.next_back()

    def next_back(self) -> Envelope[T]:
        return next(self._forward)

    def __reversed__(self) -> ElementIterator[T]:
        return self._forward

    def __iter__(self) -> ReversedElementIterator[T]:
        return self

    def __len__(self) -> int:
        return len(self._forward)

    def __length_hint__(self) -> int:
        return len(self)


__all__ = ["AccessMode", "ElementIterator", "ReversedElementIterator"]
