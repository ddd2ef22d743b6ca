"""Element iterators over strided views.

Iterators walk a snapshot of ``(buffer, shape, strides, offset)`` taken when
they are created, in row-major order of the logical shape. Memory order is
irrelevant: negative strides are visited in the view's logical order and zero
strides repeat the same element. Mutable iterators write through the array's
storage handle, so copy-on-write still applies to every write.
"""

import math
from typing import Any, Iterator

import numpy as np

from .storage import Storage


class ElementIterator(Iterator[Any]):
    """Row-major iterator yielding element values.

    ``size_hint()`` is exact at every step: it starts at the number of
    elements, decreases by one per produced element and stays at ``(0, 0)``
    once exhausted.
    """

    def __init__(
        self,
        buffer: np.ndarray,
        shape: tuple[int, ...],
        strides: tuple[int, ...],
        offset: int,
    ) -> None:
        self._buffer = buffer
        self._shape = tuple(shape)
        self._strides = tuple(strides)
        self._index = [0] * len(self._shape)
        self._pos = offset
        self._remaining = math.prod(self._shape)

    def __iter__(self) -> "ElementIterator":
        return self

    def _advance(self) -> int:
        """Return the current buffer position and step to the next index."""
        pos = self._pos
        self._remaining -= 1
        for axis in range(len(self._shape) - 1, -1, -1):
            self._index[axis] += 1
            self._pos += self._strides[axis]
            if self._index[axis] < self._shape[axis]:
                break
            # carry into the next axis
            self._pos -= self._strides[axis] * self._shape[axis]
            self._index[axis] = 0
        return pos

    def _produce(self, pos: int) -> Any:
        return self._buffer[pos]

    def __next__(self) -> Any:
        if self._remaining <= 0:
            raise StopIteration
        return self._produce(self._advance())

    def size_hint(self) -> tuple[int, int]:
        """Return ``(lower, upper)`` bounds on the remaining element count."""
        return self._remaining, self._remaining

    def __length_hint__(self) -> int:
        return self._remaining


class ElementRef:
    """Writable reference to one element of an array's storage.

    Every write makes the storage unique first, so a clone taken while the
    reference is alive keeps its values.
    """

    __slots__ = ("_handle", "_pos")

    def __init__(self, handle: Storage, pos: int) -> None:
        self._handle = handle
        self._pos = pos

    @property
    def value(self) -> Any:
        return self._handle.buffer[self._pos]

    @value.setter
    def value(self, v: Any) -> None:
        self._handle.ensure_unique()
        self._handle.buffer[self._pos] = v

    def __repr__(self) -> str:
        return f"ElementRef({self.value!r})"


class MutElementIterator(ElementIterator):
    """Row-major iterator yielding ``ElementRef`` proxies.

    The proxies write through the array's own storage handle rather than the
    buffer seen at creation time.
    """

    def __init__(
        self,
        handle: Storage,
        shape: tuple[int, ...],
        strides: tuple[int, ...],
        offset: int,
    ) -> None:
        super().__init__(handle.buffer, shape, strides, offset)
        self._handle = handle

    def _produce(self, pos: int) -> ElementRef:
        return ElementRef(self._handle, pos)
