"""Shape representations for NDArray.

A shape is either fixed-rank (an immutable tuple, ranks 0 through
``MAX_FIXED_RANK``) or dynamic-rank (a list of any length). Both implement the
same ``Dimension`` interface, so every array algorithm is written once against
that interface and behaves identically for either representation.
"""

import abc
import math
from typing import Any, Iterator, Sequence

import numpy as np

from ndcow.exceptions import BoundsError, ShapeError

# index and axis-length type
Ix = int

MAX_FIXED_RANK = 6

_MAX_ELEMENTS = int(np.iinfo(np.intp).max)


class Dimension(abc.ABC):
    """Capability interface shared by fixed- and dynamic-rank shapes."""

    @abc.abstractmethod
    def as_tuple(self) -> tuple[int, ...]:
        """Return the axis lengths as a plain tuple."""

    @abc.abstractmethod
    def with_axes(self, axes: Sequence[int]) -> "Dimension":
        """Build a dimension of the same kind holding ``axes``."""

    @property
    def ndim(self) -> int:
        """int: Number of axes."""
        return len(self.as_tuple())

    def __len__(self) -> int:
        return self.ndim

    def __iter__(self) -> Iterator[int]:
        return iter(self.as_tuple())

    def __getitem__(self, axis: int) -> int:
        return self.as_tuple()[axis]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Dimension):
            return self.as_tuple() == other.as_tuple()
        if isinstance(other, (tuple, list)):
            return self.as_tuple() == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.as_tuple())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.as_tuple())})"

    def size(self) -> int:
        """Total element count; the empty shape holds one (0-D) element.

        Raises
        ------
        ShapeError
            If the count does not fit the representable index range.
        """
        n = math.prod(self.as_tuple())
        if n > _MAX_ELEMENTS:
            raise ShapeError(
                f"shape {self.as_tuple()} holds {n} elements, "
                f"more than the index range allows ({_MAX_ELEMENTS})"
            )
        return n

    def default_strides(self) -> tuple[int, ...]:
        """Compute standard (row-major) strides in elements."""
        stride = 1
        strides = []
        for n in reversed(self.as_tuple()):
            strides.append(stride)
            stride *= n
        return tuple(reversed(strides))

    def remove_axis(self, axis: int) -> "Dimension":
        """Return the shape with ``axis`` dropped (rank decreases by one)."""
        shape = self.as_tuple()
        self._check_axis(axis)
        return self.with_axes(shape[:axis] + shape[axis + 1 :])

    def swap(self, i: int, j: int) -> "Dimension":
        """Return the shape with axes ``i`` and ``j`` exchanged."""
        self._check_axis(i)
        self._check_axis(j)
        axes = list(self.as_tuple())
        axes[i], axes[j] = axes[j], axes[i]
        return self.with_axes(axes)

    def select(self, axes: Sequence[int]) -> "Dimension":
        """Return the axis lengths reordered by ``axes``."""
        shape = self.as_tuple()
        return self.with_axes([shape[a] for a in axes])

    def check_index(self, index: Sequence[Ix]) -> tuple[Ix, ...]:
        """Validate a full index against this shape.

        Parameters
        ----------
        index : sequence of int
            One component per axis.

        Returns
        -------
        tuple of int
            The index as a tuple.

        Raises
        ------
        ShapeError
            If the number of components differs from the rank.
        BoundsError
            If any component lies outside ``[0, axis_length)``.
        """
        index = tuple(int(i) for i in index)
        shape = self.as_tuple()
        if len(index) != len(shape):
            raise ShapeError(
                f"index {index} has {len(index)} components, "
                f"array has rank {len(shape)}"
            )
        for i, n in zip(index, shape):
            if not 0 <= i < n:
                raise BoundsError(index, shape)
        return index

    def _check_axis(self, axis: int) -> None:
        if not 0 <= axis < self.ndim:
            raise ShapeError(f"axis {axis} is out of range for rank {self.ndim}")


class FixedDim(Dimension):
    """Tuple-backed shape of a fixed, small rank."""

    __slots__ = ("_axes",)

    def __init__(self, axes: Sequence[int]) -> None:
        axes = tuple(axes)
        if len(axes) > MAX_FIXED_RANK:
            raise ShapeError(
                f"fixed rank is limited to {MAX_FIXED_RANK}, got {len(axes)}; "
                "use DynDim instead"
            )
        self._axes = _validate_axes(axes)

    def as_tuple(self) -> tuple[int, ...]:
        return self._axes

    def with_axes(self, axes: Sequence[int]) -> "FixedDim":
        return FixedDim(axes)


class DynDim(Dimension):
    """List-backed shape of arbitrary rank."""

    __slots__ = ("_axes", "_tuple")

    def __init__(self, axes: Sequence[int]) -> None:
        self._axes = list(_validate_axes(tuple(axes)))
        self._tuple = tuple(self._axes)

    def as_tuple(self) -> tuple[int, ...]:
        return self._tuple

    def with_axes(self, axes: Sequence[int]) -> "DynDim":
        return DynDim(axes)


def _validate_axes(axes: tuple[Any, ...]) -> tuple[int, ...]:
    out = tuple(int(n) for n in axes)
    if any(n < 0 for n in out):
        raise ShapeError(f"axis lengths must be non-negative, got {out}")
    return out


def into_dimension(shape: Any) -> Dimension:
    """Convert an int, tuple, list or Dimension into a Dimension.

    Tuples map to ``FixedDim`` (promoted to ``DynDim`` past
    ``MAX_FIXED_RANK``), lists map to ``DynDim``, a bare int is a 1-D shape.
    """
    if isinstance(shape, Dimension):
        return shape
    if isinstance(shape, (int, np.integer)):
        return FixedDim((int(shape),))
    if isinstance(shape, list):
        return DynDim(shape)
    shape = tuple(shape)
    if len(shape) > MAX_FIXED_RANK:
        return DynDim(shape)
    return FixedDim(shape)


def broadcast_dims(a: Dimension, b: Dimension) -> Dimension:
    """Combine two shapes under broadcasting rules.

    Shapes are aligned from the trailing axis; each aligned pair must be equal
    or contain a 1. The result is dynamic-rank if either input is.

    Raises
    ------
    ShapeError
        If the shapes cannot be broadcast together.
    """
    if a == b:
        return a
    x, y = a.as_tuple(), b.as_tuple()
    ndim = max(len(x), len(y))
    x = (1,) * (ndim - len(x)) + x
    y = (1,) * (ndim - len(y)) + y
    out = []
    for m, n in zip(x, y):
        if m == n or n == 1:
            out.append(m)
        elif m == 1:
            out.append(n)
        else:
            raise ShapeError(
                f"shapes {a.as_tuple()} and {b.as_tuple()} cannot be broadcast together"
            )
    if isinstance(a, DynDim) or isinstance(b, DynDim):
        return DynDim(out)
    return into_dimension(tuple(out))


def d0() -> FixedDim:
    return FixedDim(())


def d1(n: Ix) -> FixedDim:
    return FixedDim((n,))


def d2(m: Ix, n: Ix) -> FixedDim:
    return FixedDim((m, n))


def d3(a: Ix, b: Ix, c: Ix) -> FixedDim:
    return FixedDim((a, b, c))
