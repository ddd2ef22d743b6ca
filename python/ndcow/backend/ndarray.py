from typing import Any, Callable, Iterable, NamedTuple, Sequence, Union

import numpy as np

from ndcow.exceptions import BoundsError, ShapeError

from .device import Device, default_device
from .dimension import Dimension, FixedDim, Ix, broadcast_dims, into_dimension
from .iteration import ElementIterator, MutElementIterator
from .storage import Storage

Shape = Union[int, Sequence[int], Dimension]


class Si(NamedTuple):
    """Per-axis slice specification ``(start, end, step)``.

    The half-open range ``[start, end)`` is selected (negative bounds count
    from the end of the axis, ``end=None`` means the axis length) and visited
    every ``|step|`` elements. A negative step walks the range backwards,
    starting from its last element.
    """

    start: int = 0
    end: int | None = None
    step: int = 1


S = Si(0, None, 1)


def _slice_axis(n: int, stride: int, spec: Si) -> tuple[int, int, int]:
    """Return ``(length, stride, offset_delta)`` for slicing one axis."""
    start, end, step = spec
    if step == 0:
        raise ShapeError("slice step cannot be zero")
    if start < 0:
        start += n
    end = n if end is None else (end + n if end < 0 else end)
    if not 0 <= start <= n or not 0 <= end <= n:
        raise ShapeError(f"slice {tuple(spec)} is out of range for axis length {n}")
    end = max(start, end)
    m = end - start
    length = -(-m // abs(step))
    if length == 0:
        return 0, stride * step, 0
    # a negative step is anchored at the last element of the range
    first = start if step > 0 else end - 1
    return length, stride * step, first * stride


def _si_from_slice(sl: slice, n: int) -> Si:
    """Translate a Python ``slice`` (numpy semantics) into an ``Si``."""
    start, stop, step = sl.indices(n)
    count = len(range(start, stop, step))
    if count == 0:
        return Si(0, 0, step)
    if step > 0:
        return Si(start, start + (count - 1) * step + 1, step)
    return Si(start + (count - 1) * step, start + 1, step)


def _is_int(x: Any) -> bool:
    return isinstance(x, (int, np.integer)) and not isinstance(x, bool)


class NDArray:
    """N-dimensional strided view over copy-on-write storage.

    An NDArray is the tuple (storage handle, shape, strides, offset). Views
    created by slicing, reshaping, permuting or cloning share the storage
    buffer; every write first makes this array's handle the unique owner of
    its buffer, so siblings never observe each other's mutations.
    """

    _dim: Dimension
    _strides: tuple[int, ...]
    _offset: int
    _device: Device
    _handle: Storage

    def __init__(
        self, other: Any, device: Device | None = None, dtype: Any = None
    ) -> None:
        """Construct an NDArray from another NDArray, NumPy array, or array-like.

        Parameters
        ----------
        other : NDArray | numpy.ndarray | array_like
            Source to create from. Data are always copied into new storage.
        device : Device | None, optional
            Target device. Defaults to ``other``'s device or the global default.
        dtype : numpy dtype, optional
            Element type. Inferred from ``other`` when omitted.
        """
        if isinstance(other, NDArray):
            # create a copy of existing NDArray
            if dtype is not None and np.dtype(dtype) != other.dtype:
                other = other.map(np.dtype(dtype).type)
            self._init(other._materialize())
        elif isinstance(other, np.ndarray):
            # create copy from numpy array
            device = device if device is not None else default_device()
            array = self.make(
                other.shape,
                device=device,
                dtype=other.dtype if dtype is None else dtype,
            )
            array.device.from_numpy(other, array._handle.array)
            self._init(array)
        else:
            # see if we can create a numpy array from input
            array = NDArray(np.array(other, dtype=dtype), device=device)
            self._init(array)

    def _init(self, other: "NDArray") -> None:
        """Initialize this instance by taking metadata and a handle from ``other``."""
        self._dim = other._dim
        self._strides = other._strides
        self._offset = other._offset
        self._device = other._device
        self._handle = other._handle.share()

    @staticmethod
    def make(
        shape: Shape,
        strides: tuple[int, ...] | None = None,
        device: Device | None = None,
        handle: Storage | None = None,
        offset: int = 0,
        dtype: Any = None,
        fill: Any = None,
    ) -> "NDArray":
        """Create a new NDArray with explicit metadata and optional existing storage.

        Parameters
        ----------
        shape : int | sequence of int | Dimension
            Desired logical shape.
        strides : tuple of int | None, optional
            Strides in elements. If None, standard strides are computed.
        device : Device | None, optional
            Target device. Defaults to the global default device.
        handle : Storage, optional
            Storage handle to adopt. If None, new storage is allocated.
        offset : int, optional
            Element offset of index ``(0, ..., 0)`` into the storage.
        dtype : numpy dtype, optional
            Element type of newly allocated storage.
        fill : scalar, optional
            Initial value of newly allocated storage.

        Returns
        -------
        NDArray
            A new NDArray with the specified layout and storage.
        """
        dim = into_dimension(shape)
        array = NDArray.__new__(NDArray)
        array._dim = dim
        array._strides = dim.default_strides() if strides is None else tuple(strides)
        array._offset = offset
        if handle is None:
            handle = Storage.allocate(dim.size(), fill=fill, dtype=dtype, device=device)
        array._device = handle.device
        array._handle = handle
        return array

    def _view(self, dim: Dimension, strides: tuple[int, ...], offset: int) -> "NDArray":
        """Return a view with new geometry sharing this array's storage."""
        return NDArray.make(
            dim, strides, self.device, self._handle.share(), offset
        )

    ### Properties and string representations
    @property
    def shape(self) -> tuple[int, ...]:
        """tuple[int, ...]: Logical shape of the array."""
        return self._dim.as_tuple()

    @property
    def dim(self) -> Dimension:
        """Dimension: The shape object (fixed- or dynamic-rank)."""
        return self._dim

    @property
    def strides(self) -> tuple[int, ...]:
        """tuple[int, ...]: Strides in elements for each dimension."""
        return self._strides

    @property
    def offset(self) -> int:
        """int: Element offset of index ``(0, ..., 0)`` into the storage."""
        return self._offset

    @property
    def device(self) -> Device:
        """Device: The device on which this array's storage resides."""
        return self._device

    @property
    def dtype(self) -> np.dtype:
        """numpy.dtype: Element type of the underlying storage."""
        return self._handle.dtype

    @property
    def ndim(self) -> int:
        """int: Number of dimensions."""
        return self._dim.ndim

    @property
    def size(self) -> int:
        """int: Total number of elements as the product of ``shape``."""
        return self._dim.size()

    @property
    def refcount(self) -> int:
        """int: Number of arrays currently sharing this array's buffer."""
        return self._handle.refcount

    def __repr__(self) -> str:
        """Return an unambiguous string representation."""
        return "NDArray(" + self.numpy().__str__() + f", device={self.device})"

    def __str__(self) -> str:
        """Return a readable string representation of the array contents."""
        return self.numpy().__str__()

    ### Basic array manipulation
    def numpy(self) -> np.ndarray:
        """Return a NumPy copy of the elements in logical order."""
        return self.device.to_numpy(
            self._handle.array, self.shape, self.strides, self._offset
        ).copy()

    def raw_data(self) -> np.ndarray:
        """Return a read-only view of the whole backing buffer in memory order."""
        view = self._handle.buffer.view()
        view.flags.writeable = False
        return view

    def clone(self) -> "NDArray":
        """Return an O(1) copy sharing storage until either side is written."""
        return self._view(self._dim, self._strides, self._offset)

    __copy__ = clone

    def is_standard_layout(self) -> bool:
        """Return whether (shape, strides) is the row-major layout for the shape.

        Axes of length 1 are ignored since their stride never contributes to
        an address. Arrays with no elements are trivially standard.
        """
        if 0 in self.shape:
            return True
        defaults = self._dim.default_strides()
        return all(
            n == 1 or s == d for n, s, d in zip(self.shape, self._strides, defaults)
        )

    def is_compact(self) -> bool:
        """Return whether the array covers its whole buffer in standard layout.

        Compact arrays can be handed to the backend kernels as flat buffers.
        """
        return (
            self.is_standard_layout()
            and self._offset == 0
            and self.size == self._handle.size
        )

    def _materialize(self) -> "NDArray":
        out = NDArray.make(self._dim, device=self.device, dtype=self.dtype)
        self.device.compact(
            self._handle.array, out._handle.array, self.shape, self.strides, self._offset
        )
        return out

    def compact(self) -> "NDArray":
        """Return a compact copy if needed, otherwise return ``self``."""
        if self.is_compact():
            return self
        else:
            return self._materialize()

    def reshape(self, new_shape: Shape) -> "NDArray":
        """Reshape to ``new_shape``.

        Parameters
        ----------
        new_shape : int | sequence of int | Dimension
            Target shape. Its element count must equal the current size.

        Returns
        -------
        NDArray
            A view sharing storage when the array is in standard layout;
            otherwise a view of a fresh standard-layout copy.

        Raises
        ------
        ShapeError
            If the element count changes.
        """
        new_dim = into_dimension(new_shape)
        if self.size != new_dim.size():
            raise ShapeError(
                f"cannot reshape array of shape {self.shape} "
                f"into shape {new_dim.as_tuple()}"
            )
        source = self if self.is_standard_layout() else self._materialize()
        return source._view(new_dim, new_dim.default_strides(), source._offset)

    def permute(self, new_axes: Sequence[int]) -> "NDArray":
        """Permute dimensions according to ``new_axes`` without copying memory.

        Parameters
        ----------
        new_axes : sequence of int
            A permutation of ``range(ndim)`` describing the new axis order.

        Returns
        -------
        NDArray
            A view with permuted shape/strides sharing the same storage.
        """
        new_axes = tuple(new_axes)
        if sorted(new_axes) != list(range(self.ndim)):
            raise ShapeError(f"{new_axes} is not a permutation of {self.ndim} axes")
        new_strides = tuple(self._strides[i] for i in new_axes)
        return self._view(self._dim.select(new_axes), new_strides, self._offset)

    def swap_axes(self, i: int, j: int) -> None:
        """Exchange axes ``i`` and ``j`` in place (metadata only, no data movement)."""
        self._dim = self._dim.swap(i, j)
        strides = list(self._strides)
        strides[i], strides[j] = strides[j], strides[i]
        self._strides = tuple(strides)

    def broadcast_to(self, new_shape: Shape) -> "NDArray":
        """Broadcast to ``new_shape`` by adjusting strides (no copy).

        Axes are aligned from the trailing end. Missing leading axes and axes
        of length 1 are repeated with stride 0.

        Raises
        ------
        ShapeError
            If an axis of length other than 1 would change.
        """
        new_dim = into_dimension(new_shape)
        target = new_dim.as_tuple()
        lead = len(target) - self.ndim
        if lead < 0:
            raise ShapeError(
                f"cannot broadcast shape {self.shape} to fewer axes {target}"
            )
        new_strides = [0] * lead
        for n, s, t in zip(self.shape, self._strides, target[lead:]):
            if n == t:
                new_strides.append(s)
            elif n == 1:
                new_strides.append(0)
            else:
                raise ShapeError(f"cannot broadcast shape {self.shape} to {target}")
        return self._view(new_dim, tuple(new_strides), self._offset)

    def slice(self, specs: Sequence[Si | slice | tuple[Any, ...]]) -> "NDArray":
        """Return a strided view selecting a range per axis.

        Parameters
        ----------
        specs : sequence of Si
            One specification per axis; plain tuples are read as ``Si`` and
            Python ``slice`` objects keep their usual meaning.

        Returns
        -------
        NDArray
            A view with ``len = ceil(range / |step|)`` per axis and strides
            multiplied by the step.

        Raises
        ------
        ShapeError
            If the number of specs differs from the rank, a step is zero or a
            bound is out of range.
        """
        specs = list(specs)
        if len(specs) != self.ndim:
            raise ShapeError(
                f"need {self.ndim} slice specifications, got {len(specs)}"
            )
        new_shape = []
        new_strides = []
        new_offset = self._offset
        for n, stride, spec in zip(self.shape, self._strides, specs):
            if isinstance(spec, slice):
                spec = _si_from_slice(spec, n)
            elif not isinstance(spec, Si):
                spec = Si(*spec)
            length, new_stride, delta = _slice_axis(n, stride, spec)
            new_shape.append(length)
            new_strides.append(new_stride)
            new_offset += delta
        new_dim = self._dim.with_axes(new_shape)
        return self._view(new_dim, tuple(new_strides), new_offset)

    def subview(self, axis: int, index: int) -> "NDArray":
        """Fix ``axis`` at ``index``, returning a view of rank one less."""
        new_dim = self._dim.remove_axis(axis)
        if not 0 <= index < self.shape[axis]:
            raise BoundsError((index,), (self.shape[axis],))
        strides = self._strides[:axis] + self._strides[axis + 1 :]
        return self._view(new_dim, strides, self._offset + index * self._strides[axis])

    def diag(self) -> "NDArray":
        """Return a 1-D view of the elements at ``(k, k, ...)``.

        The length is the smallest axis length; a 0-D array yields its single
        element as a length-1 array.
        """
        if self.ndim == 0:
            return self.reshape((1,))
        n = min(self.shape)
        return self._view(FixedDim((n,)), (sum(self._strides),), self._offset)

    ### Iteration
    def iter(self) -> ElementIterator:
        """Iterate over element values in row-major logical order."""
        return ElementIterator(
            self._handle.buffer, self.shape, self._strides, self._offset
        )

    __iter__ = iter

    def iter_mut(self) -> MutElementIterator:
        """Iterate over writable element references in row-major logical order.

        The storage is made unique before the iterator is returned, and again
        before each write if it has been shared since.
        """
        self._handle.ensure_unique()
        return MutElementIterator(self._handle, self.shape, self._strides, self._offset)

    def row_iter(self, i: int) -> ElementIterator:
        """Iterate over the elements of row ``i`` (index ``i`` along axis 0)."""
        return self.subview(0, i).iter()

    ### Get and set elements
    def _position(self, index: tuple[Ix, ...]) -> int:
        return self._offset + sum(i * s for i, s in zip(index, self._strides))

    def _view_for_key(self, idxs: tuple[Any, ...]) -> "NDArray":
        """Build the view addressed by a key mixing ints and slices."""
        if len(idxs) != self.ndim:
            raise ShapeError("Need indexes equal to number of dimensions")
        specs = []
        for n, s in zip(self.shape, idxs):
            if isinstance(s, slice):
                specs.append(s)
            else:
                if not 0 <= s < n:
                    raise BoundsError(idxs, self.shape)
                specs.append(Si(s, s + 1, 1))
        view = self.slice(specs)
        for axis in reversed(range(self.ndim)):
            if not isinstance(idxs[axis], slice):
                view = view.subview(axis, 0)
        return view

    def __getitem__(self, idxs: Any) -> Any:
        """Return one element for an integer index, or a strided view.

        Parameters
        ----------
        idxs : int | slice | tuple[int | slice, ...]
            A full integer index selects an element. A key containing slices
            selects a view; its integer components remove their axes.

        Raises
        ------
        BoundsError
            If an integer component is out of range.
        ShapeError
            If the key does not have one component per axis.
        """
        if isinstance(idxs, (list, Dimension)):
            idxs = tuple(idxs)
        elif not isinstance(idxs, tuple):
            idxs = (idxs,)
        if all(_is_int(i) for i in idxs):
            index = self._dim.check_index(idxs)
            return self._handle.buffer[self._position(index)]
        return self._view_for_key(idxs)

    def __setitem__(self, idxs: Any, other: Any) -> None:
        """Write one element, or assign into the view selected by ``idxs``.

        The storage is made unique first, so clones and views taken earlier
        keep their values.
        """
        if isinstance(idxs, (list, Dimension)):
            idxs = tuple(idxs)
        elif not isinstance(idxs, tuple):
            idxs = (idxs,)
        if all(_is_int(i) for i in idxs):
            index = self._dim.check_index(idxs)
            self._handle.ensure_unique()
            self._handle.buffer[self._position(index)] = other
            return
        view = self._view_for_key(idxs)
        dim, strides, offset = view._dim, view._strides, view._offset
        # drop the view's share so a unique owner writes in place
        del view
        self._handle.ensure_unique()
        self._store(dim, strides, offset, other)

    def _store(
        self, dim: Dimension, strides: tuple[int, ...], offset: int, other: Any
    ) -> None:
        """Write ``other`` into this array's buffer at the given geometry.

        The caller is responsible for having made the storage unique.
        """
        if not isinstance(other, NDArray) and np.ndim(other) > 0:
            other = NDArray(np.asarray(other), device=self.device)
        if isinstance(other, NDArray):
            source = other.broadcast_to(dim).compact()
            self.device.ewise_setitem(
                source._handle.array,
                self._handle.array,
                dim.as_tuple(),
                strides,
                offset,
            )
        else:
            self.device.scalar_setitem(
                other, self._handle.array, dim.as_tuple(), strides, offset
            )

    def assign(self, other: Union["NDArray", Any]) -> None:
        """Copy ``other`` elementwise into this array.

        Parameters
        ----------
        other : NDArray | scalar
            Source values, broadcast to this array's shape.

        Raises
        ------
        ShapeError
            If ``other`` cannot be broadcast to this array's shape.
        """
        self._handle.ensure_unique()
        self._store(self._dim, self._strides, self._offset, other)

    def fill(self, value: Any) -> None:
        """Fill the entire array with a scalar value."""
        self.assign(value)

    ### Element-wise and scalar operations
    def ewise_or_scalar(self, other: Union["NDArray", Any], op: str) -> "NDArray":
        """Apply an elementwise or scalar backend function depending on ``other``.

        Parameters
        ----------
        other : NDArray | scalar
            Second operand. Arrays are broadcast against ``self``.
        op : str
            Backend operation name (``add``, ``sub``, ``mul`` or ``div``).

        Returns
        -------
        NDArray
            Resulting array on the same device.
        """
        if not isinstance(other, NDArray) and np.ndim(other) > 0:
            other = NDArray(np.asarray(other), device=self.device)
        if isinstance(other, NDArray):
            dim = broadcast_dims(self._dim, other._dim)
            dtype = self.device.result_dtype(op, self.dtype, other.dtype)
            out = NDArray.make(dim, device=self.device, dtype=dtype)
            getattr(self.device, "ewise_" + op)(
                self.broadcast_to(dim).compact()._handle.array,
                other.broadcast_to(dim).compact()._handle.array,
                out._handle.array,
            )
        else:
            dtype = self.device.result_dtype(op, self.dtype, other)
            out = NDArray.make(self._dim, device=self.device, dtype=dtype)
            getattr(self.device, "scalar_" + op)(
                self.compact()._handle.array, other, out._handle.array
            )
        return out

    def _inplace(self, other: Union["NDArray", Any], op: str) -> "NDArray":
        result = self.ewise_or_scalar(other, op)
        if result.dim != self._dim:
            raise ShapeError(
                f"in-place result of shape {result.shape} does not fit {self.shape}"
            )
        self.assign(result)
        return self

    def __add__(self, other: Union["NDArray", Any]) -> "NDArray":
        """Elementwise addition."""
        return self.ewise_or_scalar(other, "add")

    __radd__ = __add__

    def __sub__(self, other: Union["NDArray", Any]) -> "NDArray":
        """Elementwise subtraction."""
        return self.ewise_or_scalar(other, "sub")

    def __rsub__(self, other: Any) -> "NDArray":
        """Elementwise reverse subtraction."""
        return other + (-self)

    def __mul__(self, other: Union["NDArray", Any]) -> "NDArray":
        """Elementwise multiplication."""
        return self.ewise_or_scalar(other, "mul")

    __rmul__ = __mul__

    def __truediv__(self, other: Union["NDArray", Any]) -> "NDArray":
        """Elementwise true division."""
        return self.ewise_or_scalar(other, "div")

    def __neg__(self) -> "NDArray":
        """Elementwise negation."""
        return self * (-1)

    def __iadd__(self, other: Union["NDArray", Any]) -> "NDArray":
        return self._inplace(other, "add")

    def __isub__(self, other: Union["NDArray", Any]) -> "NDArray":
        return self._inplace(other, "sub")

    def __imul__(self, other: Union["NDArray", Any]) -> "NDArray":
        return self._inplace(other, "mul")

    def __itruediv__(self, other: Union["NDArray", Any]) -> "NDArray":
        return self._inplace(other, "div")

    def map(self, fn: Callable[[Any], Any]) -> "NDArray":
        """Apply ``fn`` to every element, preserving shape.

        The output dtype is inferred from the returned values and need not
        match the input dtype.
        """
        values = self.device.ewise_map(self.compact()._handle.array, fn)
        out = NDArray.make(self._dim, device=self.device, dtype=values.dtype)
        self.device.from_numpy(values, out._handle.array)
        return out

    ### Comparison
    def __eq__(self, other: object) -> bool:
        """Return True iff shapes match and all corresponding elements are equal."""
        if not isinstance(other, NDArray):
            return NotImplemented
        if self.shape != other.shape:
            return False
        return all(x == y for x, y in zip(self.iter(), other.iter()))

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None  # type: ignore[assignment]

    ### Matrix multiplication
    def __matmul__(self, other: "NDArray") -> "NDArray":
        """Matrix multiplication of two 2D arrays."""
        if self.ndim != 2 or other.ndim != 2:
            raise ShapeError(
                f"matrix product needs 2-D operands, got {self.shape} and {other.shape}"
            )
        if self.shape[1] != other.shape[0]:
            raise ShapeError(
                f"inner dimensions differ: {self.shape} @ {other.shape}"
            )

        m, n, p = self.shape[0], self.shape[1], other.shape[1]
        dtype = self.device.result_dtype("mul", self.dtype, other.dtype)
        out = NDArray.make((m, p), device=self.device, dtype=dtype)
        self.device.matmul(
            self.compact()._handle.array,
            other.compact()._handle.array,
            out._handle.array,
            m,
            n,
            p,
        )
        return out

    mat_mul = __matmul__

    ### Reductions, i.e., sum/mean over all elements or over a given axis
    def reduce_view_out(
        self, axis: int | None, keepdims: bool = False
    ) -> tuple["NDArray", "NDArray"]:
        """Prepare a compact reduction view and corresponding output array.

        Parameters
        ----------
        axis : int | None
            Axis to reduce over. ``None`` (and any axis of a 0-D array)
            reduces over all elements to a 0-D result.
        keepdims : bool, optional
            If True, keep the reduced dimension with size 1.

        Returns
        -------
        tuple[NDArray, NDArray]
            A tuple of (view, out), where ``view`` is a permuted/reshaped input
            such that the last dimension is reduced, and ``out`` is the output
            array with appropriate shape.
        """
        dtype = np.dtype(np.int64) if self.dtype.kind == "b" else self.dtype
        if axis is None or self.ndim == 0:
            view = self.compact().reshape((1, self.size))
            out_shape: Shape = (1,) * self.ndim if keepdims else ()
        else:
            if axis < 0:
                axis += self.ndim
            if not 0 <= axis < self.ndim:
                raise ShapeError(f"axis {axis} is out of range for rank {self.ndim}")
            view = self.permute(
                tuple(a for a in range(self.ndim) if a != axis) + (axis,)
            )
            out_shape = (
                self._dim.with_axes(
                    [1 if i == axis else s for i, s in enumerate(self.shape)]
                )
                if keepdims
                else self._dim.remove_axis(axis)
            )
        out = NDArray.make(out_shape, device=self.device, dtype=dtype)
        return view, out

    def sum(self, axis: int | None = None, keepdims: bool = False) -> "NDArray":
        """Sum of array elements over a given axis.

        Parameters
        ----------
        axis : int | None, optional
            Axis to collapse. If None, sum over all elements and return a
            0-D array.
        keepdims : bool, optional
            If True, keep the reduced dimension with size 1.

        Returns
        -------
        NDArray
            The reduced array, of rank one less unless ``keepdims``.
        """
        view, out = self.reduce_view_out(axis, keepdims=keepdims)
        self.device.reduce_sum(
            view.compact()._handle.array, out._handle.array, view.shape[-1]
        )
        return out

    def mean(self, axis: int | None = None, keepdims: bool = False) -> "NDArray":
        """Arithmetic mean over a given axis; see :meth:`sum`."""
        total = self.sum(axis, keepdims=keepdims)
        count = self.size // total.size if total.size else 1
        return total / count


def zeros(shape: Shape, dtype: Any = None, device: Device | None = None) -> NDArray:
    """Return a new array of ``shape`` filled with the additive identity."""
    dtype = np.dtype(dtype) if dtype is not None else None
    return NDArray.make(shape, device=device, dtype=dtype, fill=0)


def from_sequence(
    values: Iterable[Any], dtype: Any = None, device: Device | None = None
) -> NDArray:
    """Build a 1-D array from a finite sequence of scalars."""
    data = np.asarray(list(values), dtype=dtype)
    if data.ndim != 1:
        raise ShapeError(f"expected a flat sequence of scalars, got shape {data.shape}")
    return NDArray(data, device=device)


def from_shape_vec(
    shape: Shape, values: Iterable[Any], dtype: Any = None, device: Device | None = None
) -> NDArray:
    """Build an array of ``shape`` from values given in row-major order."""
    dim = into_dimension(shape)
    data = np.asarray(list(values), dtype=dtype)
    if data.ndim != 1 or data.size != dim.size():
        raise ShapeError(
            f"{data.size} values cannot fill shape {dim.as_tuple()}"
        )
    out = NDArray.make(dim, device=device, dtype=data.dtype)
    out.device.from_numpy(data, out._handle.array)
    return out


def arr0(value: Any, dtype: Any = None) -> NDArray:
    """Return a 0-D array holding ``value``."""
    return NDArray(np.asarray(value, dtype=dtype))


def arr1(values: Iterable[Any], dtype: Any = None) -> NDArray:
    """Return a 1-D array of ``values``."""
    return from_sequence(values, dtype=dtype)


def arr2(rows: Iterable[Sequence[Any]], dtype: Any = None) -> NDArray:
    """Return a 2-D array from equal-length rows."""
    rows = [list(r) for r in rows]
    ncols = len(rows[0]) if rows else 0
    if any(len(r) != ncols for r in rows):
        raise ShapeError("rows of a 2-D array must all have the same length")
    values = [x for r in rows for x in r]
    if dtype is None and not values:
        dtype = np.float64
    return from_shape_vec((len(rows), ncols), values, dtype=dtype)


def array(a: Any, dtype: Any = None, device: Device | None = None) -> NDArray:
    """Convenience methods to match numpy a bit more closely."""
    return NDArray(a, device=device, dtype=dtype)
