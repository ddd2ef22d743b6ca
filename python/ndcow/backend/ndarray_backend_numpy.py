import numpy as np

__device_name__ = "numpy"
_dtype = np.float64


def default_dtype() -> np.dtype:
    return np.dtype(_dtype)


class Array:
    def __init__(self, size: int, dtype: np.dtype | type | None = None):
        # use numpy array as buffer to store the data
        self.buffer = np.empty(size, dtype=_dtype if dtype is None else dtype)

    @property
    def size(self) -> int:
        return self.buffer.size

    @property
    def dtype(self) -> np.dtype:
        return self.buffer.dtype

    def ptr(self) -> int:
        return self.buffer.ctypes.data

    def copy(self) -> "Array":
        out = Array(self.size, self.dtype)
        out.buffer[:] = self.buffer
        return out


def result_dtype(name: str, a_dtype: np.dtype, other: object) -> np.dtype:
    """Resolve the output dtype of a binary op between a buffer and ``other``.

    ``other`` is either a dtype (array operand) or a Python/NumPy scalar.
    Division of integer or boolean operands always produces float64.
    """
    dtype = np.result_type(a_dtype, other)
    if name == "div" and dtype.kind in "biu":
        dtype = np.dtype(np.float64)
    return dtype


def to_numpy(
    a: Array, shape: tuple[int, ...], strides: tuple[int, ...], offset: int
) -> np.ndarray:
    """Create a NumPy view into ``a.buffer`` with custom shape/strides and offset.

    Parameters
    ----------
    a : Array
        Source storage.
    shape : tuple of int
        Desired shape of the returned view.
    strides : tuple of int
        Strides expressed in number of elements (not bytes). May be negative
        or zero.
    offset : int
        Element offset of the logical element at index ``(0, ..., 0)``.

    Returns
    -------
    numpy.ndarray
        A view (no copy) that shares memory with ``a.buffer``.

    Notes
    -----
    Negative strides are realized by viewing the same elements with positive
    strides from the lowest address and reversing those axes afterwards, so
    ``as_strided`` never walks below the start of its base view.
    """
    if 0 in shape:
        return np.empty(shape, dtype=a.dtype)
    base = offset
    for n, s in zip(shape, strides):
        if s < 0:
            base += (n - 1) * s
    itemsize = a.buffer.itemsize
    view = np.lib.stride_tricks.as_strided(
        a.buffer[base:],
        shape,
        tuple(abs(s) * itemsize for s in strides),
    )
    if any(s < 0 for s in strides):
        view = view[
            tuple(slice(None, None, -1) if s < 0 else slice(None) for s in strides)
        ]
    return view


def from_numpy(numpy_array: np.ndarray, out: Array) -> None:
    """Copy values from an arbitrary NumPy array into ``out.buffer``.

    Values are copied in row-major (C-order) via ``numpy_array.flat``.
    """
    out.buffer[:] = numpy_array.flat


def fill(out: Array, val: object) -> None:
    """Fill the entire ``out.buffer`` with a scalar value."""
    out.buffer.fill(val)


def compact(
    a: Array, out: Array, shape: tuple[int, ...], strides: tuple[int, ...], offset: int
) -> None:
    """Materialize a strided view of ``a`` into the compact buffer ``out``.

    Parameters
    ----------
    a : Array
        Source storage.
    out : Array
        Destination storage that will receive the compact data.
    shape : tuple of int
        Shape of the logical view into ``a``.
    strides : tuple of int
        Strides of the logical view into ``a`` in elements.
    offset : int
        Starting element offset into ``a.buffer`` for the view.
    """
    out.buffer[:] = to_numpy(a, shape, strides, offset).flatten()


def ewise_setitem(
    a: Array, out: Array, shape: tuple[int, ...], strides: tuple[int, ...], offset: int
) -> None:
    """Write from compact ``a`` into a strided view of ``out``.

    Parameters
    ----------
    a : Array
        Source storage. Expected to be compact and of size ``prod(shape)``.
    out : Array
        Destination storage (may be strided via ``shape``/``strides``/``offset``).
    shape : tuple of int
        Logical shape of the output view.
    strides : tuple of int
        Output view strides in elements.
    offset : int
        Element offset into ``out.buffer`` for the view.
    """
    if 0 in shape:
        return
    to_numpy(out, shape, strides, offset)[...] = a.buffer.reshape(shape)


def scalar_setitem(
    val: object,
    out: Array,
    shape: tuple[int, ...],
    strides: tuple[int, ...],
    offset: int,
) -> None:
    """Set every element of a strided output view to a scalar value."""
    if 0 in shape:
        return
    to_numpy(out, shape, strides, offset)[...] = val


def ewise_add(a: Array, b: Array, out: Array) -> None:
    """Elementwise addition ``out = a + b`` for compact buffers."""
    out.buffer[:] = a.buffer + b.buffer


def scalar_add(a: Array, val: object, out: Array) -> None:
    """Elementwise addition with scalar ``out = a + val`` for compact buffers."""
    out.buffer[:] = a.buffer + val


def ewise_sub(a: Array, b: Array, out: Array) -> None:
    """Elementwise subtraction ``out = a - b`` for compact buffers."""
    out.buffer[:] = a.buffer - b.buffer


def scalar_sub(a: Array, val: object, out: Array) -> None:
    """Elementwise subtraction of a scalar ``out = a - val``."""
    out.buffer[:] = a.buffer - val


def ewise_mul(a: Array, b: Array, out: Array) -> None:
    """Elementwise multiplication ``out = a * b`` for compact buffers."""
    out.buffer[:] = a.buffer * b.buffer


def scalar_mul(a: Array, val: object, out: Array) -> None:
    """Elementwise multiplication with scalar ``out = a * val``."""
    out.buffer[:] = a.buffer * val


def ewise_div(a: Array, b: Array, out: Array) -> None:
    """Elementwise true division ``out = a / b`` for compact buffers.

    See :func:`numpy.true_divide` for behavior on zero divisors (``inf`` or
    ``nan``).
    """
    out.buffer[:] = a.buffer / b.buffer


def scalar_div(a: Array, val: object, out: Array) -> None:
    """Elementwise true division by scalar ``out = a / val``."""
    out.buffer[:] = a.buffer / val


def ewise_map(a: Array, fn: object) -> np.ndarray:
    """Apply a Python callable to every element of compact ``a``.

    Returns
    -------
    numpy.ndarray
        1-D array of results; its dtype is inferred from the returned values.
    """
    return np.asarray([fn(x) for x in a.buffer.tolist()])  # type: ignore[operator]


def matmul(a: Array, b: Array, out: Array, m: int, n: int, p: int) -> None:
    """Matrix multiplication ``out = (A @ B).ravel()`` with compact buffers.

    Parameters
    ----------
    a : Array
        Left matrix storage containing ``A`` flattened with shape ``(m, n)``.
    b : Array
        Right matrix storage containing ``B`` flattened with shape ``(n, p)``.
    out : Array
        Output storage for ``C = A @ B`` flattened with shape ``(m * p,)``.
    m : int
        Number of rows of ``A`` and ``C``.
    n : int
        Shared inner dimension of ``A`` and ``B``.
    p : int
        Number of columns of ``A`` and ``C``.
    """
    out.buffer[:] = (a.buffer.reshape(m, n) @ b.buffer.reshape(n, p)).reshape(-1)


def reduce_sum(a: Array, out: Array, reduce_size: int) -> None:
    """Reduce the last logical dimension by sum.

    Parameters
    ----------
    a : Array
        Input (compact), conceptually reshaped to ``(out.size, reduce_size)``.
    out : Array
        Output (compact) receiving one sum per group.
    reduce_size : int
        Size of the reduced dimension. A zero-length dimension sums to 0.
    """
    out.buffer[:] = np.sum(a.buffer.reshape(out.size, reduce_size), axis=1)
