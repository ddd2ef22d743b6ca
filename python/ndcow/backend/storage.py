"""Reference-counted, copy-on-write element storage.

Every ``NDArray`` owns exactly one ``Storage`` handle. Handles created with
``share()`` point at the same backend buffer and bump its reference count;
the count drops again when a handle is garbage collected. Before any write,
the owning array calls ``ensure_unique()``, which gives the handle a private
copy of the buffer whenever another handle still refers to it.
"""

import logging
import weakref
from typing import Any

import numpy as np

from .device import Device, default_device

logger = logging.getLogger(__name__)


class _SharedBuffer:
    """Backend buffer plus the number of live handles referring to it."""

    __slots__ = ("array", "refcount", "__weakref__")

    def __init__(self, array: Any) -> None:
        self.array = array
        self.refcount = 0


def _release(shared: _SharedBuffer) -> None:
    shared.refcount -= 1


class Storage:
    """Handle to a shared buffer with explicit reference counting."""

    __slots__ = ("_shared", "_finalizer", "_device", "__weakref__")

    def __init__(self, array: Any, device: Device) -> None:
        self._device = device
        self._bind(_SharedBuffer(array))

    def _bind(self, shared: _SharedBuffer) -> None:
        shared.refcount += 1
        self._shared = shared
        self._finalizer = weakref.finalize(self, _release, shared)

    @classmethod
    def allocate(
        cls,
        n: int,
        fill: object = None,
        dtype: np.dtype | type | None = None,
        device: Device | None = None,
    ) -> "Storage":
        """Allocate a new, uniquely owned buffer of ``n`` elements.

        Parameters
        ----------
        n : int
            Number of elements.
        fill : scalar, optional
            Initial value of every element. Left uninitialized when None.
        dtype : numpy dtype, optional
            Element type; the backend default when omitted.
        device : Device, optional
            Backend that owns the buffer.
        """
        device = device if device is not None else default_device()
        array = device.Array(n, dtype)
        if fill is not None:
            device.fill(array, fill)
        return cls(array, device)

    def share(self) -> "Storage":
        """Return a new handle on the same buffer (O(1), no element copy)."""
        handle = Storage.__new__(Storage)
        handle._device = self._device
        handle._bind(self._shared)
        return handle

    def ensure_unique(self) -> "Storage":
        """Make this handle the sole owner of its buffer, copying if needed.

        Returns
        -------
        Storage
            ``self``, now guaranteed unique.
        """
        if self._shared.refcount > 1:
            logger.debug(
                "copy-on-write: duplicating %d elements shared by %d handles",
                self._shared.array.size,
                self._shared.refcount,
            )
            array = self._shared.array.copy()
            # releases our count on the old buffer and detaches the finalizer
            self._finalizer()
            self._bind(_SharedBuffer(array))
        return self

    @property
    def refcount(self) -> int:
        """int: Number of live handles sharing this buffer."""
        return self._shared.refcount

    def is_unique(self) -> bool:
        return self._shared.refcount == 1

    @property
    def array(self) -> Any:
        """Backend buffer object. Callers must not write through it directly."""
        return self._shared.array

    @property
    def buffer(self) -> np.ndarray:
        return self._shared.array.buffer

    @property
    def device(self) -> Device:
        return self._device

    @property
    def size(self) -> int:
        return self._shared.array.size

    @property
    def dtype(self) -> np.dtype:
        return self._shared.array.dtype

    def ptr(self) -> int:
        return self._shared.array.ptr()

    def __repr__(self) -> str:
        return f"Storage(size={self.size}, refcount={self.refcount})"
