"""
Growable Array Container

Owned 1-D storage with a logical size and an over-allocated capacity,
living on one storage backend (host numpy or device cupy).

Growth is amortized: when ``n`` elements are needed and the capacity is
smaller, the storage is reallocated to ``int(factor * n + 1)`` elements and
the valid prefix is copied over. Shrinking only changes the logical size.
"""

from typing import Any, Optional, Union
import logging

import numpy as np

from .._config import resolve_factor
from .._errors import IndexOutOfBoundsError, InvalidArgumentError, TypeMismatchError
from ._backend import StorageBackend, backend_for, get_backend
from ._dtypes import DType, normalize_dtype

logger = logging.getLogger("colops.buffers")

__all__ = ['GrowableArray']


class GrowableArray:
    """
    Growable contiguous 1-D array.

    Attributes:
        size (int): Number of valid elements
        capacity (int): Number of elements storable without reallocation
        dtype (str): Element type name
        backend (StorageBackend): Backend owning the storage

    Memory Model:
        ``data`` and ``raw`` return views of the current storage. Any call
        that may reallocate (``reserve``, ``resize``) invalidates them:
        after reallocation an old view no longer aliases this array.

    Example:
        >>> arr = GrowableArray(0, dtype='float64')
        >>> arr.resize(10)          # allocates int(1.3 * 10 + 1) = 14
        True
        >>> arr.capacity
        14
        >>> arr.data[:] = 1.0
    """

    __slots__ = ('_data', '_size', '_backend')

    def __init__(
        self,
        size: int = 0,
        dtype: Union[str, DType, Any] = 'float64',
        device: Union[None, str, StorageBackend] = None,
        capacity: Optional[int] = None,
    ):
        """
        Allocate an uninitialized array.

        Args:
            size: Number of valid elements
            dtype: Element type
            device: Backend name or instance (default: host)
            capacity: Elements to allocate (default: ``size``)
        """
        if size < 0:
            raise InvalidArgumentError(f"Array size must be non-negative, got {size}")
        if capacity is None:
            capacity = size
        if capacity < size:
            raise InvalidArgumentError(f"capacity {capacity} < size {size}")

        self._backend = get_backend(device)
        self._data = self._backend.empty(capacity, normalize_dtype(dtype))
        self._size = int(size)

    @classmethod
    def from_array(
        cls,
        array: Any,
        device: Union[None, str, StorageBackend] = None,
        copy: bool = True,
    ) -> 'GrowableArray':
        """
        Create from an existing 1-D array.

        Args:
            array: numpy/cupy array (or anything numpy accepts)
            device: Target backend (default: the array's own backend, or host)
            copy: If False and no transfer is needed, the array becomes the
                  storage directly (zero-copy). Growth will then reallocate.
        """
        source = _source_backend(array)
        backend = get_backend(device) if device is not None else (source or get_backend())
        if source is None:
            array = np.asarray(array)
        if array.ndim != 1:
            raise InvalidArgumentError(f"GrowableArray needs a 1-D array, got ndim={array.ndim}")

        arr = cls.__new__(cls)
        arr._backend = backend
        if backend is source:
            arr._data = array if (not copy and array.flags.c_contiguous) else array.copy()
        else:
            arr._data = backend.asarray(array)
        arr._size = len(array)
        return arr

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of valid elements."""
        return self._size

    @property
    def capacity(self) -> int:
        """Allocated elements."""
        return len(self._data)

    @property
    def dtype(self) -> str:
        return self._data.dtype.name

    @property
    def itemsize(self) -> int:
        return self._data.dtype.itemsize

    @property
    def nbytes(self) -> int:
        """Bytes allocated (capacity, not size)."""
        return self.capacity * self.itemsize

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def device(self) -> str:
        return self._backend.name

    @property
    def is_device(self) -> bool:
        return self._backend.is_device

    @property
    def data(self) -> Any:
        """View of the valid prefix (invalidated by reallocation)."""
        return self._data[:self._size]

    @property
    def raw(self) -> Any:
        """The whole allocated storage (invalidated by reallocation)."""
        return self._data

    # -------------------------------------------------------------------------
    # Growth
    # -------------------------------------------------------------------------

    def reserve(self, n: int, factor: Optional[float] = None) -> bool:
        """
        Make room for at least ``n`` elements.

        Args:
            n: Required capacity in elements
            factor: Growth factor (default: configured ``resize_factor``)

        Returns:
            True if the storage was reallocated.
        """
        if n <= self.capacity:
            return False
        factor = resolve_factor(factor)
        new_capacity = int(factor * n + 1)
        logger.debug(
            f"Growing {self.device} storage from {self.capacity} to "
            f"{new_capacity} elements ({self.dtype})"
        )
        self._data = self._backend.resize(self._data, new_capacity, self._size)
        return True

    def resize(self, n: int, factor: Optional[float] = None) -> bool:
        """
        Set the number of valid elements, growing storage if needed.

        Existing valid elements are preserved; new elements are
        uninitialized. Shrinking never reallocates.

        Returns:
            True if the storage was reallocated.
        """
        if n < 0:
            raise InvalidArgumentError(f"size must be non-negative, got {n}")
        grown = self.reserve(n, factor)
        self._size = int(n)
        return grown

    # -------------------------------------------------------------------------
    # Element Access / Conversion
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, idx: int):
        """Read one element as a Python scalar (device arrays are transferred)."""
        if not isinstance(idx, (int, np.integer)):
            raise TypeMismatchError("GrowableArray supports integer indexing only; use .data for slices")
        if idx < 0:
            idx += self._size
        if idx < 0 or idx >= self._size:
            raise IndexOutOfBoundsError(f"Index {idx} out of bounds [0, {self._size})")
        return self._data[idx].item()

    def to_numpy(self) -> np.ndarray:
        """Host copy of the valid elements."""
        return self._backend.to_host(self.data)

    def tolist(self) -> list:
        return self.to_numpy().tolist()

    def copy(self, device: Union[None, str, StorageBackend] = None) -> 'GrowableArray':
        """Deep copy (capacity trimmed to size), optionally onto another backend."""
        return GrowableArray.from_array(self.data, device=device or self._backend, copy=True)

    def __repr__(self) -> str:
        values = self.tolist()
        if len(values) > 6:
            values = values[:3] + ['...'] + values[-3:]
        return f"GrowableArray({values}, dtype={self.dtype}, device={self.device})"


def _source_backend(array: Any) -> Optional[StorageBackend]:
    try:
        return backend_for(array)
    except TypeMismatchError:
        return None
