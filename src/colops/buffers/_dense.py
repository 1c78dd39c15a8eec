"""Dense Column Buffer.

A growable N-dimensional array treated as a sequence of (N-1)-dimensional
columns indexed by its last axis.

Memory Layout:
    One flat 1-D storage array in column-major order. Column ``j`` is the
    contiguous run ``storage[j*clen:(j+1)*clen]`` where
    ``clen = prod(column_shape)``; the logical array is
    ``storage[:count*clen].reshape(column_shape + (count,), order='F')``.

Capacity:
    ``capacity`` columns fit without reallocation. Growth multiplies the
    required element count by the configured resize factor, so appending
    one column at a time reallocates O(log n) times.

Example:
    >>> buf = ColumnBuffer((2,), dtype='float64')
    >>> buf.shape
    (2, 0)
    >>> _ = buf.resize(3)
    >>> buf.array[:] = [[1, 2, 3], [4, 5, 6]]
    >>> buf.column(1)
    array([2., 5.])
"""

from typing import Any, Optional, Sequence, Tuple, Union
import math

import numpy as np

from .._errors import IndexOutOfBoundsError, InvalidArgumentError, StructureError
from ._array import GrowableArray, _source_backend
from ._backend import StorageBackend, StorageInfo, get_backend
from ._dtypes import DType, validate_dtype

__all__ = ['ColumnBuffer']


def _normalize_shape(column_shape: Union[int, Sequence[int]]) -> Tuple[int, ...]:
    if isinstance(column_shape, (int, np.integer)):
        column_shape = (column_shape,)
    shape = tuple(int(d) for d in column_shape)
    if any(d < 0 for d in shape):
        raise InvalidArgumentError(f"Invalid column shape: {shape}")
    return shape


class ColumnBuffer:
    """Growable dense column buffer.

    Attributes:
        shape: Logical shape ``column_shape + (count,)``.
        column_shape: Shape of one column.
        column_length: Elements per column.
        count: Number of valid columns.
        capacity: Columns storable without reallocation.
        dtype: Element type name.
        device: Backend name.

    Memory Model:
        The buffer owns its storage. ``array``, ``column()`` and
        ``storage.data`` hand out views that are invalidated whenever the
        buffer reallocates (``ensure_capacity``, ``resize``, and the
        operations ``slice_columns``, ``concatenate_columns`` and
        ``unique_columns``). Do not keep them across those calls.
    """

    __slots__ = ('_storage', '_column_shape', '_count')

    def __init__(
        self,
        column_shape: Union[int, Sequence[int]] = (),
        count: int = 0,
        dtype: Union[str, DType, Any] = 'float64',
        device: Union[None, str, StorageBackend] = None,
        capacity: Optional[int] = None,
    ):
        """Allocate an uninitialized buffer.

        Args:
            column_shape: Shape of one column (``()`` for scalar columns).
            count: Initial number of columns.
            dtype: Element type.
            device: Backend name or instance (default: host).
            capacity: Columns to allocate up front (default: ``count``).
        """
        self._column_shape = _normalize_shape(column_shape)
        if count < 0:
            raise InvalidArgumentError(f"count must be non-negative, got {count}")
        if capacity is None:
            capacity = count
        if capacity < count:
            raise InvalidArgumentError(f"capacity {capacity} < count {count}")
        clen = self.column_length
        self._storage = GrowableArray(
            count * clen, dtype=validate_dtype(dtype), device=device, capacity=capacity * clen
        )
        self._count = int(count)

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def from_array(
        cls,
        array: Any,
        device: Union[None, str, StorageBackend] = None,
        copy: bool = True,
    ) -> 'ColumnBuffer':
        """Create from an N-d array whose last axis indexes columns.

        A 1-D array becomes a buffer of scalar columns.

        Args:
            array: numpy/cupy array (or nested lists).
            device: Target backend (default: the array's own backend).
            copy: If False the storage aliases ``array``; this requires a
                  Fortran-contiguous array on the target backend.

        Raises:
            StructureError: ``copy=False`` on an array that cannot be
                            aliased.
        """
        source = _source_backend(array)
        if source is None:
            array = np.asarray(array)
        if array.ndim == 0:
            raise InvalidArgumentError("A 0-d array has no columns")
        validate_dtype(array.dtype)

        aliasable = array.flags.f_contiguous and (device is None or get_backend(device) is source)
        if not copy and not aliasable:
            raise StructureError(
                "Cannot alias array storage: need a Fortran-contiguous array "
                "on the target backend"
            )
        flat = array.reshape(-1, order='F') if array.flags.f_contiguous else array.ravel(order='F')

        buf = cls.__new__(cls)
        buf._column_shape = tuple(array.shape[:-1])
        buf._count = int(array.shape[-1])
        buf._storage = GrowableArray.from_array(flat, device=device, copy=copy)
        return buf

    @classmethod
    def like(
        cls,
        other: 'ColumnBuffer',
        count: int = 0,
        device: Union[None, str, StorageBackend] = None,
    ) -> 'ColumnBuffer':
        """Empty buffer with the column shape and dtype of ``other``."""
        return cls(other.column_shape, count=count, dtype=other.dtype,
                   device=device if device is not None else other.backend)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def column_shape(self) -> Tuple[int, ...]:
        return self._column_shape

    @property
    def column_length(self) -> int:
        return math.prod(self._column_shape)

    @property
    def count(self) -> int:
        """Number of valid columns."""
        return self._count

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._column_shape + (self._count,)

    @property
    def ndim(self) -> int:
        return len(self._column_shape) + 1

    @property
    def size(self) -> int:
        """Number of valid elements."""
        return self._storage.size

    @property
    def capacity(self) -> int:
        """Columns storable without reallocation."""
        clen = self.column_length
        if clen == 0:
            return self._count
        return self._storage.capacity // clen

    @property
    def dtype(self) -> str:
        return self._storage.dtype

    @property
    def storage(self) -> GrowableArray:
        return self._storage

    @property
    def backend(self) -> StorageBackend:
        return self._storage.backend

    @property
    def device(self) -> str:
        return self._storage.device

    @property
    def is_device(self) -> bool:
        return self._storage.is_device

    @property
    def nbytes(self) -> int:
        return self._storage.nbytes

    @property
    def storage_info(self) -> StorageInfo:
        return StorageInfo(
            backend=self.device,
            location=self.backend.location,
            dtype=self.dtype,
            shape=self.shape,
            capacity=self.capacity,
            nbytes=self.nbytes,
        )

    @property
    def array(self) -> Any:
        """Logical N-d view of the valid columns (invalidated by growth)."""
        return self._storage.data.reshape(self.shape, order='F')

    # =========================================================================
    # Capacity Management
    # =========================================================================

    def ensure_capacity(self, ncols: int, factor: Optional[float] = None) -> bool:
        """Grow storage so ``ncols`` columns fit; no-op if they already do.

        Returns:
            True if the storage was reallocated.
        """
        return self._storage.reserve(ncols * self.column_length, factor)

    def resize(self, count: int, factor: Optional[float] = None) -> bool:
        """Set the number of valid columns.

        Existing columns up to ``min(old, new)`` are preserved, new columns
        are uninitialized.
        """
        if count < 0:
            raise InvalidArgumentError(f"count must be non-negative, got {count}")
        grown = self._storage.resize(count * self.column_length, factor)
        self._count = int(count)
        return grown

    def _reset(self, column_shape: Tuple[int, ...], count: int, factor: Optional[float] = None) -> bool:
        # Content is about to be overwritten: drop it so growth copies nothing.
        self._storage.resize(0)
        self._column_shape = column_shape
        self._count = 0
        return self.resize(count, factor)

    # =========================================================================
    # Access / Conversion
    # =========================================================================

    def column(self, j: int) -> Any:
        """View of column ``j`` with shape ``column_shape``."""
        if j < 0:
            j += self._count
        if j < 0 or j >= self._count:
            raise IndexOutOfBoundsError(f"Column {j} out of bounds [0, {self._count})")
        clen = self.column_length
        return self._storage.raw[j * clen:(j + 1) * clen].reshape(self._column_shape, order='F')

    def to_numpy(self) -> np.ndarray:
        """Host copy of the logical array."""
        return self.backend.to_host(self.array)

    def copy(self, device: Union[None, str, StorageBackend] = None) -> 'ColumnBuffer':
        """Deep copy, optionally onto another backend."""
        buf = ColumnBuffer.__new__(ColumnBuffer)
        buf._column_shape = self._column_shape
        buf._count = self._count
        buf._storage = self._storage.copy(device)
        return buf

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"ColumnBuffer(shape={self.shape}, capacity={self.capacity}, "
            f"dtype={self.dtype}, device={self.device})"
        )
