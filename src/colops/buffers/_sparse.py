"""Sparse Column Store.

A growable compressed-sparse-column (CSC) structure: row count ``m``,
column count ``n``, and three growable arrays.

Memory Layout:
    - colptr[n+1]: Cumulative offsets, ``colptr[0] == 0``,
      ``colptr[n] == nnz``, non-decreasing
    - rowval[nnz]: Row index of each stored entry
    - nzval[nnz]: Value of each stored entry

Column ``j`` owns ``rowval[colptr[j]:colptr[j+1]]`` and the matching
``nzval`` run. Row indices inside a column need not be sorted; they only
have to stay aligned with their values by position.

``rowval``/``nzval`` capacity may exceed ``nnz`` so that appending columns
reallocates O(log n) times.

Example:
    >>> import scipy.sparse as sp
    >>> store = SparseColumnStore.from_scipy(sp.csc_matrix([[1, 0], [0, 2]]))
    >>> store.shape, store.nnz
    ((2, 2), 2)
    >>> store.get_col(1)
    (array([1]), array([2]))
"""

from typing import Any, Optional, Tuple, Union

import numpy as np

from .._errors import (
    IndexOutOfBoundsError, InvalidArgumentError, StructureError, TypeMismatchError,
)
from ._array import GrowableArray, _source_backend
from ._backend import StorageBackend, StorageInfo, get_backend
from ._dtypes import DType, validate_dtype, validate_index_dtype

__all__ = ['SparseColumnStore', 'is_csc_like']


def is_csc_like(obj: Any) -> bool:
    """Whether ``obj`` exposes CSC arrays (scipy or cupyx ``csc_matrix``)."""
    return (
        getattr(obj, 'format', None) == 'csc'
        and all(hasattr(obj, attr) for attr in ('indptr', 'indices', 'data', 'shape'))
    )


class SparseColumnStore:
    """Growable CSC sparse column store.

    Attributes:
        m: Number of rows.
        n: Number of columns.
        nnz: Number of stored entries.
        dtype: Value type name.
        index_dtype: Type of ``colptr``/``rowval`` (int32 or int64).
        device: Backend name. All three arrays live on the same backend.

    Memory Model:
        ``colptr``, ``rowval`` and ``nzval`` return views that are
        invalidated by any growth (``ensure_capacity``, and the operations
        ``slice_columns``, ``concatenate_columns``, ``unique_columns``).
    """

    __slots__ = ('_m', '_n', '_colptr', '_rowval', '_nzval')

    def __init__(
        self,
        m: int = 0,
        n: int = 0,
        dtype: Union[str, DType, Any] = 'float64',
        index_dtype: Union[str, DType, Any] = 'int64',
        device: Union[None, str, StorageBackend] = None,
        nnz_capacity: int = 0,
    ):
        """Create an ``m x n`` store with no stored entries.

        Args:
            m: Number of rows.
            n: Number of (empty) columns.
            dtype: Value type.
            index_dtype: Index type for colptr/rowval.
            device: Backend name or instance (default: host).
            nnz_capacity: Entries to allocate up front.
        """
        if m < 0 or n < 0:
            raise InvalidArgumentError(f"Invalid shape: {(m, n)}")
        index_dtype = validate_index_dtype(index_dtype)
        backend = get_backend(device)

        self._m = int(m)
        self._n = int(n)
        self._colptr = GrowableArray.from_array(
            backend.zeros(n + 1, index_dtype), device=backend, copy=False
        )
        self._rowval = GrowableArray(0, dtype=index_dtype, device=backend, capacity=nnz_capacity)
        self._nzval = GrowableArray(0, dtype=validate_dtype(dtype), device=backend,
                                    capacity=nnz_capacity)

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def from_arrays(
        cls,
        m: int,
        colptr: Any,
        rowval: Any,
        nzval: Any,
        device: Union[None, str, StorageBackend] = None,
        copy: bool = True,
    ) -> 'SparseColumnStore':
        """Create from raw CSC arrays.

        Args:
            m: Number of rows.
            colptr: Column pointers (length n+1).
            rowval: Row indices (length nnz).
            nzval: Values (length nnz).
            device: Target backend (default: backend of ``nzval``).
            copy: If False, arrays already on the target backend are used
                  as storage directly.

        Raises:
            StructureError: If the arrays do not form a valid CSC structure.
        """
        if device is None:
            device = _source_backend(nzval)
        colptr = GrowableArray.from_array(colptr, device=device, copy=copy)
        rowval = GrowableArray.from_array(rowval, device=device, copy=copy)
        nzval = GrowableArray.from_array(nzval, device=device, copy=copy)

        if colptr.dtype != rowval.dtype:
            raise TypeMismatchError(
                f"colptr ({colptr.dtype}) and rowval ({rowval.dtype}) must share a dtype"
            )
        validate_index_dtype(colptr.dtype)
        validate_dtype(nzval.dtype)
        if colptr.size < 1:
            raise StructureError("colptr must have at least one entry")

        store = cls.__new__(cls)
        store._m = int(m)
        store._n = colptr.size - 1
        store._colptr = colptr
        store._rowval = rowval
        store._nzval = nzval
        store.validate()
        return store

    @classmethod
    def from_scipy(
        cls,
        mat: Any,
        device: Union[None, str, StorageBackend] = None,
        copy: bool = True,
    ) -> 'SparseColumnStore':
        """Create from a scipy sparse matrix (any format) or a cupyx CSC matrix.

        Stored entries are taken as-is: indices are not sorted and explicit
        zeros are kept.
        """
        if not is_csc_like(mat):
            if not hasattr(mat, 'tocsc'):
                raise TypeMismatchError(f"Expected a sparse matrix, got {type(mat).__name__}")
            mat = mat.tocsc()
            copy = False
        indptr, indices = mat.indptr, mat.indices
        if indices.dtype.name not in ('int32', 'int64'):
            indptr = indptr.astype('int64')
            indices = indices.astype('int64')
        elif indptr.dtype != indices.dtype:
            indptr = indptr.astype(indices.dtype)
        return cls.from_arrays(mat.shape[0], indptr, indices, mat.data, device=device, copy=copy)

    @classmethod
    def from_dense(
        cls,
        dense: Any,
        device: Union[None, str, StorageBackend] = None,
        dtype: Union[None, str, DType] = None,
    ) -> 'SparseColumnStore':
        """Create from a dense 2-D array or nested list (zeros are dropped)."""
        import scipy.sparse as sp

        dense = np.asarray(dense, dtype=None if dtype is None else validate_dtype(dtype))
        if dense.ndim != 2:
            raise InvalidArgumentError(f"from_dense needs a 2-D array, got ndim={dense.ndim}")
        return cls.from_scipy(sp.csc_matrix(dense), device=device)

    @classmethod
    def like(
        cls,
        other: 'SparseColumnStore',
        device: Union[None, str, StorageBackend] = None,
    ) -> 'SparseColumnStore':
        """Empty ``other.m x 0`` store with the dtypes of ``other``."""
        return cls(other.m, 0, dtype=other.dtype, index_dtype=other.index_dtype,
                   device=device if device is not None else other.backend)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def m(self) -> int:
        """Number of rows."""
        return self._m

    rows = m

    @property
    def n(self) -> int:
        """Number of columns."""
        return self._n

    cols = n
    count = n

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._m, self._n)

    @property
    def nnz(self) -> int:
        return self._nzval.size

    @property
    def dtype(self) -> str:
        return self._nzval.dtype

    @property
    def index_dtype(self) -> str:
        return self._rowval.dtype

    @property
    def backend(self) -> StorageBackend:
        return self._nzval.backend

    @property
    def device(self) -> str:
        return self._nzval.device

    @property
    def is_device(self) -> bool:
        return self._nzval.is_device

    @property
    def colptr(self) -> Any:
        """Column pointer view (length n+1)."""
        return self._colptr.data

    @property
    def rowval(self) -> Any:
        """Row index view (length nnz)."""
        return self._rowval.data

    @property
    def nzval(self) -> Any:
        """Value view (length nnz)."""
        return self._nzval.data

    @property
    def arrays(self) -> Tuple[GrowableArray, GrowableArray, GrowableArray]:
        """The underlying ``(colptr, rowval, nzval)`` growable arrays."""
        return (self._colptr, self._rowval, self._nzval)

    @property
    def capacity(self) -> int:
        """Entries storable without reallocating rowval/nzval."""
        return min(self._rowval.capacity, self._nzval.capacity)

    @property
    def nbytes(self) -> int:
        return self._colptr.nbytes + self._rowval.nbytes + self._nzval.nbytes

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

    # =========================================================================
    # Structure
    # =========================================================================

    def colptr_host(self) -> np.ndarray:
        """Column pointers as a host array (a copy when device-resident)."""
        if self.is_device:
            return self._colptr.to_numpy()
        return self._colptr.data

    def column_nnz(self, j: int) -> int:
        """Number of stored entries in column ``j``."""
        self._check_column(j)
        return self._colptr[j + 1] - self._colptr[j]

    def get_col(self, j: int) -> Tuple[np.ndarray, np.ndarray]:
        """Column ``j`` as host ``(row_indices, values)`` copies."""
        self._check_column(j)
        start, stop = self._colptr[j], self._colptr[j + 1]
        backend = self.backend
        return (
            backend.to_host(self._rowval.data[start:stop]),
            backend.to_host(self._nzval.data[start:stop]),
        )

    def get_col_dense(self, j: int) -> np.ndarray:
        """Column ``j`` as a dense host vector of length ``m``."""
        rows, values = self.get_col(j)
        result = np.zeros(self._m, dtype=self.dtype)
        result[rows] = values
        return result

    def validate(self) -> None:
        """Check the CSC invariants.

        Raises:
            StructureError: On inconsistent pointers, lengths or row indices.
        """
        colptr = self.colptr_host()
        nnz = self.nnz
        if self._colptr.size != self._n + 1:
            raise StructureError(f"colptr length {self._colptr.size} != n + 1 = {self._n + 1}")
        if self._rowval.size != nnz:
            raise StructureError(f"rowval length {self._rowval.size} != nzval length {nnz}")
        if colptr[0] != 0:
            raise StructureError(f"colptr[0] must be 0, got {colptr[0]}")
        if colptr[-1] != nnz:
            raise StructureError(f"colptr[n] = {colptr[-1]} disagrees with nnz = {nnz}")
        if self._n > 0 and np.any(np.diff(colptr) < 0):
            raise StructureError("colptr must be non-decreasing")
        if nnz > 0:
            rows = self._rowval.to_numpy()
            if rows.min() < 0 or rows.max() >= self._m:
                raise StructureError(f"row indices must lie in [0, {self._m})")

    def _check_column(self, j: int) -> None:
        if j < 0 or j >= self._n:
            raise IndexOutOfBoundsError(f"Column {j} out of bounds [0, {self._n})")

    # =========================================================================
    # Capacity Management
    # =========================================================================

    def ensure_capacity(
        self,
        nnz: int,
        ncols: Optional[int] = None,
        factor: Optional[float] = None,
    ) -> bool:
        """Grow storage so ``nnz`` entries (and ``ncols`` columns) fit.

        Returns:
            True if any array was reallocated.
        """
        grown = self._rowval.reserve(nnz, factor)
        grown = self._nzval.reserve(nnz, factor) or grown
        if ncols is not None:
            grown = self._colptr.reserve(ncols + 1, factor) or grown
        return grown

    def _set_size(self, n: int, nnz: int, factor: Optional[float] = None) -> None:
        # Keeps existing pointers/entries; new slots are uninitialized.
        self._colptr.resize(n + 1, factor)
        self._rowval.resize(nnz, factor)
        self._nzval.resize(nnz, factor)
        self._n = int(n)

    def _reset(self, m: int, n: int, nnz: int, factor: Optional[float] = None) -> None:
        for arr in (self._colptr, self._rowval, self._nzval):
            arr.resize(0)
        self._m = int(m)
        self._set_size(n, nnz, factor)

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_scipy(self) -> Any:
        """Host ``scipy.sparse.csc_matrix`` copy."""
        import scipy.sparse as sp

        return sp.csc_matrix(
            (self._nzval.to_numpy(), self._rowval.to_numpy(), self._colptr.to_numpy()),
            shape=self.shape,
        )

    def to_dense(self) -> np.ndarray:
        """Dense host ``m x n`` array (duplicate entries are summed)."""
        cols = np.repeat(np.arange(self._n), np.diff(self.colptr_host()))
        result = np.zeros(self.shape, dtype=self.dtype)
        np.add.at(result, (self._rowval.to_numpy(), cols), self._nzval.to_numpy())
        return result

    def copy(self, device: Union[None, str, StorageBackend] = None) -> 'SparseColumnStore':
        """Deep copy, optionally onto another backend."""
        store = SparseColumnStore.__new__(SparseColumnStore)
        store._m = self._m
        store._n = self._n
        store._colptr = self._colptr.copy(device)
        store._rowval = self._rowval.copy(device)
        store._nzval = self._nzval.copy(device)
        return store

    def __len__(self) -> int:
        return self._n

    def __repr__(self) -> str:
        return (
            f"SparseColumnStore(shape={self.shape}, nnz={self.nnz}, "
            f"dtype={self.dtype}, device={self.device})"
        )
