"""
Conversion Helpers

Moving column containers between backends and to/from numpy and scipy.
All transfers are blocking deep copies.
"""

from typing import Any, Union

import numpy as np

from .._errors import TypeMismatchError
from ..buffers import ColumnBuffer, SparseColumnStore, StorageBackend, backend_for, get_backend
from ._shape import _is_sparse, column_shape

__all__ = [
    'to_host',
    'to_device',
    'from_numpy',
    'from_scipy',
    'to_numpy',
    'to_scipy',
    'empty_like',
]

Columns = Union[ColumnBuffer, SparseColumnStore]


def to_host(obj: Any) -> Any:
    """Host copy of a buffer, sparse store or device array."""
    if isinstance(obj, (ColumnBuffer, SparseColumnStore)):
        return obj.copy('host')
    return backend_for(obj).to_host(obj)


def to_device(obj: Any, device: Union[str, StorageBackend] = 'cuda') -> Any:
    """Copy of a buffer, sparse store or array on ``device``.

    Raises:
        DeviceUnavailableError: The device backend is unknown or cupy is
                                not installed.
    """
    if isinstance(obj, (ColumnBuffer, SparseColumnStore)):
        return obj.copy(device)
    backend = get_backend(device)
    if backend.owns(obj):
        return obj.copy()
    return backend.asarray(obj)


def from_numpy(
    array: Any,
    device: Union[None, str, StorageBackend] = None,
    copy: bool = True,
) -> ColumnBuffer:
    """``ColumnBuffer`` over ``array`` (columns = last axis)."""
    return ColumnBuffer.from_array(array, device=device, copy=copy)


def from_scipy(mat: Any, device: Union[None, str, StorageBackend] = None) -> SparseColumnStore:
    """``SparseColumnStore`` copy of a scipy (any format) or cupyx CSC matrix."""
    return SparseColumnStore.from_scipy(mat, device=device)


def to_numpy(obj: Any) -> np.ndarray:
    """Dense host array of a buffer, sparse store or (device) array."""
    if isinstance(obj, ColumnBuffer):
        return obj.to_numpy()
    if isinstance(obj, SparseColumnStore):
        return obj.to_dense()
    if _is_sparse(obj):
        return SparseColumnStore.from_scipy(obj).to_dense()
    return backend_for(obj).to_host(obj)


def to_scipy(obj: Any) -> Any:
    """Host ``scipy.sparse.csc_matrix`` copy."""
    if isinstance(obj, SparseColumnStore):
        return obj.to_scipy()
    if _is_sparse(obj):
        return SparseColumnStore.from_scipy(obj).to_scipy()
    raise TypeMismatchError(f"to_scipy needs sparse input, got {type(obj).__name__}")


def empty_like(obj: Any, device: Union[None, str, StorageBackend] = None) -> Columns:
    """Empty container (zero columns) matching the column shape and dtype of ``obj``.

    Example:
        >>> empty_like(np.zeros((3, 7), dtype='float32'))
        ColumnBuffer(shape=(3, 0), capacity=0, dtype=float32, device=host)
    """
    if isinstance(obj, (ColumnBuffer, SparseColumnStore)):
        return type(obj).like(obj, device=device)
    if _is_sparse(obj):
        index_dtype = getattr(obj, 'indices', np.empty(0, dtype='int64')).dtype
        if index_dtype.name not in ('int32', 'int64'):
            index_dtype = 'int64'
        return SparseColumnStore(obj.shape[0], 0, dtype=obj.dtype, index_dtype=index_dtype,
                                 device=device)
    if device is None:
        device = backend_for(obj)
    return ColumnBuffer(column_shape(obj), 0, dtype=obj.dtype, device=device)
