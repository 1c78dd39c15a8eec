"""
Column Shape Helpers

Shape queries that work on every column container (``ColumnBuffer``,
``SparseColumnStore``, numpy/cupy arrays, scipy sparse matrices), plus the
input coercion shared by the column operations.
"""

from typing import Any, Tuple, Union
import math

from .._errors import IndexOutOfBoundsError, InvalidArgumentError, TypeMismatchError
from ..buffers import ColumnBuffer, SparseColumnStore, is_csc_like

__all__ = ['column_shape', 'column_length', 'column_count']

ColumnRange = Union[range, slice, Tuple[int, int]]


def _is_sparse(x: Any) -> bool:
    if isinstance(x, SparseColumnStore) or is_csc_like(x):
        return True
    return hasattr(x, 'tocsc') and hasattr(x, 'nnz')


def column_shape(x: Any) -> Tuple[int, ...]:
    """Shape of one column of ``x``.

    Example:
        >>> column_shape(np.zeros((3, 4, 5)))
        (3, 4)
        >>> column_shape(scipy.sparse.csc_matrix((7, 2)))
        (7,)
    """
    if isinstance(x, ColumnBuffer):
        return x.column_shape
    if _is_sparse(x):
        return (x.shape[0],)
    shape = getattr(x, 'shape', None)
    if shape is None or len(shape) == 0:
        raise TypeMismatchError(f"{type(x).__name__} has no columns")
    return tuple(shape[:-1])


def column_length(x: Any) -> int:
    """Number of elements in one column of ``x``."""
    return math.prod(column_shape(x))


def column_count(x: Any) -> int:
    """Number of columns of ``x`` (size of its last axis)."""
    if isinstance(x, (ColumnBuffer, SparseColumnStore)):
        return x.count
    shape = getattr(x, 'shape', None)
    if shape is None or len(shape) == 0:
        raise TypeMismatchError(f"{type(x).__name__} has no columns")
    return int(shape[-1])


# =============================================================================
# Internal: Ranges and Input Coercion
# =============================================================================

def _normalize_range(cols: ColumnRange, count: int) -> Tuple[int, int]:
    """Resolve a contiguous column range to ``(start, stop)`` within ``[0, count]``.

    Raises:
        InvalidArgumentError: For a step other than 1.
        IndexOutOfBoundsError: If the range leaves ``[0, count]``.
    """
    if isinstance(cols, range):
        if cols.step != 1:
            raise InvalidArgumentError(f"Column range must have step 1, got {cols.step}")
        start, stop = cols.start, cols.start + len(cols)
    elif isinstance(cols, slice):
        if cols.step not in (None, 1):
            raise InvalidArgumentError(f"Column range must have step 1, got {cols.step}")
        start = 0 if cols.start is None else cols.start
        stop = count if cols.stop is None else cols.stop
    elif isinstance(cols, tuple) and len(cols) == 2:
        start, stop = cols
    else:
        raise InvalidArgumentError(
            f"Expected a range, slice or (start, stop) pair, got {type(cols).__name__}"
        )
    start, stop = int(start), int(stop)
    if start < 0 or stop > count or start > stop:
        raise IndexOutOfBoundsError(f"Column range [{start}, {stop}) not within [0, {count}]")
    return start, stop


def _as_dense_source(x: Any) -> ColumnBuffer:
    if isinstance(x, ColumnBuffer):
        return x
    if _is_sparse(x):
        raise TypeMismatchError("Operation supports dense columns only")
    if not hasattr(x, 'flags'):
        raise TypeMismatchError(f"Expected a ColumnBuffer or array, got {type(x).__name__}")
    return ColumnBuffer.from_array(x, copy=not x.flags.f_contiguous)


def _as_dense_destination(x: Any) -> ColumnBuffer:
    if isinstance(x, ColumnBuffer):
        return x
    if _is_sparse(x):
        raise TypeMismatchError("Operation supports dense columns only")
    if not hasattr(x, 'flags'):
        raise TypeMismatchError(f"Expected a ColumnBuffer or array, got {type(x).__name__}")
    return ColumnBuffer.from_array(x, copy=False)


def _as_sparse_source(x: Any) -> SparseColumnStore:
    if isinstance(x, SparseColumnStore):
        return x
    if not _is_sparse(x):
        raise TypeMismatchError(f"Expected a sparse column store, got {type(x).__name__}")
    return SparseColumnStore.from_scipy(x, copy=False)
