"""Column Operations.

Contiguous-range slicing, in-place column copy and accumulation, and
column concatenation for dense (``ColumnBuffer``) and sparse
(``SparseColumnStore``) containers on any storage backend.

Column ranges are half-open and 0-based: ``range(2, 5)``, ``slice(2, 5)``
or ``(2, 5)`` all select columns 2, 3 and 4.

Functions:
    - slice_columns: Replace ``dst`` with a contiguous column range of ``src``
    - copy_columns: Overwrite ``n`` columns of ``dst`` (no resizing)
    - accumulate_columns: Add ``n`` columns of ``src`` into ``dst``
    - concatenate_columns: Append selected columns of ``b`` to ``a``

Example:
    >>> a = ColumnBuffer.from_array(np.arange(12.0).reshape(3, 4, order='F'))
    >>> out = ColumnBuffer((3,))
    >>> slice_columns(out, a, range(1, 3)).array
    array([[3., 6.],
           [4., 7.],
           [5., 8.]])
"""

from typing import Any, Iterable, Optional, Union
import logging

import numpy as np

from .._errors import (
    DimensionMismatchError, IndexOutOfBoundsError, InvalidArgumentError, TypeMismatchError,
)
from ..buffers import ColumnBuffer, SparseColumnStore
from ._shape import (
    ColumnRange, _as_dense_destination, _as_dense_source, _as_sparse_source,
    _is_sparse, _normalize_range,
)

logger = logging.getLogger("colops.ops")

__all__ = [
    'slice_columns',
    'copy_columns',
    'accumulate_columns',
    'concatenate_columns',
]

Columns = Union[ColumnBuffer, SparseColumnStore]


def _check_dtype(dst: Columns, src: Columns) -> None:
    if dst.dtype != src.dtype:
        raise TypeMismatchError(f"Element types differ: dst={dst.dtype}, src={src.dtype}")


def _check_column_shape(dst: ColumnBuffer, src: ColumnBuffer) -> None:
    if dst.column_shape != src.column_shape:
        raise DimensionMismatchError(
            f"Column shapes differ: dst={dst.column_shape}, src={src.column_shape}"
        )


# =============================================================================
# Slice
# =============================================================================

def slice_columns(dst: Columns, src: Any, cols: ColumnRange) -> Columns:
    """Make ``dst`` hold exactly the columns ``cols`` of ``src``.

    ``dst`` takes on the column shape (dense) or row count (sparse) of
    ``src``; its previous content is discarded and its capacity reused
    when large enough. ``src`` and ``dst`` may live on different backends.

    Args:
        dst: Destination buffer or sparse store (resized).
        src: Source of the same kind (raw arrays and scipy matrices
             are accepted).
        cols: Contiguous column range of ``src``.

    Returns:
        ``dst``

    Raises:
        TypeMismatchError: Element types or dense/sparse kinds differ.
        InvalidArgumentError: ``cols`` has a step other than 1.
        IndexOutOfBoundsError: ``cols`` exceeds ``src``.
    """
    if isinstance(dst, ColumnBuffer):
        if _is_sparse(src):
            raise TypeMismatchError("Cannot slice sparse columns into a dense buffer")
        src = _as_dense_source(src)
        _check_dtype(dst, src)
        start, stop = _normalize_range(cols, src.count)
        _slice_dense(dst, src, start, stop)
    elif isinstance(dst, SparseColumnStore):
        if not _is_sparse(src):
            raise TypeMismatchError("Cannot slice dense columns into a sparse store")
        src = _as_sparse_source(src)
        _check_dtype(dst, src)
        start, stop = _normalize_range(cols, src.n)
        _slice_sparse(dst, src, start, stop)
    else:
        raise TypeMismatchError(
            f"slice_columns needs a ColumnBuffer or SparseColumnStore destination, "
            f"got {type(dst).__name__}"
        )
    return dst


def _slice_dense(dst: ColumnBuffer, src: ColumnBuffer, start: int, stop: int) -> None:
    clen = src.column_length
    n = stop - start
    chunk = src.storage.data[start * clen:stop * clen]
    if dst is src:
        chunk = chunk.copy()
    dst._reset(src.column_shape, n)
    dst.backend.copy_range(dst.storage.raw, 0, chunk, 0, n * clen)


def _slice_sparse(dst: SparseColumnStore, src: SparseColumnStore, start: int, stop: int) -> None:
    n = stop - start
    src_ptr = src.colptr_host()
    lo, hi = int(src_ptr[start]), int(src_ptr[stop])
    colptr = src_ptr[start:stop + 1] - lo
    rowval = src.rowval[lo:hi]
    nzval = src.nzval[lo:hi]
    if dst is src:
        rowval, nzval = rowval.copy(), nzval.copy()

    dst._reset(src.m, n, hi - lo)
    dst_ptr, dst_rows, dst_vals = dst.arrays
    backend = dst.backend
    backend.copy_range(dst_ptr.raw, 0, colptr, 0, n + 1)
    backend.copy_range(dst_rows.raw, 0, rowval, 0, hi - lo)
    backend.copy_range(dst_vals.raw, 0, nzval, 0, hi - lo)


# =============================================================================
# Copy / Accumulate
# =============================================================================

def _resolve_block(
    dst: ColumnBuffer,
    dst_offset: int,
    src: ColumnBuffer,
    src_offset: int,
    n: Optional[int],
) -> int:
    _check_dtype(dst, src)
    _check_column_shape(dst, src)
    if n is None:
        n = src.count - src_offset
    if src_offset < 0 or dst_offset < 0 or n < 0:
        raise IndexOutOfBoundsError(
            f"Negative offset or count: dst_offset={dst_offset}, "
            f"src_offset={src_offset}, n={n}"
        )
    if src_offset + n > src.count:
        raise IndexOutOfBoundsError(
            f"Source columns [{src_offset}, {src_offset + n}) exceed count {src.count}"
        )
    if dst_offset + n > dst.count:
        raise IndexOutOfBoundsError(
            f"Destination columns [{dst_offset}, {dst_offset + n}) exceed count {dst.count}"
        )
    return n


def copy_columns(
    dst: Any,
    dst_offset: int,
    src: Any,
    src_offset: int = 0,
    n: Optional[int] = None,
) -> Any:
    """Overwrite columns ``dst_offset .. dst_offset+n`` of ``dst`` with
    columns ``src_offset .. src_offset+n`` of ``src``.

    Dense only. ``dst`` is never resized; a raw array destination must be
    Fortran-contiguous so that it can be written in place.

    Args:
        dst: Destination ``ColumnBuffer`` or array.
        dst_offset: First destination column.
        src: Source ``ColumnBuffer`` or array.
        src_offset: First source column (default 0).
        n: Number of columns (default: the rest of ``src``).

    Returns:
        ``dst``

    Raises:
        DimensionMismatchError: Column shapes differ.
        IndexOutOfBoundsError: Either range exceeds its buffer.
        TypeMismatchError: Element types differ, or a sparse operand.
    """
    out = _as_dense_destination(dst)
    src = _as_dense_source(src)
    n = _resolve_block(out, dst_offset, src, src_offset, n)
    clen = src.column_length
    out.backend.copy_range(
        out.storage.raw, dst_offset * clen, src.storage.raw, src_offset * clen, n * clen
    )
    return dst


def accumulate_columns(
    dst: Any,
    dst_offset: int,
    src: Any,
    src_offset: int = 0,
    n: Optional[int] = None,
) -> Any:
    """Add columns ``src_offset .. src_offset+n`` of ``src`` elementwise into
    columns ``dst_offset .. dst_offset+n`` of ``dst``.

    Same arguments and checks as :func:`copy_columns`. The region is
    contiguous, so this is a single ``axpy`` with ``alpha = 1``.
    """
    out = _as_dense_destination(dst)
    src = _as_dense_source(src)
    n = _resolve_block(out, dst_offset, src, src_offset, n)
    clen = src.column_length
    out.backend.axpy(
        1, src.storage.raw, src_offset * clen, out.storage.raw, dst_offset * clen, n * clen
    )
    return dst


# =============================================================================
# Concatenate
# =============================================================================

def _selected_columns(cols: Optional[Iterable[int]], count: int) -> np.ndarray:
    if cols is None:
        return np.arange(count, dtype=np.int64)
    if isinstance(cols, slice):
        raise InvalidArgumentError("Pass a range or list of column indices, not a slice")
    selected = np.fromiter((int(c) for c in cols), dtype=np.int64)
    if selected.size and (selected.min() < 0 or selected.max() >= count):
        raise IndexOutOfBoundsError(f"Column indices must lie in [0, {count})")
    return selected


def concatenate_columns(a: Columns, b: Any, cols: Optional[Iterable[int]] = None) -> Columns:
    """Append the columns ``cols`` of ``b`` (in the given order) to ``a``.

    Storage of ``a`` is grown once, by the configured resize factor, before
    any column is copied. ``cols`` may repeat indices.

    Args:
        a: Growable destination (``ColumnBuffer`` or ``SparseColumnStore``).
        b: Source of the same kind.
        cols: Column indices of ``b`` (default: all, in order).

    Returns:
        ``a``

    Raises:
        DimensionMismatchError: Column shapes (dense) or row counts (sparse)
                                differ.
        TypeMismatchError: Element types or kinds differ.
        IndexOutOfBoundsError: An index in ``cols`` is outside ``b``.
    """
    if isinstance(a, ColumnBuffer):
        if _is_sparse(b):
            raise TypeMismatchError("Cannot append sparse columns to a dense buffer")
        b = _as_dense_source(b)
        _check_dtype(a, b)
        _check_column_shape(a, b)
        selected = _selected_columns(cols, b.count)
        _concatenate_dense(a, b, selected)
    elif isinstance(a, SparseColumnStore):
        if not _is_sparse(b):
            raise TypeMismatchError("Cannot append dense columns to a sparse store")
        b = _as_sparse_source(b)
        _check_dtype(a, b)
        if a.m != b.m:
            raise DimensionMismatchError(f"Row counts differ: a.m={a.m}, b.m={b.m}")
        selected = _selected_columns(cols, b.n)
        _concatenate_sparse(a, b, selected)
    else:
        raise TypeMismatchError(
            f"concatenate_columns needs a ColumnBuffer or SparseColumnStore, "
            f"got {type(a).__name__}"
        )
    logger.debug(f"Appended {len(selected)} columns, count now {a.count} ({a.device})")
    return a


def _concatenate_dense(a: ColumnBuffer, b: ColumnBuffer, cols: np.ndarray) -> None:
    if b.backend is not a.backend:
        b = b.copy(a.backend)
    old = a.count
    clen = a.column_length
    a.resize(old + len(cols))
    backend = a.backend
    dst, src = a.storage.raw, b.storage.raw
    for i, c in enumerate(cols):
        backend.copy_range(dst, (old + i) * clen, src, int(c) * clen, clen)


def _concatenate_sparse(a: SparseColumnStore, b: SparseColumnStore, cols: np.ndarray) -> None:
    if b.backend is not a.backend:
        b = b.copy(a.backend)
    b_ptr = b.colptr_host()
    starts = b_ptr[cols]
    lengths = b_ptr[cols + 1] - starts
    old_n, old_nnz = a.n, a.nnz
    a._set_size(old_n + len(cols), old_nnz + int(lengths.sum()))

    a_ptr, a_rows, a_vals = a.arrays
    _, b_rows, b_vals = b.arrays
    backend = a.backend
    tail = old_nnz + np.cumsum(lengths)
    backend.copy_range(a_ptr.raw, old_n + 1, tail, 0, len(cols))
    pos = old_nnz
    for start, length in zip(starts.tolist(), lengths.tolist()):
        backend.copy_range(a_rows.raw, pos, b_rows.raw, start, length)
        backend.copy_range(a_vals.raw, pos, b_vals.raw, start, length)
        pos += length
