"""Column Deduplication.

``unique_columns`` compacts a column collection to its distinct columns,
in order of first occurrence, and folds the weight columns of every
duplicate into the weights of the column it duplicates. It is used to
merge identical support vectors in online kernel learners.

Column Identity:
    Columns are looked up through :class:`ColumnKeyIndex`, which buckets
    them by a ``hashlib`` digest of their raw bytes and confirms every
    digest hit with an exact bytewise comparison. Equality is therefore
    bitwise over the logical (column-major) element order, except that
    every NaN is first rewritten to the canonical ``np.nan``: all NaNs
    match regardless of sign or payload, while ``0.0`` and ``-0.0``
    still differ. Sparse columns compare as the pair (row indices,
    values), with row order significant.

Device Data:
    Hashing needs host memory. When the primary or any weight lives on a
    device backend, every collection is mirrored to the host, deduplicated
    there and written back with ``slice_columns``; the result is
    bit-identical to a host run.

Example:
    >>> sv = ColumnBuffer.from_array(np.array([[1., 2., 1., 3.], [1., 2., 1., 3.]], order='F'))
    >>> beta = ColumnBuffer.from_array(np.array([10., 20., 30., 40.]))
    >>> _ = unique_columns(sv, beta)
    >>> sv.array
    array([[1., 2., 3.],
           [1., 2., 3.]])
    >>> beta.array
    array([40., 20., 40.])
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import hashlib
import logging

import numpy as np

from .._config import get_config
from .._errors import DimensionMismatchError, InvalidArgumentError, TypeMismatchError
from ..buffers import ColumnBuffer, SparseColumnStore
from ._columns import accumulate_columns, copy_columns, slice_columns

logger = logging.getLogger("colops.dedup")

__all__ = ['ColumnKeyIndex', 'unique_columns']

ColumnParts = Tuple[np.ndarray, ...]


def _as_bytes(part: np.ndarray) -> np.ndarray:
    part = np.ascontiguousarray(part)
    if part.dtype.kind in 'fc':
        # complex values are canonicalized per component
        values = part.view(part.real.dtype) if part.dtype.kind == 'c' else part
        nan = np.isnan(values)
        if nan.any():
            values = values.copy()
            values[nan] = np.nan
        return values.view(np.uint8)
    return part.view(np.uint8)


def _parts_equal(a: ColumnParts, b: ColumnParts) -> bool:
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x.dtype != y.dtype or x.shape != y.shape:
            return False
        if not np.array_equal(_as_bytes(x), _as_bytes(y)):
            return False
    return True


class ColumnKeyIndex:
    """Content-addressed map from columns to compacted slot numbers.

    A column is given as a tuple of host arrays (one dense column, or the
    row-index and value runs of a sparse column). Buckets are keyed by a
    digest of dtype, length and bytes of every part; a bucket holds the
    slots of all distinct columns sharing that digest.

    Args:
        digest: ``hashlib`` algorithm name (default: configured).
        digest_size: Digest length in bytes for blake2 (default: configured).

    Example:
        >>> index = ColumnKeyIndex()
        >>> store = {}
        >>> index.get_or_add((np.array([1., 2.]),), 0, store.__getitem__)
        0
    """

    def __init__(self, digest: Optional[str] = None, digest_size: Optional[int] = None):
        cfg = get_config().dedup
        self.digest = digest or cfg.digest
        self.digest_size = digest_size or cfg.digest_size
        self._buckets: Dict[bytes, List[int]] = {}
        self._count = 0
        try:
            self._new_hash()
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(
                f"Cannot use digest {self.digest!r} (digest_size={self.digest_size}): {e}"
            ) from e

    def _new_hash(self):
        if self.digest.startswith('blake2'):
            return hashlib.new(self.digest, digest_size=self.digest_size)
        return hashlib.new(self.digest)

    def key(self, parts: ColumnParts) -> bytes:
        """Digest of a column's content."""
        h = self._new_hash()
        for part in parts:
            h.update(part.dtype.str.encode())
            h.update(int(part.size).to_bytes(8, 'little'))
            h.update(_as_bytes(part).data)
        return h.digest()

    def get_or_add(
        self,
        parts: ColumnParts,
        candidate: int,
        fetch: Callable[[int], ColumnParts],
    ) -> int:
        """Return the slot of an equal column, registering ``candidate`` if none.

        Args:
            parts: Content of the column being looked up.
            candidate: Slot to record when the column is new.
            fetch: Returns the current content of an existing slot.

        Returns:
            The existing slot, or ``candidate``.
        """
        bucket = self._buckets.setdefault(self.key(parts), [])
        for slot in bucket:
            if _parts_equal(fetch(slot), parts):
                return slot
        bucket.append(candidate)
        self._count += 1
        return candidate

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"ColumnKeyIndex(digest={self.digest!r}, columns={self._count})"


# =============================================================================
# unique_columns
# =============================================================================

def unique_columns(
    primary: Union[ColumnBuffer, SparseColumnStore],
    *weights: ColumnBuffer,
) -> Tuple[Any, ...]:
    """Keep only the distinct columns of ``primary`` and merge weights.

    Columns keep their order of first occurrence. For a duplicate at
    position ``j`` of a column first seen at ``i``, every weight
    collection gets ``w[..., i] += w[..., j]``. ``primary`` and all weights
    are then truncated to the number of distinct columns.

    Args:
        primary: Dense buffer or sparse store (modified in place).
        *weights: Dense buffers with as many columns as ``primary``.

    Returns:
        ``(primary, *weights)``

    Raises:
        TypeMismatchError: ``primary`` is not a column container, or a
                           weight is not a ``ColumnBuffer``.
        DimensionMismatchError: A weight's count differs from ``primary``'s.
    """
    if not isinstance(primary, (ColumnBuffer, SparseColumnStore)):
        raise TypeMismatchError(
            f"unique_columns needs a ColumnBuffer or SparseColumnStore, got {type(primary).__name__}"
        )
    for w in weights:
        if not isinstance(w, ColumnBuffer):
            raise TypeMismatchError(f"Weights must be dense ColumnBuffers, got {type(w).__name__}")
        if w.count != primary.count:
            raise DimensionMismatchError(
                f"Weight has {w.count} columns, primary has {primary.count}"
            )

    oldn = primary.count
    mirrored = primary.is_device or any(w.is_device for w in weights)
    if mirrored:
        _unique_mirrored(primary, weights)
    else:
        _unique_host(primary, weights)
    logger.debug(
        f"unique_columns: {oldn} -> {primary.count} columns "
        f"({type(primary).__name__}, {len(weights)} weights, device round trip={mirrored})"
    )
    return (primary,) + tuple(weights)


def _unique_host(primary: Union[ColumnBuffer, SparseColumnStore], weights: Sequence[ColumnBuffer]) -> None:
    if isinstance(primary, ColumnBuffer):
        _unique_dense(primary, weights)
    else:
        _unique_sparse(primary, weights)


def _unique_mirrored(
    primary: Union[ColumnBuffer, SparseColumnStore],
    weights: Sequence[ColumnBuffer],
) -> None:
    host_primary = primary.copy('host')
    host_weights = [w.copy('host') for w in weights]
    _unique_host(host_primary, host_weights)
    slice_columns(primary, host_primary, range(host_primary.count))
    for w, hw in zip(weights, host_weights):
        slice_columns(w, hw, range(hw.count))


def _unique_dense(s: ColumnBuffer, weights: Sequence[ColumnBuffer]) -> None:
    clen = s.column_length
    data = s.storage.raw
    index = ColumnKeyIndex()

    def fetch(j):
        return (data[j * clen:(j + 1) * clen],)

    newn = 0
    for oldj in range(s.count):
        newj = index.get_or_add(fetch(oldj), newn, fetch)
        if newj < newn:
            for w in weights:
                accumulate_columns(w, newj, w, oldj, 1)
        else:
            if newj != oldj:
                copy_columns(s, newj, s, oldj, 1)
                for w in weights:
                    copy_columns(w, newj, w, oldj, 1)
            newn += 1

    s.resize(newn)
    for w in weights:
        w.resize(newn)


def _unique_sparse(s: SparseColumnStore, weights: Sequence[ColumnBuffer]) -> None:
    ptr, rows, vals = s.colptr, s.rowval, s.nzval
    backend = s.backend
    index = ColumnKeyIndex()

    def fetch(j):
        lo, hi = ptr[j], ptr[j + 1]
        return (rows[lo:hi], vals[lo:hi])

    ncol = 0
    nnz = 0
    for oldj in range(s.n):
        lo, hi = int(ptr[oldj]), int(ptr[oldj + 1])
        newj = index.get_or_add((rows[lo:hi], vals[lo:hi]), ncol, fetch)
        if newj < ncol:
            for w in weights:
                accumulate_columns(w, newj, w, oldj, 1)
        else:
            nval = hi - lo
            to = nnz
            ncol += 1
            nnz += nval
            if newj != oldj:
                backend.copy_range(rows, to, rows, lo, nval)
                backend.copy_range(vals, to, vals, lo, nval)
                ptr[ncol] = nnz
                for w in weights:
                    copy_columns(w, newj, w, oldj, 1)

    s._set_size(ncol, nnz)
    for w in weights:
        w.resize(ncol)
