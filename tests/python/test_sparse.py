"""
Tests for SparseColumnStore.
"""

import pytest
import numpy as np
import scipy.sparse as sp

from colops import (
    SparseColumnStore, IndexOutOfBoundsError, StructureError, TypeMismatchError,
)


class TestSparseCreation:
    """Test SparseColumnStore construction."""

    def test_empty_store(self):
        store = SparseColumnStore(5, 3)
        assert store.shape == (5, 3)
        assert store.nnz == 0
        assert store.colptr.tolist() == [0, 0, 0, 0]
        store.validate()

    def test_from_dense(self, sparse_3x4):
        assert sparse_3x4.shape == (3, 4)
        assert sparse_3x4.nnz == 6
        assert sparse_3x4.colptr.tolist() == [0, 2, 3, 4, 6]

    def test_from_scipy_any_format(self):
        mat = sp.random(6, 5, density=0.4, format='csr', random_state=0)
        store = SparseColumnStore.from_scipy(mat)
        np.testing.assert_array_equal(store.to_dense(), mat.toarray())

    def test_from_scipy_keeps_index_dtype(self):
        mat = sp.csc_matrix(np.eye(3))
        mat.indices = mat.indices.astype(np.int32)
        mat.indptr = mat.indptr.astype(np.int32)
        store = SparseColumnStore.from_scipy(mat)
        assert store.index_dtype == 'int32'

    def test_from_scipy_keeps_unsorted_rows(self):
        mat = sp.csc_matrix(
            (np.array([7.0, 8.0]), np.array([2, 0]), np.array([0, 2])), shape=(3, 1)
        )
        store = SparseColumnStore.from_scipy(mat)
        rows, values = store.get_col(0)
        assert rows.tolist() == [2, 0]
        assert values.tolist() == [7.0, 8.0]

    def test_from_arrays(self):
        store = SparseColumnStore.from_arrays(
            4, np.array([0, 1, 3]), np.array([3, 0, 1]), np.array([1.0, 2.0, 3.0])
        )
        assert store.shape == (4, 2)
        assert store.column_nnz(1) == 2

    def test_from_arrays_mixed_index_dtypes(self):
        with pytest.raises(TypeMismatchError):
            SparseColumnStore.from_arrays(
                2, np.array([0, 1], dtype=np.int32), np.array([0], dtype=np.int64),
                np.array([1.0]),
            )

    def test_like(self, sparse_3x4):
        store = SparseColumnStore.like(sparse_3x4)
        assert store.shape == (3, 0)
        assert store.dtype == sparse_3x4.dtype
        assert store.index_dtype == sparse_3x4.index_dtype


class TestSparseValidation:
    """Test CSC invariant checks."""

    def test_colptr_must_start_at_zero(self):
        with pytest.raises(StructureError):
            SparseColumnStore.from_arrays(3, np.array([1, 2]), np.array([0]), np.array([1.0]))

    def test_colptr_must_end_at_nnz(self):
        with pytest.raises(StructureError):
            SparseColumnStore.from_arrays(3, np.array([0, 2]), np.array([0]), np.array([1.0]))

    def test_colptr_non_decreasing(self):
        with pytest.raises(StructureError):
            SparseColumnStore.from_arrays(
                3, np.array([0, 2, 1, 2]), np.array([0, 1]), np.array([1.0, 2.0])
            )

    def test_rowval_nzval_length(self):
        with pytest.raises(StructureError):
            SparseColumnStore.from_arrays(3, np.array([0, 1]), np.array([0, 1]), np.array([1.0]))

    def test_row_index_range(self):
        with pytest.raises(StructureError):
            SparseColumnStore.from_arrays(2, np.array([0, 1]), np.array([5]), np.array([1.0]))


class TestSparseAccess:
    """Test column access and conversion."""

    def test_get_col(self, sparse_3x4):
        rows, values = sparse_3x4.get_col(3)
        assert rows.tolist() == [1, 2]
        assert values.tolist() == [4.0, 6.0]

    def test_get_col_dense(self, sparse_3x4):
        np.testing.assert_array_equal(sparse_3x4.get_col_dense(0), [1.0, 0.0, 5.0])

    def test_get_col_out_of_bounds(self, sparse_3x4):
        with pytest.raises(IndexOutOfBoundsError):
            sparse_3x4.get_col(4)

    def test_to_scipy(self, sparse_3x4):
        mat = sparse_3x4.to_scipy()
        assert mat.format == 'csc'
        assert mat.shape == (3, 4)
        assert mat[2, 3] == 6.0

    def test_ensure_capacity(self, sparse_3x4):
        assert sparse_3x4.ensure_capacity(100, ncols=50) is True
        assert sparse_3x4.capacity >= 100
        assert sparse_3x4.nnz == 6
        sparse_3x4.validate()

    def test_copy_is_deep(self, sparse_3x4):
        dup = sparse_3x4.copy()
        dup.nzval[0] = -1
        assert sparse_3x4.nzval[0] == 1.0

    def test_repr(self, sparse_3x4):
        assert "nnz=6" in repr(sparse_3x4)
