"""
Tests for ColumnBuffer.
"""

import pytest
import numpy as np

from colops import ColumnBuffer, IndexOutOfBoundsError, InvalidArgumentError, StructureError


class TestDenseCreation:
    """Test ColumnBuffer construction."""

    def test_empty_buffer(self):
        buf = ColumnBuffer((3,), dtype='float32')
        assert buf.shape == (3, 0)
        assert buf.column_shape == (3,)
        assert buf.column_length == 3
        assert buf.count == 0
        assert buf.ndim == 2
        assert buf.dtype == 'float32'

    def test_scalar_columns(self):
        buf = ColumnBuffer((), count=5)
        assert buf.shape == (5,)
        assert buf.column_length == 1

    def test_int_column_shape(self):
        assert ColumnBuffer(4).column_shape == (4,)

    def test_negative_shape(self):
        with pytest.raises(InvalidArgumentError):
            ColumnBuffer((-1,))

    def test_from_array_3d(self):
        x = np.arange(24.0).reshape(2, 3, 4)
        buf = ColumnBuffer.from_array(x)
        assert buf.column_shape == (2, 3)
        assert buf.count == 4
        np.testing.assert_array_equal(buf.array, x)
        np.testing.assert_array_equal(buf.column(2), x[:, :, 2])

    def test_from_array_c_order_is_copied(self):
        x = np.arange(6.0).reshape(2, 3)
        buf = ColumnBuffer.from_array(x)
        buf.array[0, 0] = 100
        assert x[0, 0] == 0

    def test_from_array_alias(self):
        x = np.asfortranarray(np.arange(6.0).reshape(2, 3))
        buf = ColumnBuffer.from_array(x, copy=False)
        buf.column(1)[:] = -1
        np.testing.assert_array_equal(x[:, 1], [-1, -1])

    def test_alias_needs_fortran_order(self):
        with pytest.raises(StructureError):
            ColumnBuffer.from_array(np.zeros((2, 3)), copy=False)

    def test_from_0d_rejected(self):
        with pytest.raises(InvalidArgumentError):
            ColumnBuffer.from_array(np.float64(1.0))

    def test_like(self, dense_3x4):
        buf = ColumnBuffer.like(dense_3x4)
        assert buf.column_shape == (3,)
        assert buf.count == 0
        assert buf.dtype == dense_3x4.dtype


class TestDenseStorage:
    """Test storage layout and growth."""

    def test_column_major_layout(self, dense_3x4):
        np.testing.assert_array_equal(dense_3x4.storage.data, np.arange(12.0))
        np.testing.assert_array_equal(dense_3x4.column(1), [3.0, 4.0, 5.0])

    def test_ensure_capacity(self):
        buf = ColumnBuffer((2,))
        assert buf.ensure_capacity(10) is True
        assert buf.capacity >= 10
        assert buf.count == 0
        assert buf.ensure_capacity(5) is False

    def test_resize_preserves_columns(self, dense_3x4):
        dense_3x4.resize(10)
        assert dense_3x4.count == 10
        np.testing.assert_array_equal(dense_3x4.array[:, :4], np.arange(12.0).reshape(3, 4, order='F'))
        dense_3x4.resize(2)
        assert dense_3x4.shape == (3, 2)
        assert dense_3x4.capacity >= 10

    def test_capacity_at_least_count(self, dense_3x4):
        for n in range(0, 50, 7):
            dense_3x4.resize(n)
            assert dense_3x4.capacity >= dense_3x4.count

    def test_column_negative_index(self, dense_3x4):
        np.testing.assert_array_equal(dense_3x4.column(-1), [9.0, 10.0, 11.0])

    def test_column_out_of_bounds(self, dense_3x4):
        with pytest.raises(IndexOutOfBoundsError):
            dense_3x4.column(4)

    def test_copy_is_deep(self, dense_3x4):
        dup = dense_3x4.copy()
        dup.column(0)[:] = 0
        assert dense_3x4.column(0)[1] == 1.0

    def test_storage_info(self, dense_3x4):
        info = dense_3x4.storage_info
        assert info.shape == (3, 4)
        assert info.backend == 'host'
        assert info.capacity == 4

    def test_to_numpy(self, dense_3x4):
        out = dense_3x4.to_numpy()
        assert isinstance(out, np.ndarray)
        np.testing.assert_array_equal(out, np.arange(12.0).reshape(3, 4, order='F'))
