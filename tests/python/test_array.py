"""
Tests for GrowableArray.
"""

import pytest
import numpy as np

from colops.buffers import GrowableArray
from colops import IndexOutOfBoundsError, InvalidArgumentError, TypeMismatchError


class TestArrayCreation:
    """Test GrowableArray creation methods."""

    def test_creation_empty(self):
        arr = GrowableArray(10, dtype='float32')
        assert arr.size == 10
        assert arr.capacity == 10
        assert arr.dtype == 'float32'
        assert arr.nbytes == 40

    def test_creation_with_capacity(self):
        arr = GrowableArray(2, dtype='int64', capacity=8)
        assert len(arr) == 2
        assert arr.capacity == 8
        assert arr.data.shape == (2,)

    def test_capacity_below_size(self):
        with pytest.raises(InvalidArgumentError):
            GrowableArray(5, capacity=3)

    def test_negative_size(self):
        with pytest.raises(InvalidArgumentError):
            GrowableArray(-1)

    def test_from_array_copies(self):
        src = np.array([1.0, 2.0, 3.0])
        arr = GrowableArray.from_array(src)
        arr.data[0] = 99.0
        assert src[0] == 1.0
        assert arr.tolist() == [99.0, 2.0, 3.0]

    def test_from_array_zero_copy(self):
        src = np.array([1.0, 2.0, 3.0])
        arr = GrowableArray.from_array(src, copy=False)
        arr.data[0] = 99.0
        assert src[0] == 99.0

    def test_from_list(self):
        arr = GrowableArray.from_array([1, 2, 3])
        assert arr.dtype == 'int64'
        assert arr.device == 'host'

    def test_from_2d_rejected(self):
        with pytest.raises(InvalidArgumentError):
            GrowableArray.from_array(np.zeros((2, 2)))


class TestArrayGrowth:
    """Test amortized growth."""

    def test_reserve_uses_factor(self):
        arr = GrowableArray(0, dtype='float64')
        assert arr.resize(10) is True
        assert arr.capacity == 14  # int(1.3 * 10 + 1)
        assert arr.size == 10

    def test_reserve_noop_when_large_enough(self):
        arr = GrowableArray(0, capacity=20)
        assert arr.reserve(20) is False
        assert arr.capacity == 20

    def test_growth_preserves_prefix(self):
        arr = GrowableArray.from_array(np.array([1.0, 2.0, 3.0]))
        arr.resize(50)
        np.testing.assert_array_equal(arr.data[:3], [1.0, 2.0, 3.0])

    def test_shrink_never_reallocates(self):
        arr = GrowableArray(10)
        storage = arr.raw
        assert arr.resize(2) is False
        assert arr.raw is storage
        assert arr.capacity == 10

    def test_growth_invalidates_old_view(self):
        arr = GrowableArray.from_array(np.zeros(4))
        view = arr.data
        arr.resize(100)
        arr.data[0] = 5.0
        assert view[0] == 0.0

    def test_append_one_at_a_time_is_amortized(self):
        arr = GrowableArray(0)
        reallocations = 0
        for n in range(1, 1001):
            reallocations += arr.resize(n)
        assert reallocations < 40

    def test_invalid_factor(self):
        arr = GrowableArray(0)
        with pytest.raises(InvalidArgumentError):
            arr.reserve(10, factor=0.5)


class TestArrayAccess:
    """Test element access and conversion."""

    def test_getitem(self):
        arr = GrowableArray.from_array(np.array([4, 5, 6]))
        assert arr[0] == 4
        assert arr[-1] == 6

    def test_getitem_out_of_bounds(self):
        arr = GrowableArray(3, capacity=10)
        with pytest.raises(IndexOutOfBoundsError):
            arr[3]

    def test_getitem_slice_rejected(self):
        arr = GrowableArray(3)
        with pytest.raises(TypeMismatchError):
            arr[0:2]

    def test_copy_trims_capacity(self):
        arr = GrowableArray.from_array(np.arange(3.0))
        arr.reserve(100)
        dup = arr.copy()
        assert dup.capacity == 3
        np.testing.assert_array_equal(dup.data, arr.data)
        dup.data[0] = -1
        assert arr[0] == 0.0

    def test_repr(self):
        arr = GrowableArray.from_array(np.arange(10))
        assert "..." in repr(arr)
