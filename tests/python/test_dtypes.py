"""
Tests for dtype constants and validation.
"""

import pytest
import numpy as np

from colops.buffers import (
    DType, float32, float64, int32, int64, uint8,
    normalize_dtype, validate_dtype, validate_index_dtype,
)
from colops import TypeMismatchError


class TestDType:
    """Test DType enum and module constants."""

    def test_constants_are_members(self):
        assert float32 is DType.float32
        assert float64 is DType.float64
        assert int32 is DType.int32
        assert int64 is DType.int64
        assert uint8 is DType.uint8

    def test_str_and_repr(self):
        assert str(DType.float32) == 'float32'
        assert repr(DType.int64) == 'DType.int64'


class TestNormalization:
    """Test dtype normalization."""

    @pytest.mark.parametrize("dtype, expected", [
        (DType.float32, 'float32'),
        ('float64', 'float64'),
        (np.int32, 'int32'),
        (np.dtype('i8'), 'int64'),
        ('f4', 'float32'),
    ])
    def test_normalize(self, dtype, expected):
        assert normalize_dtype(dtype) == expected

    def test_normalize_garbage(self):
        with pytest.raises(TypeMismatchError):
            normalize_dtype("not-a-dtype")

    @pytest.mark.parametrize("dtype, expected", [
        (np.bool_, 'bool'),
        ('int8', 'int8'),
        (np.float16, 'float16'),
        (np.complex128, 'complex128'),
        (np.uint32, 'uint32'),
    ])
    def test_validate_accepts_any_numeric(self, dtype, expected):
        assert validate_dtype(dtype) == expected

    def test_validate_rejects_object(self):
        with pytest.raises(TypeMismatchError):
            validate_dtype(object)

    def test_validate_index_dtype(self):
        assert validate_index_dtype(np.int32) == 'int32'
        with pytest.raises(TypeMismatchError):
            validate_index_dtype('float64')
