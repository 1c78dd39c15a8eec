"""
Data Type Definitions

Provides type-safe dtype constants and validation for column buffers.
"""

from typing import Any, Union
from enum import Enum

import numpy as np

from .._errors import TypeMismatchError

__all__ = [
    'DType', 'float32', 'float64', 'int32', 'int64', 'uint8',
    'normalize_dtype', 'validate_dtype', 'validate_index_dtype',
]


class DType(Enum):
    """
    Common element types.

    Example:
        >>> from colops import ColumnBuffer, DType
        >>> buf = ColumnBuffer((3,), dtype=DType.float32)
        >>>
        >>> # Or use module-level constants
        >>> import colops
        >>> buf = ColumnBuffer((3,), dtype=colops.float32)
    """

    float32 = 'float32'
    float64 = 'float64'
    int32 = 'int32'
    int64 = 'int64'
    uint8 = 'uint8'

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"DType.{self.name}"


# =============================================================================
# Module-Level Constants (For Clean Syntax)
# =============================================================================

float32 = DType.float32
float64 = DType.float64
int32 = DType.int32
int64 = DType.int64
uint8 = DType.uint8

_INDEX_DTYPES = ('int32', 'int64')


# =============================================================================
# Type Utilities
# =============================================================================

def normalize_dtype(dtype: Union[str, DType, Any]) -> str:
    """
    Normalize dtype to its numpy name.

    Accepts a :class:`DType`, a string, or anything numpy understands as a
    dtype (``np.float32``, ``np.dtype('f8')``, a cupy dtype).

    Example:
        >>> normalize_dtype(DType.float32)
        'float32'
        >>> normalize_dtype(np.float64)
        'float64'
    """
    if isinstance(dtype, DType):
        return dtype.value
    try:
        return np.dtype(dtype).name
    except TypeError:
        raise TypeMismatchError(f"Cannot interpret {dtype!r} as a dtype") from None


def validate_dtype(dtype: Union[str, DType, Any]) -> str:
    """
    Validate and normalize an element dtype.

    Any fixed-size numpy dtype works (bool, int8, float16, complex, ...).
    The :class:`DType` members are shorthands, not a whitelist.

    Raises:
        TypeMismatchError: If dtype is an object dtype
    """
    name = normalize_dtype(dtype)
    if not isinstance(dtype, DType) and np.dtype(dtype).kind == 'O':
        raise TypeMismatchError("Object arrays cannot be stored in column buffers")
    return name


def validate_index_dtype(dtype: Union[str, DType, Any]) -> str:
    """Validate a sparse index dtype (int32 or int64)."""
    name = normalize_dtype(dtype)
    if name not in _INDEX_DTYPES:
        raise TypeMismatchError(f"Index dtype must be one of {_INDEX_DTYPES}, got {name}")
    return name

