"""
Error handling for colops.

Every failure raised by this package is a caller contract violation
(shape mismatch, out-of-range column, inconsistent CSC structure).
Operations fail immediately; nothing is clamped or retried.

Each exception also derives from the matching builtin so callers can
catch ``ValueError``/``IndexError``/``TypeError`` without importing
colops.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(IntEnum):
    """Error codes carried by every :class:`ColopsError`."""
    UNKNOWN = 1
    INVALID_ARGUMENT = 10
    DIMENSION_MISMATCH = 11
    INDEX_OUT_OF_BOUNDS = 14
    TYPE_MISMATCH = 21
    STRUCTURE_ERROR = 30
    DEVICE_UNAVAILABLE = 41


_ERROR_MESSAGES = {
    ErrorCode.UNKNOWN: "Unknown error",
    ErrorCode.INVALID_ARGUMENT: "Invalid argument",
    ErrorCode.DIMENSION_MISMATCH: "Dimension mismatch",
    ErrorCode.INDEX_OUT_OF_BOUNDS: "Index out of bounds",
    ErrorCode.TYPE_MISMATCH: "Type mismatch",
    ErrorCode.STRUCTURE_ERROR: "Inconsistent storage structure",
    ErrorCode.DEVICE_UNAVAILABLE: "Device unavailable",
}


# =============================================================================
# Exception Classes
# =============================================================================

class ColopsError(Exception):
    """
    Base exception for all colops errors.

    Attributes:
        code: :class:`ErrorCode` of the failure
        message: Human readable description
    """

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[ErrorCode] = None):
        if code is not None:
            self.code = code
        base = _ERROR_MESSAGES.get(self.code, f"Unknown error (code={int(self.code)})")
        self.message = message if message is not None else base
        super().__init__(f"{base}: {message}" if message is not None else base)


class InvalidArgumentError(ColopsError, ValueError):
    code = ErrorCode.INVALID_ARGUMENT


class DimensionMismatchError(ColopsError, ValueError):
    """Column shapes (or row counts) of source and destination differ."""
    code = ErrorCode.DIMENSION_MISMATCH


class IndexOutOfBoundsError(ColopsError, IndexError):
    """A column offset, count or range falls outside a buffer."""
    code = ErrorCode.INDEX_OUT_OF_BOUNDS


class TypeMismatchError(ColopsError, TypeError):
    """Element types differ, or a dense-only operation got sparse input."""
    code = ErrorCode.TYPE_MISMATCH


class StructureError(ColopsError, ValueError):
    """Storage is internally inconsistent (e.g. colptr disagrees with nnz)."""
    code = ErrorCode.STRUCTURE_ERROR


class DeviceUnavailableError(ColopsError, RuntimeError):
    """Requested backend is unknown or its array library is not installed."""
    code = ErrorCode.DEVICE_UNAVAILABLE


__all__ = [
    "ErrorCode",
    "ColopsError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "IndexOutOfBoundsError",
    "TypeMismatchError",
    "StructureError",
    "DeviceUnavailableError",
]
