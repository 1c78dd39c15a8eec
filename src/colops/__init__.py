"""
colops - Column Operations

Dimension-agnostic column operations for dense and sparse arrays on the
host (numpy) or on a CUDA device (cupy):
- Contiguous column slicing, copy and accumulation
- Column concatenation with amortized growth
- Column deduplication with weight merging

Modules:
- buffers: Column containers and storage backends
- ops: Column operations and conversion helpers

Architecture:
    ┌──────────────────────────────────────────────┐
    │  slice / copy / accumulate / concat / uniq   │
    ├──────────────────────────────────────────────┤
    │  ColumnBuffer | SparseColumnStore            │
    │  GrowableArray (size, capacity, growth)      │
    ├──────────────────────────────────────────────┤
    │  StorageBackend: host (numpy) | cuda (cupy)  │
    └──────────────────────────────────────────────┘

Example:
    >>> import numpy as np
    >>> import colops
    >>>
    >>> sv = colops.ColumnBuffer((4,))
    >>> x = np.random.rand(4, 100)
    >>>
    >>> # Admit columns 3 and 7 as support vectors
    >>> colops.concatenate_columns(sv, x, [3, 7, 3])
    >>> beta = colops.ColumnBuffer.from_array(np.ones(3))
    >>>
    >>> # Merge the repeated column
    >>> colops.unique_columns(sv, beta)
    >>> beta.array  # array([2., 1.])
"""

__version__ = '0.1.0'

from . import buffers
from . import ops

from ._config import config, get_config, set_resize_factor, GrowthConfig, DedupConfig
from ._errors import (
    ErrorCode,
    ColopsError,
    InvalidArgumentError,
    DimensionMismatchError,
    IndexOutOfBoundsError,
    TypeMismatchError,
    StructureError,
    DeviceUnavailableError,
)

from .buffers import (
    # Containers
    GrowableArray,
    ColumnBuffer,
    SparseColumnStore,

    # Backends
    StorageBackend,
    HostBackend,
    CupyBackend,
    register_backend,
    get_backend,
    backend_for,
    available_backends,

    # Type constants
    DType,
    float32,
    float64,
    int32,
    int64,
    uint8,
)

from .ops import (
    # Shape
    column_shape,
    column_length,
    column_count,

    # Column operations
    slice_columns,
    copy_columns,
    accumulate_columns,
    concatenate_columns,
    unique_columns,
    ColumnKeyIndex,

    # Conversion
    to_host,
    to_device,
    from_numpy,
    from_scipy,
    to_numpy,
    to_scipy,
    empty_like,
)

__all__ = [
    # Version
    '__version__',

    # Modules
    'buffers',
    'ops',

    # Configuration
    'config',
    'get_config',
    'set_resize_factor',
    'GrowthConfig',
    'DedupConfig',

    # Errors
    'ErrorCode',
    'ColopsError',
    'InvalidArgumentError',
    'DimensionMismatchError',
    'IndexOutOfBoundsError',
    'TypeMismatchError',
    'StructureError',
    'DeviceUnavailableError',

    # Containers
    'GrowableArray',
    'ColumnBuffer',
    'SparseColumnStore',

    # Backends
    'StorageBackend',
    'HostBackend',
    'CupyBackend',
    'register_backend',
    'get_backend',
    'backend_for',
    'available_backends',

    # Type constants
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',

    # Shape
    'column_shape',
    'column_length',
    'column_count',

    # Column operations
    'slice_columns',
    'copy_columns',
    'accumulate_columns',
    'concatenate_columns',
    'unique_columns',
    'ColumnKeyIndex',

    # Conversion
    'to_host',
    'to_device',
    'from_numpy',
    'from_scipy',
    'to_numpy',
    'to_scipy',
    'empty_like',
]
