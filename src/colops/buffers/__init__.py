"""colops Buffer Module.

Column containers with amortized growth, backed by a pluggable storage
backend (numpy on the host, cupy on a CUDA device).

Type Hierarchy:

    GrowableArray                 # Owned 1-D storage + size + capacity
    ColumnBuffer                  # Dense N-d array, columns = last axis
    SparseColumnStore             # Growable CSC (colptr, rowval, nzval)

    StorageBackend (ABC)
    ├── HostBackend               # numpy ("host", "cpu", "numpy")
    └── CupyBackend               # cupy ("cuda", "gpu", "cupy")

Quick Start:
    >>> from colops.buffers import ColumnBuffer, SparseColumnStore
    >>>
    >>> dense = ColumnBuffer.from_array(np.ones((3, 10), order='F'))
    >>> sparse = SparseColumnStore.from_scipy(scipy_mat)
    >>>
    >>> # Same data on the GPU
    >>> gpu = dense.copy(device='cuda')
"""

# =============================================================================
# Data Types
# =============================================================================
from ._dtypes import (
    DType,
    float32,
    float64,
    int32,
    int64,
    uint8,
    normalize_dtype,
    validate_dtype,
    validate_index_dtype,
)

# =============================================================================
# Backends
# =============================================================================
from ._backend import (
    Location,
    StorageInfo,
    StorageBackend,
    HostBackend,
    CupyBackend,
    register_backend,
    unregister_backend,
    get_backend,
    backend_for,
    available_backends,
)

# =============================================================================
# Containers
# =============================================================================
from ._array import GrowableArray
from ._dense import ColumnBuffer
from ._sparse import SparseColumnStore, is_csc_like

__all__ = [
    # Data Types
    'DType',
    'float32',
    'float64',
    'int32',
    'int64',
    'uint8',
    'normalize_dtype',
    'validate_dtype',
    'validate_index_dtype',
    # Backends
    'Location',
    'StorageInfo',
    'StorageBackend',
    'HostBackend',
    'CupyBackend',
    'register_backend',
    'unregister_backend',
    'get_backend',
    'backend_for',
    'available_backends',
    # Containers
    'GrowableArray',
    'ColumnBuffer',
    'SparseColumnStore',
    'is_csc_like',
]
