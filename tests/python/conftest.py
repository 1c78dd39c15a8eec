"""
Pytest configuration and shared fixtures for colops tests.

Device code paths are exercised without a GPU through a simulated device
backend: a numpy subclass tagged as "device memory" whose backend counts
host/device transfers.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root / "src"))

import colops
from colops.buffers import (
    ColumnBuffer, SparseColumnStore, HostBackend, Location,
    register_backend, unregister_backend,
)

# Try to import cupy
try:
    import cupy
    cupy.cuda.runtime.getDeviceCount()
    HAS_CUPY = True
except Exception:
    HAS_CUPY = False


# =============================================================================
# Simulated Device Backend
# =============================================================================

class SimulatedDeviceArray(np.ndarray):
    """numpy array standing in for device memory."""


class SimulatedDeviceBackend(HostBackend):
    """Device backend backed by host memory, counting transfers."""

    name = 'sim'
    location = Location.DEVICE

    def __init__(self):
        self.to_host_calls = 0
        self.from_host_calls = 0

    def owns(self, array):
        return isinstance(array, SimulatedDeviceArray)

    def empty(self, size, dtype):
        return np.empty(int(size), dtype=dtype).view(SimulatedDeviceArray)

    def zeros(self, size, dtype):
        return np.zeros(int(size), dtype=dtype).view(SimulatedDeviceArray)

    def to_host(self, array):
        self.to_host_calls += 1
        return np.array(array, copy=True)

    def from_host(self, array):
        self.from_host_calls += 1
        return np.array(array, copy=True).view(SimulatedDeviceArray)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_config():
    """Restore default configuration after each test."""
    yield
    colops.config.reset()


@pytest.fixture
def sim_device():
    """Register the simulated device backend for one test."""
    backend = register_backend(SimulatedDeviceBackend(), aliases=('simulated',))
    yield backend
    unregister_backend(backend.name)


@pytest.fixture(scope="session")
def requires_cupy():
    """Skip test if cupy (with a usable CUDA device) is not available."""
    if not HAS_CUPY:
        pytest.skip("cupy with a CUDA device not available")


@pytest.fixture
def dense_3x4():
    """Dense buffer with 4 columns of length 3.

    Matrix:
    [[ 0,  3,  6,  9],
     [ 1,  4,  7, 10],
     [ 2,  5,  8, 11]]
    """
    return ColumnBuffer.from_array(np.arange(12.0).reshape(3, 4, order='F'))


@pytest.fixture
def sparse_3x4():
    """Sparse store (3x4).

    Matrix:
    [[1, 0, 2, 0],
     [0, 3, 0, 4],
     [5, 0, 0, 6]]
    """
    dense = np.array([
        [1.0, 0.0, 2.0, 0.0],
        [0.0, 3.0, 0.0, 4.0],
        [5.0, 0.0, 0.0, 6.0],
    ])
    return SparseColumnStore.from_dense(dense)
