"""Storage Backends.

This module defines the storage backend system used by column buffers:
- Location of storage (host memory or accelerator device)
- The capability set every backend implements (allocate, resize,
  element-range copy, vector add, host/device transfer)
- A registry mapping device names and array objects to backends

Design Philosophy:
    Column operations are written once against :class:`StorageBackend`.
    Which array library actually holds the bytes (numpy on the host,
    cupy on a CUDA device, or a user-registered backend) is decided by
    the backend instance attached to each buffer.

Backends:
    - HOST ("host", aliases "cpu", "numpy"): numpy arrays in host memory
    - CUDA ("cuda", aliases "gpu", "cupy"): cupy arrays, imported lazily

Transfers:
    ``to_host``/``from_host`` are blocking. A transfer has fully
    completed when the call returns, so host code may read the result
    immediately.

Example:
    >>> backend = get_backend("host")
    >>> arr = backend.empty(10, "float64")
    >>> backend_for(arr).name
    'host'
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import logging
import sys

import numpy as np

from .._errors import DeviceUnavailableError, TypeMismatchError

logger = logging.getLogger("colops.buffers")

__all__ = [
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
]


# =============================================================================
# Enumerations
# =============================================================================

class Location(Enum):
    """Where a backend keeps its storage.

    Attributes:
        HOST: Host memory, directly addressable by Python code.
        DEVICE: Accelerator memory. Content must be mirrored to the host
                before it can be hashed or compared.
    """
    HOST = 'host'
    DEVICE = 'device'


# =============================================================================
# Storage Information
# =============================================================================

@dataclass
class StorageInfo:
    """Storage metadata for a buffer.

    Attributes:
        backend: Backend name ('host', 'cuda', ...).
        location: HOST or DEVICE.
        dtype: Element type name.
        shape: Logical shape of the buffer.
        capacity: Columns (dense) or nonzeros (sparse) storable without
                  reallocation.
        nbytes: Bytes currently allocated.

    Note:
        This is primarily for introspection and debugging.
    """
    backend: str
    location: Location
    dtype: str
    shape: Tuple[int, ...]
    capacity: int
    nbytes: int

    def __repr__(self) -> str:
        return (
            f"StorageInfo(backend={self.backend}, "
            f"location={self.location.value}, dtype={self.dtype}, "
            f"shape={self.shape}, capacity={self.capacity}, nbytes={self.nbytes})"
        )


# =============================================================================
# Backend Interface
# =============================================================================

class StorageBackend(ABC):
    """
    Abstract storage backend.

    Subclasses provide the array module (``xp``), ownership test and the
    two transfer primitives; allocation, resize, range copy and vector
    add are derived from those.

    Required (subclasses must implement):
        xp: Array module (numpy-compatible namespace)
        owns(array): Whether ``array`` is storage of this backend
        to_host(array): Blocking copy to a numpy array
        from_host(array): Blocking copy of a numpy array into this backend
    """

    name: str = ''
    location: Location = Location.HOST

    @property
    def is_device(self) -> bool:
        return self.location is Location.DEVICE

    @property
    @abstractmethod
    def xp(self):
        """Array module of this backend."""
        ...

    @abstractmethod
    def owns(self, array: Any) -> bool:
        ...

    @abstractmethod
    def to_host(self, array: Any) -> np.ndarray:
        ...

    @abstractmethod
    def from_host(self, array: np.ndarray) -> Any:
        ...

    def synchronize(self) -> None:
        """Block until pending work on this backend has completed."""

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def empty(self, size: int, dtype: str) -> Any:
        return self.xp.empty(int(size), dtype=dtype)

    def zeros(self, size: int, dtype: str) -> Any:
        return self.xp.zeros(int(size), dtype=dtype)

    def asarray(self, obj: Any, dtype: Optional[str] = None) -> Any:
        """Return ``obj`` as storage of this backend, transferring if needed."""
        if not self.owns(obj):
            source = _find_backend(obj)
            host = source.to_host(obj) if source is not None else np.asarray(obj)
            obj = self.from_host(host)
        if dtype is not None and obj.dtype != np.dtype(dtype):
            obj = obj.astype(dtype)
        return obj

    def resize(self, array: Any, size: int, keep: int) -> Any:
        """Allocate ``size`` elements and copy the first ``keep`` of ``array``.

        The returned array replaces ``array``; any view of the old array no
        longer aliases the buffer.
        """
        new = self.empty(size, array.dtype)
        keep = min(int(keep), int(size), len(array))
        if keep > 0:
            new[:keep] = array[:keep]
        return new

    # -------------------------------------------------------------------------
    # Element-range primitives
    # -------------------------------------------------------------------------

    def copy_range(self, dst: Any, dst_off: int, src: Any, src_off: int, n: int) -> None:
        """``dst[dst_off:dst_off+n] = src[src_off:src_off+n]``.

        ``src`` may belong to another backend; it is transferred first.
        Overlapping ranges of the same array are handled.
        """
        if n <= 0:
            return
        chunk = src[src_off:src_off + n]
        if not self.owns(chunk):
            chunk = self.asarray(chunk)
        elif src is dst and abs(src_off - dst_off) < n:
            chunk = chunk.copy()
        dst[dst_off:dst_off + n] = chunk

    def axpy(self, alpha: float, src: Any, src_off: int, dst: Any, dst_off: int, n: int) -> None:
        """``dst[dst_off:dst_off+n] += alpha * src[src_off:src_off+n]``."""
        if n <= 0:
            return
        x = src[src_off:src_off + n]
        if not self.owns(x):
            x = self.asarray(x)
        elif src is dst and abs(src_off - dst_off) < n:
            x = x.copy()
        y = dst[dst_off:dst_off + n]
        if alpha == 1:
            self.xp.add(y, x, out=y)
        else:
            y += alpha * x

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, location={self.location.value})"


# =============================================================================
# Host Backend (numpy)
# =============================================================================

class HostBackend(StorageBackend):
    """numpy arrays in host memory."""

    name = 'host'
    location = Location.HOST

    @property
    def xp(self):
        return np

    def owns(self, array: Any) -> bool:
        if not isinstance(array, np.ndarray):
            return False
        # device backends may use ndarray subclasses
        return not any(b.owns(array) for b in _device_backends())

    def to_host(self, array: Any) -> np.ndarray:
        return np.array(array, copy=True)

    def from_host(self, array: np.ndarray) -> np.ndarray:
        return np.array(array, copy=True)


# =============================================================================
# CUDA Backend (cupy)
# =============================================================================

class CupyBackend(StorageBackend):
    """cupy arrays on the current CUDA device.

    cupy is imported on first use. Ownership checks never import it, so
    host-only programs do not pay for (or require) a CUDA runtime.
    """

    name = 'cuda'
    location = Location.DEVICE

    @property
    def xp(self):
        try:
            import cupy
        except ImportError as e:
            raise DeviceUnavailableError(
                f"cupy is required for the '{self.name}' backend: {e}"
            ) from e
        return cupy

    def owns(self, array: Any) -> bool:
        cupy = sys.modules.get('cupy')
        return cupy is not None and isinstance(array, cupy.ndarray)

    def to_host(self, array: Any) -> np.ndarray:
        host = self.xp.asnumpy(array)
        logger.debug(f"Transferred {host.nbytes} bytes device -> host")
        return host

    def from_host(self, array: np.ndarray) -> Any:
        device = self.xp.asarray(array)
        self.synchronize()
        logger.debug(f"Transferred {device.nbytes} bytes host -> device")
        return device

    def synchronize(self) -> None:
        self.xp.cuda.get_current_stream().synchronize()


# =============================================================================
# Registry
# =============================================================================

_REGISTRY: Dict[str, StorageBackend] = {}
_ALIASES: Dict[str, str] = {}


def register_backend(backend: StorageBackend, aliases: Iterable[str] = ()) -> StorageBackend:
    """Register a backend under its name and optional aliases.

    Re-registering a name replaces the previous backend.
    """
    if not backend.name:
        raise TypeMismatchError(f"{type(backend).__name__} has no name")
    _REGISTRY[backend.name] = backend
    for alias in aliases:
        _ALIASES[alias] = backend.name
    logger.debug(f"Registered storage backend {backend!r}")
    return backend


def unregister_backend(name: str) -> None:
    """Remove a registered backend (and its aliases)."""
    _REGISTRY.pop(name, None)
    for alias in [a for a, target in _ALIASES.items() if target == name]:
        del _ALIASES[alias]


def get_backend(device: Union[None, str, StorageBackend] = None) -> StorageBackend:
    """Resolve a device name (or backend instance) to a backend.

    Args:
        device: None (host), a backend name or alias, or a backend.

    Raises:
        DeviceUnavailableError: If no backend is registered under ``device``.
    """
    if device is None:
        return _REGISTRY['host']
    if isinstance(device, StorageBackend):
        return device
    name = _ALIASES.get(device, device)
    try:
        return _REGISTRY[name]
    except KeyError:
        raise DeviceUnavailableError(
            f"Unknown device {device!r}. Available: {available_backends()}"
        ) from None


def _device_backends() -> List[StorageBackend]:
    return [b for b in _REGISTRY.values() if b.is_device]


def _find_backend(array: Any) -> Optional[StorageBackend]:
    for backend in _device_backends():
        if backend.owns(array):
            return backend
    host = _REGISTRY['host']
    if host.owns(array):
        return host
    return None


def backend_for(array: Any) -> StorageBackend:
    """Return the backend owning ``array``.

    Raises:
        TypeMismatchError: If no registered backend recognises the array.
    """
    backend = _find_backend(array)
    if backend is None:
        raise TypeMismatchError(f"No storage backend for {type(array).__name__}")
    return backend


def available_backends() -> List[str]:
    """Names of registered backends."""
    return sorted(_REGISTRY)


register_backend(HostBackend(), aliases=('cpu', 'numpy'))
register_backend(CupyBackend(), aliases=('gpu', 'cupy'))
