"""
colops Config - Growth and Deduplication Settings

Provides dataclass-based configuration for column operations with
thread-local overrides. Operations consult the active configuration
unless an explicit argument is passed.

Example:
    >>> import colops
    >>> colops.config.growth.resize_factor
    1.3
    >>> with colops.config.local(growth=GrowthConfig(resize_factor=2.0)):
    ...     colops.concatenate_columns(a, b)   # doubles on growth
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List

from ._errors import InvalidArgumentError


DEFAULT_RESIZE_FACTOR = 1.3
RESIZE_FACTOR_ENV = "COLOPS_RESIZE_FACTOR"

_SUPPORTED_DIGESTS = ("blake2b", "blake2s", "sha1", "sha256", "md5")


def _default_resize_factor() -> float:
    value = os.environ.get(RESIZE_FACTOR_ENV, "").strip()
    if not value:
        return DEFAULT_RESIZE_FACTOR
    try:
        return float(value)
    except ValueError:
        raise InvalidArgumentError(
            f"{RESIZE_FACTOR_ENV}={value!r} is not a number"
        ) from None


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass
class GrowthConfig:
    """Amortized growth of buffer storage.

    A buffer that must hold ``n`` elements and cannot is reallocated to
    ``int(resize_factor * n + 1)`` elements.
    """
    resize_factor: float = DEFAULT_RESIZE_FACTOR

    def __post_init__(self):
        if not self.resize_factor >= 1.0:
            raise InvalidArgumentError(
                f"resize_factor must be >= 1.0, got {self.resize_factor}"
            )


@dataclass
class DedupConfig:
    """Content digest used to bucket columns during deduplication."""
    digest: str = "blake2b"
    digest_size: int = 16          # only honoured by blake2b/blake2s

    def __post_init__(self):
        if self.digest not in _SUPPORTED_DIGESTS:
            raise InvalidArgumentError(
                f"Unsupported digest {self.digest!r}. Supported: {_SUPPORTED_DIGESTS}"
            )
        if self.digest_size <= 0:
            raise InvalidArgumentError(f"digest_size must be positive, got {self.digest_size}")


# =============================================================================
# Global Configuration Manager
# =============================================================================

class ColopsConfig:
    """
    Global configuration manager for colops.

    Configuration can be set globally or overridden for the current
    thread within a ``local()`` block.

    Example:
        # Global configuration
        colops.config.growth = GrowthConfig(resize_factor=2.0)

        # Local configuration (context manager)
        with colops.config.local(dedup=DedupConfig(digest="sha256")):
            colops.unique_columns(sv, beta)
    """

    def __init__(self):
        self._global_growth = GrowthConfig(resize_factor=_default_resize_factor())
        self._global_dedup = DedupConfig()

        # Thread-local storage for context overrides
        self._local = threading.local()

    # -------------------------------------------------------------------------
    # Property Accessors (with thread-local override support)
    # -------------------------------------------------------------------------

    @property
    def growth(self) -> GrowthConfig:
        """Get growth configuration."""
        if getattr(self._local, "growth", None) is not None:
            return self._local.growth
        return self._global_growth

    @growth.setter
    def growth(self, value: GrowthConfig):
        """Set global growth configuration."""
        self._global_growth = value

    @property
    def dedup(self) -> DedupConfig:
        """Get deduplication configuration."""
        if getattr(self._local, "dedup", None) is not None:
            return self._local.dedup
        return self._global_dedup

    @dedup.setter
    def dedup(self, value: DedupConfig):
        """Set global deduplication configuration."""
        self._global_dedup = value

    @property
    def resize_factor(self) -> float:
        """Growth factor in effect for the current thread."""
        return self.growth.resize_factor

    # -------------------------------------------------------------------------
    # Context Manager Support
    # -------------------------------------------------------------------------

    def local(self, **kwargs) -> "_LocalConfigContext":
        """
        Create a local configuration context.

        Args:
            **kwargs: Configuration overrides (growth, dedup)

        Returns:
            Context manager
        """
        unknown = set(kwargs) - {"growth", "dedup"}
        if unknown:
            raise InvalidArgumentError(f"Unknown configuration sections: {sorted(unknown)}")
        return _LocalConfigContext(self, **kwargs)

    def _set_local(self, **kwargs):
        for key, value in kwargs.items():
            if value is not None:
                setattr(self._local, key, value)

    def _clear_local(self, keys: List[str]):
        for key in keys:
            if hasattr(self._local, key):
                setattr(self._local, key, None)

    # -------------------------------------------------------------------------
    # Reset / Serialization
    # -------------------------------------------------------------------------

    def reset(self):
        """Reset all configurations to defaults."""
        self._global_growth = GrowthConfig(resize_factor=_default_resize_factor())
        self._global_dedup = DedupConfig()

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "growth": {
                "resize_factor": self.growth.resize_factor,
            },
            "dedup": {
                "digest": self.dedup.digest,
                "digest_size": self.dedup.digest_size,
            },
        }

    def __repr__(self) -> str:
        return f"ColopsConfig({self.to_dict()})"


class _LocalConfigContext:
    """Context manager for local configuration override."""

    def __init__(self, config: ColopsConfig, **kwargs):
        self._config = config
        self._kwargs = kwargs
        self._keys = list(kwargs.keys())

    def __enter__(self):
        self._config._set_local(**self._kwargs)
        return self._config

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._config._clear_local(self._keys)
        return False


# =============================================================================
# Global Instance
# =============================================================================

config = ColopsConfig()


def get_config() -> ColopsConfig:
    """Get the global configuration instance."""
    return config


def set_resize_factor(factor: float):
    """Set the global growth factor used when buffers reallocate."""
    config.growth = GrowthConfig(resize_factor=factor)


def resolve_factor(factor=None) -> float:
    """Return ``factor`` validated, or the configured default."""
    if factor is None:
        return config.resize_factor
    if not factor >= 1.0:
        raise InvalidArgumentError(f"resize factor must be >= 1.0, got {factor}")
    return float(factor)


__all__ = [
    "GrowthConfig",
    "DedupConfig",
    "ColopsConfig",
    "config",
    "get_config",
    "set_resize_factor",
    "resolve_factor",
    "DEFAULT_RESIZE_FACTOR",
    "RESIZE_FACTOR_ENV",
]
