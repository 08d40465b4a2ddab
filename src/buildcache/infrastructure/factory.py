"""
buildcache.infrastructure.factory - Timestamp Store Factory
=============================================================

Maps ``StoreConfig.backend`` to a concrete TimestampStore implementation.

Usage:
    >>> from buildcache.core.config import StoreConfig
    >>> store = create_timestamp_store(StoreConfig(backend="memory"))
    >>> type(store)  # InMemoryTimestampStore
"""

from __future__ import annotations

from buildcache.core.config import StoreConfig
from buildcache.core.exceptions import ConfigurationError
from buildcache.infrastructure.timestamp_store import (
    InMemoryTimestampStore,
    JsonFileTimestampStore,
    TimestampStore,
)


def create_timestamp_store(config: StoreConfig) -> TimestampStore:
    """Create a timestamp store instance based on configuration.

    Args:
        config: Store configuration with backend name and options.

    Returns:
        A concrete, not yet connected, TimestampStore.

    Raises:
        ConfigurationError: If the backend name is not recognized.
    """
    backend = config.backend.lower()

    if backend == "memory":
        return InMemoryTimestampStore()
    if backend == "json":
        return JsonFileTimestampStore(config.path, indent=config.indent)

    raise ConfigurationError(
        message=f"Unknown timestamp store backend: '{backend}'",
        error_code="UNKNOWN_STORE_BACKEND",
        details={"backend": backend, "available": ["memory", "json"]},
    )
