"""
buildcache.core - Foundation Layer
====================================

    - config:      BuildCacheConfig, StoreConfig, load_config
    - enums:       ExecutionMode, RebuildReason
    - models:      DependencyRecord, ArtifactRecord, ArtifactEntry
    - exceptions:  BuildCacheError hierarchy
    - paths:       Path normalization and timestamp conversion

Dependency Rule:
    core/ depends on NOTHING else in the buildcache package.
"""

from buildcache.core.config import BuildCacheConfig, StoreConfig, load_config
from buildcache.core.enums import ExecutionMode, RebuildReason
from buildcache.core.exceptions import (
    BootstrapError,
    BuildCacheError,
    ConfigurationError,
    PersistError,
    ProbeError,
    RegistrationError,
    TimestampStoreError,
)
from buildcache.core.models import (
    ArtifactEntry,
    ArtifactRecord,
    DependencyRecord,
    RebuildAction,
)

__all__ = [
    # Config
    "BuildCacheConfig",
    "StoreConfig",
    "load_config",
    # Enums
    "ExecutionMode",
    "RebuildReason",
    # Models
    "ArtifactEntry",
    "ArtifactRecord",
    "DependencyRecord",
    "RebuildAction",
    # Exceptions
    "BuildCacheError",
    "ConfigurationError",
    "RegistrationError",
    "TimestampStoreError",
    "BootstrapError",
    "ProbeError",
    "PersistError",
]
