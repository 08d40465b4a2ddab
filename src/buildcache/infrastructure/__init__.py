"""
buildcache.infrastructure - Storage & Filesystem Collaborators
================================================================

    - TimestampStore (ABC), InMemoryTimestampStore, JsonFileTimestampStore
    - create_timestamp_store: backend factory driven by StoreConfig
    - FileSystemProbe (ABC), LocalFileSystemProbe
"""

from buildcache.infrastructure.factory import create_timestamp_store
from buildcache.infrastructure.filesystem import FileSystemProbe, LocalFileSystemProbe
from buildcache.infrastructure.timestamp_store import (
    InMemoryTimestampStore,
    JsonFileTimestampStore,
    TimestampStore,
)

__all__ = [
    "FileSystemProbe",
    "InMemoryTimestampStore",
    "JsonFileTimestampStore",
    "LocalFileSystemProbe",
    "TimestampStore",
    "create_timestamp_store",
]
