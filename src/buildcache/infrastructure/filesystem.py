"""
buildcache.infrastructure.filesystem - Filesystem Probe
=========================================================

The engine never calls ``os.stat`` directly. It asks a FileSystemProbe,
which makes the two filesystem questions it needs awaitable and
replaceable in tests:

    get_modification_timestamp(path) → datetime (UTC), raises if unreadable
    exists(path)                     → bool

Implementations:
    - FileSystemProbe (ABC)
    - LocalFileSystemProbe: os.stat in a worker thread (asyncio.to_thread)
"""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from datetime import datetime

from buildcache.core.paths import timestamp_from_ns


class FileSystemProbe(ABC):
    """Abstract interface for filesystem timestamp and existence checks."""

    @abstractmethod
    async def get_modification_timestamp(self, path: str) -> datetime:
        """Return the modification time of ``path`` as a UTC datetime.

        Raises:
            OSError: If the path is missing or cannot be stat'ed.
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return whether ``path`` currently exists."""


class LocalFileSystemProbe(FileSystemProbe):
    """Probe backed by the local filesystem."""

    async def get_modification_timestamp(self, path: str) -> datetime:
        stat_result = await asyncio.to_thread(os.stat, path)
        return timestamp_from_ns(stat_result.st_mtime_ns)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.exists, path)
