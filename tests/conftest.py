"""
Shared Test Fixtures for buildcache
=====================================

Fixtures are organized by layer:

    1. Configuration fixtures
    2. Infrastructure fixtures (timestamp stores, filesystem probe)
    3. Engine fixtures (checked and trusted engines)
    4. Producer-side helpers (recording rebuild actions)

The FakeFileSystemProbe keeps mtimes in a dict so tests control time
exactly. Tests that need the real filesystem use tmp_path with
LocalFileSystemProbe instead.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from buildcache.core.config import BuildCacheConfig, StoreConfig
from buildcache.core.enums import ExecutionMode
from buildcache.core.exceptions import TimestampStoreError
from buildcache.core.models import ArtifactRecord
from buildcache.engine.rebuild_engine import RebuildEngine
from buildcache.infrastructure.filesystem import FileSystemProbe
from buildcache.infrastructure.timestamp_store import InMemoryTimestampStore


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Test Doubles
# =============================================================================
class FakeFileSystemProbe(FileSystemProbe):
    """In-memory filesystem: dependency mtimes plus a set of existing outputs."""

    def __init__(self) -> None:
        self.mtimes: dict[str, datetime] = {}
        self.outputs: set[str] = set()
        self.unreadable: set[str] = set()
        self.probed: list[str] = []

    def write(self, path: str, seconds: int = 0) -> datetime:
        """Create or modify a dependency; its mtime is BASE_TIME + seconds."""
        self.mtimes[path] = BASE_TIME + timedelta(seconds=seconds)
        return self.mtimes[path]

    def create_output(self, path: str) -> None:
        self.outputs.add(path)

    def delete(self, path: str) -> None:
        self.mtimes.pop(path, None)
        self.outputs.discard(path)

    async def get_modification_timestamp(self, path: str) -> datetime:
        self.probed.append(path)
        if path in self.unreadable:
            raise PermissionError(13, "Permission denied", path)
        if path not in self.mtimes:
            raise FileNotFoundError(2, "No such file or directory", path)
        return self.mtimes[path]

    async def exists(self, path: str) -> bool:
        return path in self.mtimes or path in self.outputs


class FlakyTimestampStore(InMemoryTimestampStore):
    """In-memory store whose reads or writes can be made to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_load = False
        self.fail_upsert = False
        self.upserts: list[str] = []

    async def load_all(self) -> list[ArtifactRecord]:
        if self.fail_load:
            raise TimestampStoreError("store unreachable", error_code="STORE_DOWN")
        return await super().load_all()

    async def upsert(self, artifact_id: str, record: ArtifactRecord) -> None:
        if self.fail_upsert:
            raise TimestampStoreError("write rejected", error_code="STORE_DOWN")
        self.upserts.append(artifact_id)
        await super().upsert(artifact_id, record)


class RecordingAction:
    """Rebuild action that counts calls and can create its output or fail."""

    def __init__(
        self,
        probe: Optional[FakeFileSystemProbe] = None,
        output: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.calls = 0
        self._probe = probe
        self._output = output
        self._error = error

    async def __call__(self) -> None:
        self.calls += 1
        if self._error is not None:
            raise self._error
        if self._probe is not None and self._output is not None:
            self._probe.create_output(self._output)


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """Development-mode configuration with an in-memory store."""
    return BuildCacheConfig(store=StoreConfig(backend="memory"))


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def store():
    """Fresh FlakyTimestampStore (healthy until told otherwise)."""
    return FlakyTimestampStore()


@pytest.fixture
def probe():
    """Fresh FakeFileSystemProbe with no files."""
    return FakeFileSystemProbe()


# =============================================================================
# Engines
# =============================================================================

@pytest.fixture
async def engine(store, probe):
    """Bootstrapped development-mode engine over the fake probe."""
    engine = RebuildEngine(ExecutionMode.DEVELOPMENT, store=store, probe=probe)
    await engine.bootstrap()
    return engine


@pytest.fixture
def trusted_engine(probe):
    """Production-mode engine with no store."""
    return RebuildEngine(ExecutionMode.PRODUCTION, probe=probe)


# =============================================================================
# Rebuild Actions
# =============================================================================

@pytest.fixture
def make_action(probe) -> Callable[..., RecordingAction]:
    """Factory for RecordingAction bound to the fake probe."""

    def _make(output: Optional[str] = None, error: Optional[Exception] = None) -> RecordingAction:
        return RecordingAction(probe=probe, output=output, error=error)

    return _make
