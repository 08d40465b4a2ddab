"""
buildcache.facade - BuildCache Top-Level Facade
=================================================

The single entry point tying configuration, the timestamp store, the
filesystem probe and the rebuild engine together.

    ┌──────────────────────────────────────────────┐
    │              BuildCache (Facade)              │
    │                                               │
    │   BuildCacheConfig ──→ ExecutionMode          │
    │          │                   │                │
    │          ▼                   ▼                │
    │   TimestampStore ──→  RebuildEngine ←── Probe │
    │   (checked modes)     └── ArtifactRegistry    │
    └──────────────────────────────────────────────┘

Usage:
    >>> async with BuildCache(load_config()) as cache:
    ...     await cache.register("public/site.css", ["styles/a.css"], build_css)
    ...     await cache.build(ConcatenationProducer("public/app.js", js_files))

In production mode no store is created or connected, so a trusted
deployment can run without one.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import structlog

from buildcache.core.config import BuildCacheConfig
from buildcache.core.enums import ExecutionMode, RebuildReason
from buildcache.core.exceptions import BootstrapError
from buildcache.core.models import RebuildAction
from buildcache.core.paths import PathLike
from buildcache.engine.rebuild_engine import DependencyPaths, RebuildEngine
from buildcache.engine.registry import ArtifactRegistry
from buildcache.infrastructure.factory import create_timestamp_store
from buildcache.infrastructure.filesystem import FileSystemProbe
from buildcache.infrastructure.timestamp_store import TimestampStore
from buildcache.producers.base import BaseProducer


logger = structlog.get_logger()


class BuildCache:
    """Top-level facade for the artifact rebuild cache.

    Lifecycle:
        1. ``BuildCache(config)``   — Instantiate with configuration
        2. ``await initialize()``   — Connect the store and bootstrap
        3. ``await register(...)``  — Declare artifacts
        4. ``await shutdown()``     — Disconnect the store

    Attributes:
        _config: buildcache configuration.
        _store: Timestamp store, None in production mode.
        _engine: The rebuild engine (owns the registry).
        _initialized: Whether initialize() has completed.
    """

    def __init__(
        self,
        config: Optional[BuildCacheConfig] = None,
        *,
        store: Optional[TimestampStore] = None,
        probe: Optional[FileSystemProbe] = None,
    ) -> None:
        """Initialize the facade.

        Args:
            config: Configuration. Defaults to BuildCacheConfig(), which
                reads BUILDCACHE_* environment variables.
            store: Optional custom timestamp store. Defaults to the backend
                selected by ``config.store``. Ignored in production mode.
            probe: Optional custom filesystem probe.
        """
        self._config = config or BuildCacheConfig()
        mode = self._config.execution_mode

        if mode.is_checked:
            self._store: Optional[TimestampStore] = store or create_timestamp_store(
                self._config.store
            )
        else:
            self._store = None

        self._engine = RebuildEngine(
            mode,
            store=self._store,
            probe=probe,
            registry=ArtifactRegistry(),
        )
        self._initialized = False
        self._logger = logger.bind(component="build_cache", mode=mode.value)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> BuildCacheConfig:
        return self._config

    @property
    def mode(self) -> ExecutionMode:
        return self._engine.mode

    @property
    def engine(self) -> RebuildEngine:
        return self._engine

    @property
    def registry(self) -> ArtifactRegistry:
        return self._engine.registry

    @property
    def store(self) -> Optional[TimestampStore]:
        return self._store

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Connect the store and load persisted timestamps.

        Idempotent: safe to call multiple times. After shutdown() it
        reconnects the store and keeps the live registry.

        Raises:
            BootstrapError: The store could not be read (checked modes).
        """
        if self._initialized:
            self._logger.debug("build_cache_already_initialized")
            return

        self._logger.info("build_cache_initializing")
        if self._store is not None:
            try:
                await self._store.connect()
            except Exception as exc:
                raise BootstrapError(
                    message=f"Cannot open timestamp store: {exc}",
                    details={"error_type": type(exc).__name__},
                ) from exc
            try:
                await self._engine.bootstrap()
            except BootstrapError:
                await self._store.disconnect()
                raise
        else:
            await self._engine.bootstrap()

        self._initialized = True
        self._logger.info("build_cache_initialized", artifact_count=len(self.registry))

    async def shutdown(self) -> None:
        """Disconnect the store. Idempotent."""
        if not self._initialized:
            return

        if self._store is not None:
            await self._store.disconnect()

        self._initialized = False
        self._logger.info("build_cache_shutdown_complete")

    async def __aenter__(self) -> BuildCache:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Artifact Operations
    # =========================================================================

    async def register(
        self,
        artifact_id: PathLike,
        dependency_paths: DependencyPaths,
        rebuild_action: RebuildAction,
    ) -> RebuildReason:
        """Declare an artifact and rebuild it if stale. See RebuildEngine.register."""
        self._ensure_initialized()
        return await self._engine.register(artifact_id, dependency_paths, rebuild_action)

    async def check_and_rebuild_if_stale(
        self,
        artifact_id: PathLike,
        rebuild_action: Optional[RebuildAction] = None,
    ) -> RebuildReason:
        """Revalidate a registered artifact. See RebuildEngine.check_and_rebuild_if_stale."""
        self._ensure_initialized()
        return await self._engine.check_and_rebuild_if_stale(artifact_id, rebuild_action)

    async def build(self, producer: BaseProducer) -> RebuildReason:
        """Register a producer's artifact with the engine."""
        self._ensure_initialized()
        return await producer.produce(self._engine)

    async def save_file_timestamp(self, path: PathLike) -> datetime:
        self._ensure_initialized()
        return await self._engine.save_file_timestamp(path)

    async def check_file_timestamp(self, path: PathLike) -> bool:
        self._ensure_initialized()
        return await self._engine.check_file_timestamp(path)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "BuildCache has not been initialized. "
                "Call await cache.initialize() or use 'async with BuildCache() as cache:'"
            )

    def __repr__(self) -> str:
        return (
            f"BuildCache("
            f"mode={self.mode.value!r}, "
            f"initialized={self._initialized}, "
            f"artifacts={len(self.registry)})"
        )
