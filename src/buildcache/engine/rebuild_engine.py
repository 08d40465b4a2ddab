"""
buildcache.engine.rebuild_engine - Registration/Invalidation Engine
=====================================================================

The RebuildEngine decides, for each artifact a producer declares, whether
its rebuild action must run.

Decision Flow (checked modes):

    register(artifact, deps, action)
        │
        ├─ probe every dependency mtime concurrently ──(failure)──→ ProbeError
        │
        ├─ any dependency new or with a different mtime?
        │     yes → upsert record to store ──(failure)──→ PersistError
        │           → run action                          (DEPENDENCY_CHANGED)
        │     no  → artifact exists on disk?
        │              yes → skip                         (UP_TO_DATE)
        │              no  → run action                   (ARTIFACT_MISSING)
        │
        └─ commit the new entry to the registry

    In production mode both register() and check_and_rebuild_if_stale()
    run the action unconditionally (TRUSTED_MODE) and never touch the
    registry, the store or the filesystem.

Consistency Rules:
    - A call that fails while probing or persisting leaves the registry and
      the store exactly as they were, so the next call sees the same drift
      and retries the rebuild.
    - Timestamps are persisted BEFORE the rebuild action runs. If the action
      then fails, the persisted record stays.
    - A dependency dropped from a re-registration does not by itself count
      as a change.
    - Each artifact id has its own asyncio.Lock held across the whole
      probe/compare/persist/rebuild sequence. Unrelated artifacts never wait
      on each other.
"""

from __future__ import annotations

import asyncio
import os
from datetime import datetime
from typing import Iterable, Optional, Union

import structlog

from buildcache.core.enums import ExecutionMode, RebuildReason
from buildcache.core.exceptions import (
    BootstrapError,
    ConfigurationError,
    PersistError,
    ProbeError,
    RegistrationError,
)
from buildcache.core.models import ArtifactEntry, DependencyRecord, RebuildAction
from buildcache.core.paths import PathLike, normalize_path
from buildcache.engine.registry import ArtifactRegistry
from buildcache.infrastructure.filesystem import FileSystemProbe, LocalFileSystemProbe
from buildcache.infrastructure.timestamp_store import TimestampStore


logger = structlog.get_logger()

DependencyPaths = Union[PathLike, Iterable[PathLike]]


class RebuildEngine:
    """Incremental, dependency-aware artifact rebuild cache.

    Lifecycle:
        1. ``RebuildEngine(mode, store=..., probe=...)``
        2. ``await bootstrap()``   — loads persisted timestamps (checked modes)
        3. ``await register(...)`` / ``await check_and_rebuild_if_stale(...)``

    Attributes:
        _mode: Execution mode, fixed for the lifetime of the engine.
        _store: Timestamp store (required in checked modes only).
        _probe: Filesystem probe used for mtimes and existence checks.
        _registry: In-memory artifact registry owned by this engine.
        _locks: Per-artifact locks, created on first use.
        _snapshots: Single-file timestamps saved by save_file_timestamp().

    Example:
        >>> engine = RebuildEngine(ExecutionMode.DEVELOPMENT, store=store)
        >>> await engine.bootstrap()
        >>> await engine.register("public/app.css", ["src/app.scss"], build_css)
    """

    def __init__(
        self,
        mode: ExecutionMode,
        *,
        store: Optional[TimestampStore] = None,
        probe: Optional[FileSystemProbe] = None,
        registry: Optional[ArtifactRegistry] = None,
    ) -> None:
        if mode.is_checked and store is None:
            raise ConfigurationError(
                message=f"Execution mode '{mode.value}' requires a timestamp store",
                error_code="MISSING_TIMESTAMP_STORE",
                details={"execution_mode": mode.value},
            )

        self._mode = mode
        self._store = store
        self._probe = probe or LocalFileSystemProbe()
        self._registry = registry or ArtifactRegistry()
        self._locks: dict[str, asyncio.Lock] = {}
        self._snapshots: dict[str, datetime] = {}
        self._ready: bool = not mode.is_checked
        self._logger = logger.bind(component="rebuild_engine", mode=mode.value)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def mode(self) -> ExecutionMode:
        return self._mode

    @property
    def registry(self) -> ArtifactRegistry:
        return self._registry

    @property
    def is_ready(self) -> bool:
        """Whether registrations are accepted (bootstrap done or not needed)."""
        return self._ready

    # =========================================================================
    # Startup Bootstrap
    # =========================================================================

    async def bootstrap(self) -> int:
        """Load every persisted artifact record into the registry.

        Does nothing in production mode: a trusted process may run without
        any store at all.

        Runs once per engine. Later calls (a facade re-initialized after
        shutdown) keep the live registry, whose entries carry the actions
        registered in this process.

        Returns:
            The number of records loaded.

        Raises:
            BootstrapError: If the store cannot be read. Fatal: the engine
                stays not-ready and rejects registrations.
        """
        if not self._mode.is_checked:
            self._ready = True
            return 0

        if self._registry.is_bootstrapped:
            self._ready = True
            self._logger.debug("engine_already_bootstrapped")
            return 0

        store = self._require_store()
        try:
            records = await store.load_all()
        except Exception as exc:
            raise BootstrapError(
                message=f"Cannot load persisted timestamps: {exc}",
                details={"error_type": type(exc).__name__},
            ) from exc

        loaded = self._registry.bootstrap(records)
        self._ready = True
        return loaded

    # =========================================================================
    # Registration
    # =========================================================================

    async def register(
        self,
        artifact_id: PathLike,
        dependency_paths: DependencyPaths,
        rebuild_action: RebuildAction,
    ) -> RebuildReason:
        """Declare an artifact and rebuild it if it is stale.

        Args:
            artifact_id: Output artifact path.
            dependency_paths: Input paths. A single path is accepted as a
                one-element sequence. Duplicates are collapsed.
            rebuild_action: Zero-argument callable returning an awaitable
                that writes the artifact. Replaces any previous action.

        Returns:
            Why the action ran, or UP_TO_DATE if it was skipped.

        Raises:
            RegistrationError: Invalid arguments.
            ProbeError: A dependency could not be stat'ed.
            PersistError: The store rejected the updated record.
            Exception: Whatever the rebuild action raised, unchanged.
        """
        normalized_id = self._normalize_artifact_id(artifact_id)
        paths = self._normalize_dependencies(normalized_id, dependency_paths)
        if not callable(rebuild_action):
            raise RegistrationError(
                message=f"Rebuild action for {normalized_id!r} is not callable",
                details={"artifact_id": normalized_id},
            )

        if not self._mode.is_checked:
            await self._rebuild(normalized_id, rebuild_action, RebuildReason.TRUSTED_MODE)
            return RebuildReason.TRUSTED_MODE

        self._ensure_ready()
        async with self._lock_for(normalized_id):
            self._logger.debug(
                "artifact_registering",
                artifact_id=normalized_id,
                dependencies=paths,
            )
            previous = self._registry.get(normalized_id)
            current = await self._probe_all(normalized_id, paths)
            changed = self._detect_changes(normalized_id, previous, current)

            entry = ArtifactEntry(
                artifact_id=normalized_id,
                dependencies=current,
                rebuild_action=rebuild_action,
            )
            return await self._settle(entry, changed)

    async def check_and_rebuild_if_stale(
        self,
        artifact_id: PathLike,
        rebuild_action: Optional[RebuildAction] = None,
    ) -> RebuildReason:
        """Revalidate an already registered artifact against its dependencies.

        Unknown artifacts are a no-op. The registered action is used; the
        ``rebuild_action`` argument is a fallback for entries restored from
        the store that no producer has re-registered yet, and the action run
        in production mode.

        Returns:
            Why the action ran, UP_TO_DATE, or NOT_REGISTERED.

        Raises:
            RegistrationError: A rebuild is needed but no action is known.
            ProbeError: A recorded dependency could not be stat'ed.
            PersistError: The store rejected the updated record.
            Exception: Whatever the rebuild action raised, unchanged.
        """
        normalized_id = self._normalize_artifact_id(artifact_id)

        if not self._mode.is_checked:
            if rebuild_action is None:
                return RebuildReason.NOT_REGISTERED
            await self._rebuild(normalized_id, rebuild_action, RebuildReason.TRUSTED_MODE)
            return RebuildReason.TRUSTED_MODE

        self._ensure_ready()
        async with self._lock_for(normalized_id):
            existing = self._registry.get(normalized_id)
            if existing is None:
                self._logger.debug("artifact_not_registered", artifact_id=normalized_id)
                return RebuildReason.NOT_REGISTERED

            self._logger.debug("artifact_checking", artifact_id=normalized_id)
            paths = [dependency.path for dependency in existing.dependencies]
            current = await self._probe_all(normalized_id, paths)
            changed = self._detect_changes(normalized_id, existing, current)

            entry = ArtifactEntry(
                artifact_id=normalized_id,
                dependencies=current,
                rebuild_action=existing.rebuild_action or rebuild_action,
            )
            return await self._settle(entry, changed)

    # =========================================================================
    # Single-File Timestamp Snapshots
    # =========================================================================

    async def save_file_timestamp(self, path: PathLike) -> datetime:
        """Remember the current modification time of ``path``.

        Raises:
            RegistrationError: Empty path.
            ProbeError: The file could not be stat'ed.
        """
        normalized = self._normalize_snapshot_path(path)
        timestamp = await self._probe_one(normalized, normalized)
        self._snapshots[normalized] = timestamp
        self._logger.debug("file_timestamp_saved", path=normalized)
        return timestamp

    async def check_file_timestamp(self, path: PathLike) -> bool:
        """Return True if ``path`` is unchanged since save_file_timestamp().

        Raises:
            RegistrationError: The path was never saved.
            ProbeError: The file could not be stat'ed.
        """
        normalized = self._normalize_snapshot_path(path)
        if normalized not in self._snapshots:
            raise RegistrationError(
                message=f"No saved timestamp for {normalized!r}",
                error_code="TIMESTAMP_NOT_SAVED",
                details={"path": normalized},
            )
        timestamp = await self._probe_one(normalized, normalized)
        unchanged = timestamp == self._snapshots[normalized]
        self._logger.debug("file_timestamp_checked", path=normalized, unchanged=unchanged)
        return unchanged

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    async def _settle(self, entry: ArtifactEntry, changed: bool) -> RebuildReason:
        """Persist/commit ``entry`` and run its action if required.

        Must be called with the artifact's lock held.
        """
        if changed:
            action = self._require_action(entry)
            await self._persist(entry)
            self._registry.put(entry)
            reason = RebuildReason.DEPENDENCY_CHANGED
        else:
            self._registry.put(entry)
            if await self._probe.exists(entry.artifact_id):
                self._logger.debug("artifact_up_to_date", artifact_id=entry.artifact_id)
                return RebuildReason.UP_TO_DATE
            action = self._require_action(entry)
            reason = RebuildReason.ARTIFACT_MISSING

        await self._rebuild(entry.artifact_id, action, reason)
        return reason

    async def _rebuild(
        self, artifact_id: str, action: RebuildAction, reason: RebuildReason
    ) -> None:
        self._logger.info("artifact_rebuilding", artifact_id=artifact_id, reason=reason.value)
        await action()
        self._logger.debug("artifact_rebuilt", artifact_id=artifact_id)

    async def _persist(self, entry: ArtifactEntry) -> None:
        store = self._require_store()
        try:
            await store.upsert(entry.artifact_id, entry.to_record())
        except Exception as exc:
            raise PersistError(
                message=f"Cannot persist timestamps for {entry.artifact_id!r}: {exc}",
                artifact_id=entry.artifact_id,
                details={"error_type": type(exc).__name__},
            ) from exc

    async def _probe_all(
        self, artifact_id: str, paths: list[str]
    ) -> list[DependencyRecord]:
        timestamps = await asyncio.gather(
            *(self._probe_one(artifact_id, path) for path in paths)
        )
        return [
            DependencyRecord(path=path, timestamp=timestamp)
            for path, timestamp in zip(paths, timestamps)
        ]

    async def _probe_one(self, artifact_id: str, path: str) -> datetime:
        try:
            return await self._probe.get_modification_timestamp(path)
        except OSError as exc:
            raise ProbeError(
                message=f"Cannot read modification time of {path!r}: {exc}",
                artifact_id=artifact_id,
                path=path,
            ) from exc

    def _detect_changes(
        self,
        artifact_id: str,
        previous: Optional[ArtifactEntry],
        current: list[DependencyRecord],
    ) -> bool:
        changed = False
        for dependency in current:
            known = previous.find(dependency.path) if previous else None
            if known is None:
                status = "new"
            elif known.timestamp != dependency.timestamp:
                status = "modified"
            else:
                status = "unchanged"
            if status != "unchanged":
                changed = True
            if self._mode.is_verbose:
                self._logger.debug(
                    "dependency_checked",
                    artifact_id=artifact_id,
                    path=dependency.path,
                    status=status,
                    timestamp=dependency.timestamp.isoformat(),
                )
        return changed

    def _require_action(self, entry: ArtifactEntry) -> RebuildAction:
        if entry.rebuild_action is None:
            raise RegistrationError(
                message=(
                    f"Artifact {entry.artifact_id!r} needs a rebuild but no "
                    f"rebuild action has been registered for it"
                ),
                error_code="NO_REBUILD_ACTION",
                details={"artifact_id": entry.artifact_id},
            )
        return entry.rebuild_action

    def _require_store(self) -> TimestampStore:
        if self._store is None:
            raise RuntimeError("RebuildEngine has no timestamp store in a checked mode")
        return self._store

    def _lock_for(self, artifact_id: str) -> asyncio.Lock:
        lock = self._locks.get(artifact_id)
        if lock is None:
            lock = self._locks[artifact_id] = asyncio.Lock()
        return lock

    def _ensure_ready(self) -> None:
        if not self._ready:
            raise RuntimeError(
                "RebuildEngine has not been bootstrapped. "
                "Call await engine.bootstrap() before registering artifacts."
            )

    @staticmethod
    def _normalize_artifact_id(artifact_id: PathLike) -> str:
        normalized = normalize_path(artifact_id) if artifact_id is not None else ""
        if not normalized:
            raise RegistrationError(
                message="Artifact id must be a non-empty path",
                details={"artifact_id": repr(artifact_id)},
            )
        return normalized

    @staticmethod
    def _normalize_dependencies(
        artifact_id: str, dependency_paths: DependencyPaths
    ) -> list[str]:
        if isinstance(dependency_paths, (str, os.PathLike)):
            dependency_paths = [dependency_paths]

        paths: list[str] = []
        for raw in dependency_paths:
            normalized = normalize_path(raw)
            if not normalized:
                raise RegistrationError(
                    message=f"Empty dependency path declared for {artifact_id!r}",
                    details={"artifact_id": artifact_id},
                )
            paths.append(normalized)

        if not paths:
            raise RegistrationError(
                message=f"Artifact {artifact_id!r} must declare at least one dependency",
                details={"artifact_id": artifact_id},
            )
        # Unique paths, first occurrence wins.
        return list(dict.fromkeys(paths))

    @staticmethod
    def _normalize_snapshot_path(path: PathLike) -> str:
        normalized = normalize_path(path) if path is not None else ""
        if not normalized:
            raise RegistrationError(
                message="File path must be non-empty",
                error_code="INVALID_PATH",
            )
        return normalized
