"""
buildcache.engine.registry - Artifact Registry
================================================

The process-lifetime table of artifacts known to one RebuildEngine.

Key Data Structure:
    _entries: dict[artifact_id, ArtifactEntry]

Lifecycle:
    1. bootstrap(records)  → every persisted record becomes an entry with no
                             rebuild action (checked modes, once, at startup)
    2. put(entry)          → a register/check call commits its new view
    3. entries are never deleted; re-registration supersedes them

The registry is owned by an engine instance, never module-global, so
independent caches (one per test, one per site) cannot contaminate each
other.
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog

from buildcache.core.models import ArtifactEntry, ArtifactRecord


logger = structlog.get_logger()


class ArtifactRegistry:
    """In-memory mapping from artifact id to its current ArtifactEntry.

    Example:
        >>> registry = ArtifactRegistry()
        >>> registry.bootstrap(await store.load_all())
        >>> "public/bundle.css" in registry
        True
    """

    def __init__(self) -> None:
        self._entries: dict[str, ArtifactEntry] = {}
        self._bootstrapped: bool = False
        self._logger = logger.bind(component="artifact_registry")

    @property
    def is_bootstrapped(self) -> bool:
        """Whether bootstrap() has loaded the persisted baseline."""
        return self._bootstrapped

    def bootstrap(self, records: Iterable[ArtifactRecord]) -> int:
        """Load persisted records into the registry.

        Existing entries for the same ids are replaced. Loaded entries carry
        no rebuild action until a producer registers one.

        Args:
            records: Records returned by ``TimestampStore.load_all()``.

        Returns:
            The number of records loaded.
        """
        loaded = 0
        for record in records:
            self._entries[record.artifact_id] = ArtifactEntry.from_record(record)
            loaded += 1
        self._bootstrapped = True
        self._logger.info("registry_bootstrapped", artifact_count=loaded)
        return loaded

    def get(self, artifact_id: str) -> Optional[ArtifactEntry]:
        return self._entries.get(artifact_id)

    def put(self, entry: ArtifactEntry) -> None:
        """Insert or replace the entry for ``entry.artifact_id``."""
        self._entries[entry.artifact_id] = entry

    def artifact_ids(self) -> list[str]:
        return list(self._entries)

    def snapshot(self) -> list[ArtifactRecord]:
        """Return persistable copies of every entry, in insertion order."""
        return [entry.to_record() for entry in self._entries.values()]

    def __contains__(self, artifact_id: object) -> bool:
        return artifact_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
