"""
buildcache.core.models - Core Data Models
===========================================

Model Hierarchy:
    DependencyRecord → One input file and the mtime last observed for it
    ArtifactRecord   → The persisted view of an artifact (id + dependencies)
    ArtifactEntry    → The in-memory view: a record plus its rebuild action

Persistence Boundary:
    ┌────────────────────┐   to_record()   ┌──────────────────────┐
    │  ArtifactEntry     │ ──────────────→ │  ArtifactRecord      │
    │  (registry only)   │                 │  (timestamp store)   │
    │  + rebuild_action  │ ←────────────── │                      │
    └────────────────────┘  from_record()  └──────────────────────┘

The rebuild action is never persisted. Entries loaded at startup carry no
action until a producer registers one.
"""

from __future__ import annotations

from datetime import datetime
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field

# A zero-argument callable returning an awaitable that regenerates the
# artifact on disk.
RebuildAction = Callable[[], Awaitable[None]]


# =============================================================================
# Dependency Record
# =============================================================================
class DependencyRecord(BaseModel):
    """An input file of an artifact and its last-observed modification time.

    Attributes:
        path: Normalized dependency path.
        timestamp: Modification time (UTC) observed the last time the engine
            decided the artifact was up to date.
    """

    path: str = Field(description="Normalized dependency path")
    timestamp: datetime = Field(
        description="Last observed modification time of the dependency (UTC)",
    )


# =============================================================================
# Artifact Record (persisted)
# =============================================================================
class ArtifactRecord(BaseModel):
    """The persisted shape of an artifact: its id and dependency timestamps.

    A store upsert for a given ``artifact_id`` replaces the whole record;
    there is no partial merge.

    Example:
        >>> record = ArtifactRecord(
        ...     artifact_id="public/bundle.css",
        ...     dependencies=[DependencyRecord(path="src/a.css", timestamp=ts)],
        ... )
        >>> record.model_dump_json()
    """

    artifact_id: str = Field(description="Normalized output artifact path")
    dependencies: list[DependencyRecord] = Field(
        default_factory=list,
        description="Dependency records in declaration order",
    )


# =============================================================================
# Artifact Entry (in-memory)
# =============================================================================
class ArtifactEntry(BaseModel):
    """A registry entry: the current dependency view plus the rebuild action.

    Attributes:
        artifact_id: Normalized output artifact path.
        dependencies: Current dependency records, in declaration order.
        rebuild_action: Most recently registered rebuild action, or None for
            entries bootstrapped from the store and not yet re-registered.
    """

    artifact_id: str
    dependencies: list[DependencyRecord] = Field(default_factory=list)
    rebuild_action: Optional[RebuildAction] = Field(default=None, exclude=True)

    def find(self, path: str) -> Optional[DependencyRecord]:
        """Look up a dependency record by normalized path."""
        for dependency in self.dependencies:
            if dependency.path == path:
                return dependency
        return None

    def to_record(self) -> ArtifactRecord:
        """Return a detached, persistable copy of this entry."""
        return ArtifactRecord(
            artifact_id=self.artifact_id,
            dependencies=[d.model_copy() for d in self.dependencies],
        )

    @classmethod
    def from_record(cls, record: ArtifactRecord) -> ArtifactEntry:
        """Build an entry (with no rebuild action) from a persisted record."""
        return cls(
            artifact_id=record.artifact_id,
            dependencies=[d.model_copy() for d in record.dependencies],
        )
