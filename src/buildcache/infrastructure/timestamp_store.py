"""
buildcache.infrastructure.timestamp_store - Timestamp Persistence Layer
=========================================================================

The Timestamp Store makes dependency timestamps survive process restarts.
It holds one ArtifactRecord per artifact, keyed by the normalized
artifact id.

Architecture Context:
    ┌──────────────────┐   load_all() at startup   ┌──────────────────┐
    │  RebuildEngine   │ ←──────────────────────── │                  │
    │                  │                           │  TimestampStore  │
    │                  │ ────────────────────────→ │                  │
    └──────────────────┘   upsert() on change      └──────────────────┘

Upsert Semantics:
    A write for a given artifact id fully replaces the previously stored
    record. There is no partial merge at the store layer.

Implementations:
    - TimestampStore (ABC):      Abstract interface
    - InMemoryTimestampStore:    Dict-based, for tests and throwaway runs
    - JsonFileTimestampStore:    Single JSON document on disk (durable)
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from buildcache.core.exceptions import TimestampStoreError
from buildcache.core.models import ArtifactRecord


logger = structlog.get_logger()


# =============================================================================
# Abstract Base Class: TimestampStore
# =============================================================================
class TimestampStore(ABC):
    """Abstract interface for timestamp persistence.

    Components should type-hint against this ABC.

    Example:
        >>> async def persist(store: TimestampStore, record: ArtifactRecord):
        ...     await store.upsert(record.artifact_id, record)
        ...     records = await store.load_all()
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the backing storage.

        Raises:
            TimestampStoreError: If the storage cannot be opened.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the backing storage."""

    @abstractmethod
    async def load_all(self) -> list[ArtifactRecord]:
        """Return every persisted record.

        Raises:
            TimestampStoreError: If the storage cannot be read.
        """

    @abstractmethod
    async def get(self, artifact_id: str) -> Optional[ArtifactRecord]:
        """Return the record stored for ``artifact_id``, or None."""

    @abstractmethod
    async def upsert(self, artifact_id: str, record: ArtifactRecord) -> None:
        """Insert or fully replace the record stored for ``artifact_id``.

        Raises:
            TimestampStoreError: If the write fails.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored records."""


# =============================================================================
# InMemoryTimestampStore
# =============================================================================
# Records survive disconnect()/connect() cycles so that two engine instances
# sharing one store object behave like two processes sharing a database.
# Records are copied on the way in and out: callers never hold a reference
# into the store's own state.
# =============================================================================
class InMemoryTimestampStore(TimestampStore):
    """Dict-backed timestamp store.

    Data lives as long as the store object, not the process.

    Example:
        >>> store = InMemoryTimestampStore()
        >>> await store.connect()
        >>> await store.upsert("out.css", record)
        >>> await store.count()
        1
    """

    def __init__(self) -> None:
        self._records: dict[str, ArtifactRecord] = {}
        self._connected: bool = False
        self._logger = logger.bind(component="in_memory_timestamp_store")

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True
        self._logger.debug("timestamp_store_connected")

    async def disconnect(self) -> None:
        self._connected = False
        self._logger.debug("timestamp_store_disconnected")

    async def load_all(self) -> list[ArtifactRecord]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    async def get(self, artifact_id: str) -> Optional[ArtifactRecord]:
        record = self._records.get(artifact_id)
        return record.model_copy(deep=True) if record is not None else None

    async def upsert(self, artifact_id: str, record: ArtifactRecord) -> None:
        self._records[artifact_id] = record.model_copy(deep=True)
        self._logger.debug(
            "timestamp_record_saved",
            artifact_id=artifact_id,
            dependency_count=len(record.dependencies),
        )

    async def count(self) -> int:
        return len(self._records)


# =============================================================================
# JsonFileTimestampStore
# =============================================================================
# Durable backend: a single JSON document mapping artifact id to record.
#
#   {
#     "public/bundle.css": {
#       "artifact_id": "public/bundle.css",
#       "dependencies": [{"path": "src/a.scss", "timestamp": "..."}]
#     }
#   }
#
# The document is read once on connect() and rewritten in full on every
# upsert. Writes go to a temporary file in the same directory followed by
# os.replace(), so a crash never leaves a truncated document behind.
# Blocking file I/O runs in a worker thread (asyncio.to_thread).
# =============================================================================
class JsonFileTimestampStore(TimestampStore):
    """Timestamp store persisted as a JSON document on disk.

    Attributes:
        path: Location of the JSON document.
        indent: JSON indentation (None for compact output).

    Example:
        >>> store = JsonFileTimestampStore(".buildcache/timestamps.json")
        >>> await store.connect()
        >>> records = await store.load_all()
    """

    def __init__(self, path: str | os.PathLike[str], indent: Optional[int] = 2) -> None:
        self.path = Path(path)
        self.indent = indent
        self._records: dict[str, ArtifactRecord] = {}
        self._connected: bool = False
        self._write_lock = asyncio.Lock()
        self._logger = logger.bind(
            component="json_timestamp_store", path=str(self.path)
        )

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        """Read the JSON document into memory.

        A missing document is an empty store. An unreadable or malformed
        document raises TimestampStoreError.
        """
        self._records = await asyncio.to_thread(self._read_document)
        self._connected = True
        self._logger.info("timestamp_store_connected", record_count=len(self._records))

    async def disconnect(self) -> None:
        self._records = {}
        self._connected = False
        self._logger.info("timestamp_store_disconnected")

    async def load_all(self) -> list[ArtifactRecord]:
        self._ensure_connected()
        return [record.model_copy(deep=True) for record in self._records.values()]

    async def get(self, artifact_id: str) -> Optional[ArtifactRecord]:
        self._ensure_connected()
        record = self._records.get(artifact_id)
        return record.model_copy(deep=True) if record is not None else None

    async def upsert(self, artifact_id: str, record: ArtifactRecord) -> None:
        """Replace the record for ``artifact_id`` and rewrite the document.

        The in-memory copy is only updated once the document is on disk.
        """
        self._ensure_connected()
        async with self._write_lock:
            updated = dict(self._records)
            updated[artifact_id] = record.model_copy(deep=True)
            await asyncio.to_thread(self._write_document, updated)
            self._records = updated
        self._logger.debug(
            "timestamp_record_saved",
            artifact_id=artifact_id,
            dependency_count=len(record.dependencies),
        )

    async def count(self) -> int:
        self._ensure_connected()
        return len(self._records)

    # -------------------------------------------------------------------------
    # Internal Helpers (run in a worker thread)
    # -------------------------------------------------------------------------
    def _read_document(self) -> dict[str, ArtifactRecord]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                raw: Any = json.load(f)
        except (OSError, ValueError) as exc:
            raise TimestampStoreError(
                message=f"Cannot read timestamp store: {self.path}",
                error_code="STORE_READ_FAILED",
                details={"path": str(self.path), "error": str(exc)},
            ) from exc

        if not isinstance(raw, dict):
            raise TimestampStoreError(
                message=f"Timestamp store is not a JSON object: {self.path}",
                error_code="STORE_CORRUPT",
                details={"path": str(self.path)},
            )

        records: dict[str, ArtifactRecord] = {}
        for artifact_id, payload in raw.items():
            try:
                records[artifact_id] = ArtifactRecord.model_validate(payload)
            except ValidationError as exc:
                raise TimestampStoreError(
                    message=f"Corrupt record for {artifact_id!r} in {self.path}",
                    error_code="STORE_CORRUPT",
                    details={"path": str(self.path), "artifact_id": artifact_id},
                ) from exc
        return records

    def _write_document(self, records: dict[str, ArtifactRecord]) -> None:
        document = {
            artifact_id: record.model_dump(mode="json")
            for artifact_id, record in records.items()
        }
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=self.indent, sort_keys=True)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise TimestampStoreError(
                message=f"Cannot write timestamp store: {self.path}",
                error_code="STORE_WRITE_FAILED",
                details={"path": str(self.path), "error": str(exc)},
            ) from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise TimestampStoreError(
                message="JsonFileTimestampStore is not connected. Call connect() first.",
                error_code="STORE_NOT_CONNECTED",
                details={"path": str(self.path)},
            )
