"""
Tests for buildcache.infrastructure.timestamp_store
=====================================================

What's Being Tested:
    - InMemoryTimestampStore: upsert/get/load_all/count, copy isolation
    - JsonFileTimestampStore: durability across instances, full-record
      replacement, corrupt documents, atomic writes
    - create_timestamp_store: backend selection
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from buildcache.core.config import StoreConfig
from buildcache.core.exceptions import ConfigurationError, TimestampStoreError
from buildcache.core.models import ArtifactRecord, DependencyRecord
from buildcache.infrastructure.factory import create_timestamp_store
from buildcache.infrastructure.timestamp_store import (
    InMemoryTimestampStore,
    JsonFileTimestampStore,
    TimestampStore,
)


TS = datetime(2024, 5, 1, 10, 0, 0, 654321, tzinfo=timezone.utc)


def _record(artifact_id: str = "public/site.css", *paths: str) -> ArtifactRecord:
    return ArtifactRecord(
        artifact_id=artifact_id,
        dependencies=[
            DependencyRecord(path=p, timestamp=TS) for p in paths or ("styles/a.css",)
        ],
    )


# =============================================================================
# Tests: InMemoryTimestampStore
# =============================================================================
class TestInMemoryTimestampStore:
    """Tests for the dict-backed store."""

    async def test_is_a_timestamp_store(self) -> None:
        assert isinstance(InMemoryTimestampStore(), TimestampStore)

    async def test_upsert_and_get(self) -> None:
        store = InMemoryTimestampStore()
        await store.connect()
        await store.upsert("public/site.css", _record())

        record = await store.get("public/site.css")

        assert record == _record()
        assert await store.count() == 1

    async def test_get_missing_returns_none(self) -> None:
        assert await InMemoryTimestampStore().get("nope") is None

    async def test_upsert_replaces_whole_record(self) -> None:
        store = InMemoryTimestampStore()
        await store.upsert("out.css", _record("out.css", "a.css", "b.css"))
        await store.upsert("out.css", _record("out.css", "c.css"))

        record = await store.get("out.css")

        assert [d.path for d in record.dependencies] == ["c.css"]

    async def test_records_are_copied(self) -> None:
        store = InMemoryTimestampStore()
        original = _record()
        await store.upsert(original.artifact_id, original)
        original.dependencies.clear()

        loaded = await store.load_all()
        loaded[0].dependencies.clear()

        assert len((await store.get(original.artifact_id)).dependencies) == 1

    async def test_survives_disconnect(self) -> None:
        store = InMemoryTimestampStore()
        await store.connect()
        await store.upsert("out.css", _record("out.css"))
        await store.disconnect()
        await store.connect()
        assert await store.count() == 1


# =============================================================================
# Tests: JsonFileTimestampStore
# =============================================================================
class TestJsonFileTimestampStore:
    """Tests for the durable JSON-document store."""

    async def test_missing_document_is_empty(self, tmp_path: Path) -> None:
        store = JsonFileTimestampStore(tmp_path / "ts.json")
        await store.connect()
        assert await store.load_all() == []

    async def test_durable_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "cache" / "ts.json"
        first = JsonFileTimestampStore(path)
        await first.connect()
        await first.upsert("public/site.css", _record())
        await first.disconnect()

        second = JsonFileTimestampStore(path)
        await second.connect()
        records = await second.load_all()

        assert records == [_record()]
        assert records[0].dependencies[0].timestamp == TS

    async def test_document_layout(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.json"
        store = JsonFileTimestampStore(path)
        await store.connect()
        await store.upsert("out.css", _record("out.css", "a.css"))

        document = json.loads(path.read_text())

        assert list(document) == ["out.css"]
        assert document["out.css"]["artifact_id"] == "out.css"
        assert document["out.css"]["dependencies"][0]["path"] == "a.css"

    async def test_upsert_replaces_whole_record(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.json"
        store = JsonFileTimestampStore(path)
        await store.connect()
        await store.upsert("out.css", _record("out.css", "a.css", "b.css"))
        await store.upsert("out.css", _record("out.css", "b.css"))

        reopened = JsonFileTimestampStore(path)
        await reopened.connect()
        record = await reopened.get("out.css")

        assert [d.path for d in record.dependencies] == ["b.css"]
        assert await reopened.count() == 1

    async def test_no_temp_files_left(self, tmp_path: Path) -> None:
        store = JsonFileTimestampStore(tmp_path / "ts.json")
        await store.connect()
        await store.upsert("out.css", _record("out.css"))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["ts.json"]

    async def test_malformed_document_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.json"
        path.write_text("{not json")
        store = JsonFileTimestampStore(path)
        with pytest.raises(TimestampStoreError) as exc_info:
            await store.connect()
        assert exc_info.value.error_code == "STORE_READ_FAILED"

    async def test_non_object_document_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.json"
        path.write_text("[]")
        with pytest.raises(TimestampStoreError) as exc_info:
            await JsonFileTimestampStore(path).connect()
        assert exc_info.value.error_code == "STORE_CORRUPT"

    async def test_corrupt_record_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.json"
        path.write_text(json.dumps({"out.css": {"dependencies": "nope"}}))
        with pytest.raises(TimestampStoreError) as exc_info:
            await JsonFileTimestampStore(path).connect()
        assert exc_info.value.details["artifact_id"] == "out.css"

    async def test_use_before_connect_raises(self, tmp_path: Path) -> None:
        store = JsonFileTimestampStore(tmp_path / "ts.json")
        with pytest.raises(TimestampStoreError) as exc_info:
            await store.upsert("out.css", _record("out.css"))
        assert exc_info.value.error_code == "STORE_NOT_CONNECTED"

    async def test_write_failure_keeps_previous_state(self, tmp_path: Path) -> None:
        """A failed write leaves the in-memory view unchanged."""
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = JsonFileTimestampStore(blocker / "ts.json")
        await store.connect()

        with pytest.raises(TimestampStoreError) as exc_info:
            await store.upsert("out.css", _record("out.css"))

        assert exc_info.value.error_code == "STORE_WRITE_FAILED"
        assert await store.count() == 0


# =============================================================================
# Tests: create_timestamp_store
# =============================================================================
class TestStoreFactory:
    """Backend selection from StoreConfig."""

    def test_memory_backend(self) -> None:
        store = create_timestamp_store(StoreConfig(backend="memory"))
        assert isinstance(store, InMemoryTimestampStore)

    def test_json_backend(self, tmp_path: Path) -> None:
        path = tmp_path / "ts.json"
        store = create_timestamp_store(StoreConfig(backend="json", path=str(path), indent=None))
        assert isinstance(store, JsonFileTimestampStore)
        assert store.path == path
        assert store.indent is None

    def test_unknown_backend(self) -> None:
        config = StoreConfig.model_construct(backend="redis", path="x", indent=None)
        with pytest.raises(ConfigurationError) as exc_info:
            create_timestamp_store(config)
        assert exc_info.value.error_code == "UNKNOWN_STORE_BACKEND"
