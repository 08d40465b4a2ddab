"""
Tests for buildcache.facade - BuildCache Top-Level Facade
===========================================================

What's Being Tested:
    - Initialization and shutdown lifecycle, async context manager
    - Store wiring per execution mode (none in production)
    - Bootstrap across facade instances sharing a JSON store on disk
    - Pass-through operations and uninitialized access
"""

from pathlib import Path

import pytest

from buildcache import BuildCache, __version__
from buildcache.core.config import BuildCacheConfig, StoreConfig
from buildcache.core.enums import ExecutionMode, RebuildReason
from buildcache.core.exceptions import BootstrapError
from buildcache.infrastructure.timestamp_store import (
    InMemoryTimestampStore,
    JsonFileTimestampStore,
)
from buildcache.producers.concatenation import ConcatenationProducer


def _json_config(tmp_path: Path, mode: str = "development") -> BuildCacheConfig:
    return BuildCacheConfig(
        execution_mode=mode,
        store=StoreConfig(backend="json", path=str(tmp_path / "cache" / "ts.json")),
    )


class TestLifecycle:
    """initialize / shutdown / context manager."""

    async def test_version(self) -> None:
        assert __version__ == "0.1.0"

    async def test_initialize_and_shutdown(self, config) -> None:
        cache = BuildCache(config)
        assert cache.is_initialized is False

        await cache.initialize()
        await cache.initialize()
        assert cache.is_initialized is True
        assert cache.engine.is_ready is True

        await cache.shutdown()
        await cache.shutdown()
        assert cache.is_initialized is False

    async def test_reinitialize_keeps_registered_actions(
        self, config, probe, make_action
    ) -> None:
        cache = BuildCache(config, probe=probe)
        await cache.initialize()
        probe.write("src/a.css")
        action = make_action(output="out.css")
        await cache.register("out.css", ["src/a.css"], action)

        await cache.shutdown()
        await cache.initialize()
        probe.write("src/a.css", seconds=60)
        reason = await cache.check_and_rebuild_if_stale("out.css")

        assert reason == RebuildReason.DEPENDENCY_CHANGED
        assert action.calls == 2
        await cache.shutdown()

    async def test_context_manager(self, config) -> None:
        async with BuildCache(config) as cache:
            assert cache.is_initialized is True
        assert cache.is_initialized is False

    async def test_uninitialized_access_raises(self, config) -> None:
        cache = BuildCache(config)
        with pytest.raises(RuntimeError, match="not been initialized"):
            await cache.register("out.css", ["a.css"], lambda: None)

    async def test_production_has_no_store(self, tmp_path: Path) -> None:
        cache = BuildCache(_json_config(tmp_path, mode="production"))
        await cache.initialize()
        assert cache.store is None
        assert cache.mode == ExecutionMode.PRODUCTION
        assert not (tmp_path / "cache").exists()

    async def test_custom_store_is_used(self, config) -> None:
        store = InMemoryTimestampStore()
        cache = BuildCache(config, store=store)
        assert cache.store is store

    async def test_configured_backend(self, tmp_path: Path) -> None:
        cache = BuildCache(_json_config(tmp_path))
        assert isinstance(cache.store, JsonFileTimestampStore)

    async def test_bootstrap_failure_propagates(self, store, config) -> None:
        store.fail_load = True
        cache = BuildCache(config, store=store)
        with pytest.raises(BootstrapError):
            await cache.initialize()
        assert cache.is_initialized is False

    async def test_repr(self, config) -> None:
        assert "mode='development'" in repr(BuildCache(config))


class TestOperations:
    """Operations routed through the facade."""

    async def test_register_and_check(self, config, probe, make_action) -> None:
        probe.write("src/a.css")
        action = make_action(output="out.css")
        async with BuildCache(config, probe=probe) as cache:
            assert await cache.register("out.css", "src/a.css", action) == (
                RebuildReason.DEPENDENCY_CHANGED
            )
            assert await cache.check_and_rebuild_if_stale("out.css") == (
                RebuildReason.UP_TO_DATE
            )
            assert "out.css" in cache.registry

    async def test_file_timestamps(self, config, probe) -> None:
        probe.write("site.yaml")
        async with BuildCache(config, probe=probe) as cache:
            await cache.save_file_timestamp("site.yaml")
            assert await cache.check_file_timestamp("site.yaml") is True


@pytest.mark.integration
class TestPersistenceAcrossRuns:
    """Two facade instances sharing a JSON store behave like two processes."""

    async def test_second_run_skips_fresh_artifact(self, tmp_path: Path) -> None:
        source = tmp_path / "page.txt"
        source.write_text("hello")
        output = tmp_path / "public" / "page.txt"

        async with BuildCache(_json_config(tmp_path)) as cache:
            first = ConcatenationProducer(output, [source])
            assert await cache.build(first) == RebuildReason.DEPENDENCY_CHANGED

        async with BuildCache(_json_config(tmp_path)) as cache:
            assert len(cache.registry) == 1
            second = ConcatenationProducer(output, [source])
            assert await cache.build(second) == RebuildReason.UP_TO_DATE
            assert second.build_count == 0

    async def test_production_run_ignores_cache(self, tmp_path: Path) -> None:
        source = tmp_path / "page.txt"
        source.write_text("hello")
        output = tmp_path / "page.out"

        async with BuildCache(_json_config(tmp_path)) as cache:
            await cache.build(ConcatenationProducer(output, [source]))

        async with BuildCache(_json_config(tmp_path, mode="production")) as cache:
            producer = ConcatenationProducer(output, [source])
            assert await cache.build(producer) == RebuildReason.TRUSTED_MODE
            assert producer.build_count == 1


class TestStartupFailures:
    """A store that cannot be opened stops startup."""

    async def test_corrupt_json_store_is_bootstrap_failure(self, tmp_path: Path) -> None:
        config = _json_config(tmp_path)
        store_path = Path(config.store.path)
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{broken")

        cache = BuildCache(config)
        with pytest.raises(BootstrapError) as exc_info:
            await cache.initialize()

        assert exc_info.value.details["error_type"] == "TimestampStoreError"
        assert cache.is_initialized is False
