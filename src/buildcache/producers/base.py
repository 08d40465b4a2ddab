"""
buildcache.producers.base - Base Producer
===========================================

A producer owns one output artifact, the inputs it is generated from, and
the procedure that regenerates it. BaseProducer implements the Template
Method pattern: ``produce(engine)`` handles registration with the
RebuildEngine, subclasses only implement ``_build()``.

    producer.produce(engine)
        └── engine.register(output_path, dependencies, producer.build)
                └── (only when stale) producer.build()
                        └── subclass._build()

Contract for ``_build()``:
    - Write the complete artifact to ``output_path`` before returning.
    - Be safe to call repeatedly; the engine calls it zero or one times per
      produce() call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import structlog

from buildcache.core.enums import RebuildReason
from buildcache.core.paths import PathLike, normalize_path

if TYPE_CHECKING:
    from buildcache.engine.rebuild_engine import RebuildEngine


logger = structlog.get_logger()


class BaseProducer(ABC):
    """Abstract base class for artifact producers.

    Attributes:
        output_path: Normalized path of the generated artifact.
        dependencies: Normalized input paths, in declaration order.
        build_count: How many times ``build()`` actually ran.

    Example:
        >>> class CopyProducer(BaseProducer):
        ...     async def _build(self) -> None:
        ...         Path(self.output_path).write_bytes(
        ...             Path(self.dependencies[0]).read_bytes()
        ...         )
        ...
        >>> await CopyProducer("out/a.txt", ["src/a.txt"]).produce(engine)
    """

    def __init__(self, output_path: PathLike, dependencies: Sequence[PathLike]) -> None:
        self.output_path = normalize_path(output_path)
        self.dependencies = [normalize_path(d) for d in dependencies]
        self.build_count = 0
        self._logger = logger.bind(
            producer=type(self).__name__, artifact_id=self.output_path
        )

    async def produce(self, engine: RebuildEngine) -> RebuildReason:
        """Register this producer's artifact, rebuilding it if stale.

        Returns:
            The engine's decision for this call.
        """
        return await engine.register(self.output_path, self.dependencies, self.build)

    async def check(self, engine: RebuildEngine) -> RebuildReason:
        """Revalidate the artifact without re-declaring its dependencies."""
        return await engine.check_and_rebuild_if_stale(self.output_path, self.build)

    async def build(self) -> None:
        """Regenerate the artifact unconditionally."""
        self._logger.info("producer_building", dependency_count=len(self.dependencies))
        Path(self.output_path).parent.mkdir(parents=True, exist_ok=True)
        await self._build()
        self.build_count += 1

    @abstractmethod
    async def _build(self) -> None:
        """Write the artifact to ``self.output_path``."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}("
            f"output_path={self.output_path!r}, "
            f"dependencies={self.dependencies!r})"
        )
