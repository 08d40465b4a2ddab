"""
buildcache.producers.concatenation - Text Concatenation Producer
==================================================================

Joins a list of text files into a single artifact, in declaration order.
Useful for plain stylesheet or script bundles that need no compilation
step, and as the reference producer in the test suite.

Example:
    >>> producer = ConcatenationProducer(
    ...     "public/site.css",
    ...     ["styles/reset.css", "styles/layout.css"],
    ...     header="/* generated */",
    ... )
    >>> await producer.produce(engine)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Sequence

from buildcache.core.paths import PathLike
from buildcache.producers.base import BaseProducer


class ConcatenationProducer(BaseProducer):
    """Producer writing the concatenation of its text inputs.

    Attributes:
        separator: String inserted between consecutive inputs.
        header: Optional first line of the artifact.
        encoding: Text encoding for inputs and output.
    """

    def __init__(
        self,
        output_path: PathLike,
        dependencies: Sequence[PathLike],
        *,
        separator: str = "\n",
        header: Optional[str] = None,
        encoding: str = "utf-8",
    ) -> None:
        super().__init__(output_path, dependencies)
        self.separator = separator
        self.header = header
        self.encoding = encoding

    async def _build(self) -> None:
        await asyncio.to_thread(self._write_bundle)

    def _write_bundle(self) -> None:
        parts = [Path(path).read_text(encoding=self.encoding) for path in self.dependencies]
        if self.header is not None:
            parts.insert(0, self.header)
        Path(self.output_path).write_text(self.separator.join(parts), encoding=self.encoding)
