"""
Incremental Site Example — Rebuild Only What Changed
======================================================

This example builds a small static site twice. The first run generates
every artifact; the second run finds nothing stale and skips them all.
Editing a stylesheet between runs rebuilds only the CSS bundle.

Usage:
    python examples/incremental_site.py
    BUILDCACHE_EXECUTION_MODE=production python examples/incremental_site.py
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

from buildcache.core.config import BuildCacheConfig, StoreConfig
from buildcache.facade import BuildCache
from buildcache.producers.concatenation import ConcatenationProducer


async def build_site(root: Path, config: BuildCacheConfig) -> None:
    """Declare the site's artifacts and print each decision."""
    producers = [
        ConcatenationProducer(
            root / "public" / "site.css",
            [root / "styles" / "reset.css", root / "styles" / "layout.css"],
            header="/* generated */",
        ),
        ConcatenationProducer(
            root / "public" / "index.html",
            [root / "pages" / "header.html", root / "pages" / "index.html"],
        ),
    ]

    async with BuildCache(config) as cache:
        for producer in producers:
            reason = await cache.build(producer)
            print(f"{Path(producer.output_path).name:<12} {reason.value}")


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        for relative, content in {
            "styles/reset.css": "* { margin: 0; }",
            "styles/layout.css": ".page { width: 100%; }",
            "pages/header.html": "<header>Site</header>",
            "pages/index.html": "<main>Hello</main>",
        }.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

        config = BuildCacheConfig(
            store=StoreConfig(path=str(root / ".buildcache" / "timestamps.json")),
        )

        print("First run")
        print("-" * 40)
        await build_site(root, config)

        print()
        print("Second run (nothing changed)")
        print("-" * 40)
        await build_site(root, config)

        layout = root / "styles" / "layout.css"
        layout.write_text(".page { width: 80%; }")
        stat = layout.stat()

        os.utime(layout, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        print()
        print("Third run (layout.css edited)")
        print("-" * 40)
        await build_site(root, config)


if __name__ == "__main__":
    asyncio.run(main())
