"""
buildcache - Incremental Artifact Rebuild Cache
=================================================

Producers (bundlers, renderers, converters) declare an output artifact and
the input files it depends on. buildcache regenerates the artifact only
when it is stale:

    - a dependency is new or its modification time changed, or
    - the artifact is missing from disk.

In production mode every declaration rebuilds unconditionally and no cache
state is read or written.

Quick Start:
    >>> from buildcache import BuildCache
    >>> async with BuildCache() as cache:
    ...     await cache.register("public/site.css", ["styles/site.css"], build)
"""

__version__ = "0.1.0"

from buildcache.facade import BuildCache

__all__ = ["BuildCache", "__version__"]
