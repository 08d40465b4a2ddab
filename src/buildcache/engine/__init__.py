"""
buildcache.engine - Registration/Invalidation Engine
======================================================

    - ArtifactRegistry: in-memory artifact table owned by one engine
    - RebuildEngine:    register / check_and_rebuild_if_stale
"""

from buildcache.engine.rebuild_engine import RebuildEngine
from buildcache.engine.registry import ArtifactRegistry

__all__ = ["ArtifactRegistry", "RebuildEngine"]
