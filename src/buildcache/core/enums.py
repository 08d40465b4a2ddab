"""
buildcache.core.enums - Type-Safe Enumerations
================================================

This module defines the enumeration types used throughout buildcache.

All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They can be compared with plain strings: ExecutionMode.DEBUG == "debug"

Mode Policy:
    ┌──────────────┬──────────────────────┬──────────────────────────┐
    │ Mode         │ Invalidation checks  │ Per-dependency logging   │
    ├──────────────┼──────────────────────┼──────────────────────────┤
    │ production   │ no (always rebuild)  │ no                       │
    │ development  │ yes                  │ no                       │
    │ debug        │ yes                  │ yes                      │
    └──────────────┴──────────────────────┴──────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Execution Mode Enumeration
# =============================================================================
# The mode is chosen once, at startup, and fixed for the lifetime of an
# engine. PRODUCTION trusts a previously built snapshot and never consults
# the timestamp store. DEVELOPMENT and DEBUG run the full invalidation logic
# and differ only in logging verbosity.
# =============================================================================
class ExecutionMode(str, Enum):
    """Process-wide execution mode gating the invalidation logic.

    Usage:
        >>> mode = ExecutionMode.DEVELOPMENT
        >>> mode.is_checked
        True
        >>> ExecutionMode.from_code(0)
        <ExecutionMode.PRODUCTION: 'production'>
    """

    PRODUCTION = "production"     # Trusted: always rebuild, no cache state
    DEVELOPMENT = "development"   # Checked: rebuild only when stale
    DEBUG = "debug"               # Checked + per-dependency diagnostics

    @property
    def is_checked(self) -> bool:
        """Whether timestamp comparison and persistence are active."""
        return self is not ExecutionMode.PRODUCTION

    @property
    def is_verbose(self) -> bool:
        """Whether per-dependency diagnostic events are emitted."""
        return self is ExecutionMode.DEBUG

    @classmethod
    def from_code(cls, code: int) -> "ExecutionMode":
        """Map a legacy integer mode code (0, 1, 2) to an ExecutionMode.

        Raises:
            ValueError: If the code is not one of 0, 1 or 2.
        """
        codes = {0: cls.PRODUCTION, 1: cls.DEVELOPMENT, 2: cls.DEBUG}
        if code not in codes:
            raise ValueError(
                f"Unknown execution mode code: {code}. Expected 0, 1 or 2."
            )
        return codes[code]


# =============================================================================
# Rebuild Reason Enumeration
# =============================================================================
# Why the engine decided to invoke (or skip) a rebuild action. Reported in
# log events and returned from the engine so callers and tests can tell the
# decision paths apart.
# =============================================================================
class RebuildReason(str, Enum):
    """Outcome of a single register/check decision."""

    TRUSTED_MODE = "trusted_mode"             # Production mode fast path
    DEPENDENCY_CHANGED = "dependency_changed"  # New or modified dependency
    ARTIFACT_MISSING = "artifact_missing"      # Output absent from disk
    UP_TO_DATE = "up_to_date"                  # Rebuild skipped
    NOT_REGISTERED = "not_registered"          # Nothing known to validate

    @property
    def rebuilt(self) -> bool:
        """Whether this outcome invoked the rebuild action."""
        return self in (
            RebuildReason.TRUSTED_MODE,
            RebuildReason.DEPENDENCY_CHANGED,
            RebuildReason.ARTIFACT_MISSING,
        )
