"""
buildcache.core.exceptions - Custom Exception Hierarchy
=========================================================

Components raise and catch specific exception types that carry
contextual information instead of bare strings.

Exception Hierarchy:
    BuildCacheError (base)
        ├── ConfigurationError     - Invalid config, unreadable config file
        ├── RegistrationError      - Invalid register/snapshot arguments
        ├── TimestampStoreError    - Store backend read/write failures
        ├── BootstrapError         - Store unreachable during startup load
        ├── ProbeError             - A dependency could not be stat'ed
        └── PersistError           - The store rejected an upsert

Errors raised by a producer's rebuild action are NOT wrapped: they reach
the caller exactly as the producer raised them.

Usage:
    >>> from buildcache.core.exceptions import ProbeError
    >>> raise ProbeError(
    ...     message="Dependency not found: styles/main.css",
    ...     artifact_id="public/bundle.css",
    ...     path="styles/main.css",
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All buildcache exceptions inherit from this base class, so callers can
# catch every cache-engine failure with a single except clause.
# =============================================================================
class BuildCacheError(Exception):
    """Base exception for all buildcache errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code (UPPER_SNAKE_CASE).
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(BuildCacheError):
    """Raised when buildcache configuration is invalid or unreadable.

    Example:
        >>> raise ConfigurationError(
        ...     message="Unknown store backend: 'redis'",
        ...     error_code="UNKNOWN_STORE_BACKEND",
        ...     details={"backend": "redis"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Registration Error
# =============================================================================
# Raised before any registry, store or filesystem access happens, when the
# caller's arguments break the register() preconditions.
# =============================================================================
class RegistrationError(BuildCacheError):
    """Raised when a registration or snapshot call has invalid arguments.

    Common Causes:
        - Empty artifact identifier
        - Empty dependency list
        - Checking a file timestamp that was never saved
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_REGISTRATION",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Timestamp Store Error
# =============================================================================
class TimestampStoreError(BuildCacheError):
    """Raised by a TimestampStore backend when a read or write fails.

    The engine translates these into BootstrapError (startup) or
    PersistError (upsert) so callers see which phase failed.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "STORE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Bootstrap Error
# =============================================================================
# Fatal: a checked-mode engine cannot decide staleness without the persisted
# baseline, so startup must stop here.
# =============================================================================
class BootstrapError(BuildCacheError):
    """Raised when persisted timestamps cannot be loaded at startup."""

    def __init__(
        self,
        message: str,
        error_code: str = "BOOTSTRAP_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Probe Error
# =============================================================================
class ProbeError(BuildCacheError):
    """Raised when a dependency path cannot be stat'ed.

    The registry and the store are left exactly as they were before the
    failing call.

    Attributes:
        artifact_id: The artifact whose registration failed.
        path: The dependency path that could not be probed.
    """

    def __init__(
        self,
        message: str,
        artifact_id: str,
        path: str,
        error_code: str = "PROBE_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["artifact_id"] = artifact_id
        enriched_details["path"] = path

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.artifact_id = artifact_id
        self.path = path


# =============================================================================
# Persist Error
# =============================================================================
# When the store rejects an upsert the rebuild action is not invoked: the
# store would otherwise disagree with what was actually built.
# =============================================================================
class PersistError(BuildCacheError):
    """Raised when the timestamp store rejects an upsert.

    Attributes:
        artifact_id: The artifact whose record could not be written.
    """

    def __init__(
        self,
        message: str,
        artifact_id: str,
        error_code: str = "PERSIST_FAILED",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["artifact_id"] = artifact_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.artifact_id = artifact_id
