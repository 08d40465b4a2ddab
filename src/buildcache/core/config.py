"""
buildcache.core.config - Configuration Management
===================================================

Configuration can be loaded from multiple sources with the following
priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with BUILDCACHE_)
    3. YAML configuration file (buildcache.yaml)
    4. Default values defined in the models below

Architecture Context:
    The top-level BuildCacheConfig is created once, at startup, and handed to
    the BuildCache facade:

        BuildCacheConfig
            ├── execution_mode → RebuildEngine (mode policy, fixed per process)
            ├── StoreConfig    → create_timestamp_store() → TimestampStore
            └── log_level

Usage:
    # Load from environment variables:
    config = BuildCacheConfig()

    # Load from YAML file:
    config = load_config("buildcache.yaml")

    # Explicit overrides:
    config = BuildCacheConfig(execution_mode="debug")

Environment Variables:
    BUILDCACHE_EXECUTION_MODE=production
    BUILDCACHE_LOG_LEVEL=DEBUG
    BUILDCACHE_STORE__BACKEND=json
    BUILDCACHE_STORE__PATH=/var/cache/site/timestamps.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from buildcache.core.enums import ExecutionMode
from buildcache.core.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "buildcache.yaml"


# =============================================================================
# Store Configuration
# =============================================================================
# Selects and parameterizes the durable timestamp store. Only consulted in
# checked modes; a production-mode process never opens the store.
# =============================================================================
class StoreConfig(BaseModel):
    """Configuration for the timestamp store backend.

    Attributes:
        backend: "json" for the file-backed store, "memory" for a
            process-local store (tests, throwaway runs).
        path: Location of the JSON document for the "json" backend.
        indent: Indentation of the JSON document. None writes it compactly.
    """

    backend: Literal["memory", "json"] = Field(
        default="json",
        description="Timestamp store backend: 'json' or 'memory'",
    )
    path: str = Field(
        default=".buildcache/timestamps.json",
        description="Path of the JSON timestamp document",
    )
    indent: Optional[int] = Field(
        default=2,
        ge=0,
        le=8,
        description="JSON indentation (None for compact output)",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   BUILDCACHE_EXECUTION_MODE  → config.execution_mode
#   BUILDCACHE_LOG_LEVEL       → config.log_level
#   BUILDCACHE_STORE__PATH     → config.store.path
# =============================================================================
class BuildCacheConfig(BaseSettings):
    """Top-level configuration for buildcache.

    Attributes:
        execution_mode: Mode policy. "production" always rebuilds and never
            touches the store; "development" and "debug" run the
            invalidation logic. Legacy integer codes 0, 1, 2 are accepted.
        log_level: Logging level name.
        store: Timestamp store configuration (see StoreConfig).

    Example:
        >>> config = BuildCacheConfig(
        ...     execution_mode="development",
        ...     store=StoreConfig(backend="memory"),
        ... )
    """

    execution_mode: ExecutionMode = Field(
        default=ExecutionMode.DEVELOPMENT,
        description="production | development | debug (or 0 | 1 | 2)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig,
        description="Timestamp store configuration",
    )

    model_config = {
        "env_prefix": "BUILDCACHE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }

    @field_validator("execution_mode", mode="before")
    @classmethod
    def _accept_mode_codes(cls, value: Any) -> Any:
        # Older deployments configure the mode as 0/1/2.
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return ExecutionMode.from_code(value)
        if isinstance(value, str) and value.strip().isdigit():
            return ExecutionMode.from_code(int(value.strip()))
        if isinstance(value, str):
            return value.strip().lower()
        return value


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> BuildCacheConfig:
    """Load buildcache configuration from a YAML file and/or environment.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'buildcache.yaml' in the current directory and falls back to
            defaults + environment variables when it doesn't exist.

    Returns:
        A fully validated BuildCacheConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        ConfigurationError: If the YAML file cannot be parsed or its top
            level is not a mapping.
    """
    if path is None:
        default_path = Path(DEFAULT_CONFIG_FILE)
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            try:
                raw_data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    message=f"Invalid YAML in configuration file: {path}",
                    error_code="INVALID_CONFIG_FILE",
                    details={"path": str(path), "error": str(exc)},
                ) from exc

        if isinstance(raw_data, dict):
            yaml_data = raw_data
        elif raw_data is not None:
            raise ConfigurationError(
                message=f"Configuration file must contain a mapping: {path}",
                error_code="INVALID_CONFIG_FILE",
                details={"path": str(path), "type": type(raw_data).__name__},
            )

    return BuildCacheConfig(**yaml_data)


def get_default_config() -> BuildCacheConfig:
    """Create a BuildCacheConfig with defaults (overridden by env vars)."""
    return BuildCacheConfig()
