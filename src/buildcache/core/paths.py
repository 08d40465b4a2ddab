"""
buildcache.core.paths - Path and Timestamp Canonicalization
=============================================================

Artifact identifiers and dependency paths are used as registry and store
keys, so equivalent spellings must collide. Every path entering the engine
goes through ``normalize_path`` first:

    "public\\css\\bundle.css"  →  "public/css/bundle.css"
    "./public//css/../css/x"   →  "public/css/x"

Modification times are converted to timezone-aware UTC datetimes from the
nanosecond mtime, truncated to microseconds so that the value survives a
JSON round trip through the timestamp store unchanged.
"""

from __future__ import annotations

import os
import posixpath
from datetime import datetime, timedelta, timezone
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_path(path: PathLike) -> str:
    """Return the canonical, forward-slash form of ``path``.

    Args:
        path: A string or path-like object.

    Returns:
        The normalized path. An empty input yields an empty string so that
        callers can reject it with their own error.
    """
    raw = os.fspath(path)
    if not raw:
        return ""
    return posixpath.normpath(raw.replace("\\", "/"))


def timestamp_from_ns(mtime_ns: int) -> datetime:
    """Convert a nanosecond POSIX timestamp to a UTC datetime (µs precision)."""
    return _EPOCH + timedelta(microseconds=mtime_ns // 1_000)
