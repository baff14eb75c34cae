from __future__ import annotations

from enum import Enum
from typing import Any

# First platform version with scoped storage; at or above it writes go through
# the content broker.
SCOPED_STORAGE_MIN_VERSION = 29


class StorageRegime(str, Enum):
    INDEXED = "indexed"
    DIRECT = "direct"


def _as_version(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def detect(platform_version: Any, threshold: int = SCOPED_STORAGE_MIN_VERSION) -> StorageRegime:
    """Pick the storage regime for a platform version. Pure and total."""
    if _as_version(platform_version) >= threshold:
        return StorageRegime.INDEXED
    return StorageRegime.DIRECT
