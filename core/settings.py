from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class PlatformSettings:
    """
    Host platform description.

    version is the platform API level; the storage regime is derived from it
    on every publish call (see downloads.regime).
    """
    version: int


@dataclass(frozen=True)
class StorageSettings:
    """
    Storage provider configuration.

    scanner:
      - "local"     -> LocalIndexMediaScanner (background rescans into a JSONL index)
      - "disabled"  -> DisabledMediaScanner
    """
    scanner: str = "local"

    # Direct regime: public Downloads directory
    downloads_dir: str = "./data/Download"

    # Indexed regime: content broker root
    content_root: str = "./data/media"

    # Media index written by the local scanner
    media_index_file: str = ""


@dataclass(frozen=True)
class ChannelSettings:
    name: str = "paracheck/files"


@dataclass(frozen=True)
class LogSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class Settings:
    platform: PlatformSettings
    storage: StorageSettings
    channel: ChannelSettings
    log: LogSettings


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

DEFAULT_PLATFORM_VERSION = 29


def _load_platform_settings() -> PlatformSettings:
    version = _env_int("PLATFORM_VERSION", DEFAULT_PLATFORM_VERSION)
    if version < 0:
        version = DEFAULT_PLATFORM_VERSION
    return PlatformSettings(version=version)


def _normalize_scanner(raw: str) -> str:
    v = (raw or "").strip().lower()
    if v in ("disabled", "none", "off", "0", "false"):
        return "disabled"
    return "local"


def _load_storage_settings() -> StorageSettings:
    scanner = _normalize_scanner(_env("MEDIA_SCANNER", "local"))

    downloads_dir = (_env("DOWNLOADS_DIR", "") or "./data/Download").strip()
    content_root = (_env("CONTENT_ROOT", "") or "./data/media").strip()

    media_index_file = (_env("MEDIA_INDEX_FILE", "") or "").strip()
    if not media_index_file:
        media_index_file = os.path.join(content_root, "scanned.jsonl")

    return StorageSettings(
        scanner=scanner,
        downloads_dir=downloads_dir,
        content_root=content_root,
        media_index_file=media_index_file,
    )


def _load_channel_settings() -> ChannelSettings:
    name = (_env("CHANNEL_NAME", "") or "paracheck/files").strip().strip("/")
    return ChannelSettings(name=name or "paracheck/files")


def _load_log_settings() -> LogSettings:
    level = (_env("LOG_LEVEL", "") or "INFO").strip().upper()
    return LogSettings(level=level)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        platform=_load_platform_settings(),
        storage=_load_storage_settings(),
        channel=_load_channel_settings(),
        log=_load_log_settings(),
    )
