from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.settings import Settings, get_settings
from providers.content_broker import ContentBroker
from providers.media_scanner import MediaScanner
from providers.impl.broker_local_files import LocalFilesContentBroker
from providers.impl.scanner_disabled import DisabledMediaScanner
from providers.impl.scanner_local_index import LocalIndexMediaScanner


@dataclass(frozen=True)
class Providers:
    """
    Central container for providers.
    """
    settings: Settings
    broker: ContentBroker
    scanner: MediaScanner


def _build_broker(settings: Settings) -> ContentBroker:
    # The local directory broker is the only backend.
    return LocalFilesContentBroker.from_settings(settings.storage)


def _build_scanner(settings: Settings) -> MediaScanner:
    if settings.storage.scanner == "disabled":
        return DisabledMediaScanner()
    return LocalIndexMediaScanner.from_settings(settings.storage)


def build_providers(settings: Settings) -> Providers:
    return Providers(
        settings=settings,
        broker=_build_broker(settings),
        scanner=_build_scanner(settings),
    )


_cached: Optional[Providers] = None


def get_providers() -> Providers:
    global _cached
    if _cached is None:
        _cached = build_providers(get_settings())
    return _cached


def reset_providers() -> None:
    global _cached
    _cached = None
