from __future__ import annotations

from typing import Optional, Sequence

from providers.media_scanner import MediaScanner, ScanCallback


class DisabledMediaScanner(MediaScanner):
    def scan_file(
        self,
        paths: Sequence[str],
        mime_types: Optional[Sequence[Optional[str]]] = None,
        on_completed: Optional[ScanCallback] = None,
    ):
        return None
