from __future__ import annotations

import json
import logging
import mimetypes
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from core.settings import StorageSettings
from providers.media_scanner import MediaScanner, ScanCallback

log = logging.getLogger(__name__)


class LocalIndexMediaScanner(MediaScanner):
    """
    Media index kept as a JSON-lines file.

    Every scanned path is appended as one record (path, mime type, size,
    scan time). Scans run on a single background worker so callers never
    block on the index.
    """

    def __init__(self, index_file: str, executor: Optional[ThreadPoolExecutor] = None):
        index_file = (index_file or "").strip()
        if not index_file:
            raise RuntimeError("MEDIA_INDEX_FILE is required for the local media scanner")
        self.index_file = os.path.abspath(index_file)
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="media-scan")
        self._write_lock = threading.Lock()

    @classmethod
    def from_settings(cls, storage: StorageSettings) -> "LocalIndexMediaScanner":
        return cls(index_file=storage.media_index_file)

    def scan_file(
        self,
        paths: Sequence[str],
        mime_types: Optional[Sequence[Optional[str]]] = None,
        on_completed: Optional[ScanCallback] = None,
    ) -> Optional[Future]:
        paths = [str(p) for p in (paths or [])]
        mimes = list(mime_types or [])
        mimes += [None] * (len(paths) - len(mimes))
        return self._executor.submit(self._scan, paths, mimes, on_completed)

    def _scan(self, paths, mimes, on_completed: Optional[ScanCallback]) -> int:
        indexed = 0
        for path, mime in zip(paths, mimes):
            uri: Optional[str] = None
            try:
                if os.path.isfile(path):
                    self._append(path, mime)
                    uri = Path(path).resolve().as_uri()
                    indexed += 1
                else:
                    log.warning("[Scanner] skip missing path=%s", path)
            except Exception:
                log.exception("[Scanner] failed to index path=%s", path)
            if on_completed is not None:
                on_completed(path, uri)
        return indexed

    def _append(self, path: str, mime: Optional[str]) -> None:
        record = {
            "path": os.path.abspath(path),
            "mime_type": mime or mimetypes.guess_type(path)[0] or "application/octet-stream",
            "size": os.path.getsize(path),
            "scanned_at": datetime.now(timezone.utc).isoformat(),
        }
        with self._write_lock:
            os.makedirs(os.path.dirname(self.index_file), exist_ok=True)
            with open(self.index_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
        log.info("[Scanner] indexed path=%s mime=%s", record["path"], record["mime_type"])

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
