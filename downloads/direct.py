from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from downloads.errors import DirectoryCreateFailed, PublishError, WriteFailed
from downloads.models import Failure, PublishRequest, PublishResult, Success
from downloads.publisher import Publisher
from providers.media_scanner import MediaScanner

log = logging.getLogger(__name__)


class DirectPublisher(Publisher):
    """
    Writes straight into the public Downloads directory (legacy platforms).

    The target is always <downloads_dir>/<filename>. An existing file with
    that name is overwritten; no collision handling is done in this regime.
    The file is visible as soon as it exists, there is no pending state.
    After the write the media scanner is asked to index the file; that
    request is best-effort and never fails the publish.
    """

    def __init__(self, downloads_dir: Union[str, Path], scanner: MediaScanner):
        self.downloads_dir = Path(downloads_dir)
        self.scanner = scanner

    def publish(self, req: PublishRequest) -> PublishResult:
        try:
            directory = self._ensure_dir()
            target = self._target(directory, req.filename)
            self._write(target, req.data)
        except PublishError as e:
            log.warning(
                "[Direct] publish failed kind=%s filename=%s: %s",
                e.kind.value, req.filename, e.message,
            )
            return Failure(kind=e.kind, message=e.message, locator=e.locator)

        self._request_scan(target, req.mime_type)

        log.info("[Direct] published filename=%s path=%s bytes=%s", req.filename, target, len(req.data))
        return Success(locator=target.as_uri())

    def _ensure_dir(self) -> Path:
        directory = self.downloads_dir.resolve()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateFailed(f"Cannot create {directory}: {e}") from e
        return directory

    def _target(self, directory: Path, filename: str) -> Path:
        target = directory / filename
        try:
            resolved = target.resolve()
        except (OSError, ValueError) as e:
            raise WriteFailed(f"Invalid target name {filename!r}: {e}") from e
        # filename must name an entry directly inside the Downloads directory
        if resolved.parent != directory:
            raise WriteFailed(f"Refusing to write outside {directory}: {filename!r}")
        return target

    def _write(self, target: Path, data: bytes) -> None:
        try:
            with open(target, "wb") as f:
                f.write(data)
        except (OSError, ValueError) as e:
            raise WriteFailed(f"Write failed for {target}: {e}") from e

    def _request_scan(self, target: Path, mime_type: str) -> None:
        try:
            self.scanner.scan_file([str(target)], [mime_type])
        except Exception:
            log.warning("[Direct] media scan request failed path=%s", target, exc_info=True)
